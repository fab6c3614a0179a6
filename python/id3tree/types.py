"""Protocol (structural typing) definitions for the text streams the tree reads and writes."""

from typing import Iterator, Protocol


class TextSink(Protocol):
    """Anything that accepts text and can be flushed, e.g. an open text file."""

    def write(self, text: str) -> int:
        """Write ``text`` and return the number of characters written."""

    def flush(self) -> None:
        """Push buffered output to the underlying device."""


class TextSource(Protocol):
    """Anything that yields text lines, e.g. an open text file or ``io.StringIO``."""

    def __iter__(self) -> Iterator[str]:
        """Iterate over the remaining lines."""
