import logging
import os
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple, Type, Union

import numpy as np

from id3tree.types import TextSource

logger = logging.getLogger(__name__)

PathOrStream = Union[str, "os.PathLike[str]", TextSource]


def type_df(df):
    library_name = type(df).__module__.split(".")[0]
    if type(df).__name__ == "DataFrame":
        if library_name == "pandas":
            return "pandas_df"
        elif library_name == "polars":
            return "polars_df"
    elif library_name == "numpy":
        return "numpy"
    else:
        return ""


def type_series(y):
    library_name = type(y).__module__.split(".")[0]
    if type(y).__name__ == "Series":
        if library_name == "pandas":
            return "pandas_series"
        elif library_name == "polars":
            return "polars_series"
    elif library_name == "numpy":
        return "numpy"
    else:
        return ""


def convert_input_frame(X) -> Tuple[List[str], np.ndarray]:
    """Convert categorical data to the string matrix the tree is trained on.

    Returns:
        Tuple[List[str], np.ndarray]: Return column names and a 2-D array of value names.
    """
    if type_df(X) == "pandas_df":
        X_ = X.to_numpy()
        features_ = [str(c) for c in X.columns]
    elif type_df(X) == "polars_df":
        X_ = X.to_numpy()
        features_ = list(X.columns)
    elif type_df(X) == "numpy":
        X_ = X
        features_ = [f"x{i}" for i in range(X_.shape[1] if X_.ndim == 2 else 0)]
    else:
        raise ValueError(f"Object type {type(X)} is not supported.")

    if X_.ndim != 2:
        raise ValueError(f"Expected 2-D input, got an array of shape {X_.shape}.")

    logger.debug(f"Converted {X_.shape[0]} rows with features: {features_}")
    return features_, X_.astype(str)


def convert_input_array(y) -> np.ndarray:
    if type_series(y) in ("pandas_series", "polars_series"):
        y_ = y.to_numpy()
    elif type_df(y) == "numpy":
        y_ = y
    else:
        y_ = np.asarray(y)
    if y_.ndim != 1:
        raise ValueError(f"Expected a 1-D target, got an array of shape {y_.shape}.")
    return y_


@contextmanager
def open_text(source: PathOrStream, mode: str = "r") -> Iterator:
    """Yield an open text stream for a path, or the stream itself unchanged."""
    if isinstance(source, (str, os.PathLike)):
        with open(source, mode, encoding="utf-8") as f:
            yield f
    else:
        yield source


def normalize_tree_text(text: str) -> str:
    """Strip every line and drop line-ending differences for comparisons."""
    return "\n".join(line.strip() for line in text.strip().splitlines())


class LineReader:
    """Read stripped, non-blank lines while tracking the line number.

    Parameters
    ----------
    source : TextSource
        Stream to read from.
    error : type of Exception
        Raised when the input ends before a required line.
    """

    def __init__(self, source: TextSource, error: Type[Exception] = ValueError):
        self._lines = iter(source)
        self._error = error
        self.line_number = 0

    def _next(self) -> Optional[str]:
        for raw in self._lines:
            self.line_number += 1
            line = raw.strip()
            if line:
                return line
        return None

    def read_line(self, what: str) -> str:
        line = self._next()
        if line is None:
            raise self._error(f"Unexpected end of input while reading {what}.")
        return line

    def read_tokens(self, what: str) -> List[str]:
        return self.read_line(what).split()

    def read_int(self, what: str) -> int:
        line = self.read_line(what)
        try:
            return int(line)
        except ValueError:
            raise self._error(
                f"Line {self.line_number}: expected {what}, got {line!r}."
            ) from None

    def fail(self, message: str) -> Exception:
        """Build an error for the current line."""
        return self._error(f"Line {self.line_number}: {message}")

    def __iter__(self) -> Iterator[str]:
        while True:
            line = self._next()
            if line is None:
                return
            yield line
