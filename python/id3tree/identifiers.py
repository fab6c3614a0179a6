"""Kind-tagged identifiers for attributes, attribute values and classes.

Identifiers are handed out by an explicit :class:`IdentifierRegistry`. A
single counter is shared by all kinds, so raw integer values never repeat
inside one registry, while equality still requires the kinds to match.
"""

import itertools
import threading
from dataclasses import dataclass
from enum import Enum

from id3tree.errors import IdentifierKindError


class IdentifierKind(Enum):
    ATTRIBUTE = "attribute"
    ATTRIBUTE_VALUE = "attribute_value"
    CLASSIFICATION_VALUE = "classification_value"


@dataclass(frozen=True)
class Identifier:
    """Opaque integer tag plus the kind it was allocated for.

    Attributes
    ----------
    kind : IdentifierKind
        What the identifier refers to.
    value : int
        Integer allocated by the registry.
    """

    kind: IdentifierKind
    value: int

    def __str__(self) -> str:
        return str(self.value)


# Aliases used in signatures to document the expected kind.
AttributeId = Identifier
AttributeValueId = Identifier
ClassificationValueId = Identifier


def ensure_kind(identifier: Identifier, kind: IdentifierKind) -> Identifier:
    """Return ``identifier`` unchanged or raise if it is not of ``kind``."""
    if not isinstance(identifier, Identifier):
        raise IdentifierKindError(
            f"Expected a {kind.value} identifier, got {type(identifier).__name__}."
        )
    if identifier.kind is not kind:
        raise IdentifierKindError(
            f"Expected a {kind.value} identifier, got a {identifier.kind.value} "
            f"identifier ({identifier.value})."
        )
    return identifier


class IdentifierRegistry:
    """Allocates never-reused identifiers.

    Safe to share between threads building catalogs concurrently.
    """

    def __init__(self, start: int = 0):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def allocate(self, kind: IdentifierKind) -> Identifier:
        with self._lock:
            value = next(self._counter)
        return Identifier(kind=kind, value=value)
