"""Named catalogs of categorical values.

An :class:`Attribute` is a set of values with a common element, for
instance ``temperature`` with the values ``cool``, ``mild`` and ``hot``. A
:class:`Classification` has the same shape and holds the class labels.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from id3tree.identifiers import (
    AttributeId,
    Identifier,
    IdentifierKind,
    IdentifierRegistry,
)


def _check_name(name: str, what: str) -> str:
    if not isinstance(name, str):
        raise ValueError(f"{what} must be a string, got {type(name).__name__}.")
    name = name.strip()
    if not name or any(ch.isspace() for ch in name):
        raise ValueError(f"{what} {name!r} must be non-empty and contain no whitespace.")
    return name


class Catalog:
    """Ordered mapping from value identifiers to value names.

    Parameters
    ----------
    name : str
        Name of the catalog.
    values : iterable of str
        Value names in declaration order. Names are unique within the
        catalog, compared case-insensitively.
    registry : IdentifierRegistry
        Source of the identifiers for the catalog and its values.
    """

    value_kind: IdentifierKind

    def __init__(
        self, name: str, values: Iterable[str], registry: IdentifierRegistry
    ):
        self.name = _check_name(name, "Catalog name")
        self.id: AttributeId = registry.allocate(IdentifierKind.ATTRIBUTE)
        self._values: Dict[Identifier, str] = {}
        seen = set()
        for value in values:
            value = _check_name(value, f"Value of {self.name!r}")
            key = value.casefold()
            if key in seen:
                raise ValueError(f"Duplicate value {value!r} in {self.name!r}.")
            seen.add(key)
            self._values[registry.allocate(self.value_kind)] = value

    @property
    def values(self) -> List[str]:
        return list(self._values.values())

    @property
    def value_ids(self) -> List[Identifier]:
        return list(self._values.keys())

    def items(self) -> List[Tuple[Identifier, str]]:
        return list(self._values.items())

    def value_id_for(self, name: str) -> Optional[Identifier]:
        """Return the identifier of ``name`` or ``None`` when it is unknown."""
        key = name.strip().casefold()
        for value_id, value in self._values.items():
            if value.casefold() == key:
                return value_id
        return None

    def value_for(self, value_id: Identifier) -> Optional[str]:
        """Return the name for ``value_id`` or ``None`` for unknown or wrong-kind ids."""
        if not isinstance(value_id, Identifier) or value_id.kind is not self.value_kind:
            return None
        return self._values.get(value_id)

    def __contains__(self, value_id: object) -> bool:
        return value_id in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values.values())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, {self.values!r})"


class Attribute(Catalog):
    """An attribute and its permitted values."""

    value_kind = IdentifierKind.ATTRIBUTE_VALUE


class Classification(Catalog):
    """The class labels a tree can decide between."""

    value_kind = IdentifierKind.CLASSIFICATION_VALUE

    def __init__(self, values: Iterable[str], registry: IdentifierRegistry):
        super().__init__("Classification", values, registry)
