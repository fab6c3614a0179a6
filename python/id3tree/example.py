"""Queries and labelled training examples."""

from typing import Dict, Optional

from id3tree.identifiers import (
    AttributeId,
    AttributeValueId,
    ClassificationValueId,
    IdentifierKind,
    ensure_kind,
)


class ClassificationData:
    """One value identifier per attribute, the input to a classification."""

    def __init__(self, values: Optional[Dict[AttributeId, AttributeValueId]] = None):
        self._values: Dict[AttributeId, AttributeValueId] = {}
        for attribute_id, value_id in (values or {}).items():
            self.set_value(attribute_id, value_id)

    @property
    def values(self) -> Dict[AttributeId, AttributeValueId]:
        return dict(self._values)

    def set_value(self, attribute_id: AttributeId, value_id: AttributeValueId) -> None:
        ensure_kind(attribute_id, IdentifierKind.ATTRIBUTE)
        ensure_kind(value_id, IdentifierKind.ATTRIBUTE_VALUE)
        self._values[attribute_id] = value_id

    def value_for(self, attribute_id: AttributeId) -> AttributeValueId:
        """Return the value identifier recorded for ``attribute_id``.

        Raises
        ------
        KeyError
            If the query has no value for the attribute.
        """
        ensure_kind(attribute_id, IdentifierKind.ATTRIBUTE)
        try:
            return self._values[attribute_id]
        except KeyError:
            raise KeyError(
                f"No value recorded for attribute {attribute_id.value}."
            ) from None

    def __len__(self) -> int:
        return len(self._values)

    def __str__(self) -> str:
        return ", ".join(f"{a}:{v}" for a, v in self._values.items())


class Example(ClassificationData):
    """A training instance: attribute values plus the known class."""

    def __init__(
        self,
        class_id: ClassificationValueId,
        values: Optional[Dict[AttributeId, AttributeValueId]] = None,
    ):
        super().__init__(values)
        self.class_id = ensure_kind(class_id, IdentifierKind.CLASSIFICATION_VALUE)

    def __str__(self) -> str:
        pairs = " ".join(f"( {a}={v} )" for a, v in self._values.items())
        return f"Result: {self.class_id} {pairs}".rstrip()
