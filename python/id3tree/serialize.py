"""Serialization helpers for the persisted tree header.

Provides an abstract line-oriented serializer and the concrete serializer
for the catalog header that precedes every persisted tree.
"""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Generic, TypeVar

from id3tree.attribute import Attribute, Classification
from id3tree.errors import TreeFormatError
from id3tree.identifiers import AttributeId, IdentifierRegistry
from id3tree.types import TextSink
from id3tree.utils import LineReader

T = TypeVar("T")


class BaseSerializer(ABC, Generic[T]):
    """Abstract base for line-oriented serializers."""

    @abstractmethod
    def write(self, obj: T, stream: TextSink) -> None:
        """write method - should write the object's lines to the stream"""

    @abstractmethod
    def read(self, lines: LineReader) -> T:
        """read method - should consume lines and return the original object"""

    def serialize(self, obj: T) -> str:
        buffer = io.StringIO()
        self.write(obj, buffer)
        return buffer.getvalue()

    def deserialize(self, obj_repr: str) -> T:
        return self.read(LineReader(io.StringIO(obj_repr), TreeFormatError))


@dataclass
class CatalogHeader:
    """The class and attribute catalogs needed to interpret a persisted tree."""

    classes: Classification
    attributes: Dict[AttributeId, Attribute] = field(default_factory=dict)


class HeaderSerializer(BaseSerializer[CatalogHeader]):
    """Serializer for the class/attribute header.

    The header lists the number of classes, one class name per line, the
    number of attributes, and for each attribute a ``<name> <count>`` line
    followed by a line holding its value names.
    """

    def __init__(self, registry: IdentifierRegistry):
        self.registry = registry

    def write(self, obj: CatalogHeader, stream: TextSink) -> None:
        stream.write(f"{len(obj.classes)}\n")
        for class_name in obj.classes:
            stream.write(f"{class_name}\n")
        stream.write(f"{len(obj.attributes)}\n")
        for attribute in obj.attributes.values():
            stream.write(f"{attribute.name} {len(attribute)}\n")
            stream.write("".join(f" {value}" for value in attribute) + "\n")
        stream.flush()

    def read(self, lines: LineReader) -> CatalogHeader:
        n_classes = lines.read_int("the number of classes")
        class_names = [lines.read_line("a class name") for _ in range(n_classes)]
        try:
            classes = Classification(class_names, self.registry)
        except ValueError as e:
            raise lines.fail(str(e)) from e

        attributes: Dict[AttributeId, Attribute] = {}
        n_attributes = lines.read_int("the number of attributes")
        for _ in range(n_attributes):
            tokens = lines.read_tokens("an attribute declaration")
            if len(tokens) != 2:
                raise lines.fail(f"expected '<name> <count>', got {' '.join(tokens)!r}.")
            name, count = tokens
            try:
                n_values = int(count)
            except ValueError:
                raise lines.fail(f"invalid value count {count!r}.") from None
            values = lines.read_tokens(f"the values of {name!r}") if n_values else []
            if len(values) != n_values:
                raise lines.fail(
                    f"attribute {name!r} declares {n_values} values, got {len(values)}."
                )
            try:
                attribute = Attribute(name, values, self.registry)
            except ValueError as e:
                raise lines.fail(str(e)) from e
            attributes[attribute.id] = attribute

        return CatalogHeader(classes=classes, attributes=attributes)
