"""Common state of concept learners: catalogs, examples and training-data loading."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from id3tree.attribute import Attribute, Classification
from id3tree.errors import TrainingDataError
from id3tree.example import ClassificationData, Example
from id3tree.identifiers import (
    AttributeId,
    ClassificationValueId,
    IdentifierKind,
    IdentifierRegistry,
    ensure_kind,
)
from id3tree.utils import LineReader, PathOrStream, open_text

logger = logging.getLogger(__name__)

CLASSES_KEYWORD = "classes"
ATTRIBUTES_KEYWORD = "attributes"
EXAMPLES_KEYWORD = "examples"


class ConceptLearner(ABC):
    """Holds the catalogs and the example store a learning algorithm works on.

    Each learner owns its :class:`IdentifierRegistry`; every catalog it builds
    draws identifiers from it.
    """

    def __init__(self):
        self.registry = IdentifierRegistry()
        self.classes = Classification([], self.registry)
        self.attributes: Dict[AttributeId, Attribute] = {}
        self.examples: List[Example] = []

    @abstractmethod
    def classify(self, query: ClassificationData) -> str:
        """Return the class name the learner assigns to ``query``."""

    def clear(self) -> None:
        """Forget all catalogs and examples."""
        self.classes = Classification([], self.registry)
        self.attributes = {}
        self.examples = []

    @property
    def n_classes(self) -> int:
        return len(self.classes)

    def get_class(self, class_id: ClassificationValueId) -> Optional[str]:
        return self.classes.value_for(class_id)

    def get_class_id(self, name: str) -> Optional[ClassificationValueId]:
        return self.classes.value_id_for(name)

    def get_attribute(self, attribute_id: AttributeId) -> Attribute:
        ensure_kind(attribute_id, IdentifierKind.ATTRIBUTE)
        try:
            return self.attributes[attribute_id]
        except KeyError:
            raise KeyError(f"Unknown attribute {attribute_id.value}.") from None

    def get_attribute_id(self, name: str) -> Optional[AttributeId]:
        key = name.strip().casefold()
        for attribute_id, attribute in self.attributes.items():
            if attribute.name.casefold() == key:
                return attribute_id
        return None

    def get_example(self, example_id: int) -> Example:
        return self.examples[example_id]

    def add_attribute(self, name: str, values: List[str]) -> Attribute:
        """Declare a new attribute whose identifiers come from this learner's registry."""
        if self.get_attribute_id(name) is not None:
            raise ValueError(f"Attribute {name!r} is already declared.")
        attribute = Attribute(name, values, self.registry)
        self.attributes[attribute.id] = attribute
        return attribute

    def set_classes(self, names: List[str]) -> Classification:
        self.classes = Classification(names, self.registry)
        return self.classes

    def add_example(self, example: Example) -> None:
        self.examples.append(example)

    def load_training_data(self, source: PathOrStream) -> bool:
        """Replace catalogs and examples with those read from ``source``.

        The input starts with ``classes <n> <name>...``, then
        ``attributes <n>``, one ``<name> <count> <value>...`` line per
        attribute, the keyword ``examples``, and one line per example holding
        the class name and one value name per attribute in declaration order.

        Parameters
        ----------
        source : str, path-like or text stream
            Where to read the training data from.

        Returns
        -------
        loaded : bool
            False if the input was malformed; the learner is then left empty.
        """
        self.clear()
        try:
            with open_text(source) as stream:
                self._read_training_data(LineReader(stream, TrainingDataError))
        except (TrainingDataError, OSError) as e:
            logger.warning(f"Unable to load training data: {e}")
            self.clear()
            return False
        logger.info(
            f"Loaded {len(self.examples)} examples with {len(self.attributes)} "
            f"attributes and {self.n_classes} classes."
        )
        return True

    def _read_training_data(self, lines: LineReader) -> None:
        tokens = lines.read_tokens("the classes line")
        if tokens[0].lower() != CLASSES_KEYWORD or len(tokens) < 2:
            raise lines.fail(f"expected '{CLASSES_KEYWORD} <count> <name>...'.")
        class_names = self._counted(lines, tokens[1], tokens[2:], "classes")
        try:
            self.set_classes(class_names)
        except ValueError as e:
            raise lines.fail(str(e)) from e

        tokens = lines.read_tokens("the attributes line")
        if tokens[0].lower() != ATTRIBUTES_KEYWORD or len(tokens) != 2:
            raise lines.fail(f"expected '{ATTRIBUTES_KEYWORD} <count>'.")
        n_attributes = self._parse_count(lines, tokens[1])
        for _ in range(n_attributes):
            tokens = lines.read_tokens("an attribute declaration")
            if len(tokens) < 2:
                raise lines.fail("expected '<name> <count> <value>...'.")
            values = self._counted(lines, tokens[1], tokens[2:], tokens[0])
            try:
                self.add_attribute(tokens[0], values)
            except ValueError as e:
                raise lines.fail(str(e)) from e

        keyword = lines.read_line(f"the {EXAMPLES_KEYWORD!r} keyword")
        if keyword.lower() != EXAMPLES_KEYWORD:
            raise lines.fail(f"expected {EXAMPLES_KEYWORD!r}, got {keyword!r}.")

        attributes = list(self.attributes.values())
        for line in lines:
            tokens = line.split()
            if len(tokens) != len(attributes) + 1:
                raise lines.fail(
                    f"expected a class and {len(attributes)} values, got {len(tokens)} tokens."
                )
            class_id = self.get_class_id(tokens[0])
            if class_id is None:
                raise lines.fail(f"unknown class {tokens[0]!r}.")
            example = Example(class_id)
            for attribute, value_name in zip(attributes, tokens[1:]):
                value_id = attribute.value_id_for(value_name)
                if value_id is None:
                    raise lines.fail(
                        f"unknown value {value_name!r} of attribute {attribute.name!r}."
                    )
                example.set_value(attribute.id, value_id)
            self.add_example(example)

    @staticmethod
    def _parse_count(lines: LineReader, token: str) -> int:
        try:
            count = int(token)
        except ValueError:
            raise lines.fail(f"invalid count {token!r}.") from None
        if count < 0:
            raise lines.fail(f"invalid count {token!r}.")
        return count

    def _counted(
        self, lines: LineReader, count: str, names: List[str], what: str
    ) -> List[str]:
        expected = self._parse_count(lines, count)
        if expected != len(names):
            raise lines.fail(f"{what!r} declares {expected} names, got {len(names)}.")
        return names
