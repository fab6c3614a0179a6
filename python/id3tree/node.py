"""ID3 node engine: entropy, information gain, splitting, traversal and the node text format."""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from id3tree.errors import TreeFormatError
from id3tree.example import ClassificationData
from id3tree.identifiers import (
    AttributeId,
    AttributeValueId,
    ClassificationValueId,
)
from id3tree.types import TextSink
from id3tree.utils import LineReader

if TYPE_CHECKING:
    from id3tree.learner import ConceptLearner

logger = logging.getLogger(__name__)

OUTCOME_KEYWORD = "OUTCOME"
SPLIT_KEYWORD = "SPLIT"


def class_counts(
    class_ids: Iterable[ClassificationValueId],
) -> Dict[ClassificationValueId, int]:
    """Tally class identifiers, keyed in first-encountered order."""
    return dict(Counter(class_ids))


def entropy_from_counts(counts: Iterable[int]) -> float:
    counts_ = np.asarray(list(counts), dtype=np.float64)
    # 0 * log2(0) is taken as 0
    counts_ = counts_[counts_ > 0]
    if counts_.size == 0:
        return 0.0
    p = counts_ / counts_.sum()
    return float(np.sum(-p * np.log2(p))) + 0.0


def entropy(class_ids: Iterable[ClassificationValueId]) -> float:
    """Shannon entropy (base 2) of a sequence of class identifiers.

    The entropy of an empty sequence is 0.
    """
    return entropy_from_counts(class_counts(class_ids).values())


class DecisionNode:
    """A node of an ID3 tree.

    A node is either a leaf carrying a class identifier, or a split carrying
    the attribute it branches on and one child per value of that attribute.
    During training it also holds the indices of the examples it is
    responsible for and the attributes still eligible for splitting.

    The tree's catalogs and example store are never stored on the node; they
    are passed to every method that needs them.

    Parameters
    ----------
    example_ids : list of int, optional
        Indices into the learner's example store.
    remaining_attribute_ids : list of AttributeId, optional
        Attributes that may still be split on, in tie-break order.
    class_id : ClassificationValueId, optional
        Provisional class, used if the node ends up as a leaf without examples.
    """

    def __init__(
        self,
        example_ids: Optional[List[int]] = None,
        remaining_attribute_ids: Optional[List[AttributeId]] = None,
        class_id: Optional[ClassificationValueId] = None,
    ):
        self.example_ids: List[int] = list(example_ids or [])
        self.remaining_attribute_ids: List[AttributeId] = list(
            remaining_attribute_ids or []
        )
        self.class_id = class_id
        self.attribute_id: Optional[AttributeId] = None
        self.children: Dict[AttributeValueId, DecisionNode] = {}
        self.information_gain: Dict[AttributeId, float] = {}
        self._entropy: Optional[float] = None

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def reset(self) -> None:
        """Drop every piece of trained or loaded state."""
        self.example_ids = []
        self.remaining_attribute_ids = []
        self.class_id = None
        self.attribute_id = None
        self.children = {}
        self.information_gain = {}
        self._entropy = None

    def add_example(self, example_id: int) -> None:
        if example_id not in self.example_ids:
            self.example_ids.append(example_id)
            self._entropy = None

    def entropy(self, learner: ConceptLearner) -> float:
        """Entropy of this node's examples, computed once and cached."""
        if self._entropy is None:
            self._entropy = entropy(
                learner.get_example(i).class_id for i in self.example_ids
            )
        return self._entropy

    def partition(
        self, attribute_id: AttributeId, learner: ConceptLearner
    ) -> Dict[AttributeValueId, List[int]]:
        """Split the node's examples by their value of ``attribute_id``.

        Every value of the attribute gets an entry, including values no
        example carries.
        """
        attribute = learner.get_attribute(attribute_id)
        partitions: Dict[AttributeValueId, List[int]] = {
            value_id: [] for value_id in attribute.value_ids
        }
        for example_id in self.example_ids:
            value_id = learner.get_example(example_id).value_for(attribute_id)
            try:
                partitions[value_id].append(example_id)
            except KeyError:
                raise KeyError(
                    f"Example {example_id} has value {value_id.value}, which is not "
                    f"a value of attribute {attribute.name!r}."
                ) from None
        return partitions

    def get_information_gain(
        self, attribute_id: AttributeId, learner: ConceptLearner
    ) -> float:
        """Reduction in entropy if this node were split on ``attribute_id``."""
        n_examples = len(self.example_ids)
        if n_examples == 0:
            return 0.0
        partitions = self.partition(attribute_id, learner)
        proportions = np.array(
            [len(ids) / n_examples for ids in partitions.values()], dtype=np.float64
        )
        entropies = np.array(
            [
                entropy(learner.get_example(i).class_id for i in ids)
                for ids in partitions.values()
            ],
            dtype=np.float64,
        )
        remainder = float(proportions @ entropies) if proportions.size else 0.0
        # Rounding can push a zero gain just below 0.
        return max(self.entropy(learner) - remainder, 0.0)

    def majority_class(self, learner: ConceptLearner) -> Optional[ClassificationValueId]:
        counts = class_counts(learner.get_example(i).class_id for i in self.example_ids)
        if not counts:
            return None
        return max(counts, key=counts.__getitem__)

    def train(
        self,
        learner: ConceptLearner,
        depth: int = 0,
        max_depth: Optional[int] = None,
    ) -> None:
        """Grow the subtree below this node from its examples.

        Parameters
        ----------
        learner : ConceptLearner
            Owner of the catalogs and the example store.
        depth : int, default=0
            Depth of this node.
        max_depth : int, optional
            Turn nodes at this depth into majority-class leaves.
        """
        self.children = {}
        self.information_gain = {}
        self.attribute_id = None

        # Without examples or attributes this has to be a leaf; the class
        # handed down by the parent stays.
        if not self.example_ids or not self.remaining_attribute_ids:
            if self.example_ids and len(
                class_counts(learner.get_example(i).class_id for i in self.example_ids)
            ) > 1:
                logger.debug(
                    f"No attributes left for {len(self.example_ids)} examples of "
                    f"mixed classes at depth {depth}; keeping the inherited class."
                )
            return

        if self.entropy(learner) <= 0.0:
            self.class_id = learner.get_example(self.example_ids[0]).class_id
            return

        if max_depth is not None and depth >= max_depth:
            self.class_id = self.majority_class(learner)
            return

        gains = {
            attribute_id: self.get_information_gain(attribute_id, learner)
            for attribute_id in self.remaining_attribute_ids
        }
        best_id: Optional[AttributeId] = None
        best_gain = -np.inf
        for attribute_id, gain in gains.items():
            if gain > best_gain:
                best_id, best_gain = attribute_id, gain
        self.information_gain = dict(
            sorted(gains.items(), key=lambda item: item[1], reverse=True)
        )
        self.attribute_id = best_id
        self.class_id = self.majority_class(learner)

        logger.debug(
            f"Splitting {len(self.example_ids)} examples at depth {depth} on "
            f"{learner.get_attribute(best_id).name!r} (gain {best_gain:.4f})."
        )

        remaining = [a for a in self.remaining_attribute_ids if a != best_id]
        for value_id, example_ids in self.partition(best_id, learner).items():
            self.children[value_id] = DecisionNode(
                example_ids=example_ids,
                remaining_attribute_ids=remaining,
                class_id=self.class_id,
            )

        for child in self.children.values():
            child.train(learner, depth=depth + 1, max_depth=max_depth)

        self.example_ids = []

    def classify(self, query: ClassificationData) -> Optional[ClassificationValueId]:
        """Walk from this node to a leaf and return its class identifier.

        Returns ``None`` when the leaf reached never received a class, which
        is the case for a node that was never trained.

        Raises
        ------
        KeyError
            If the query has no value for a split attribute, or a value with
            no matching branch.
        """
        node = self
        while not node.is_leaf:
            value_id = query.value_for(node.attribute_id)
            try:
                node = node.children[value_id]
            except KeyError:
                raise KeyError(
                    f"Value {value_id.value} has no branch under attribute "
                    f"{node.attribute_id.value}."
                ) from None
        return node.class_id

    def walk(self, depth: int = 0) -> Iterator[Tuple[int, DecisionNode]]:
        """Yield ``(depth, node)`` pairs in pre-order."""
        yield depth, self
        for child in self.children.values():
            yield from child.walk(depth + 1)

    def save(self, stream: TextSink, learner: ConceptLearner) -> None:
        """Write this subtree in pre-order, one token line per node.

        Raises
        ------
        TreeFormatError
            If a class or attribute cannot be resolved to a name.
        """
        if self.is_leaf:
            class_name = (
                learner.classes.value_for(self.class_id)
                if self.class_id is not None
                else None
            )
            if class_name is None:
                raise TreeFormatError("Cannot save a leaf without a known class.")
            stream.write(f"{OUTCOME_KEYWORD} {class_name}\n")
            return

        attribute = learner.get_attribute(self.attribute_id)
        stream.write(f"{SPLIT_KEYWORD} {attribute.name}\n")
        for value_id, value_name in attribute.items():
            stream.write(f" {value_name}\n")
            # The value line must reach the stream before the child's lines.
            stream.flush()
            self.children[value_id].save(stream, learner)

    def load(self, lines: LineReader, learner: ConceptLearner) -> None:
        """Replace this node's state with the subtree read from ``lines``.

        Raises
        ------
        TreeFormatError
            On an unknown keyword, an unresolvable name, or truncated input.
        """
        self.reset()

        tokens = lines.read_tokens("a tree node")
        if len(tokens) != 2:
            raise lines.fail(f"expected '<keyword> <name>', got {' '.join(tokens)!r}.")
        keyword, name = tokens[0].upper(), tokens[1]

        if keyword == SPLIT_KEYWORD:
            attribute_id = learner.get_attribute_id(name)
            if attribute_id is None:
                raise lines.fail(f"unknown attribute {name!r}.")
            attribute = learner.get_attribute(attribute_id)
            self.attribute_id = attribute_id

            # All children exist before any is read, so the values may come
            # in any order.
            for value_id in attribute.value_ids:
                self.children[value_id] = DecisionNode()

            loaded = set()
            for _ in range(len(attribute)):
                value_name = lines.read_line(f"a value of {attribute.name!r}")
                value_id = attribute.value_id_for(value_name)
                if value_id is None:
                    raise lines.fail(
                        f"unknown value {value_name!r} of attribute {attribute.name!r}."
                    )
                if value_id in loaded:
                    raise lines.fail(
                        f"value {value_name!r} of {attribute.name!r} appears twice."
                    )
                loaded.add(value_id)
                self.children[value_id].load(lines, learner)
        elif keyword == OUTCOME_KEYWORD:
            class_id = learner.get_class_id(name)
            if class_id is None:
                raise lines.fail(f"unknown class {name!r}.")
            self.class_id = class_id
        else:
            raise lines.fail(
                f"expected {SPLIT_KEYWORD!r} or {OUTCOME_KEYWORD!r}, got {tokens[0]!r}."
            )
