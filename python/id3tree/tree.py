"""The ID3 decision tree: training, classification, persistence and inspection."""

import inspect
import io
import logging
import warnings
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from typing_extensions import Self

from id3tree.data import UNKNOWN_OUTCOME, DecisionResult, Node
from id3tree.errors import TreeFormatError
from id3tree.example import ClassificationData
from id3tree.learner import ConceptLearner
from id3tree.node import DecisionNode
from id3tree.serialize import CatalogHeader, HeaderSerializer
from id3tree.utils import LineReader, PathOrStream, open_text

logger = logging.getLogger(__name__)


class DecisionTree(ConceptLearner):
    def __init__(
        self,
        *,
        max_depth: Optional[int] = None,
        unknown_outcome: str = UNKNOWN_OUTCOME,
    ):
        """
        ID3 decision tree over categorical attributes.

        The tree is grown top-down: each node splits on the eligible attribute
        with the largest information gain and gets one child per value of
        that attribute, until the examples are pure or no attributes remain.

        Parameters
        ----------
        max_depth : int, optional
            Depth at which nodes are turned into majority-class leaves. If
            None, nodes are expanded until all leaves are pure or no
            attributes remain.
        unknown_outcome : str, default="UNKNOWN"
            Returned by :meth:`classify` when the tree has not been trained
            or loaded.

        Attributes
        ----------
        classes : Classification
            Class labels the tree decides between.
        attributes : dict of AttributeId to Attribute
            Attributes in declaration order.
        examples : list of Example
            Training examples. Empty after :meth:`load`.
        root : DecisionNode
            Root of the node graph.

        Examples
        --------
        >>> tree = DecisionTree()
        >>> tree.load_training_data("resources/weather.examples")
        True
        >>> tree.train().classify(tree.make_query("sunny hot high weak"))
        'no'
        """
        if max_depth is not None and (not isinstance(max_depth, int) or max_depth < 0):
            raise ValueError(f"max_depth must be None or a non-negative int, got {max_depth!r}.")
        if not unknown_outcome:
            raise ValueError("unknown_outcome must be a non-empty string.")
        super().__init__()
        self.max_depth = max_depth
        self.unknown_outcome = unknown_outcome
        self.root = DecisionNode()

    def clear(self) -> None:
        super().clear()
        self.root = DecisionNode()

    @property
    def is_trained(self) -> bool:
        return not self.root.is_leaf or self.root.class_id is not None

    def train(self) -> Self:
        """
        Grow the tree from the loaded examples.

        The root receives every example and every attribute, in declaration
        order, which fixes the tie-break order between equally good splits.

        Returns
        -------
        self : object
            Returns self.
        """
        self.root = DecisionNode(
            example_ids=list(range(len(self.examples))),
            remaining_attribute_ids=list(self.attributes.keys()),
        )
        # The root has no parent to hand down a class, so it starts from the
        # majority over all examples.
        self.root.class_id = self.root.majority_class(self)
        if not self.examples:
            warnings.warn("No training examples loaded; the tree stays untrained.")
            return self
        self.root.train(self, max_depth=self.max_depth)
        logger.info(
            f"Trained a tree of depth {self.depth} with {self.n_leaves} leaves "
            f"from {len(self.examples)} examples."
        )
        return self

    def classify(self, query: ClassificationData) -> str:
        """
        Classify a query by walking the tree from the root.

        Parameters
        ----------
        query : ClassificationData
            One value identifier per attribute, e.g. from :meth:`make_query`.

        Returns
        -------
        outcome : str
            The class name, or ``unknown_outcome`` for an untrained tree.

        Raises
        ------
        KeyError
            If the query lacks a value for an attribute the tree splits on, or
            carries a value the tree has no branch for.
        """
        class_id = self.root.classify(query)
        if class_id is None:
            return self.unknown_outcome
        return self.get_class(class_id) or self.unknown_outcome

    def decide(self, query: ClassificationData) -> DecisionResult:
        """Classify ``query`` and record when the decision was made."""
        return DecisionResult(
            outcome=self.classify(query), unknown_outcome=self.unknown_outcome
        )

    def make_query(
        self, values: Union[str, Sequence[str], Mapping[str, str]]
    ) -> ClassificationData:
        """
        Build a query from human-readable value names.

        Parameters
        ----------
        values : str, sequence of str, or mapping
            Either one value name per attribute in declaration order (a
            whitespace separated string or a sequence), or a mapping from
            attribute name to value name.

        Returns
        -------
        query : ClassificationData
        """
        if isinstance(values, Mapping):
            pairs = []
            for attribute_name, value_name in values.items():
                attribute_id = self.get_attribute_id(attribute_name)
                if attribute_id is None:
                    raise KeyError(f"Unknown attribute {attribute_name!r}.")
                pairs.append((self.attributes[attribute_id], value_name))
        else:
            if isinstance(values, str):
                values = values.split()
            if len(values) != len(self.attributes):
                raise ValueError(
                    f"Expected {len(self.attributes)} values, got {len(values)}."
                )
            pairs = list(zip(self.attributes.values(), values))

        query = ClassificationData()
        for attribute, value_name in pairs:
            value_id = attribute.value_id_for(str(value_name))
            if value_id is None:
                raise KeyError(
                    f"Unknown value {value_name!r} of attribute {attribute.name!r}."
                )
            query.set_value(attribute.id, value_id)
        return query

    def save(self, sink: PathOrStream) -> bool:
        """
        Write the catalog header and the node tree.

        Parameters
        ----------
        sink : str, path-like or text stream
            Where the tree will be written.

        Returns
        -------
        saved : bool
            False if the tree is untrained (nothing is written) or could not
            be written.
        """
        if not self.is_trained:
            logger.warning("Cannot save a tree that has not been trained or loaded.")
            return False
        try:
            with open_text(sink, "w") as stream:
                header = CatalogHeader(classes=self.classes, attributes=self.attributes)
                HeaderSerializer(self.registry).write(header, stream)
                self.root.save(stream, self)
                stream.flush()
        except (TreeFormatError, OSError) as e:
            logger.warning(f"Unable to save tree: {e}")
            return False
        return True

    def load(self, source: PathOrStream) -> bool:
        """
        Replace the catalogs and the node tree with a persisted tree.

        Training examples are discarded; only the catalogs needed to interpret
        the tree are restored.

        Parameters
        ----------
        source : str, path-like or text stream
            Where to read the tree from.

        Returns
        -------
        loaded : bool
            False if the input was malformed. The tree is then left empty and
            untrained.
        """
        self.clear()
        try:
            with open_text(source) as stream:
                self._read(LineReader(stream, TreeFormatError))
        except (TreeFormatError, OSError) as e:
            logger.warning(f"Unable to load tree: {e}")
            self.clear()
            return False
        return True

    def _read(self, lines: LineReader) -> None:
        header = HeaderSerializer(self.registry).read(lines)
        self.classes = header.classes
        self.attributes = header.attributes
        self.root.load(lines, self)
        for line in lines:
            raise lines.fail(f"unexpected content after the tree: {line!r}.")

    def save_tree(self, path: str) -> None:
        """
        Save the tree to a file.

        Parameters
        ----------
        path : str
            Path where the tree will be saved.
        """
        if not self.save(path):
            raise ValueError(f"Unable to save the tree to {path!r}.")

    @classmethod
    def load_tree(cls, path: str, **params: Any) -> Self:
        """
        Load a tree from a file.

        Parameters
        ----------
        path : str
            Path to the saved tree.
        **params
            Constructor parameters for the new tree.

        Returns
        -------
        tree : DecisionTree
            The loaded tree.
        """
        tree = cls(**params)
        if not tree.load(path):
            raise TreeFormatError(f"{path!r} does not contain a valid tree.")
        return tree

    def dumps(self) -> str:
        """Return the persisted text of the tree."""
        buffer = io.StringIO()
        if not self.save(buffer):
            raise ValueError("Unable to serialize the tree.")
        return buffer.getvalue()

    @property
    def depth(self) -> int:
        return max(depth for depth, _ in self.root.walk())

    @property
    def n_leaves(self) -> int:
        return sum(1 for _, node in self.root.walk() if node.is_leaf)

    def get_node_list(self) -> List[Node]:
        """
        Return the tree structure as a list of node objects.

        Returns
        -------
        nodes : list of Node
            Nodes in pre-order; ``children`` maps value names to node indices.
        """
        nodes: List[Node] = []

        def visit(node: DecisionNode, depth: int, parent: int) -> int:
            num = len(nodes)
            record = Node(
                num=num,
                depth=depth,
                is_leaf=node.is_leaf,
                outcome=None if node.class_id is None else self.get_class(node.class_id),
                parent_node=parent,
            )
            nodes.append(record)
            if not node.is_leaf:
                attribute = self.get_attribute(node.attribute_id)
                record.split_attribute = attribute.name
                record.information_gain = node.information_gain.get(node.attribute_id)
                for value_id, value_name in attribute.items():
                    record.children[value_name] = visit(
                        node.children[value_id], depth + 1, num
                    )
            return num

        visit(self.root, 0, -1)
        return nodes

    def tree_to_dataframe(self) -> Any:
        """
        Return the tree structure as a DataFrame.

        Returns
        -------
        df : DataFrame
            A Polars or Pandas DataFrame with one row per node.
        """
        vals = [
            dict(
                Node=n.num,
                Depth=n.depth,
                Parent=n.parent_node,
                Feature="Leaf" if n.is_leaf else n.split_attribute,
                Outcome=n.outcome,
                Gain=n.information_gain,
                Children=", ".join(f"{k}:{v}" for k, v in n.children.items()),
            )
            for n in self.get_node_list()
        ]

        try:
            import polars as pl

            return pl.from_records(vals)
        except ImportError:
            import pandas as pd

            return pd.DataFrame.from_records(vals)

    def text_dump(self) -> List[str]:
        """
        Return the tree in a human-readable, indented text format.

        Returns
        -------
        dump : list of str
            One string per line of the report.
        """
        if not self.is_trained:
            return [f"|--- class: {self.unknown_outcome}"]

        lines: List[str] = []

        def visit(node: DecisionNode, indent: str) -> None:
            if node.is_leaf:
                lines.append(f"{indent}|--- class: {self.get_class(node.class_id)}")
                return
            attribute = self.get_attribute(node.attribute_id)
            for value_id, value_name in attribute.items():
                lines.append(f"{indent}|--- {attribute.name} = {value_name}")
                visit(node.children[value_id], indent + "|   ")

        visit(self.root, "")
        return lines

    def __str__(self) -> str:
        return "\n".join(self.text_dump())

    # Make picklable with getstate and setstate. Only what is needed to
    # classify survives, the same as with save and load.
    def __getstate__(self) -> Dict[Any, Any]:
        header = CatalogHeader(classes=self.classes, attributes=self.attributes)
        tree_text = HeaderSerializer(self.registry).serialize(header)
        if self.is_trained:
            buffer = io.StringIO()
            self.root.save(buffer, self)
            tree_text += buffer.getvalue()
        excluded = {"registry", "classes", "attributes", "examples", "root"}
        res = {k: v for k, v in self.__dict__.items() if k not in excluded}
        res["__tree_text__"] = tree_text
        res["__is_trained__"] = self.is_trained
        return res

    def __setstate__(self, d: Dict[Any, Any]) -> None:
        tree_text = d.pop("__tree_text__")
        is_trained = d.pop("__is_trained__")
        ConceptLearner.__init__(self)
        self.root = DecisionNode()
        self.__dict__.update(d)
        lines = LineReader(io.StringIO(tree_text), TreeFormatError)
        header = HeaderSerializer(self.registry).read(lines)
        self.classes = header.classes
        self.attributes = header.attributes
        if is_trained:
            self.root.load(lines, self)

    def get_params(self, deep=True) -> Dict[str, Any]:
        """
        Get parameters for this tree.

        Parameters
        ----------
        deep : bool, default=True
            Currently ignored, exists for scikit-learn compatibility.

        Returns
        -------
        params : dict
            Parameter names mapped to their values.
        """
        args = inspect.getfullargspec(DecisionTree.__init__).kwonlyargs
        return {param: getattr(self, param) for param in args}

    def set_params(self, **params: Any) -> Self:
        """
        Set parameters for this tree.

        Trained state and loaded catalogs are kept.

        Parameters
        ----------
        **params : dict
            Tree parameters.

        Returns
        -------
        self : object
            Returns self.
        """
        valid = self.get_params()
        for key in params:
            if key not in valid:
                raise ValueError(f"Invalid parameter {key!r} for {type(self).__name__}.")
        valid.update(params)
        # Validate through the constructor without touching this instance.
        DecisionTree(**valid)
        for key, value in params.items():
            setattr(self, key, value)
        return self
