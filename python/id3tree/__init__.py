"""id3tree: ID3 decision trees over categorical attributes.

Provides:
  - :class:`DecisionTree`: trains, classifies, saves and loads an ID3 tree.
  - :class:`ID3Classifier`: scikit-learn wrapper (via :mod:`id3tree.sklearn`).
  - :class:`Attribute`, :class:`Classification`: catalogs of categorical values.
  - :class:`Example`, :class:`ClassificationData`: training examples and queries.
  - :class:`IdentifierRegistry`: allocator for kind-tagged identifiers.
  - :func:`entropy`: Shannon entropy of a sequence of class identifiers.
"""

from __future__ import annotations

from id3tree.attribute import Attribute, Classification
from id3tree.data import UNKNOWN_OUTCOME, DecisionResult, Node
from id3tree.errors import IdentifierKindError, TrainingDataError, TreeFormatError
from id3tree.example import ClassificationData, Example
from id3tree.identifiers import Identifier, IdentifierKind, IdentifierRegistry
from id3tree.node import DecisionNode, entropy
from id3tree.sklearn import ID3Classifier
from id3tree.tree import DecisionTree

__all__ = [
    "DecisionTree",
    "DecisionNode",
    "ID3Classifier",
    "Attribute",
    "Classification",
    "ClassificationData",
    "Example",
    "Identifier",
    "IdentifierKind",
    "IdentifierRegistry",
    "DecisionResult",
    "Node",
    "UNKNOWN_OUTCOME",
    "IdentifierKindError",
    "TrainingDataError",
    "TreeFormatError",
    "entropy",
]
