"""Data structures for tree inspection and decision records."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

UNKNOWN_OUTCOME = "UNKNOWN"


@dataclass
class Node:
    """Dataclass representing a single node in a trained decision tree.

    Attributes
    ----------
    num : int
        Node index, in pre-order.
    depth : int
        Depth of the node in the tree.
    is_leaf : bool
        Whether this node is a leaf.
    split_attribute : str
        Name of the attribute the node splits on, empty for leaves.
    outcome : str or None
        Class name of a leaf, or the majority class of a split node.
    children : dict of str to int
        Child node index for each value of the split attribute.
    parent_node : int
        Index of the parent node, -1 for the root.
    information_gain : float or None
        Gain achieved by the chosen split, if it was trained in this process.
    """

    num: int
    depth: int = 0
    is_leaf: bool = True
    split_attribute: str = ""
    outcome: Optional[str] = None
    children: Dict[str, int] = field(default_factory=dict)
    parent_node: int = -1
    information_gain: Optional[float] = None


@dataclass(frozen=True)
class DecisionResult:
    """Stores the result of a decision and the time it was made.

    ``unknown_outcome`` is the reserved outcome of the tree that made the
    decision; a result carrying it is not valid.
    """

    outcome: str
    time_of_decision: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    unknown_outcome: str = field(default=UNKNOWN_OUTCOME, compare=False, repr=False)

    @property
    def is_valid(self) -> bool:
        return (
            bool(self.outcome)
            and self.outcome != self.unknown_outcome
            and self.time_of_decision.year >= 2017
        )
