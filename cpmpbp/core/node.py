"""
Branch-and-price tree nodes.

Every node except the root is created by a semi-assignment branching and
carries exactly one decision: a location and the medians it may not be
assigned to in the node's subtree. The decision is enforced by the
node's constraint, which is attached right after the node is created.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

import numpy as np

if TYPE_CHECKING:
    from cpmpbp.constraints.base import NodeHandler


class NodeStatus(Enum):
    """Status of a B&P tree node."""
    PENDING = "pending"
    PROCESSING = "processing"
    BRANCHED = "branched"
    PRUNED_BOUND = "pruned (bound)"
    PRUNED_INFEASIBLE = "pruned (infeasible)"
    INTEGER = "integer"


@dataclass(frozen=True)
class BranchingDecision:
    """
    A semi-assignment branching decision.

    In the subtree of the node carrying it, ``location`` may not be
    assigned to any median flagged in ``forbidden``.
    """
    location: int
    forbidden: Tuple[bool, ...]

    @staticmethod
    def semiassign(location: int, forbidden) -> "BranchingDecision":
        return BranchingDecision(
            location=int(location),
            forbidden=tuple(bool(f) for f in forbidden),
        )

    @property
    def forbidden_medians(self) -> List[int]:
        return [m for m, f in enumerate(self.forbidden) if f]

    def __repr__(self) -> str:
        return f"Semiassign(location={self.location}, forbidden={self.forbidden_medians})"


@dataclass
class BPNode:
    """A node in the branch-and-price tree."""
    id: int = 0
    parent_id: int = -1
    depth: int = 0

    # Rounded LP bound; children start from their parent's
    lower_bound: float = float("-inf")
    lp_value: float = float("inf")
    status: NodeStatus = NodeStatus.PENDING

    decision: Optional[BranchingDecision] = None
    children: List[int] = field(default_factory=list)

    constraint: Optional["NodeHandler"] = None
    # Columns fixed to zero by propagating this node's constraint
    fixed_columns: List[int] = field(default_factory=list)

    solution: Optional[np.ndarray] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id == -1

    @property
    def is_open(self) -> bool:
        """Whether the node still waits to be processed."""
        return self.status == NodeStatus.PENDING

    @property
    def is_closed(self) -> bool:
        """Whether the node is branched on or pruned."""
        return self.status not in (NodeStatus.PENDING, NodeStatus.PROCESSING)

    def add_child(self, child_id: int) -> None:
        self.children.append(child_id)

    def attach_constraint(self, constraint: "NodeHandler") -> None:
        assert self.constraint is None, f"node {self.id} already has a constraint"
        self.constraint = constraint

    def record_fixings(self, column_indices: List[int]) -> None:
        """Remember columns fixed for this node so they can be re-applied."""
        self.fixed_columns.extend(column_indices)

    def release(self) -> None:
        """Drop the constraint and recorded fixings of a finished node."""
        if self.constraint is not None:
            self.constraint.release()
            self.constraint = None
        self.fixed_columns = []
        self.solution = None
