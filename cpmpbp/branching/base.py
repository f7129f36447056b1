"""
Branching strategy interface.

A strategy looks at the LP solution of a node and proposes ways to split
the node. Each proposal lists one decision per child. An empty proposal
list tells the solver the LP solution needs no further branching.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

if TYPE_CHECKING:
    from cpmpbp.core.node import BPNode, BranchingDecision
    from cpmpbp.master.columns import Column


@dataclass(order=True)
class BranchingCandidate:
    """
    One way to split a node; candidates are ordered by ``score``.

    Attributes:
        score: Larger is preferred
        decisions: One decision per child, in child creation order
        description: Short text for logs
        metadata: Strategy-specific details
    """
    score: float
    decisions: List["BranchingDecision"] = field(compare=False)
    description: str = field(default="", compare=False)
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)


class BranchingStrategy(ABC):
    """Base class of branching strategies."""

    def __init__(self, name: str = ""):
        self.name = name or type(self).__name__

    @abstractmethod
    def select_branching_candidates(
        self,
        node: "BPNode",
        columns: Sequence["Column"],
        column_values: Sequence[float],
    ) -> List[BranchingCandidate]:
        """
        Args:
            node: Node whose LP solution is examined
            columns: Master columns in index order
            column_values: LP value of each column

        Returns:
            Candidates for the node, possibly none
        """

    def select_best_candidate(
        self,
        node: "BPNode",
        columns: Sequence["Column"],
        column_values: Sequence[float],
    ) -> Optional[BranchingCandidate]:
        candidates = self.select_branching_candidates(node, columns, column_values)
        return max(candidates, default=None)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
