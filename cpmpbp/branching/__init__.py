"""
Branching strategies for CPMP branch-and-price.

- SemiassignBranching: forbid medians for a fractionally assigned location
"""

from cpmpbp.branching.base import BranchingCandidate, BranchingStrategy
from cpmpbp.branching.semiassign import (
    SemiassignBranching,
    choose_location,
    compute_assignments,
    sort_medians,
    split_medians,
)

__all__ = [
    "BranchingStrategy",
    "BranchingCandidate",
    "SemiassignBranching",
    "compute_assignments",
    "sort_medians",
    "choose_location",
    "split_medians",
]
