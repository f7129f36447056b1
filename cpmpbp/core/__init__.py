"""
Core B&P data structures: tree nodes, the search tree and node selection.
"""

from cpmpbp.core.node import (
    BPNode,
    BranchingDecision,
    NodeStatus,
)
from cpmpbp.core.selection import (
    BestFirstSelector,
    DepthFirstSelector,
    NodeSelector,
    create_selector,
)
from cpmpbp.core.tree import BPTree, TreeStats

__all__ = [
    "BPNode",
    "NodeStatus",
    "BranchingDecision",
    "BPTree",
    "TreeStats",
    "NodeSelector",
    "BestFirstSelector",
    "DepthFirstSelector",
    "create_selector",
]
