"""
Branch-and-Price solver orchestrator.

This module provides the BranchAndPrice solver that coordinates:
- Tree management and node selection
- Column generation on the shared HiGHS master
- Activation and propagation of semi-assignment constraints
- Semi-assignment branching
"""

from cpmpbp.solver.branch_and_price import (
    BranchAndPrice,
    BPConfig,
    BPSolution,
    BPStatus,
    Cluster,
)

__all__ = [
    "BranchAndPrice",
    "BPConfig",
    "BPSolution",
    "BPStatus",
    "Cluster",
]
