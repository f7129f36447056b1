"""
cpmpbp: Branch-and-Price for the Capacitated p-Median Problem

Column generation over cluster columns with knapsack pricing, and
semi-assignment branching on the medians a location may be assigned to.
"""

__version__ = "0.1.0"

# Core classes
from cpmpbp.core import (
    BestFirstSelector,
    BPNode,
    BPTree,
    BranchingDecision,
    DepthFirstSelector,
    NodeSelector,
    NodeStatus,
    TreeStats,
    create_selector,
)

# Problem data
from cpmpbp.problem import ProblemData, ReaderError, parse_instance, read_instance

# Master, pricing and constraints
from cpmpbp.master import Column, MasterProblem
from cpmpbp.pricing import CpmpPricer, PricingConfig, solve_knapsack_exactly
from cpmpbp.constraints import ForbiddenAssignments, SemiassignConstraint

# Branching
from cpmpbp.branching import BranchingCandidate, BranchingStrategy, SemiassignBranching

# Solver
from cpmpbp.solver import (
    BPConfig,
    BPSolution,
    BPStatus,
    BranchAndPrice,
    Cluster,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "BPNode",
    "BPTree",
    "BranchingDecision",
    "NodeStatus",
    "TreeStats",
    "NodeSelector",
    "BestFirstSelector",
    "DepthFirstSelector",
    "create_selector",
    # Problem
    "ProblemData",
    "ReaderError",
    "parse_instance",
    "read_instance",
    # Master, pricing, constraints
    "Column",
    "MasterProblem",
    "CpmpPricer",
    "PricingConfig",
    "solve_knapsack_exactly",
    "ForbiddenAssignments",
    "SemiassignConstraint",
    # Branching
    "BranchingStrategy",
    "BranchingCandidate",
    "SemiassignBranching",
    # Solver
    "BranchAndPrice",
    "BPConfig",
    "BPSolution",
    "BPStatus",
    "Cluster",
]
