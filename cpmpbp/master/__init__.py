"""
Master problem and column registry.
"""

from cpmpbp.master.columns import Column, ColumnRegistry
from cpmpbp.master.master import LPResult, LPStatus, MasterDuals, MasterProblem

__all__ = [
    "Column",
    "ColumnRegistry",
    "MasterProblem",
    "MasterDuals",
    "LPResult",
    "LPStatus",
]
