"""
Branching constraints and the forbidden-assignment registry.
"""

from cpmpbp.constraints.base import NodeHandler, PropagationResult, PropagationStatus
from cpmpbp.constraints.forbidden import ForbiddenAssignments
from cpmpbp.constraints.semiassign import SemiassignConstraint

__all__ = [
    "NodeHandler",
    "PropagationResult",
    "PropagationStatus",
    "ForbiddenAssignments",
    "SemiassignConstraint",
]
