"""
Semi-assignment branching constraints.

A semi-assignment constraint forbids assigning one location to a set of
medians within the subtree of the node it is attached to. On activation
it marks its pairs in the forbidden-assignment registry so that pricing
never proposes them again; on deactivation it unmarks them.

Columns generated elsewhere in the tree may still violate the
constraint. Propagation fixes those columns to zero lazily: the
constraint keeps a watermark (npropvars) of how many columns existed at
its last propagation and only examines columns created after that.
"""

import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

import numpy as np

from cpmpbp.constraints.base import NodeHandler, PropagationResult, PropagationStatus

if TYPE_CHECKING:
    from cpmpbp.constraints.forbidden import ForbiddenAssignments
    from cpmpbp.master.columns import Column
    from cpmpbp.master.master import MasterProblem

logger = logging.getLogger(__name__)


class SemiassignConstraint(NodeHandler):
    """
    Branching constraint forbidding medians for one location.

    Attributes:
        name: Constraint name for output
        location: Location for which certain medians are forbidden
        forbidden: For each median, whether the location may not be assigned to it
        node_id: ID of the node the constraint is valid for
        npropvars: Number of columns present at the last propagation
    """

    def __init__(
        self,
        location: int,
        forbidden: Sequence[bool],
        node_id: int = -1,
        name: str = "",
    ):
        self.name = name or f"semiassign_{node_id}"
        self.location = location
        self.forbidden: Optional[np.ndarray] = np.array(forbidden, dtype=bool)
        self.forbidden.setflags(write=False)
        self.node_id = node_id
        self.npropvars = 0
        self._propagate = True
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def needs_propagation(self) -> bool:
        return self._propagate

    @property
    def forbidden_medians(self) -> List[int]:
        """Indices of the forbidden medians."""
        return [int(m) for m in np.flatnonzero(self.forbidden)]

    def violates(self, column: "Column") -> bool:
        """Whether a column assigns the location to a forbidden median."""
        return bool(self.forbidden[column.median]) and column.covers(self.location)

    def on_activate(
        self,
        registry: "ForbiddenAssignments",
        master: "MasterProblem",
    ) -> bool:
        assert self.forbidden is not None, f"{self.name} was released"
        assert not self._active, f"{self.name} is already active"

        nvars = master.num_columns
        assert self.npropvars <= nvars

        logger.debug("activate constraint %s", self.name)

        # Columns created since the last propagation must be checked
        if self.npropvars < nvars:
            logger.debug("constraint %s needs to be propagated", self.name)
            self._propagate = True

        registry.forbid_assignments(self.location, self.forbidden)
        self._active = True

        return self._propagate

    def on_deactivate(self, registry: "ForbiddenAssignments") -> None:
        assert self._active, f"{self.name} is not active"

        logger.debug("deactivate constraint %s", self.name)

        registry.allow_assignments(self.location, self.forbidden)
        self._propagate = False
        self._active = False

    def propagate(self, master: "MasterProblem") -> PropagationResult:
        """
        Fix to zero all new columns assigning the location to a forbidden median.

        Only columns with index >= npropvars are examined. The watermark is
        advanced to the current column count unless a fixing proves the
        node infeasible.
        """
        if not self._propagate:
            return PropagationResult(PropagationStatus.DIDNOTRUN)

        logger.debug("propagate constraint %s (location = %d)", self.name, self.location)

        result = PropagationResult(PropagationStatus.DIDNOTFIND)
        nvars = master.num_columns
        idx = self.npropvars

        while idx < nvars:
            column = master.columns[idx]
            if master.upper_bound(idx) > master.feastol and self.violates(column):
                infeasible = master.fix_to_zero(idx)
                if infeasible:
                    result.status = PropagationStatus.CUTOFF
                    break
                result.fixed_columns.append(idx)
                result.status = PropagationStatus.REDUCEDDOM
            idx += 1

        logger.debug("-> %d columns fixed to zero", len(result.fixed_columns))

        self._propagate = False
        self.npropvars = idx

        return result

    def release(self) -> None:
        assert not self._active, f"{self.name} released while active"
        self.forbidden = None

    def __repr__(self) -> str:
        if self.forbidden is None:
            return f"<SemiassignConstraint {self.name} (released)>"
        return (
            f"<SemiassignConstraint {self.name}: location {self.location}, "
            f"forbidden medians {self.forbidden_medians}>"
        )
