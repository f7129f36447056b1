"""
Node handler interface.

A node handler is attached to a search tree node and is notified by the
solver when the node joins or leaves the active path. It may also fix
master columns to zero during propagation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    from cpmpbp.constraints.forbidden import ForbiddenAssignments
    from cpmpbp.master.master import MasterProblem


class PropagationStatus(Enum):
    """Outcome of a propagation call."""
    DIDNOTRUN = auto()
    DIDNOTFIND = auto()
    REDUCEDDOM = auto()
    CUTOFF = auto()


@dataclass
class PropagationResult:
    """
    Result of propagating a node handler.

    Attributes:
        status: Propagation outcome
        fixed_columns: Indices of the columns fixed to zero by this call
    """
    status: PropagationStatus = PropagationStatus.DIDNOTRUN
    fixed_columns: List[int] = field(default_factory=list)

    @property
    def is_cutoff(self) -> bool:
        return self.status == PropagationStatus.CUTOFF


class NodeHandler(ABC):
    """
    Abstract base class for node-local constraints.

    The solver calls on_activate() when the owning node joins the active
    path and on_deactivate() when it leaves it; the two must be exact
    inverses with respect to the shared registry. propagate() is called
    while the node is on the active path.
    """

    @abstractmethod
    def on_activate(
        self,
        registry: "ForbiddenAssignments",
        master: "MasterProblem",
    ) -> bool:
        """
        Activate the handler.

        Returns:
            True if the handler asks to be propagated
        """
        pass

    @abstractmethod
    def on_deactivate(self, registry: "ForbiddenAssignments") -> None:
        """Deactivate the handler, undoing its registry changes."""
        pass

    @abstractmethod
    def propagate(self, master: "MasterProblem") -> PropagationResult:
        """Fix master columns violating the handler to zero."""
        pass

    @property
    def needs_propagation(self) -> bool:
        """Whether the handler has pending propagation work."""
        return False

    def release(self) -> None:
        """Free handler data once its node is discarded for good."""
        pass
