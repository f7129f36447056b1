"""
Forbidden-assignment registry.

A median x location boolean matrix holding the assignments forbidden by
the branching decisions on the active path of the search tree. Pricing
reads it to exclude items from the knapsack subproblems; branching
constraints write it when they are activated and deactivated.
"""

from typing import Sequence

import numpy as np


class ForbiddenAssignments:
    """
    Shared registry of forbidden (median, location) assignments.

    The registry reflects exactly the union of the forbidding decisions on
    the path from the root to the active node. Toggling is strict: a pair
    may only be forbidden while allowed and allowed while forbidden.
    """

    def __init__(self, n_locations: int):
        self._n = n_locations
        self._forbidden = np.zeros((n_locations, n_locations), dtype=bool)

    @property
    def n_locations(self) -> int:
        return self._n

    def forbid_assignments(self, location: int, forbidden: Sequence[bool]) -> None:
        """Forbid assigning a location to every median flagged in ``forbidden``."""
        for median in np.flatnonzero(forbidden):
            self.forbid(int(median), location)

    def allow_assignments(self, location: int, forbidden: Sequence[bool]) -> None:
        """Allow again every median flagged in ``forbidden`` for a location."""
        for median in np.flatnonzero(forbidden):
            self.allow(int(median), location)

    def forbid(self, median: int, location: int) -> None:
        assert 0 <= median < self._n and 0 <= location < self._n
        assert not self._forbidden[median, location], (
            f"assignment of location {location} to median {median} is already forbidden"
        )
        self._forbidden[median, location] = True

    def allow(self, median: int, location: int) -> None:
        assert 0 <= median < self._n and 0 <= location < self._n
        assert self._forbidden[median, location], (
            f"assignment of location {location} to median {median} is not forbidden"
        )
        self._forbidden[median, location] = False

    def is_forbidden(self, median: int, location: int) -> bool:
        """Check whether a location may currently not be assigned to a median."""
        return bool(self._forbidden[median, location])

    def allowed_locations(self, median: int) -> np.ndarray:
        """Locations that may currently be assigned to a median."""
        return np.flatnonzero(~self._forbidden[median])

    def forbidden_medians(self, location: int) -> np.ndarray:
        """Medians that may currently not serve a location."""
        return np.flatnonzero(self._forbidden[:, location])

    def is_fully_excluded(self, median: int) -> bool:
        """Whether every location is forbidden for a median."""
        return bool(self._forbidden[median].all())

    @property
    def num_forbidden(self) -> int:
        return int(self._forbidden.sum())

    def as_array(self) -> np.ndarray:
        """Copy of the current matrix, indexed [median, location]."""
        return self._forbidden.copy()

    def __repr__(self) -> str:
        return f"<ForbiddenAssignments n={self._n} forbidden={self.num_forbidden}>"
