"""
Semi-assignment branching for the CPMP.

The LP solution is aggregated into a location-median assignment matrix

    A[i][j] = sum of the values of all columns with median j covering i

A location whose row of A has the most fractional entries is chosen. Its
candidate medians are sorted by assignment value and forbidden
alternately in the two children: the left child forbids the medians at
even sorted positions, the right child those at odd positions. Each
child then carries a SemiassignConstraint for the chosen location.

If no entry of A is fractional, there is no candidate: every location is
assigned to exactly one median and the LP solution can be read off as a
clustering.
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np

from cpmpbp.branching.base import BranchingCandidate, BranchingStrategy
from cpmpbp.constraints.forbidden import ForbiddenAssignments
from cpmpbp.core.node import BPNode, BranchingDecision
from cpmpbp.master.columns import Column

logger = logging.getLogger(__name__)


def compute_assignments(
    columns: Sequence[Column],
    column_values: Sequence[float],
    n_locations: int,
) -> np.ndarray:
    """
    Aggregate column values into the assignment matrix.

    Returns:
        Array of shape (n_locations, n_locations) indexed [location, median]
    """
    assignments = np.zeros((n_locations, n_locations))
    for column, value in zip(columns, column_values):
        if value == 0.0:
            continue
        for location in column.covered_items:
            assignments[location, column.median] += value
    return assignments


def sort_medians(assignments: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sort each location's medians by non-increasing assignment value.

    Ties are broken by ascending median index.

    Returns:
        (sorted_ids, sorted_values), both of the shape of ``assignments``
    """
    sorted_ids = np.argsort(-assignments, axis=1, kind="stable")
    sorted_values = np.take_along_axis(assignments, sorted_ids, axis=1)
    return sorted_ids, sorted_values


def _is_integral(value: float, feastol: float) -> bool:
    return abs(value - round(value)) <= feastol


def choose_location(sorted_values: np.ndarray, feastol: float = 1e-6) -> int:
    """
    Choose the location to branch on.

    The location with the most fractionally assigned medians wins. On a
    tie, the location whose fractional mass at even sorted positions is
    closest to half of its total fractional mass is preferred.

    Args:
        sorted_values: Assignment rows sorted by sort_medians()
        feastol: Integrality tolerance

    Returns:
        The chosen location, or -1 if all assignments are integral
    """
    location = -1
    max_nfrac = 0
    min_frac_diff = float("inf")

    for i, row in enumerate(sorted_values):
        nfrac = 0
        total_frac = 0.0
        half_frac = 0.0

        for pos, value in enumerate(row):
            if _is_integral(value, feastol):
                continue
            nfrac += 1
            total_frac += value
            if pos % 2 == 0:
                half_frac += value

        frac_diff = abs(half_frac - 0.5 * total_frac)
        logger.debug(
            "location %d: %d fractional medians, total %g, half %g",
            i, nfrac, total_frac, half_frac,
        )

        if nfrac > max_nfrac or (
            nfrac > 0 and nfrac == max_nfrac and frac_diff < min_frac_diff - feastol
        ):
            location = i
            max_nfrac = nfrac
            min_frac_diff = frac_diff

    return location


def split_medians(
    sorted_ids: Sequence[int],
    location: int,
    registry: ForbiddenAssignments,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split the medians of a location between the two children.

    Medians at even positions of ``sorted_ids`` are forbidden in the left
    child, those at odd positions in the right child. Medians already
    forbidden for the location are left out of both sets, so a child
    constraint only holds newly forbidden pairs.

    Returns:
        (left_forbidden, right_forbidden) boolean arrays indexed by median
    """
    n = len(sorted_ids)
    left = np.zeros(n, dtype=bool)
    right = np.zeros(n, dtype=bool)

    for pos, median in enumerate(sorted_ids):
        if registry.is_forbidden(int(median), location):
            continue
        if pos % 2 == 0:
            left[median] = True
        else:
            right[median] = True

    return left, right


class SemiassignBranching(BranchingStrategy):
    """
    Branching on the medians a location may be assigned to.

    Returns at most one candidate with two decisions: the left and the
    right forbidden sets of the chosen location.

    Example:
        branching = SemiassignBranching(problem.n_locations, registry)
        candidate = branching.select_best_candidate(node, columns, values)
    """

    def __init__(
        self,
        n_locations: int,
        registry: ForbiddenAssignments,
        feastol: float = 1e-6,
    ):
        super().__init__("SemiassignBranching")
        self.n_locations = n_locations
        self.registry = registry
        self.feastol = feastol

    def select_branching_candidates(
        self,
        node: BPNode,
        columns: Sequence[Column],
        column_values: Sequence[float],
    ) -> List[BranchingCandidate]:
        assignments = compute_assignments(columns, column_values, self.n_locations)
        sorted_ids, sorted_values = sort_medians(assignments)

        location = choose_location(sorted_values, self.feastol)
        if location == -1:
            logger.debug("node %d: assignments are integral, no branching candidate", node.id)
            return []

        left, right = split_medians(sorted_ids[location], location, self.registry)
        nfrac = sum(1 for v in sorted_values[location] if not _is_integral(v, self.feastol))

        logger.debug(
            "node %d: branch on location %d, medians %s, assignments %s",
            node.id, location, sorted_ids[location].tolist(), sorted_values[location].tolist(),
        )

        return [
            BranchingCandidate(
                score=float(nfrac),
                decisions=[
                    BranchingDecision.semiassign(location, left),
                    BranchingDecision.semiassign(location, right),
                ],
                description=f"semiassign location {location}",
                metadata={
                    "location": location,
                    "sorted_medians": sorted_ids[location].tolist(),
                },
            )
        ]

    def assignments_to_clusters(
        self,
        columns: Sequence[Column],
        column_values: Sequence[float],
    ) -> List[Tuple[int, List[int]]]:
        """
        Read a clustering off an integral assignment matrix.

        Each location goes to the median it is assigned to with value one.

        Returns:
            List of (median, locations) pairs, one per used median
        """
        assignments = compute_assignments(columns, column_values, self.n_locations)
        clusters: dict[int, List[int]] = {}
        for location in range(self.n_locations):
            median = int(np.argmax(assignments[location]))
            if assignments[location, median] < 1.0 - self.feastol:
                raise ValueError(f"location {location} is not assigned integrally")
            clusters.setdefault(median, []).append(location)
        return sorted(clusters.items())
