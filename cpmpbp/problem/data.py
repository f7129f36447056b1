"""
Problem data for the Capacitated P-Median Problem (CPMP).

Holds the immutable per-instance data: distance matrix, demands,
capacities and the number of clusters to form. The distance matrix is
indexed location first, median second: ``distances[i, j]`` is the cost
of serving location ``i`` from median ``j``.
"""

from typing import Iterable, List, Sequence

import numpy as np


class ProblemData:
    """Immutable CPMP instance data."""

    def __init__(
        self,
        distances: Sequence[Sequence[int]],
        demands: Sequence[int],
        capacities: Sequence[int],
        n_clusters: int,
        name: str = "cpmp",
    ):
        """
        Create and validate an instance.

        Args:
            distances: n x n matrix, distances[location][median]
            demands: Demand of each location
            capacities: Capacity of each location when used as a median
            n_clusters: Number of clusters p to form
            name: Instance name used in output
        """
        dist = np.array(distances, dtype=float)
        dem = np.array(demands, dtype=float)
        cap = np.array(capacities, dtype=float)

        if dist.ndim != 2 or dist.shape[0] != dist.shape[1]:
            raise ValueError(f"distance matrix must be square, got shape {dist.shape}")
        n = dist.shape[0]
        if n == 0:
            raise ValueError("instance has no locations")
        if dem.shape != (n,):
            raise ValueError(f"expected {n} demands, got {dem.size}")
        if cap.shape != (n,):
            raise ValueError(f"expected {n} capacities, got {cap.size}")
        if not 1 <= n_clusters <= n:
            raise ValueError(f"number of clusters must be in [1, {n}], got {n_clusters}")
        if (dem < 0).any():
            raise ValueError("demands must be non-negative")
        if (cap < 0).any():
            raise ValueError("capacities must be non-negative")
        if (dem != np.round(dem)).any():
            raise ValueError("demands must be integral")
        if (cap != np.round(cap)).any():
            raise ValueError("capacities must be integral")

        for arr in (dist, dem, cap):
            arr.setflags(write=False)

        self._distances = dist
        self._demands = dem
        self._capacities = cap
        self._n_clusters = int(n_clusters)
        self.name = name

    @property
    def n_locations(self) -> int:
        """Number of locations (and median candidates)."""
        return self._distances.shape[0]

    @property
    def n_clusters(self) -> int:
        """Number of clusters p."""
        return self._n_clusters

    @property
    def distances(self) -> np.ndarray:
        """Read-only distance matrix, location first."""
        return self._distances

    @property
    def demands(self) -> np.ndarray:
        """Read-only demand vector."""
        return self._demands

    @property
    def capacities(self) -> np.ndarray:
        """Read-only capacity vector."""
        return self._capacities

    @property
    def total_demand(self) -> float:
        return float(self._demands.sum())

    @property
    def has_integral_costs(self) -> bool:
        """Whether every distance is integral, so optimal costs are too."""
        return bool(np.all(self._distances == np.round(self._distances)))

    def distance(self, location: int, median: int) -> float:
        """Cost of serving a location from a median."""
        return float(self._distances[location, median])

    def cluster_cost(self, median: int, locations: Iterable[int]) -> float:
        """Total service cost of a cluster."""
        idx = list(locations)
        if not idx:
            return 0.0
        return float(self._distances[idx, median].sum())

    def cluster_demand(self, locations: Iterable[int]) -> float:
        """Total demand of a set of locations."""
        idx = list(locations)
        if not idx:
            return 0.0
        return float(self._demands[idx].sum())

    def check_clustering(self, clusters: Sequence) -> List[str]:
        """
        Check a clustering for feasibility.

        Args:
            clusters: Objects with ``median`` and ``locations`` attributes

        Returns:
            List of violation messages (empty if feasible)
        """
        violations = []

        if len(clusters) != self._n_clusters:
            violations.append(
                f"expected {self._n_clusters} clusters, got {len(clusters)}"
            )

        medians = [c.median for c in clusters]
        if len(set(medians)) != len(medians):
            violations.append("a median is used by more than one cluster")

        covered = set()
        for cluster in clusters:
            load = self.cluster_demand(cluster.locations)
            if load > self._capacities[cluster.median] + 1e-9:
                violations.append(
                    f"cluster of median {cluster.median} carries demand {load:g} "
                    f"above capacity {self._capacities[cluster.median]:g}"
                )
            covered.update(cluster.locations)

        missing = set(range(self.n_locations)) - covered
        if missing:
            violations.append(f"locations not served: {sorted(missing)}")

        return violations

    def __repr__(self) -> str:
        return (
            f"<ProblemData {self.name}: {self.n_locations} locations, "
            f"{self._n_clusters} clusters>"
        )
