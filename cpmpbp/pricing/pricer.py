"""
Pricing engine for CPMP column generation.

For every median, the pricing subproblem is a 0/1 knapsack: items are the
locations that may still be assigned to the median, weights are the
demands and the capacity is the median's capacity. Item profits are

    reduced cost pricing:  pi_i - d[i][j]
    Farkas pricing:        y_i

where pi / y are the service row duals (or Farkas multipliers). The
packed locations form a candidate cluster, which is added to the master
if it has negative reduced cost (or positive Farkas value).
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from cpmpbp.constraints.forbidden import ForbiddenAssignments
from cpmpbp.master.columns import Column
from cpmpbp.master.master import MasterDuals, MasterProblem
from cpmpbp.pricing.knapsack import DEFAULT_MAX_TABLE_SIZE, solve_knapsack_exactly

logger = logging.getLogger(__name__)


@dataclass
class PricingConfig:
    """Configuration for CPMP pricing."""
    # A column is improving if its reduced cost is below -tolerance
    # (or its Farkas value above tolerance)
    tolerance: float = 1e-6
    # Largest knapsack DP table before the oracle gives up on a median
    max_table_size: int = DEFAULT_MAX_TABLE_SIZE


@dataclass
class PricingResult:
    """
    Result of one pricing round.

    Attributes:
        columns: Columns added to the master
        failed_medians: Medians whose knapsack could not be solved
        stopped: Whether the round was interrupted by the stop signal
    """
    columns: List[Column] = field(default_factory=list)
    failed_medians: List[int] = field(default_factory=list)
    stopped: bool = False

    @property
    def num_columns(self) -> int:
        return len(self.columns)

    @property
    def found_columns(self) -> bool:
        return len(self.columns) > 0


class CpmpPricer:
    """
    Knapsack-based pricer for the CPMP master.

    Example:
        pricer = CpmpPricer(master, registry)
        lp = master.solve()
        if lp.is_optimal:
            result = pricer.price(lp.duals)
    """

    def __init__(
        self,
        master: MasterProblem,
        registry: ForbiddenAssignments,
        config: Optional[PricingConfig] = None,
    ):
        self.master = master
        self.problem = master.problem
        self.registry = registry
        self.config = config or PricingConfig()

        self.num_rounds = 0
        self.num_farkas_rounds = 0
        self.num_failures = 0

    def price(
        self,
        duals: MasterDuals,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> PricingResult:
        """
        Run one pricing round over all medians.

        Args:
            duals: Row duals of an optimal master LP, or Farkas multipliers
                (duals.farkas=True) of an infeasible one
            should_stop: Polled before each median; pricing halts when it
                returns True

        Returns:
            PricingResult with the columns added to the master
        """
        farkas = duals.farkas
        self.num_rounds += 1
        if farkas:
            self.num_farkas_rounds += 1

        result = PricingResult()
        demands = self.problem.demands
        capacities = self.problem.capacities

        for median in range(self.problem.n_locations):
            if should_stop is not None and should_stop():
                result.stopped = True
                break

            if self.registry.is_fully_excluded(median):
                continue

            items = self.registry.allowed_locations(median)
            profits = self._item_profits(median, items, duals)

            solution = solve_knapsack_exactly(
                demands[items],
                profits,
                capacities[median],
                items=[int(i) for i in items],
                max_table_size=self.config.max_table_size,
            )

            if not solution.success:
                self.num_failures += 1
                result.failed_medians.append(median)
                logger.warning("Pricing problem for median %d could not be solved!", median + 1)
                continue

            locations = solution.solitems
            score = self.column_score(median, locations, duals)
            logger.debug("median %d: locations %s, score %g", median, locations, score)

            if self._is_improving(score, farkas):
                column = self.master.add_column(median, locations)
                if column is not None:
                    logger.debug("found improving column, score=%g: %r", score, column)
                    result.columns.append(column)

        return result

    def _item_profits(
        self,
        median: int,
        items: np.ndarray,
        duals: MasterDuals,
    ) -> np.ndarray:
        if duals.farkas:
            return duals.service[items].copy()
        return duals.service[items] - self.problem.distances[items, median]

    def column_score(self, median: int, locations, duals: MasterDuals) -> float:
        """
        Reduced cost (or Farkas value) of a candidate column.

        Reduced cost:  sum_i (d[i][j] - pi_i) - mu_j - lambda
        Farkas value:  sum_i y_i + y_conv_j + y_median
        """
        idx = list(locations)
        service = float(duals.service[idx].sum()) if idx else 0.0
        if duals.farkas:
            return service + float(duals.convexity[median]) + duals.median
        cost = self.problem.cluster_cost(median, idx)
        return cost - service - float(duals.convexity[median]) - duals.median

    def _is_improving(self, score: float, farkas: bool) -> bool:
        if farkas:
            return score > self.config.tolerance
        return score < -self.config.tolerance
