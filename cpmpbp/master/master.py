"""
Restricted master problem for CPMP branch-and-price.

The master is a set partitioning LP solved with HiGHS:

    min   sum_c cost_c * x_c
    s.t.  sum_{c covers i} x_c >= 1      for every location i   (service)
          sum_{c has median j} x_c <= 1  for every median j     (convexity)
          sum_c x_c = p                                         (median count)
          0 <= x_c <= 1

When the LP is infeasible, a phase-1 LP with artificial columns on the
service and median-count rows is solved; its row duals are returned as
Farkas multipliers for Farkas pricing.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional

import highspy
import numpy as np

from cpmpbp.master.columns import Column, ColumnRegistry
from cpmpbp.problem.data import ProblemData

logger = logging.getLogger(__name__)


class LPStatus(Enum):
    """Status of a master LP solve."""
    OPTIMAL = auto()
    INFEASIBLE = auto()
    ERROR = auto()


@dataclass
class MasterDuals:
    """
    Dual information of the master rows.

    For an optimal LP these are the row duals; for an infeasible LP they
    are the Farkas multipliers taken from the phase-1 LP.
    """
    service: np.ndarray
    convexity: np.ndarray
    median: float
    farkas: bool = False


@dataclass
class LPResult:
    """Result of solving the master LP."""
    status: LPStatus
    objective: float = float("inf")
    values: np.ndarray = field(default_factory=lambda: np.zeros(0))
    duals: Optional[MasterDuals] = None

    @property
    def is_optimal(self) -> bool:
        return self.status == LPStatus.OPTIMAL

    @property
    def is_infeasible(self) -> bool:
        return self.status == LPStatus.INFEASIBLE


class MasterProblem:
    """
    HiGHS-based restricted master problem.

    Columns are added through add_column() and never removed. Columns
    violating branching decisions are fixed to zero instead; fixings are
    reference counted so nested fixings and their undo stay consistent.
    """

    def __init__(self, problem: ProblemData, feastol: float = 1e-6):
        """
        Build the master rows (initially without any column).

        Args:
            problem: The CPMP instance
            feastol: Feasibility tolerance for reading LP values
        """
        self.problem = problem
        self.feastol = feastol
        self.columns = ColumnRegistry()
        self._fix_counts: List[int] = []
        self._values = np.zeros(0)

        n = problem.n_locations
        self._n = n
        self._conv_offset = n
        self._median_row = 2 * n

        highs = highspy.Highs()
        highs.setOptionValue('output_flag', False)
        highs.setOptionValue('log_to_console', False)
        highs.setOptionValue('presolve', 'off')
        highs.changeObjectiveSense(highspy.ObjSense.kMinimize)

        # Service rows: sum x_c >= 1
        for _ in range(n):
            highs.addRow(1.0, highspy.kHighsInf, 0, [], [])
        # Convexity rows: sum x_c <= 1
        for _ in range(n):
            highs.addRow(-highspy.kHighsInf, 1.0, 0, [], [])
        # Median count row: sum x_c = p
        p = float(problem.n_clusters)
        highs.addRow(p, p, 0, [], [])

        # Artificial columns for phase 1, disabled (ub = 0) in phase 2
        art_rows = list(range(n)) + [self._median_row]
        for row in art_rows:
            highs.addCol(
                1.0, 0.0, 0.0, 1,
                np.array([row], dtype=np.int32),
                np.array([1.0]),
            )
        self._n_art = len(art_rows)

        self._highs = highs

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    @property
    def num_columns(self) -> int:
        return len(self.columns)

    def add_column(self, median: int, locations) -> Optional[Column]:
        """
        Add a cluster column to the master.

        The column enters the service row of every covered location, the
        convexity row of its median and the median count row.

        Args:
            median: Median of the cluster
            locations: Locations assigned to the median

        Returns:
            The new Column, or None if an identical column already exists
        """
        members = sorted(set(int(i) for i in locations))
        if self.columns.find(median, members) is not None:
            logger.debug("column for median %d with locations %s already exists", median, members)
            return None

        cost = self.problem.cluster_cost(median, members)
        column = self.columns.add(median, members, cost)
        self._fix_counts.append(0)

        indices = members + [self._conv_offset + median, self._median_row]
        self._highs.addCol(
            cost, 0.0, 1.0, len(indices),
            np.array(indices, dtype=np.int32),
            np.ones(len(indices)),
        )

        logger.debug("added %r", column)
        return column

    def _solver_index(self, index: int) -> int:
        return self._n_art + index

    def fix_to_zero(self, index: int) -> bool:
        """
        Fix a column to zero.

        Returns:
            True if the fixing is infeasible (the column is forced positive)
        """
        if self.lower_bound(index) > self.feastol:
            return True
        self._fix_counts[index] += 1
        if self._fix_counts[index] == 1:
            self._highs.changeColBounds(self._solver_index(index), 0.0, 0.0)
        return False

    def unfix(self, index: int) -> None:
        """Undo one fixing of a column."""
        assert self._fix_counts[index] > 0, f"column {index} is not fixed"
        self._fix_counts[index] -= 1
        if self._fix_counts[index] == 0:
            self._highs.changeColBounds(self._solver_index(index), 0.0, 1.0)

    def is_fixed_to_zero(self, index: int) -> bool:
        return self._fix_counts[index] > 0

    def upper_bound(self, index: int) -> float:
        return 0.0 if self._fix_counts[index] > 0 else 1.0

    def lower_bound(self, index: int) -> float:
        return 0.0

    # ------------------------------------------------------------------
    # Solving
    # ------------------------------------------------------------------

    def solve(self) -> LPResult:
        """
        Solve the current restricted master LP.

        Returns:
            LPResult with values and duals if optimal, or with Farkas
            multipliers if infeasible
        """
        highs = self._highs
        highs.run()
        status = highs.getModelStatus()

        if status == highspy.HighsModelStatus.kOptimal:
            sol = highs.getSolution()
            info = highs.getInfo()
            self._values = np.array(sol.col_value[self._n_art:], dtype=float)
            return LPResult(
                status=LPStatus.OPTIMAL,
                objective=info.objective_function_value,
                values=self._values.copy(),
                duals=self._split_duals(sol.row_dual, farkas=False),
            )

        self._values = np.zeros(self.num_columns)

        if status in (
            highspy.HighsModelStatus.kInfeasible,
            highspy.HighsModelStatus.kUnboundedOrInfeasible,
        ):
            farkas = self._solve_phase_one()
            if farkas is None:
                return LPResult(status=LPStatus.ERROR)
            return LPResult(status=LPStatus.INFEASIBLE, duals=farkas)

        logger.error("master LP returned status %s", status)
        return LPResult(status=LPStatus.ERROR)

    def _solve_phase_one(self) -> Optional[MasterDuals]:
        """Minimize the artificial infeasibility and return its row duals."""
        highs = self._highs
        n_cols = self.num_columns

        for k in range(self._n_art):
            highs.changeColBounds(k, 0.0, highspy.kHighsInf)
        for idx in range(n_cols):
            highs.changeColCost(self._solver_index(idx), 0.0)

        try:
            highs.run()
            status = highs.getModelStatus()
            if status != highspy.HighsModelStatus.kOptimal:
                logger.error("phase-1 LP returned status %s", status)
                return None
            sol = highs.getSolution()
            farkas = self._split_duals(sol.row_dual, farkas=True)
            logger.debug(
                "phase-1 infeasibility %.6g", highs.getInfo().objective_function_value
            )
        finally:
            for k in range(self._n_art):
                highs.changeColBounds(k, 0.0, 0.0)
            for idx in range(n_cols):
                highs.changeColCost(self._solver_index(idx), self.columns[idx].cost)

        return farkas

    def _split_duals(self, row_dual, farkas: bool) -> MasterDuals:
        rd = np.array(row_dual, dtype=float)
        n = self._n
        return MasterDuals(
            service=rd[:n],
            convexity=rd[n:2 * n],
            median=float(rd[2 * n]),
            farkas=farkas,
        )

    def column_values(self) -> np.ndarray:
        """Column values of the last optimal LP (zeros otherwise)."""
        values = np.zeros(self.num_columns)
        values[:len(self._values)] = self._values
        return values

    def integral_columns(self, values: np.ndarray) -> List[Column]:
        """Columns at value one in an integral solution."""
        return [self.columns[i] for i, v in enumerate(values) if v > 0.5]
