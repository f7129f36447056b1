"""Tests for CPMP knapsack pricing."""

import logging

import numpy as np
import pytest

from cpmpbp.constraints.forbidden import ForbiddenAssignments
from cpmpbp.master.master import MasterDuals, MasterProblem
from cpmpbp.pricing.pricer import CpmpPricer, PricingConfig
from cpmpbp.problem.data import ProblemData

DISTANCES = [
    [0, 2, 3, 4],
    [2, 0, 2, 3],
    [3, 2, 0, 2],
    [4, 3, 2, 0],
]


@pytest.fixture
def problem():
    return ProblemData(DISTANCES, [1, 1, 1, 1], [2, 2, 2, 2], 2)


def make_duals(service, convexity=None, median=0.0, farkas=False):
    n = len(service)
    return MasterDuals(
        service=np.array(service, dtype=float),
        convexity=np.zeros(n) if convexity is None else np.array(convexity, dtype=float),
        median=median,
        farkas=farkas,
    )


class TestReducedCostPricing:
    """Tests for reduced cost pricing."""

    def test_finds_improving_columns(self, problem):
        """Test that columns with negative reduced cost are added."""
        master = MasterProblem(problem)
        pricer = CpmpPricer(master, ForbiddenAssignments(4))

        result = pricer.price(make_duals([5, 5, 5, 5]))

        assert result.found_columns
        assert result.num_columns == 4
        assert master.num_columns == 4
        # Median 0 has profits 5, 3, 2, 1 and room for two locations
        col0 = [c for c in result.columns if c.median == 0][0]
        assert col0.locations == (0, 1)

    def test_columns_respect_capacity(self, problem):
        """Test that every priced column fits its median's capacity."""
        master = MasterProblem(problem)
        pricer = CpmpPricer(master, ForbiddenAssignments(4))

        result = pricer.price(make_duals([9, 9, 9, 9]))

        for col in result.columns:
            assert problem.cluster_demand(col.locations) <= problem.capacities[col.median]

    def test_no_improving_column(self, problem):
        """Test that nothing is added when all reduced costs are non-negative."""
        master = MasterProblem(problem)
        pricer = CpmpPricer(master, ForbiddenAssignments(4))

        result = pricer.price(make_duals([0, 0, 0, 0], median=-1.0))

        assert not result.found_columns
        assert master.num_columns == 0

    def test_column_score(self, problem):
        """Test the reduced cost formula."""
        master = MasterProblem(problem)
        pricer = CpmpPricer(master, ForbiddenAssignments(4))
        duals = make_duals([4, 1, 1, 1], convexity=[0, -1, 0, 0], median=2.0)

        # cost 2 + 0 = 2, service duals 5, convexity -1, median 2
        assert pricer.column_score(1, [0, 1], duals) == pytest.approx(2 - 5 + 1 - 2)

    def test_forbidden_pairs_excluded(self, problem):
        """Test that forbidden locations are never packed."""
        master = MasterProblem(problem)
        registry = ForbiddenAssignments(4)
        registry.forbid(0, 0)
        registry.forbid(0, 1)
        pricer = CpmpPricer(master, registry)

        result = pricer.price(make_duals([5, 5, 5, 5]))

        for col in result.columns:
            if col.median == 0:
                assert not col.covers(0) and not col.covers(1)

    def test_fully_excluded_median_skipped(self, problem):
        """Test that a median with every location forbidden is not priced."""
        master = MasterProblem(problem)
        registry = ForbiddenAssignments(4)
        registry.forbid_assignments(0, [False, False, False, True])
        registry.forbid_assignments(1, [False, False, False, True])
        registry.forbid_assignments(2, [False, False, False, True])
        registry.forbid_assignments(3, [False, False, False, True])
        pricer = CpmpPricer(master, registry)

        result = pricer.price(make_duals([5, 5, 5, 5], median=10.0))

        assert all(col.median != 3 for col in result.columns)

    def test_duplicate_columns_not_added(self, problem):
        """Test that a repeated round with the same duals adds nothing."""
        master = MasterProblem(problem)
        pricer = CpmpPricer(master, ForbiddenAssignments(4))
        duals = make_duals([5, 5, 5, 5])

        pricer.price(duals)
        second = pricer.price(duals)

        assert not second.found_columns
        assert pricer.num_rounds == 2


class TestFarkasPricing:
    """Tests for Farkas pricing."""

    def test_farkas_profits(self, problem):
        """Test that Farkas pricing packs locations with positive multipliers."""
        master = MasterProblem(problem)
        registry = ForbiddenAssignments(4)
        registry.forbid(1, 0)
        pricer = CpmpPricer(master, registry)

        result = pricer.price(make_duals([1, 0, 0, 0], farkas=True))

        assert pricer.num_farkas_rounds == 1
        assert sorted(c.median for c in result.columns) == [0, 2, 3]
        assert all(c.locations == (0,) for c in result.columns)

    def test_farkas_value(self, problem):
        """Test the Farkas value formula."""
        master = MasterProblem(problem)
        pricer = CpmpPricer(master, ForbiddenAssignments(4))
        duals = make_duals([1, 2, 0, 0], convexity=[-0.5, 0, 0, 0], median=1.0, farkas=True)

        assert pricer.column_score(0, [0, 1], duals) == pytest.approx(3.5)

    def test_prices_empty_master(self, problem):
        """Test pricing from the Farkas multipliers of the empty master."""
        master = MasterProblem(problem)
        pricer = CpmpPricer(master, ForbiddenAssignments(4))

        lp = master.solve()
        result = pricer.price(lp.duals)

        assert lp.is_infeasible
        assert result.found_columns


class TestPricingControl:
    """Tests for failures and interruption."""

    def test_oracle_failure_skips_median(self, problem, caplog):
        """Test that oracle failures are logged and skipped."""
        master = MasterProblem(problem)
        pricer = CpmpPricer(master, ForbiddenAssignments(4), PricingConfig(max_table_size=1))

        with caplog.at_level(logging.WARNING):
            result = pricer.price(make_duals([5, 5, 5, 5]))

        assert result.failed_medians == [0, 1, 2, 3]
        assert not result.found_columns
        assert pricer.num_failures == 4
        assert "could not be solved" in caplog.text

    def test_stop_signal(self, problem):
        """Test that pricing halts when asked to stop."""
        master = MasterProblem(problem)
        pricer = CpmpPricer(master, ForbiddenAssignments(4))

        result = pricer.price(make_duals([5, 5, 5, 5]), should_stop=lambda: True)

        assert result.stopped is True
        assert not result.found_columns

    def test_stop_after_first_median(self, problem):
        """Test that columns found before the stop signal are kept."""
        master = MasterProblem(problem)
        pricer = CpmpPricer(master, ForbiddenAssignments(4))
        calls = []

        def should_stop():
            calls.append(1)
            return len(calls) > 1

        result = pricer.price(make_duals([5, 5, 5, 5]), should_stop=should_stop)

        assert result.stopped is True
        assert [c.median for c in result.columns] == [0]
