"""Tests for semi-assignment constraints and their propagation."""

import pytest

from cpmpbp.constraints.base import PropagationStatus
from cpmpbp.constraints.forbidden import ForbiddenAssignments
from cpmpbp.constraints.semiassign import SemiassignConstraint
from cpmpbp.master.master import MasterProblem
from cpmpbp.problem.data import ProblemData


@pytest.fixture
def problem():
    distances = [
        [0, 2, 3, 4],
        [2, 0, 2, 3],
        [3, 2, 0, 2],
        [4, 3, 2, 0],
    ]
    return ProblemData(distances, [1, 1, 1, 1], [4, 4, 4, 4], 2)


@pytest.fixture
def master(problem):
    return MasterProblem(problem)


class TestActivation:
    """Tests for activation and deactivation."""

    def test_activate_marks_registry(self, master):
        """Test that activation forbids the constraint's pairs."""
        registry = ForbiddenAssignments(4)
        cons = SemiassignConstraint(0, [False, True, False, True], node_id=1)

        cons.on_activate(registry, master)

        assert cons.is_active is True
        assert registry.forbidden_medians(0).tolist() == [1, 3]

    def test_deactivate_restores_registry(self, master):
        """Test that deactivation lifts exactly the constraint's pairs."""
        registry = ForbiddenAssignments(4)
        registry.forbid(2, 0)
        cons = SemiassignConstraint(0, [False, True, False, True], node_id=1)

        cons.on_activate(registry, master)
        cons.on_deactivate(registry)

        assert cons.is_active is False
        assert registry.forbidden_medians(0).tolist() == [2]

    def test_reactivation_restores_same_set(self, master):
        """Test that repeated activation gives the same forbidden set."""
        registry = ForbiddenAssignments(4)
        cons = SemiassignConstraint(2, [True, True, False, False], node_id=1)

        cons.on_activate(registry, master)
        first = registry.as_array()
        cons.on_deactivate(registry)
        cons.on_activate(registry, master)

        assert (registry.as_array() == first).all()

    def test_double_activation_fails(self, master):
        """Test that a constraint cannot be activated twice."""
        registry = ForbiddenAssignments(4)
        cons = SemiassignConstraint(0, [False, True, False, False])
        cons.on_activate(registry, master)

        with pytest.raises(AssertionError):
            cons.on_activate(registry, master)

    def test_activation_requests_propagation_for_new_columns(self, master):
        """Test that columns created since the last propagation trigger propagation."""
        registry = ForbiddenAssignments(4)
        cons = SemiassignConstraint(0, [False, True, False, False])

        cons.on_activate(registry, master)
        cons.propagate(master)
        cons.on_deactivate(registry)

        assert cons.on_activate(registry, master) is False

        cons.on_deactivate(registry)
        master.add_column(2, [2, 3])

        assert cons.on_activate(registry, master) is True
        assert cons.needs_propagation is True

    def test_release(self, master):
        """Test releasing an inactive constraint."""
        cons = SemiassignConstraint(0, [False, True, False, False])

        cons.release()

        assert cons.forbidden is None
        assert "released" in repr(cons)

    def test_release_active_fails(self, master):
        """Test that an active constraint cannot be released."""
        registry = ForbiddenAssignments(4)
        cons = SemiassignConstraint(0, [False, True, False, False])
        cons.on_activate(registry, master)

        with pytest.raises(AssertionError):
            cons.release()


class TestPropagation:
    """Tests for propagation of a semi-assignment constraint."""

    def test_fixes_violating_columns(self, master):
        """Test that columns assigning the location to a forbidden median are fixed."""
        c0 = master.add_column(1, [0, 1])   # violates
        c1 = master.add_column(2, [0, 2])   # allowed median
        c2 = master.add_column(1, [1, 2])   # does not cover location 0

        registry = ForbiddenAssignments(4)
        cons = SemiassignConstraint(0, [False, True, False, False])
        cons.on_activate(registry, master)

        result = cons.propagate(master)

        assert result.status == PropagationStatus.REDUCEDDOM
        assert result.fixed_columns == [c0.index]
        assert master.is_fixed_to_zero(c0.index) is True
        assert master.is_fixed_to_zero(c1.index) is False
        assert master.is_fixed_to_zero(c2.index) is False
        assert cons.npropvars == 3

    def test_propagation_is_idempotent(self, master):
        """Test that a second propagation without new columns does nothing."""
        master.add_column(1, [0, 1])
        registry = ForbiddenAssignments(4)
        cons = SemiassignConstraint(0, [False, True, False, False])
        cons.on_activate(registry, master)

        cons.propagate(master)
        result = cons.propagate(master)

        assert result.status == PropagationStatus.DIDNOTRUN
        assert result.fixed_columns == []

    def test_only_new_columns_examined(self, master):
        """Test that the watermark limits propagation to new columns."""
        master.add_column(1, [0, 1])
        registry = ForbiddenAssignments(4)
        cons = SemiassignConstraint(0, [False, True, False, False])
        cons.on_activate(registry, master)
        cons.propagate(master)
        cons.on_deactivate(registry)

        # A column created elsewhere in the tree
        new = master.add_column(1, [0, 3])

        assert cons.on_activate(registry, master) is True
        result = cons.propagate(master)

        assert result.fixed_columns == [new.index]
        assert cons.npropvars == master.num_columns

    def test_no_violation_found(self, master):
        """Test propagation without any violating column."""
        master.add_column(0, [0, 1])
        registry = ForbiddenAssignments(4)
        cons = SemiassignConstraint(0, [False, False, True, True])
        cons.on_activate(registry, master)

        result = cons.propagate(master)

        assert result.status == PropagationStatus.DIDNOTFIND
        assert result.is_cutoff is False

    def test_already_fixed_columns_skipped(self, master):
        """Test that columns fixed by another constraint are not fixed again."""
        col = master.add_column(1, [0, 1])
        master.fix_to_zero(col.index)

        registry = ForbiddenAssignments(4)
        cons = SemiassignConstraint(0, [False, True, False, False])
        cons.on_activate(registry, master)

        result = cons.propagate(master)

        assert result.fixed_columns == []
        master.unfix(col.index)
        assert master.is_fixed_to_zero(col.index) is False
