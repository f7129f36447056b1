"""Tests for BPNode and BranchingDecision."""

import numpy as np
import pytest

from cpmpbp.constraints.semiassign import SemiassignConstraint
from cpmpbp.core.node import (
    BPNode,
    BranchingDecision,
    NodeStatus,
)


class TestBranchingDecision:
    """Tests for BranchingDecision."""

    def test_forbidden_medians(self):
        d = BranchingDecision.semiassign(2, [True, False, True, False])

        assert d.location == 2
        assert d.forbidden == (True, False, True, False)
        assert d.forbidden_medians == [0, 2]

    def test_numpy_input_becomes_plain_python(self):
        """Decisions built from branching arrays hold ints and bools."""
        d = BranchingDecision.semiassign(np.int64(1), np.array([False, True]))

        assert type(d.location) is int
        assert all(type(f) is bool for f in d.forbidden)

    def test_equal_decisions_compare_equal(self):
        a = BranchingDecision.semiassign(0, [True, False])
        b = BranchingDecision.semiassign(0, np.array([True, False]))

        assert a == b
        assert hash(a) == hash(b)

    def test_frozen(self):
        d = BranchingDecision.semiassign(0, [True, False])

        with pytest.raises(AttributeError):
            d.location = 1

    def test_repr_lists_forbidden_medians(self):
        d = BranchingDecision.semiassign(3, [False, True, True])

        assert repr(d) == "Semiassign(location=3, forbidden=[1, 2])"


class TestBPNode:
    """Tests for BPNode."""

    def test_defaults_describe_an_open_root(self):
        node = BPNode()

        assert node.is_root
        assert node.depth == 0
        assert node.lower_bound == float("-inf")
        assert node.status == NodeStatus.PENDING
        assert node.decision is None
        assert node.constraint is None
        assert node.solution is None

    def test_child_is_not_root(self):
        node = BPNode(id=5, parent_id=2, depth=3)

        assert not node.is_root

    @pytest.mark.parametrize("status, is_open, is_closed", [
        (NodeStatus.PENDING, True, False),
        (NodeStatus.PROCESSING, False, False),
        (NodeStatus.BRANCHED, False, True),
        (NodeStatus.PRUNED_BOUND, False, True),
        (NodeStatus.PRUNED_INFEASIBLE, False, True),
        (NodeStatus.INTEGER, False, True),
    ])
    def test_status_flags(self, status, is_open, is_closed):
        node = BPNode(status=status)

        assert node.is_open is is_open
        assert node.is_closed is is_closed

    def test_record_fixings_accumulates(self):
        """Fixings from repeated propagations are all remembered."""
        node = BPNode(id=1)

        node.record_fixings([4])
        node.record_fixings([])
        node.record_fixings([7, 9])

        assert node.fixed_columns == [4, 7, 9]

    def test_single_constraint_per_node(self):
        node = BPNode(id=1)
        cons = SemiassignConstraint(0, [False, True], node_id=1)
        node.attach_constraint(cons)

        assert node.constraint is cons
        with pytest.raises(AssertionError):
            node.attach_constraint(SemiassignConstraint(1, [True, False], node_id=1))

    def test_release(self):
        """Releasing frees the constraint, the fixings and the LP values."""
        node = BPNode(id=1)
        cons = SemiassignConstraint(0, [False, True], node_id=1)
        node.attach_constraint(cons)
        node.record_fixings([3, 4])
        node.solution = np.array([0.5, 0.5])

        node.release()

        assert node.constraint is None
        assert node.fixed_columns == []
        assert node.solution is None
        assert cons.forbidden is None

    def test_release_without_constraint(self):
        node = BPNode()

        node.release()

        assert node.constraint is None
