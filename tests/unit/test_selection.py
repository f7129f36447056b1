"""Tests for node selection policies."""

import pytest

from cpmpbp.core.node import BPNode, NodeStatus
from cpmpbp.core.selection import (
    BestFirstSelector,
    DepthFirstSelector,
    NodeSelector,
    create_selector,
)


def make_node(node_id, depth=0, bound=0.0):
    node = BPNode(id=node_id, depth=depth)
    node.lower_bound = bound
    return node


class TestQueueBasics:
    """Behaviour shared by every policy."""

    @pytest.mark.parametrize("selector_cls", [BestFirstSelector, DepthFirstSelector])
    def test_nothing_queued(self, selector_cls):
        selector = selector_cls()

        assert selector.empty()
        assert selector.size() == 0
        assert selector.select_next() is None

    def test_finished_node_is_not_queued(self):
        """A node that is already closed never enters the queue."""
        selector = DepthFirstSelector()
        node = make_node(4)
        node.status = NodeStatus.INTEGER

        selector.add_node(node)

        assert selector.empty()

    def test_node_pruned_while_queued_is_skipped(self):
        """Nodes closed by an incumbent after queueing are dropped lazily."""
        selector = BestFirstSelector()
        weak, strong = make_node(1, bound=31.0), make_node(2, bound=40.0)
        selector.add_nodes([weak, strong])

        weak.status = NodeStatus.PRUNED_BOUND

        assert selector.select_next() is strong
        assert selector.select_next() is None

    def test_prune_reports_removed_count(self):
        selector = DepthFirstSelector()
        nodes = [make_node(i, depth=1) for i in range(1, 5)]
        selector.add_nodes(nodes)
        nodes[0].status = NodeStatus.PRUNED_BOUND
        nodes[2].status = NodeStatus.PRUNED_INFEASIBLE

        assert selector.prune() == 2
        assert selector.size() == 2
        assert [selector.select_next().id for _ in range(2)] == [2, 4]

    def test_clear(self):
        selector = BestFirstSelector()
        selector.add_nodes(make_node(i) for i in range(3))

        selector.clear()

        assert selector.empty()

    def test_custom_priority(self):
        """A subclass only has to supply the ordering key."""

        class HighestIdFirst(NodeSelector):
            def priority(self, node):
                return (-node.id,)

        selector = HighestIdFirst()
        selector.add_nodes([make_node(3), make_node(9), make_node(5)])

        assert [selector.select_next().id for _ in range(3)] == [9, 5, 3]


class TestBestFirstSelector:
    """Tests for BestFirstSelector."""

    def test_lowest_bound_first(self):
        selector = BestFirstSelector()
        selector.add_nodes([
            make_node(1, depth=1, bound=36.0),
            make_node(2, depth=2, bound=33.0),
            make_node(3, depth=1, bound=34.0),
        ])

        assert [selector.select_next().id for _ in range(3)] == [2, 3, 1]

    def test_equal_bounds_keep_insertion_order(self):
        selector = BestFirstSelector()
        selector.add_nodes([make_node(7, bound=20.0), make_node(3, bound=20.0)])

        assert selector.select_next().id == 7


class TestDepthFirstSelector:
    """Tests for DepthFirstSelector."""

    def test_dives_into_children_before_siblings(self):
        """Children of the node just branched on come before older nodes."""
        selector = DepthFirstSelector()
        right_of_root = make_node(2, depth=1, bound=30.0)
        selector.add_node(right_of_root)
        selector.add_nodes([make_node(3, depth=2, bound=31.0), make_node(4, depth=2, bound=31.0)])

        assert selector.select_next().id == 3
        assert selector.select_next().id == 4
        assert selector.select_next() is right_of_root

    def test_same_depth_prefers_lower_bound(self):
        selector = DepthFirstSelector()
        selector.add_nodes([make_node(1, depth=2, bound=45.0), make_node(2, depth=2, bound=41.0)])

        assert selector.select_next().id == 2


class TestCreateSelector:
    """Tests for create_selector."""

    @pytest.mark.parametrize("name", ["best_first", "BestFirst", "BEST_FIRST"])
    def test_best_first_names(self, name):
        assert isinstance(create_selector(name), BestFirstSelector)

    @pytest.mark.parametrize("name", ["depth_first", "DepthFirst"])
    def test_depth_first_names(self, name):
        assert isinstance(create_selector(name), DepthFirstSelector)

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match="unknown node selection policy"):
            create_selector("best_estimate")
