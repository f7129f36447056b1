"""
Branch-and-price search tree.

Nodes are stored in creation order, so a node's id is its position in
the tree. The tree tracks the global bounds of the minimization and the
node that produced the incumbent.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from cpmpbp.core.node import BPNode, BranchingDecision, NodeStatus


@dataclass
class TreeStats:
    """Counters collected while the tree is searched."""
    nodes_created: int = 0
    nodes_processed: int = 0
    nodes_branched: int = 0
    nodes_pruned_bound: int = 0
    nodes_pruned_infeasible: int = 0
    nodes_integer: int = 0
    nodes_released: int = 0
    max_depth: int = 0

    @property
    def nodes_open(self) -> int:
        return self.nodes_created - self.nodes_processed

    @property
    def nodes_pruned(self) -> int:
        return self.nodes_pruned_bound + self.nodes_pruned_infeasible


_CLOSED_COUNTERS = {
    NodeStatus.BRANCHED: "nodes_branched",
    NodeStatus.PRUNED_BOUND: "nodes_pruned_bound",
    NodeStatus.PRUNED_INFEASIBLE: "nodes_pruned_infeasible",
    NodeStatus.INTEGER: "nodes_integer",
}


class BPTree:
    """The branch-and-price search tree (minimization)."""

    def __init__(self):
        self._nodes: List[BPNode] = []
        self._stats = TreeStats()
        self.lower_bound = float("-inf")
        self.upper_bound = float("inf")
        self._incumbent: Optional[BPNode] = None
        self._add(BPNode(id=0))

    def _add(self, node: BPNode) -> BPNode:
        self._nodes.append(node)
        self._stats.nodes_created += 1
        self._stats.max_depth = max(self._stats.max_depth, node.depth)
        return node

    @property
    def root(self) -> BPNode:
        return self._nodes[0]

    def node(self, node_id: int) -> BPNode:
        return self._nodes[node_id]

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[BPNode]:
        return iter(self._nodes)

    @property
    def stats(self) -> TreeStats:
        return self._stats

    def branch(self, parent: BPNode, decisions: Sequence[BranchingDecision]) -> List[BPNode]:
        """
        Create one child of ``parent`` per decision and close the parent.

        Children start from the parent's lower bound.
        """
        children = []
        for decision in decisions:
            child = self._add(BPNode(
                id=len(self._nodes),
                parent_id=parent.id,
                depth=parent.depth + 1,
                lower_bound=parent.lower_bound,
                decision=decision,
            ))
            parent.add_child(child.id)
            children.append(child)
        self.close(parent, NodeStatus.BRANCHED)
        return children

    def close(self, node: BPNode, status: NodeStatus) -> None:
        """Give an unfinished node its final status."""
        assert not node.is_closed, f"node {node.id} is already closed"
        node.status = status
        self._stats.nodes_processed += 1
        setattr(self._stats, _CLOSED_COUNTERS[status],
                getattr(self._stats, _CLOSED_COUNTERS[status]) + 1)

    def path(self, node: BPNode) -> List[BPNode]:
        """Nodes from the root down to ``node``."""
        path = [node]
        while not path[-1].is_root:
            path.append(self._nodes[path[-1].parent_id])
        path.reverse()
        return path

    def open_nodes(self) -> List[BPNode]:
        return [n for n in self._nodes if n.is_open]

    def update_lower_bound(self) -> float:
        """Set the global lower bound to the weakest open node's bound."""
        self.lower_bound = min(
            (n.lower_bound for n in self._nodes if n.is_open),
            default=self.upper_bound,
        )
        return self.lower_bound

    def incumbent(self) -> Optional[BPNode]:
        """Node at which the incumbent was found."""
        return self._incumbent

    def set_incumbent(self, node: BPNode, value: float) -> None:
        self._incumbent = node
        self.upper_bound = value

    def prune_by_bound(self, tolerance: float = 1e-6) -> int:
        """Close every open node that cannot beat the incumbent."""
        doomed = [n for n in self._nodes
                  if n.is_open and n.lower_bound >= self.upper_bound - tolerance]
        for node in doomed:
            self.close(node, NodeStatus.PRUNED_BOUND)
        return len(doomed)

    def gap(self) -> float:
        """Relative gap between the global bounds."""
        lb, ub = self.lower_bound, self.upper_bound
        if ub == float("inf") or lb == float("-inf"):
            return float("inf")
        if abs(ub) < 1e-10:
            return 0.0 if abs(lb) < 1e-10 else float("inf")
        return (ub - lb) / abs(ub)

    def is_subtree_closed(self, node: BPNode) -> bool:
        """Whether a node and all its descendants are finished."""
        return node.is_closed and all(
            self.is_subtree_closed(self._nodes[c]) for c in node.children
        )

    def release_node(self, node: BPNode) -> None:
        if node.constraint is not None:
            self._stats.nodes_released += 1
        node.release()
