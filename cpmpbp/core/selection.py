"""
Node selection policies.

Both policies keep the open nodes in one heap and differ only in the
ordering key. Nodes that were pruned while queued are dropped lazily.
"""

import heapq
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

from cpmpbp.core.node import BPNode


class NodeSelector(ABC):
    """Priority queue of open nodes, ordered by :meth:`priority`."""

    def __init__(self):
        self._queue: List[Tuple[tuple, int, BPNode]] = []
        self._pushed = 0

    @abstractmethod
    def priority(self, node: BPNode) -> tuple:
        """Sort key of a node; the smallest key is explored first."""

    def add_node(self, node: BPNode) -> None:
        if not node.is_open:
            return
        # the push counter keeps equal keys in creation order
        heapq.heappush(self._queue, (self.priority(node), self._pushed, node))
        self._pushed += 1

    def add_nodes(self, nodes: Iterable[BPNode]) -> None:
        for node in nodes:
            self.add_node(node)

    def _drop_stale(self) -> None:
        while self._queue and not self._queue[0][2].is_open:
            heapq.heappop(self._queue)

    def select_next(self) -> Optional[BPNode]:
        """Pop the next node to explore, or None when nothing is open."""
        self._drop_stale()
        if not self._queue:
            return None
        return heapq.heappop(self._queue)[2]

    def empty(self) -> bool:
        return not self._queue

    def size(self) -> int:
        return len(self._queue)

    def prune(self) -> int:
        """Remove every queued node that can no longer be explored."""
        before = len(self._queue)
        self._queue = [entry for entry in self._queue if entry[2].is_open]
        heapq.heapify(self._queue)
        return before - len(self._queue)

    def clear(self) -> None:
        self._queue.clear()


class BestFirstSelector(NodeSelector):
    """Lowest lower bound first."""

    def priority(self, node: BPNode) -> tuple:
        return (node.lower_bound,)


class DepthFirstSelector(NodeSelector):
    """
    Deepest node first, then lowest bound, then creation order.

    The left child of a branching is queued before the right one, so it
    is explored first.
    """

    def priority(self, node: BPNode) -> tuple:
        return (-node.depth, node.lower_bound)


_SELECTORS = {
    "best_first": BestFirstSelector,
    "bestfirst": BestFirstSelector,
    "depth_first": DepthFirstSelector,
    "depthfirst": DepthFirstSelector,
}


def create_selector(name: str) -> NodeSelector:
    """Create a node selector by name."""
    try:
        return _SELECTORS[name.lower()]()
    except KeyError:
        raise ValueError(f"unknown node selection policy: {name}") from None
