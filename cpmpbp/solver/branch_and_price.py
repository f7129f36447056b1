"""
Branch-and-Price solver for the capacitated p-median problem.

One master LP is shared by the whole tree. A node's semi-assignment
decision is enforced through the forbidden-assignment registry (for
pricing) and by fixing violating columns to zero (for the LP), so moving
from one node to another means switching the set of active constraints.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from cpmpbp.branching.semiassign import SemiassignBranching
from cpmpbp.constraints.forbidden import ForbiddenAssignments
from cpmpbp.constraints.semiassign import SemiassignConstraint
from cpmpbp.core.node import BPNode, NodeStatus
from cpmpbp.core.selection import NodeSelector, create_selector
from cpmpbp.core.tree import BPTree
from cpmpbp.master.columns import Column
from cpmpbp.master.master import LPResult, LPStatus, MasterProblem
from cpmpbp.pricing.pricer import CpmpPricer, PricingConfig
from cpmpbp.problem.data import ProblemData

logger = logging.getLogger(__name__)


class BPStatus(Enum):
    """Outcome of a branch-and-price run."""
    OPTIMAL = "optimal"
    FEASIBLE = "feasible"  # incumbent found, optimality not proven
    INFEASIBLE = "infeasible"
    TIME_LIMIT = "time limit"
    NODE_LIMIT = "node limit"
    UNKNOWN = "unknown"  # no incumbent, infeasibility not proven


@dataclass
class BPConfig:
    """Configuration for branch-and-price solver."""
    max_time: float = 3600.0  # seconds
    max_nodes: int = 0  # 0 = unlimited
    gap_tolerance: float = 1e-6

    node_selection: str = "depth_first"  # depth_first, best_first

    # Pricing rounds per node before the node LP is accepted as is
    cg_max_iterations: int = 1000
    feastol: float = 1e-6

    verbose: bool = True
    log_frequency: int = 10  # print a progress line every N nodes

    # Called as node_callback(node, solver) after each processed node
    node_callback: Optional[Callable[[BPNode, "BranchAndPrice"], None]] = None

    pricing: PricingConfig = field(default_factory=PricingConfig)


@dataclass(frozen=True)
class Cluster:
    """A median together with the locations it serves."""
    median: int
    locations: Tuple[int, ...]
    cost: float


@dataclass
class BPSolution:
    """Best clustering found and statistics of the search."""
    status: BPStatus
    objective: float = float("inf")
    lower_bound: float = float("-inf")
    upper_bound: float = float("inf")
    gap: float = float("inf")

    clusters: List[Cluster] = field(default_factory=list)
    # Master columns of the incumbent with their LP values
    columns: List[Column] = field(default_factory=list)
    column_values: List[float] = field(default_factory=list)

    nodes_explored: int = 0
    nodes_pruned: int = 0
    max_depth: int = 0
    num_columns: int = 0
    pricing_rounds: int = 0
    total_time: float = 0.0
    time_in_cg: float = 0.0
    time_in_branching: float = 0.0

    def is_optimal(self) -> bool:
        return self.status == BPStatus.OPTIMAL

    def is_feasible(self) -> bool:
        return bool(self.clusters)


class BranchAndPrice:
    """
    Branch-and-Price solver for the CPMP.

    Example:
        from cpmpbp import BranchAndPrice, BPConfig, read_instance

        problem = read_instance("instance.txt")
        solution = BranchAndPrice(problem, BPConfig(max_time=60)).solve()
        for cluster in solution.clusters:
            print(cluster.median, cluster.locations)
    """

    def __init__(
        self,
        problem: ProblemData,
        config: Optional[BPConfig] = None,
        node_selection: Optional[NodeSelector] = None,
    ):
        """
        Args:
            problem: The CPMP instance to solve
            config: Solver configuration
            node_selection: Selector overriding ``config.node_selection``
        """
        self.problem = problem
        self.config = config or BPConfig()
        self.node_selector = node_selection or create_selector(self.config.node_selection)

        n = problem.n_locations
        self.registry = ForbiddenAssignments(n)
        self.master = MasterProblem(problem, feastol=self.config.feastol)
        self.pricer = CpmpPricer(self.master, self.registry, self.config.pricing)
        self.branching = SemiassignBranching(n, self.registry, feastol=self.config.feastol)

        self._tree: Optional[BPTree] = None
        self._active_path: List[BPNode] = []
        # Nodes whose constraint has not been released yet
        self._live_constraints: Dict[int, BPNode] = {}
        self._incumbent_clusters: List[Cluster] = []
        self._incumbent_columns: List[Tuple[Column, float]] = []
        # Set when some node bound could not be proven (pricing cut short)
        self._incomplete = False
        self._solution: Optional[BPSolution] = None
        self._start_time = 0.0
        self._cg_time = 0.0
        self._branch_time = 0.0

    def solve(
        self,
        time_limit: Optional[float] = None,
        node_limit: Optional[int] = None,
    ) -> BPSolution:
        """
        Run branch-and-price until the tree is exhausted or a limit is hit.

        Args:
            time_limit: Overrides ``config.max_time`` (seconds)
            node_limit: Overrides ``config.max_nodes``

        Returns:
            BPSolution with status, objective, clusters and statistics
        """
        if time_limit is not None:
            self.config.max_time = time_limit
        if node_limit is not None:
            self.config.max_nodes = node_limit

        self._start_time = time.time()
        self._cg_time = self._branch_time = 0.0
        self._incomplete = False
        self._tree = BPTree()
        self.node_selector.clear()
        self.node_selector.add_node(self._tree.root)

        explored = 0
        while True:
            reason = self._limit_reached(explored)
            if reason:
                logger.info("stopping search: %s", reason)
                break
            node = self.node_selector.select_next()
            if node is None:
                break

            explored += 1
            node.status = NodeStatus.PROCESSING
            self._process_node(node)
            self._tree.update_lower_bound()
            self._release_closed_nodes()

            if self.config.verbose and explored % self.config.log_frequency == 0:
                self._log_progress(explored, node)
            if self.config.node_callback:
                self.config.node_callback(node, self)

        # Leave the root: every forbidden pair is lifted again
        self._switch_to(None)
        self._release_closed_nodes()

        self._solution = self._build_solution(explored)
        return self._solution

    def _elapsed(self) -> float:
        return time.time() - self._start_time

    def _time_exceeded(self) -> bool:
        return self._elapsed() >= self.config.max_time

    def _limit_reached(self, explored: int) -> Optional[str]:
        """Name of the limit that ends the search, if any."""
        if self._time_exceeded():
            return "time limit"
        if 0 < self.config.max_nodes <= explored:
            return "node limit"
        if self._tree.gap() <= self.config.gap_tolerance:
            return "gap closed"
        return None

    # ------------------------------------------------------------------
    # Active path
    # ------------------------------------------------------------------

    def _switch_to(self, target: Optional[BPNode]) -> bool:
        """
        Make the path from the root to ``target`` the active path.

        Constraints of nodes leaving the path are deactivated deepest
        first; constraints of nodes joining it are activated root first.
        Active constraints are then propagated from the root down.

        Returns:
            True if propagation proves the target node infeasible
        """
        if target is None:
            new_path: List[BPNode] = []
        else:
            new_path = self._tree.path(target)

        old_path = self._active_path
        common = 0
        while (
            common < len(old_path)
            and common < len(new_path)
            and old_path[common] is new_path[common]
        ):
            common += 1

        for node in reversed(old_path[common:]):
            self._deactivate(node)
        self._active_path = old_path[:common]

        for node in new_path[common:]:
            self._activate(node)
            self._active_path.append(node)

        if target is None:
            return False
        return self._propagate_path()

    def _activate(self, node: BPNode) -> None:
        constraint = node.constraint
        if constraint is None:
            return
        constraint.on_activate(self.registry, self.master)
        for idx in node.fixed_columns:
            infeasible = self.master.fix_to_zero(idx)
            assert not infeasible, f"re-applying fixing of column {idx} at node {node.id} failed"

    def _deactivate(self, node: BPNode) -> None:
        constraint = node.constraint
        if constraint is None:
            return
        for idx in node.fixed_columns:
            self.master.unfix(idx)
        constraint.on_deactivate(self.registry)

    def _propagate_path(self) -> bool:
        for node in self._active_path:
            constraint = node.constraint
            if constraint is None or not constraint.needs_propagation:
                continue
            result = constraint.propagate(self.master)
            node.record_fixings(result.fixed_columns)
            if result.is_cutoff:
                logger.debug("propagation at node %d cut off node %d", node.id, self._active_path[-1].id)
                return True
        return False

    def _release_closed_nodes(self) -> None:
        """Release constraints of inactive nodes whose subtree is finished."""
        for node_id, node in list(self._live_constraints.items()):
            if node.constraint is None or (
                not node.constraint.is_active and self._tree.is_subtree_closed(node)
            ):
                self._tree.release_node(node)
                del self._live_constraints[node_id]

    # ------------------------------------------------------------------
    # Node processing
    # ------------------------------------------------------------------

    def _process_node(self, node: BPNode) -> None:
        """Process a single B&P node."""
        if self._switch_to(node):
            self._tree.close(node, NodeStatus.PRUNED_INFEASIBLE)
            return

        cg_start = time.time()
        lp, converged = self._solve_cg_at_node(node)
        self._cg_time += time.time() - cg_start

        if not converged:
            self._incomplete = True

        if lp is None:
            if converged:
                logger.debug("node %d is infeasible", node.id)
            else:
                logger.warning(
                    "node %d dropped: master LP infeasible but pricing was incomplete", node.id
                )
            self._tree.close(node, NodeStatus.PRUNED_INFEASIBLE)
            return

        node.lp_value = lp.objective
        if converged:
            node.lower_bound = max(node.lower_bound, self._round_bound(lp.objective))

        if node.lower_bound >= self._tree.upper_bound - self.config.feastol:
            self._tree.close(node, NodeStatus.PRUNED_BOUND)
            return

        values = lp.values
        node.solution = values

        if self._is_integer_solution(values):
            columns = self.master.integral_columns(values)
            self._update_incumbent(
                node,
                [(c.median, c.locations) for c in columns],
                [(c, 1.0) for c in columns],
            )
            self._tree.close(node, NodeStatus.INTEGER)
            return

        branch_start = time.time()
        candidate = self.branching.select_best_candidate(node, self.master.columns, values)
        self._branch_time += time.time() - branch_start

        if candidate is None:
            # Fractional columns, but every location is served by one median
            pairs = self.branching.assignments_to_clusters(self.master.columns, values)
            used = [
                (self.master.columns[i], float(v))
                for i, v in enumerate(values)
                if v > self.config.feastol
            ]
            self._update_incumbent(node, pairs, used)
            self._tree.close(node, NodeStatus.INTEGER)
            return

        children = self._tree.branch(node, candidate.decisions)
        for child, side in zip(children, ("left", "right")):
            decision = child.decision
            child.attach_constraint(
                SemiassignConstraint(
                    decision.location,
                    decision.forbidden,
                    node_id=child.id,
                    name=f"semiassign_{side}_{child.id}",
                )
            )
            self._live_constraints[child.id] = child
            logger.debug("node %d: created child %d with %r", node.id, child.id, decision)

        self.node_selector.add_nodes(children)

    def _solve_cg_at_node(self, node: BPNode) -> Tuple[Optional[LPResult], bool]:
        """
        Solve column generation at a node.

        Runs Farkas pricing while the master is infeasible and reduced cost
        pricing while it is optimal, until no improving column is found.

        Returns:
            (lp, converged): the final optimal LP (None if the node is
            infeasible) and whether pricing proved no improving column exists
        """
        for iteration in range(self.config.cg_max_iterations):
            lp = self.master.solve()
            if lp.status == LPStatus.ERROR:
                raise RuntimeError(f"master LP could not be solved at node {node.id}")

            result = self.pricer.price(lp.duals, should_stop=self._time_exceeded)
            complete = not result.stopped and not result.failed_medians

            logger.debug(
                "node %d, CG iteration %d: %s LP, objective %g, %d new columns",
                node.id, iteration, lp.status.name, lp.objective, result.num_columns,
            )

            if result.found_columns:
                continue

            if lp.is_infeasible:
                return None, complete
            return lp, complete

        logger.warning(
            "column generation iteration limit (%d) reached at node %d",
            self.config.cg_max_iterations, node.id,
        )
        lp = self.master.solve()
        if lp.status == LPStatus.ERROR:
            raise RuntimeError(f"master LP could not be solved at node {node.id}")
        if lp.is_infeasible:
            return None, False
        return lp, False

    def _round_bound(self, value: float) -> float:
        """Round an LP bound up when every distance is integral."""
        if self.problem.has_integral_costs:
            return float(math.ceil(value - self.config.feastol))
        return value

    def _is_integer_solution(self, column_values: np.ndarray) -> bool:
        return bool(np.all(np.abs(column_values - np.round(column_values)) <= self.config.feastol))

    def _make_clusters(self, pairs: Sequence[Tuple[int, Sequence[int]]]) -> List[Cluster]:
        """
        Build a clustering from (median, locations) pairs.

        A location served by several clusters stays with the first one;
        unused medians are added as empty clusters up to p clusters.
        """
        clusters = []
        seen = set()
        used_medians = set()
        for median, locations in sorted(pairs, key=lambda pair: pair[0]):
            members = tuple(i for i in sorted(locations) if i not in seen)
            seen.update(members)
            used_medians.add(median)
            clusters.append(Cluster(median, members, self.problem.cluster_cost(median, members)))

        spare = (m for m in range(self.problem.n_locations) if m not in used_medians)
        while len(clusters) < self.problem.n_clusters:
            clusters.append(Cluster(next(spare), (), 0.0))

        return sorted(clusters, key=lambda c: c.median)

    def _update_incumbent(
        self,
        node: BPNode,
        pairs: Sequence[Tuple[int, Sequence[int]]],
        columns: List[Tuple[Column, float]],
    ) -> None:
        clusters = self._make_clusters(pairs)
        value = sum(c.cost for c in clusters)

        if value >= self._tree.upper_bound - self.config.feastol:
            return

        self._tree.set_incumbent(node, value)
        self._incumbent_clusters = clusters
        self._incumbent_columns = columns
        logger.info("new incumbent at node %d with objective %g", node.id, value)

        pruned = self._tree.prune_by_bound(self.config.feastol)
        self.node_selector.prune()
        if pruned:
            logger.debug("incumbent pruned %d open nodes", pruned)

    def _log_progress(self, explored: int, node: BPNode) -> None:
        tree = self._tree
        print(
            f"Node {explored:6d} | "
            f"Depth {node.depth:4d} | "
            f"LB {tree.lower_bound:12.4f} | "
            f"UB {tree.upper_bound:12.4f} | "
            f"Gap {tree.gap() * 100:6.2f}% | "
            f"Open {self.node_selector.size():5d} | "
            f"Cols {self.master.num_columns:6d} | "
            f"Time {self._elapsed():8.1f}s"
        )

    def _final_status(self, explored: int, search_done: bool) -> BPStatus:
        has_incumbent = self._tree.incumbent() is not None
        if has_incumbent and search_done and not self._incomplete:
            return BPStatus.OPTIMAL
        if self._time_exceeded():
            return BPStatus.TIME_LIMIT
        if 0 < self.config.max_nodes <= explored and not search_done:
            return BPStatus.NODE_LIMIT
        if has_incumbent:
            return BPStatus.FEASIBLE
        return BPStatus.UNKNOWN if self._incomplete else BPStatus.INFEASIBLE

    def _build_solution(self, explored: int) -> BPSolution:
        tree = self._tree
        search_done = not tree.open_nodes() or tree.gap() <= self.config.gap_tolerance
        status = self._final_status(explored, search_done)

        if tree.incumbent() is not None:
            if search_done and not self._incomplete:
                tree.lower_bound = tree.upper_bound
            else:
                tree.lower_bound = min(tree.lower_bound, tree.upper_bound)

        return BPSolution(
            status=status,
            objective=tree.upper_bound,
            lower_bound=tree.lower_bound,
            upper_bound=tree.upper_bound,
            gap=tree.gap(),
            clusters=list(self._incumbent_clusters),
            columns=[c for c, _ in self._incumbent_columns],
            column_values=[v for _, v in self._incumbent_columns],
            nodes_explored=explored,
            nodes_pruned=tree.stats.nodes_pruned,
            max_depth=tree.stats.max_depth,
            num_columns=self.master.num_columns,
            pricing_rounds=self.pricer.num_rounds,
            total_time=self._elapsed(),
            time_in_cg=self._cg_time,
            time_in_branching=self._branch_time,
        )

    @property
    def tree(self) -> Optional[BPTree]:
        return self._tree

    @property
    def active_path(self) -> List[BPNode]:
        """Nodes whose constraints are currently active, root first."""
        return list(self._active_path)

    @property
    def solution(self) -> Optional[BPSolution]:
        return self._solution
