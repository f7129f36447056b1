"""
Text output for instances and solutions.

Location and median numbers are printed 1-based.
"""

from typing import TYPE_CHECKING, List

from cpmpbp.problem.data import ProblemData

if TYPE_CHECKING:
    from cpmpbp.solver.branch_and_price import BPSolution


def _int_or_float(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):4d}"
    return f"{value:4g}"


def format_raw_data(problem: ProblemData) -> str:
    """Render the instance data (sizes, distances, demands, capacities)."""
    lines: List[str] = [
        "",
        f"nlocations  : {problem.n_locations:3d}",
        f"nclusters   : {problem.n_clusters:3d}",
        "",
        "distances   :",
    ]
    for row in problem.distances:
        lines.append("   " + "".join(" " + _int_or_float(d) for d in row))
    lines.append("")
    lines.append("demands     :" + "".join(" " + _int_or_float(d) for d in problem.demands))
    lines.append("capacities  :" + "".join(" " + _int_or_float(c) for c in problem.capacities))
    lines.append("")
    return "\n".join(lines)


def format_solution_clusters(solution: "BPSolution") -> str:
    """Render the clusters of a solution, one block per cluster."""
    if not solution.clusters:
        return "no solution available"

    lines: List[str] = []
    for cluster in solution.clusters:
        name = f"cluster_{cluster.median + 1}"
        lines.append(f"{name:<32s} {1.0:20.15g} \t(obj:{cluster.cost:.15g})")
        lines.append(f"   Median: {cluster.median + 1}")
        lines.append("   Locations:" + "".join(f" {i + 1}" for i in cluster.locations))
    lines.append(f"Total cost: {solution.objective:g}")
    return "\n".join(lines)
