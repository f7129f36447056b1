"""
Exact 0/1 knapsack solver used as the pricing oracle.

Solves

    max  sum_k profit_k * z_k
    s.t. sum_k weight_k * z_k <= capacity,  z binary

by dynamic programming over the capacity. Weights and the capacity must
be non-negative integers. The solver reports failure instead of raising
when it cannot handle an instance.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

DEFAULT_MAX_TABLE_SIZE = 50_000_000


@dataclass
class KnapsackSolution:
    """
    Result of an exact knapsack solve.

    Attributes:
        success: Whether the instance was solved
        solitems: Items packed into the knapsack
        nonsolitems: Items left out
        value: Total profit of the packed items
    """
    success: bool
    solitems: List[int] = field(default_factory=list)
    nonsolitems: List[int] = field(default_factory=list)
    value: float = 0.0


def solve_knapsack_exactly(
    weights: Sequence[float],
    profits: Sequence[float],
    capacity: float,
    items: Optional[Sequence[int]] = None,
    max_table_size: int = DEFAULT_MAX_TABLE_SIZE,
) -> KnapsackSolution:
    """
    Solve a 0/1 knapsack problem to optimality.

    Args:
        weights: Item weights (non-negative integers)
        profits: Item profits
        capacity: Knapsack capacity (non-negative integer)
        items: Labels reported back for the items (default: positions)
        max_table_size: Largest dynamic programming table (items x capacity)
            the solver will build

    Returns:
        KnapsackSolution; success is False if the weights or capacity are
        invalid or the table would be too large
    """
    w = np.asarray(weights, dtype=float)
    p = np.asarray(profits, dtype=float)
    labels = list(range(len(w))) if items is None else list(items)

    if w.shape != p.shape or len(labels) != len(w):
        raise ValueError("weights, profits and items must have the same length")

    if capacity < 0 or (w < 0).any():
        return KnapsackSolution(success=False)
    if capacity != int(capacity) or (w != np.round(w)).any():
        return KnapsackSolution(success=False)

    cap = int(capacity)
    w_int = w.astype(np.int64)

    solitems = []
    value = 0.0

    # Zero-weight items with positive profit are always packed; items with
    # non-positive profit or weight above capacity never are.
    candidates = []
    for k in range(len(w_int)):
        if p[k] <= 0.0 or w_int[k] > cap:
            continue
        if w_int[k] == 0:
            solitems.append(k)
            value += p[k]
        else:
            candidates.append(k)

    if candidates:
        if len(candidates) * (cap + 1) > max_table_size:
            return KnapsackSolution(success=False)

        best = np.zeros(cap + 1)
        take = np.zeros((len(candidates), cap + 1), dtype=bool)

        for row, k in enumerate(candidates):
            wk = w_int[k]
            cand = np.full(cap + 1, -np.inf)
            cand[wk:] = best[:cap + 1 - wk] + p[k]
            improve = cand > best
            take[row] = improve
            best = np.where(improve, cand, best)

        c = cap
        for row in range(len(candidates) - 1, -1, -1):
            if take[row, c]:
                k = candidates[row]
                solitems.append(k)
                c -= w_int[k]
        value += float(best[cap])

    packed = set(solitems)
    return KnapsackSolution(
        success=True,
        solitems=sorted(labels[k] for k in packed),
        nonsolitems=[labels[k] for k in range(len(labels)) if k not in packed],
        value=value,
    )
