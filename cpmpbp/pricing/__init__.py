"""
Pricing for CPMP column generation.

- solve_knapsack_exactly: exact 0/1 knapsack oracle
- CpmpPricer: per-median knapsack pricing (reduced cost and Farkas)
"""

from cpmpbp.pricing.knapsack import KnapsackSolution, solve_knapsack_exactly
from cpmpbp.pricing.pricer import CpmpPricer, PricingConfig, PricingResult

__all__ = [
    "KnapsackSolution",
    "solve_knapsack_exactly",
    "CpmpPricer",
    "PricingConfig",
    "PricingResult",
]
