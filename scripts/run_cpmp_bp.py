#!/usr/bin/env python3
"""
Script to run the CPMP Branch-and-Price solver.

Usage:
    python scripts/run_cpmp_bp.py [instance_file] [options]

Examples:
    python scripts/run_cpmp_bp.py                                # Default: data/cpmp8.txt
    python scripts/run_cpmp_bp.py my_instance.txt --max-time 60
    python scripts/run_cpmp_bp.py my_instance.txt --node-selection best_first
    python scripts/run_cpmp_bp.py my_instance.txt --log-level DEBUG --show-rawdata
"""

import argparse
import os
import sys
import time
from datetime import datetime

# Add paths for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from cpmpbp import BPConfig, BranchAndPrice, ReaderError, read_instance
from cpmpbp.display import format_raw_data, format_solution_clusters
from cpmpbp.logging_config import setup_logging

DEFAULT_INSTANCE = os.path.join(os.path.dirname(__file__), "..", "data", "cpmp8.txt")


def print_header(title):
    print()
    print("=" * 70)
    print(title)
    print("=" * 70)


def print_section(title):
    print()
    print("-" * 50)
    print(title)
    print("-" * 50)


def main():
    parser = argparse.ArgumentParser(description="Run CPMP Branch-and-Price solver")
    parser.add_argument("instance", nargs="?", default=DEFAULT_INSTANCE,
                        help="Instance file (default: data/cpmp8.txt)")
    parser.add_argument("--max-nodes", type=int, default=0,
                        help="Maximum B&B nodes to explore, 0 = unlimited (default: 0)")
    parser.add_argument("--max-time", type=float, default=300.0,
                        help="Maximum time in seconds (default: 300)")
    parser.add_argument("--node-selection", choices=["depth_first", "best_first"],
                        default="depth_first",
                        help="Node selection policy (default: depth_first)")
    parser.add_argument("--cg-iterations", type=int, default=1000,
                        help="Max CG iterations per node (default: 1000)")
    parser.add_argument("--log-level", default="WARNING",
                        help="Logging level: DEBUG, INFO, WARNING, ERROR (default: WARNING)")
    parser.add_argument("--quiet", action="store_true",
                        help="Do not print node progress lines")
    parser.add_argument("--show-rawdata", action="store_true",
                        help="Print the instance data before solving")

    args = parser.parse_args()

    try:
        setup_logging(args.log_level)
    except ValueError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print_header("CPMP Branch-and-Price Solver")
    print(f"Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"Python: {sys.version.split()[0]}")

    # Load instance
    print_section("Loading Instance")
    print(f"Instance file: {args.instance}")

    try:
        problem = read_instance(args.instance)
    except (OSError, ReaderError) as e:
        print(f"ERROR loading instance: {e}")
        sys.exit(1)

    print(f"Loaded: {problem.name}")
    print(f"  Locations: {problem.n_locations}")
    print(f"  Clusters: {problem.n_clusters}")
    print(f"  Total demand: {problem.total_demand:g}")
    print(f"  Total capacity: {problem.capacities.sum():g}")

    if args.show_rawdata:
        print(format_raw_data(problem))

    # Branch-and-Price
    print_section("Branch-and-Price")

    config = BPConfig(
        max_time=args.max_time,
        max_nodes=args.max_nodes,
        node_selection=args.node_selection,
        cg_max_iterations=args.cg_iterations,
        verbose=not args.quiet,
    )

    print("Config:")
    print(f"  max_time: {config.max_time}s")
    print(f"  max_nodes: {config.max_nodes}")
    print(f"  node_selection: {config.node_selection}")
    print(f"  cg_max_iterations: {config.cg_max_iterations}")
    print()

    bp_start = time.time()
    solver = BranchAndPrice(problem, config)
    solution = solver.solve()
    bp_time = time.time() - bp_start

    print()
    print("B&P Results:")
    print(f"  Status: {solution.status.name}")
    print(f"  Objective: {solution.objective:.4f}")
    print(f"  Lower Bound: {solution.lower_bound:.4f}")
    print(f"  Gap: {solution.gap * 100:.2f}%")
    print(f"  Nodes explored: {solution.nodes_explored}")
    print(f"  Nodes pruned: {solution.nodes_pruned}")
    print(f"  Max depth: {solution.max_depth}")
    print(f"  Columns generated: {solution.num_columns}")
    print(f"  Pricing rounds: {solution.pricing_rounds}")
    print(f"  Time in CG: {solution.time_in_cg:.2f}s")
    print(f"  Solve time: {bp_time:.2f}s")

    print_section("Solution Clusters")
    print(format_solution_clusters(solution))

    violations = problem.check_clustering(solution.clusters) if solution.clusters else []
    for violation in violations:
        print(f"*** WARNING: {violation}")

    print()
    print("=" * 70)
    print("Done!")
    print("=" * 70)


if __name__ == "__main__":
    main()
