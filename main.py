#!/usr/bin/env python3
"""
hybridfg: Hybrid Factor Graph Elimination

Usage:
    # Run demos
    python main.py demo --example switch

    # Run tests
    python main.py test

    # Show versions
    python main.py info
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import numpy as np

from hybridfg import (
    DecisionTreeFactor,
    DiscreteKey,
    GaussianMixtureFactor,
    HybridFactorGraph,
    JacobianFactor,
    eliminate_hybrid,
    eliminate_sequential,
    to_discrete_potential,
    __version__,
)


def build_switching_graph() -> HybridFactorGraph:
    """
    One continuous key x and a binary mode m.

    m=0: two consistent measurements x=0 (residual 0 at the optimum)
    m=1: two conflicting measurements x=2, x=-2 (residual 4 at the optimum)
    """
    m = DiscreteKey("m", 2)
    consistent = JacobianFactor({"x": [[1.0], [1.0]]}, [0.0, 0.0])
    conflicting = JacobianFactor({"x": [[1.0], [1.0]]}, [2.0, -2.0])

    graph = HybridFactorGraph()
    graph.add_mixture(GaussianMixtureFactor.from_factors(["x"], [m], [consistent, conflicting]))
    graph.add_discrete(DecisionTreeFactor.from_table([m], [0.5, 0.5]))
    return graph


def demo_switch():
    """Demo: eliminate x from a mode-switching measurement model"""
    print("=" * 60)
    print("Demo: Mode Switching Measurement")
    print("=" * 60)

    graph = build_switching_graph()
    print()
    print(graph.dump("Input graph"))

    conditional, potential = eliminate_hybrid(graph, ["x"])
    print()
    print(conditional.format())
    print()
    print(potential.format())

    expected = np.array([1.0, np.exp(-4.0)])
    match = np.allclose(potential.table, expected)
    print(f"\nExpected potential: {expected}")
    print(f"Match: {match}")

    scores = to_discrete_potential(graph)
    print(f"Residual energy per mode: {scores.table}")
    return match and np.allclose(scores.table, [0.0, 4.0])


def demo_sequential():
    """Demo: sequential elimination x, then m"""
    print("=" * 60)
    print("Demo: Sequential Elimination")
    print("=" * 60)

    graph = build_switching_graph()
    bayes_net = eliminate_sequential(graph, ["x", "m"])
    print()
    print(bayes_net.dump("Bayes net"))

    modes, values = bayes_net.optimize()
    print(f"\nMost probable mode: {modes}")
    print(f"Continuous estimate: { {k: v.tolist() for k, v in values.items()} }")
    return modes == {"m": 0} and np.allclose(values["x"], [0.0])


def cmd_demo(args):
    """Execute the demo command."""
    demos = {
        "switch": demo_switch,
        "sequential": demo_sequential,
    }

    if args.example == "all":
        results = []
        for name, func in demos.items():
            results.append((name, func()))
            print()

        print("=" * 60)
        print("Summary")
        print("=" * 60)
        for name, passed in results:
            status = "PASS" if passed else "FAIL"
            print(f"  {name}: {status}")
        return 0 if all(passed for _, passed in results) else 1

    passed = demos[args.example]()
    return 0 if passed else 1


def cmd_test(args):
    """Execute the test command."""
    import subprocess

    test_dir = Path(__file__).parent / "tests"
    if not test_dir.exists():
        print(f"Test directory not found: {test_dir}")
        return 1

    cmd = [sys.executable, "-m", "pytest", str(test_dir)]
    if args.verbose:
        cmd.append("-v")
    if args.coverage:
        cmd.extend(["--cov=hybridfg", "--cov-report=term-missing"])

    print(f"Running: {' '.join(cmd)}")
    result = subprocess.run(cmd, cwd=Path(__file__).parent)
    return result.returncode


def cmd_info(args):
    """Display system information."""
    import networkx
    import scipy

    print(f"hybridfg v{__version__}")
    print("Hybrid factor graph elimination")
    print()
    print("Python:", sys.version.split()[0])
    print("NumPy:", np.__version__)
    print("SciPy:", scipy.__version__)
    print("NetworkX:", networkx.__version__)
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="hybridfg",
        description="hybridfg: Hybrid Factor Graph Elimination",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run demos
  hybridfg demo --example switch
  hybridfg demo --example all

  # Run tests
  hybridfg test -v
""",
    )

    parser.add_argument("--version", "-V", action="version", version=f"hybridfg {__version__}")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    demo_parser = subparsers.add_parser("demo", help="Run demonstration examples")
    demo_parser.add_argument(
        "--example", "-e",
        choices=["switch", "sequential", "all"],
        default="all",
        help="Which example to run (default: all)",
    )

    test_parser = subparsers.add_parser("test", help="Run test suite")
    test_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    test_parser.add_argument("--coverage", "-c", action="store_true", help="With coverage")

    subparsers.add_parser("info", help="Show system information")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "demo":
        return cmd_demo(args)
    elif args.command == "test":
        return cmd_test(args)
    elif args.command == "info":
        return cmd_info(args)
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
