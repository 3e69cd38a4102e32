"""
Quick profiling script for objective evaluation.

Times the three passes an optimizer run leans on: objective value,
gradient (reverse mode) and Hessian. Run it on a real input file before
tuning a fragment.

    python scripts/profile_objective.py inputs.json --fragment DD=my_pkg.dd:nll
"""

import argparse
import sys
import time
from pathlib import Path

import numpy as np

ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR / "src"))

from stockassess.cli import _parse_fragment_args, build_registry, load_inputs
from stockassess.objective import ObjectiveFunction


def profile_pass(name, func, n_runs=50):
    """Time ``func`` over ``n_runs`` calls (after a short warmup)."""
    print("\n" + "=" * 80)
    print(f"PROFILING: {name}")
    print("=" * 80)

    for _ in range(3):
        func()

    times = []
    for _ in range(n_runs):
        start = time.perf_counter()
        func()
        times.append(time.perf_counter() - start)

    avg = np.mean(times) * 1000
    std = np.std(times) * 1000
    print(f"📊 Average: {avg:.3f} ± {std:.3f} ms")
    print(f"   Throughput: {1000 / avg:.1f} calls/sec")
    return avg


def main():
    parser = argparse.ArgumentParser(description="Profile objective, gradient and Hessian passes.")
    parser.add_argument("input", type=Path, help="Input file (JSON with 'data' and 'parameters').")
    parser.add_argument("--fragment", action="append", default=[], metavar="NAME=MODULE:CALLABLE")
    parser.add_argument("--runs", type=int, default=50, help="Timed calls per pass.")
    args = parser.parse_args()
    if args.runs <= 0:
        raise SystemExit("--runs must be a positive integer.")

    data, parameters = load_inputs(args.input)
    registry = build_registry(_parse_fragment_args(args.fragment))
    objective = ObjectiveFunction(data, parameters, registry=registry)
    x = objective.par

    print(f"\nModel: {objective.identifier}")
    print(f"Free parameters: {objective.layout.size}")

    timings = [
        ("Objective", profile_pass("Objective", lambda: objective.fn(x), args.runs)),
        ("Gradient", profile_pass("Gradient", lambda: objective.gr(x), args.runs)),
        ("Hessian", profile_pass("Hessian", lambda: objective.he(x), max(1, args.runs // 10))),
    ]

    print("\n" + "=" * 80)
    print("SUMMARY")
    print("=" * 80)
    base = timings[0][1]
    for name, avg in timings:
        print(f"{name:<10} {avg:9.3f} ms   ({avg / base:5.1f}x objective)")


if __name__ == "__main__":
    main()
