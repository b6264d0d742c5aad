"""Benchmark pipeline overhead against the bypass path."""

from typing import Dict

import cvxpy as cp
import numpy as np

from cvxpipe import profile


def lasso_problem(n_samples: int, n_features: int, seed: int = 0) -> cp.Problem:
    """Random lasso instance with ``n_features`` variables."""
    rng = np.random.default_rng(seed)
    a_mat = rng.standard_normal((n_samples, n_features))
    b_vec = rng.standard_normal(n_samples)
    x = cp.Variable(n_features, name="x")
    objective = cp.Minimize(cp.sum_squares(a_mat @ x - b_vec) + 0.1 * cp.norm1(x))
    return cp.Problem(objective)


def benchmark_overhead(
    n_features: int,
    solver: str = "SCS",
    repeats: int = 5,
) -> Dict[str, float]:
    """Benchmark one problem size.

    Args:
        n_features: Number of decision variables.
        solver: Solver used for both paths.
        repeats: Solves per path.

    Returns:
        Dictionary with timing results.
    """
    problem = lasso_problem(2 * n_features, n_features)
    report = profile(problem, solver=solver, repeats=repeats)
    return {
        "n_features": n_features,
        "full_sec": report.full.total,
        "bypass_sec": report.bypass.total,
        "canonicalize_sec": report.full.canonicalize,
        "solve_sec": report.full.solve,
        "overhead_fraction": report.full.overhead_fraction,
        "speedup": report.speedup,
    }


if __name__ == "__main__":
    print("Benchmarking pipeline overhead...")

    for n_features in [10, 50, 200, 500]:
        result = benchmark_overhead(n_features)
        print(
            f"n={result['n_features']:4d}: "
            f"full={1e3 * result['full_sec']:8.2f} ms, "
            f"bypass={1e3 * result['bypass_sec']:8.2f} ms, "
            f"overhead={100 * result['overhead_fraction']:5.1f}%, "
            f"speedup={result['speedup']:5.1f}x"
        )
