"""
Example: nonnegative least squares through the staged pipeline

Builds a small regression problem with :class:`ProblemBuilder`, solves it,
prints the per-stage timings, and shows what happens to a problem that breaks
the DCP rules.
"""

import cvxpy as cp
import numpy as np

from cvxpipe import ProblemBuilder, Status, solve, verify_dcp


def example_regression():
    print("=" * 60)
    print("Example 1: Nonnegative least squares")
    print("=" * 60)

    rng = np.random.default_rng(0)
    a_mat = rng.standard_normal((30, 4))
    x_true = np.array([1.0, 0.0, 2.5, 0.5])
    b_vec = a_mat @ x_true + 0.01 * rng.standard_normal(30)

    pb = ProblemBuilder()
    x = pb.variable("x", 4)
    pb.minimize(cp.sum_squares(a_mat @ x - b_vec))
    pb.subject_to(x >= 0, name="nonneg")

    result = pb.solve()
    print(f"Status: {result.status.value}")
    print(f"Solver: {result.solver}")
    if result.status is Status.OPTIMAL:
        print(f"Estimate: {np.round(result.value_of('x'), 3)}")
        print(f"Residual: {result.value:.4f}")
        print(f"Dual of 'nonneg': {np.round(result.duals['nonneg'], 4)}")
    print("Stage timings (ms):")
    for stage, seconds in result.timings.as_dict().items():
        print(f"  {stage:<13} {1e3 * seconds:8.3f}")
    print(f"Overhead fraction: {result.timings.overhead_fraction:.2f}")
    print()


def example_not_dcp():
    print("=" * 60)
    print("Example 2: A problem outside the DCP rules")
    print("=" * 60)

    x = cp.Variable(name="x")
    problem = cp.Problem(cp.Maximize(cp.square(x)), [x <= 1, x >= -1])
    print(verify_dcp(problem).explain())

    result = solve(problem)
    print(f"Status: {result.status.value}")
    print()


if __name__ == "__main__":
    example_regression()
    example_not_dcp()

    print("=" * 60)
    print("Least squares example completed")
    print("=" * 60)
