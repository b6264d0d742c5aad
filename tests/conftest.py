"""Pytest configuration and shared fixtures for cvxpipe tests.

This module provides:
- A deterministic numpy RNG fixture
- Small problems covering the cone families the pipeline dispatches on
"""

import os

import cvxpy as cp
import numpy as np
import pytest


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    seed = int(os.environ.get("TEST_RNG_SEED", "0"))
    return np.random.default_rng(seed)


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Seed numpy's global RNG for code that still uses np.random directly."""
    np.random.seed(int(os.environ.get("TEST_RNG_SEED", "0")))


@pytest.fixture
def lp_problem() -> cp.Problem:
    """maximize 3x + 5y s.t. x + 2y <= 4, 3x + 2y <= 6, x, y >= 0; optimum (1, 1.5)."""
    x = cp.Variable(2, name="x")
    constraints = [
        np.array([[1.0, 2.0], [3.0, 2.0]]) @ x <= np.array([4.0, 6.0]),
        x >= 0,
    ]
    return cp.Problem(cp.Maximize(np.array([3.0, 5.0]) @ x), constraints)


@pytest.fixture
def least_squares_problem(rng: np.random.Generator) -> cp.Problem:
    """Nonnegative least squares on a small random instance."""
    a_mat = rng.standard_normal((20, 5))
    b_vec = rng.standard_normal(20)
    x = cp.Variable(5, name="x")
    return cp.Problem(cp.Minimize(cp.sum_squares(a_mat @ x - b_vec)), [x >= 0])


@pytest.fixture
def socp_problem() -> cp.Problem:
    """Closest point to (3, 4) in the unit ball: (0.6, 0.8)."""
    x = cp.Variable(2, name="x")
    return cp.Problem(cp.Minimize(cp.norm(x - np.array([3.0, 4.0]), 2)), [cp.norm(x, 2) <= 1])


@pytest.fixture
def non_dcp_problem() -> cp.Problem:
    x = cp.Variable(name="x")
    return cp.Problem(cp.Minimize(cp.sqrt(x)), [x >= 1])
