"""End-to-end integration tests.

This test module validates:
1. The public API exposed at package level
2. Building, solving, exporting and re-solving one problem across modules
"""

import cvxpy as cp
import numpy as np
import pytest

import cvxpipe as cx


def test_public_api_is_exported():
    for name in cx.__all__:
        assert hasattr(cx, name), name
    assert cx.__version__ == "0.1.0"


def test_builder_to_archive_to_direct_solve(tmp_path):
    pb = cx.ProblemBuilder()
    x = pb.variable("x", 3)
    target = pb.parameter("target", 3, value=np.array([1.0, -2.0, 0.5]))
    pb.minimize(cp.sum_squares(x - target))
    pb.subject_to(x >= 0, name="nonneg")
    pb.subject_to(cp.sum(x) <= 1, name="budget")
    problem = pb.build()

    result = pb.solve(solver="SCS", eps_abs=1e-9, eps_rel=1e-9)
    assert result.status is cx.Status.OPTIMAL
    np.testing.assert_allclose(result.value_of("x"), [0.75, 0.0, 0.25], atol=1e-5)
    assert set(result.duals) == {"nonneg", "budget"}

    compiled = cx.CompiledProblem.compile(problem, solver="SCS", labels=pb.constraint_labels)
    path = cx.save_conic_data(compiled.data, tmp_path / "projection")
    x_direct, _, _, info = cx.solve_conic_data(cx.load_conic_data(path), eps_abs=1e-9, eps_rel=1e-9)
    assert info["status"] == "solved"
    assert compiled.data.objective(x_direct) == pytest.approx(result.value, abs=1e-6)


def test_parameter_sweep_matches_fresh_solves():
    pb = cx.ProblemBuilder()
    x = pb.variable("x")
    scale = pb.parameter("scale", nonneg=True, value=1.0)
    pb.minimize(cp.square(x - scale))
    pb.subject_to(x <= 2)
    problem = pb.build()

    compiled = cx.CompiledProblem.compile(problem, solver="CLARABEL")
    for value in (0.5, 1.5, 3.0):
        pb.set_parameters(scale=value)
        compiled.refresh()
        bypass = compiled.solve()
        full = cx.solve(problem, solver="CLARABEL")
        assert bypass.status is full.status is cx.Status.OPTIMAL
        np.testing.assert_allclose(bypass.value_of("x"), min(value, 2.0), atol=1e-6)
        np.testing.assert_allclose(bypass.value_of("x"), full.value_of("x"), atol=1e-8)


def test_constant_objective_term_survives_dispatch_and_archive(tmp_path):
    x = cp.Variable(2, name="x")
    problem = cp.Problem(cp.Minimize(cp.sum_squares(x - 1.0) + 3.0), [cp.sum(x) <= 1])
    result = cx.solve(problem)
    assert result.status is cx.Status.OPTIMAL
    assert result.value == pytest.approx(3.5, abs=1e-6)

    compiled = cx.CompiledProblem.compile(problem)
    assert compiled.data.offset != 0.0
    x_direct, _, _, info = cx.solve_conic_data(
        cx.load_conic_data(cx.save_conic_data(compiled.data, tmp_path / "shifted")),
        eps_abs=1e-9,
        eps_rel=1e-9,
    )
    assert info["status"] == "solved"
    assert compiled.data.objective(x_direct) == pytest.approx(result.value, abs=1e-5)
