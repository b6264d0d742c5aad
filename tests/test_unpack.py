"""Tests for mapping solver output back onto the problem."""

import cvxpy as cp
import numpy as np
import pytest
from cvxpy.error import SolverError

from cvxpipe.canon import get_problem_data
from cvxpipe.core import StageTimings, Status
from cvxpipe.unpack import dual_values, result_from_problem, unpack, variable_values


def test_unpack_raw_scs_result(lp_problem):
    data = get_problem_data(lp_problem, "SCS")
    raw = data.chain.solve_via_data(lp_problem, data.raw)
    status = unpack(lp_problem, raw, data.chain, data.inverse_data)
    assert status is Status.OPTIMAL
    np.testing.assert_allclose(variable_values(lp_problem)["x"], [1.0, 1.5], atol=1e-3)
    assert lp_problem.value == pytest.approx(10.5, abs=1e-3)


def test_unpack_failed_result_raises(lp_problem):
    data = get_problem_data(lp_problem, "SCS")
    raw = data.chain.solve_via_data(lp_problem, data.raw)
    raw["info"]["status"] = "failure"
    raw["info"]["status_val"] = -4
    with pytest.raises(SolverError):
        unpack(lp_problem, raw, data.chain, data.inverse_data)


def test_variable_values_are_copies():
    x = cp.Variable(2, name="x")
    problem = cp.Problem(cp.Minimize(cp.sum(x)), [x >= 1])
    problem.solve(solver=cp.CLARABEL)
    values = variable_values(problem)
    values["x"][0] = 100.0
    assert x.value[0] == pytest.approx(1.0, abs=1e-6)


def test_duplicate_variable_names_are_disambiguated():
    a = cp.Variable(name="v")
    b = cp.Variable(name="v")
    problem = cp.Problem(cp.Minimize(a + b), [a >= 1, b >= 2])
    problem.solve(solver=cp.CLARABEL)
    values = variable_values(problem)
    assert len(values) == 2
    assert "v" in values
    assert any(name.startswith("v#") for name in values)


def test_dual_values_flatten_cone_blocks():
    x = cp.Variable(2, name="x")
    t = cp.Variable(name="t")
    cone = cp.SOC(t, x)
    problem = cp.Problem(cp.Minimize(t), [cone, x == np.array([3.0, 4.0])])
    problem.solve(solver=cp.CLARABEL)
    assert isinstance(cone.dual_value, list)
    duals = dual_values(problem, labels={cone.id: "cone"})
    assert set(duals) == {"cone", "constraint_1"}
    assert duals["cone"].shape == (3,)
    assert duals["cone"][0] == pytest.approx(1.0, abs=1e-6)
    assert np.linalg.norm(duals["cone"][1:]) == pytest.approx(1.0, abs=1e-6)


def test_result_from_unsolved_problem(lp_problem):
    result = result_from_problem(lp_problem, None, StageTimings())
    assert result.status is Status.UNKNOWN
    assert result.variables == {}
    assert result.value is None
    assert "unknown" in result.message


def test_value_of_unknown_name(lp_problem):
    lp_problem.solve(solver=cp.CLARABEL)
    result = result_from_problem(lp_problem, "CLARABEL", StageTimings())
    with pytest.raises(KeyError, match="No variable named 'y'"):
        result.value_of("y")
