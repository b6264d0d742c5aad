"""Tests for problem classification and solver selection."""

import cvxpy as cp
import numpy as np
import pytest

from cvxpipe.config import settings_context
from cvxpipe.canon import get_problem_data
from cvxpipe.dispatch import (
    ProblemClass,
    classify,
    classify_data,
    general_solver,
    installed_solvers,
    select_solver,
    supports,
)


def test_installed_solvers_include_cvxpy_defaults():
    available = installed_solvers()
    assert "SCS" in available
    assert "CLARABEL" in available


def test_classify_lp(lp_problem):
    assert classify(lp_problem) is ProblemClass.LP


def test_classify_socp(socp_problem):
    assert classify(socp_problem) is ProblemClass.SOCP


def test_classify_exp_cone():
    x = cp.Variable(2, name="x")
    problem = cp.Problem(cp.Maximize(cp.sum(cp.entr(x))), [cp.sum(x) == 1])
    assert classify(problem) is ProblemClass.EXP


def test_classify_sdp():
    X = cp.Variable((2, 2), symmetric=True, name="X")
    problem = cp.Problem(cp.Minimize(cp.trace(X)), [X >> np.eye(2)])
    assert classify(problem) is ProblemClass.SDP


def test_classify_mixed_integer():
    x = cp.Variable(integer=True, name="x")
    problem = cp.Problem(cp.Minimize(x), [x >= 0.5])
    assert classify(problem) is ProblemClass.MIXED_INTEGER


def test_capability_table():
    assert supports("scs", ProblemClass.SDP)
    assert not supports("OSQP", ProblemClass.SOCP)
    assert not supports("NOT_A_SOLVER", ProblemClass.LP)


def test_select_solver_follows_preference(socp_problem):
    assert select_solver(socp_problem, preference=["SCS", "CLARABEL"]) == "SCS"
    assert select_solver(socp_problem, preference=["OSQP", "CLARABEL"]) == "CLARABEL"


def test_select_solver_uses_configured_default(lp_problem):
    with settings_context(solver="scs"):
        assert select_solver(lp_problem) == "SCS"


def test_explicit_solver_must_be_installed(lp_problem):
    with pytest.raises(ValueError, match="not installed"):
        select_solver(lp_problem, "NOT_A_SOLVER")


def test_no_capable_solver_raises(socp_problem):
    with pytest.raises(RuntimeError, match="supports socp"):
        select_solver(socp_problem, preference=["OSQP"])


def test_classify_from_compiled_data(socp_problem, least_squares_problem):
    assert classify_data(get_problem_data(socp_problem, "CLARABEL")) is ProblemClass.SOCP
    data = get_problem_data(least_squares_problem, "CLARABEL")
    assert classify(least_squares_problem, data=data) is classify_data(data)


def test_select_solver_with_known_class_does_not_compile(socp_problem, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("classification must not compile")

    monkeypatch.setattr("cvxpipe.dispatch.get_problem_data", fail)
    chosen = select_solver(
        socp_problem, preference=["OSQP", "SCS"], problem_class=ProblemClass.SOCP
    )
    assert chosen == "SCS"


def test_general_solver_skips_restricted_solvers():
    assert general_solver(["OSQP", "ECOS", "SCS", "CLARABEL"]) == "SCS"
    assert general_solver(["OSQP"]) == "SCS"
