"""Tests for the DCP verification stage."""

import cvxpy as cp
import pytest
from cvxpy.error import DCPError

from cvxpipe.verify import require_dcp, verify_dcp


def test_dcp_problem_passes(lp_problem, socp_problem):
    assert verify_dcp(lp_problem).is_dcp
    assert verify_dcp(socp_problem).is_dcp
    assert "follows the DCP rules" in verify_dcp(lp_problem).explain()


def test_objective_with_wrong_direction(non_dcp_problem):
    report = verify_dcp(non_dcp_problem)
    assert not report.is_dcp
    [violation] = report.violations
    assert violation.location == "objective"
    assert violation.curvature == "CONCAVE"
    assert "Minimize needs a convex expression" in violation.reason


def test_locates_deepest_offending_atom():
    x = cp.Variable(name="x")
    problem = cp.Problem(cp.Minimize(cp.abs(x) + cp.sqrt(cp.square(x))))
    report = verify_dcp(problem)
    [violation] = report.violations
    assert violation.location == "objective"
    assert violation.curvature == "UNKNOWN"
    assert "abs" not in violation.expression
    assert "is concave" in violation.reason
    assert "argument 0 is CONVEX and the atom is nondecreasing" in violation.reason


def test_product_of_variables_is_reported():
    x = cp.Variable(name="x")
    y = cp.Variable(name="y")
    problem = cp.Problem(cp.Minimize(0), [x * y <= 1])
    report = verify_dcp(problem)
    assert not report.is_dcp
    assert report.violations[0].location == "constraint_0"


def test_equality_with_nonaffine_side_uses_label():
    x = cp.Variable(name="x")
    constraint = cp.square(x) == 1
    problem = cp.Problem(cp.Minimize(x), [x >= -5, constraint])
    report = verify_dcp(problem, labels={constraint.id: "unit_square"})
    [violation] = report.violations
    assert violation.location == "unit_square"
    assert "equality needs affine sides" in violation.reason


def test_inequality_with_concave_left_side():
    x = cp.Variable(name="x")
    problem = cp.Problem(cp.Minimize(x), [cp.log(x) <= 1])
    [violation] = verify_dcp(problem).violations
    assert "inequality needs a convex left side" in violation.reason


def test_report_agrees_with_cvxpy(lp_problem, non_dcp_problem):
    for problem in (lp_problem, non_dcp_problem):
        assert verify_dcp(problem).is_dcp == problem.is_dcp()


def test_require_dcp_raises_with_explanation(non_dcp_problem):
    with pytest.raises(DCPError, match="does not follow the DCP rules"):
        require_dcp(non_dcp_problem)
