"""
DCP verification stage.

The rule checking itself is cvxpy's (``is_dcp`` on every node). This module
walks the objective and constraints to turn a bare ``False`` into a report
that names the offending sub-expressions: the deepest nodes whose arguments
all follow the rules but which do not.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import cvxpy as cp
from cvxpy.constraints import Equality, Inequality
from cvxpy.constraints.constraint import Constraint
from cvxpy.error import DCPError

from .logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DCPViolation:
    """
    One place where a problem breaks the DCP rules.

    Attributes:
        location: ``objective`` or the constraint label.
        expression: Printed form of the offending node.
        curvature: Curvature cvxpy assigns to that node.
        reason: Human-readable explanation.
    """

    location: str
    expression: str
    curvature: str
    reason: str

    def __str__(self) -> str:
        return f"{self.location}: {self.expression} ({self.reason})"


@dataclass
class DCPReport:
    """Result of :func:`verify_dcp`."""

    violations: List[DCPViolation] = field(default_factory=list)

    @property
    def is_dcp(self) -> bool:
        return not self.violations

    def explain(self) -> str:
        if self.is_dcp:
            return "Problem follows the DCP rules."
        lines = [f"Problem does not follow the DCP rules ({len(self.violations)} violation(s)):"]
        lines.extend(f"  - {violation}" for violation in self.violations)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.explain()


def _atom_kind(expr: cp.Expression) -> str:
    if not hasattr(expr, "is_atom_convex"):
        return "a leaf"
    convex = expr.is_atom_convex()
    concave = expr.is_atom_concave()
    if convex and concave:
        return "affine"
    if convex:
        return "convex"
    if concave:
        return "concave"
    return "neither convex nor concave"


def _atom_reason(expr: cp.Expression) -> str:
    parts = []
    for idx, arg in enumerate(expr.args):
        if expr.is_incr(idx):
            monotonicity = "nondecreasing"
        elif expr.is_decr(idx):
            monotonicity = "nonincreasing"
        else:
            monotonicity = "not monotone"
        parts.append(f"argument {idx} is {arg.curvature} and the atom is {monotonicity} in it")
    return f"{type(expr).__name__} is {_atom_kind(expr)}; " + "; ".join(parts)


def _collect(expr: cp.Expression, location: str, out: List[DCPViolation]) -> None:
    if expr.is_dcp():
        return
    bad_args = [arg for arg in expr.args if not arg.is_dcp()]
    if bad_args:
        for arg in bad_args:
            _collect(arg, location, out)
        return
    out.append(
        DCPViolation(
            location=location,
            expression=str(expr),
            curvature=str(expr.curvature),
            reason=_atom_reason(expr),
        )
    )


def _constraint_reason(constraint: Constraint) -> str:
    if isinstance(constraint, Equality):
        lhs, rhs = constraint.args
        return f"equality needs affine sides, got {lhs.curvature} == {rhs.curvature}"
    if isinstance(constraint, Inequality):
        lhs, rhs = constraint.args
        return (
            "inequality needs a convex left side and a concave right side, "
            f"got {lhs.curvature} <= {rhs.curvature}"
        )
    return f"{type(constraint).__name__} arguments do not meet its DCP requirements"


def verify_dcp(problem: cp.Problem, labels: Optional[Dict[int, str]] = None) -> DCPReport:
    """
    Check ``problem`` against the DCP rules and explain any failure.

    Args:
        problem: The problem to check.
        labels: Optional map of constraint id to label used in the report;
            unlabelled constraints appear as ``constraint_<index>``.

    Returns:
        A :class:`DCPReport`; ``report.is_dcp`` agrees with
        ``problem.is_dcp()``.
    """
    labels = labels or {}
    violations: List[DCPViolation] = []

    objective = problem.objective
    expr = objective.args[0]
    if not expr.is_dcp():
        _collect(expr, "objective", violations)
    elif not objective.is_dcp():
        wanted = "convex" if isinstance(objective, cp.Minimize) else "concave"
        violations.append(
            DCPViolation(
                location="objective",
                expression=str(expr),
                curvature=str(expr.curvature),
                reason=f"{type(objective).__name__} needs a {wanted} expression, got {expr.curvature}",
            )
        )

    for idx, constraint in enumerate(problem.constraints):
        label = labels.get(constraint.id, f"constraint_{idx}")
        before = len(violations)
        for arg in constraint.args:
            _collect(arg, label, violations)
        if len(violations) == before and not constraint.is_dcp():
            violations.append(
                DCPViolation(
                    location=label,
                    expression=str(constraint),
                    curvature="",
                    reason=_constraint_reason(constraint),
                )
            )

    if not violations and not problem.is_dcp():
        violations.append(
            DCPViolation(
                location="problem",
                expression=str(problem.objective),
                curvature="",
                reason="cvxpy reports the problem as not DCP",
            )
        )

    report = DCPReport(violations)
    if report.is_dcp:
        logger.debug("DCP verification passed")
    else:
        logger.warning("DCP verification failed with %d violation(s)", len(violations))
    return report


def require_dcp(problem: cp.Problem, labels: Optional[Dict[int, str]] = None) -> DCPReport:
    """
    Like :func:`verify_dcp` but raise on failure.

    Raises:
        cvxpy.error.DCPError: With the report text as message.
    """
    report = verify_dcp(problem, labels)
    if not report.is_dcp:
        raise DCPError(report.explain())
    return report


__all__ = ["DCPViolation", "DCPReport", "verify_dcp", "require_dcp"]
