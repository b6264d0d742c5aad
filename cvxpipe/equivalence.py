"""
Equivalence of the verified pipeline and the bypass path.

Skipping verification and canonicalization must not change the answer: the
same solver fed the same canonical data has to return the same solution.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

import cvxpy as cp
import numpy as np

from .config import get_settings
from .core import SolveResult
from .logging import get_logger
from .pipeline import CompiledProblem, solve

logger = get_logger(__name__)


@dataclass
class EquivalenceReport:
    """
    Comparison of two solves of the same problem.

    Attributes:
        equivalent: Statuses match and every value is within tolerance.
        value_gap: Absolute difference of the objective values (``nan`` when
            either is missing).
        variable_gaps: Max absolute difference per variable name.
        full: Result of the full pipeline.
        bypass: Result of the bypass path.
    """

    equivalent: bool
    value_gap: float
    variable_gaps: Dict[str, float] = field(default_factory=dict)
    full: Optional[SolveResult] = None
    bypass: Optional[SolveResult] = None

    @property
    def max_gap(self) -> float:
        gaps = [g for g in [self.value_gap, *self.variable_gaps.values()] if np.isfinite(g)]
        return max(gaps) if gaps else 0.0


def compare_results(
    full: SolveResult,
    bypass: SolveResult,
    atol: Optional[float] = None,
    rtol: float = 0.0,
) -> EquivalenceReport:
    """Compare two results variable by variable."""
    atol = get_settings().equivalence_atol if atol is None else atol

    if full.value is None or bypass.value is None:
        value_gap = float("nan")
        values_match = full.value is None and bypass.value is None
    elif np.isinf(full.value) or np.isinf(bypass.value):
        value_gap = 0.0 if full.value == bypass.value else float("inf")
        values_match = full.value == bypass.value
    else:
        value_gap = abs(full.value - bypass.value)
        values_match = bool(np.isclose(full.value, bypass.value, atol=atol, rtol=rtol))

    variable_gaps: Dict[str, float] = {}
    variables_match = set(full.variables) == set(bypass.variables)
    for name in sorted(set(full.variables) & set(bypass.variables)):
        a, b = full.variables[name], bypass.variables[name]
        variable_gaps[name] = float(np.max(np.abs(a - b))) if a.size else 0.0
        if not np.allclose(a, b, atol=atol, rtol=rtol):
            variables_match = False

    equivalent = full.status is bypass.status and values_match and variables_match
    return EquivalenceReport(
        equivalent=equivalent,
        value_gap=value_gap,
        variable_gaps=variable_gaps,
        full=full,
        bypass=bypass,
    )


def check_equivalence(
    problem: cp.Problem,
    solver: Optional[str] = None,
    atol: Optional[float] = None,
    rtol: float = 0.0,
) -> EquivalenceReport:
    """
    Solve ``problem`` through the full pipeline and through the bypass path.

    Both runs use the same solver; the bypass run reuses the canonical data
    compiled once up front.

    Raises:
        cvxpy.error.DCPError: If the problem is not DCP.
    """
    compiled = CompiledProblem.compile(problem, solver=solver)
    full = solve(problem, solver=compiled.solver, strict=True)
    bypass = compiled.solve()
    report = compare_results(full, bypass, atol=atol, rtol=rtol)
    if report.equivalent:
        logger.debug("Full and bypass solves agree (max gap %.3g)", report.max_gap)
    else:
        logger.warning(
            "Full and bypass solves differ: status %s vs %s, max gap %.3g",
            full.status.value,
            bypass.status.value,
            report.max_gap,
        )
    return report


__all__ = ["EquivalenceReport", "compare_results", "check_equivalence"]
