"""
Result unpacking stage: map raw solver output back onto named variables.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import cvxpy as cp
import numpy as np

from .core import SolveResult, StageTimings, Status
from .logging import get_logger

logger = get_logger(__name__)


def unpack(problem: cp.Problem, raw: Any, chain: Any, inverse_data: Any) -> Status:
    """
    Invert the reduction chain and store values in the problem's variables.

    Raises:
        cvxpy.error.SolverError: If the raw result reports a solver failure.
    """
    problem.unpack_results(raw, chain, inverse_data)
    status = Status.from_cvxpy(problem.status)
    logger.debug("Unpacked result with status %s", status.value)
    return status


def _snapshot(value: Any) -> Optional[np.ndarray]:
    if value is None:
        return None
    return np.array(value, dtype=float, copy=True)


def variable_values(problem: cp.Problem) -> Dict[str, np.ndarray]:
    """
    Copy the current value of every variable, keyed by name.

    Variables sharing a name are disambiguated as ``name#id``. Variables
    without a value are omitted.
    """
    values: Dict[str, np.ndarray] = {}
    for var in problem.variables():
        value = _snapshot(var.value)
        if value is None:
            continue
        name = var.name()
        if name in values:
            name = f"{name}#{var.id}"
        values[name] = value
    return values


def dual_values(problem: cp.Problem, labels: Optional[Dict[int, str]] = None) -> Dict[str, np.ndarray]:
    """
    Copy constraint dual values keyed by label (``constraint_<index>`` default).

    Constraints with several dual blocks (e.g. second-order cones) are
    flattened into one vector.
    """
    labels = labels or {}
    duals: Dict[str, np.ndarray] = {}
    for idx, constraint in enumerate(problem.constraints):
        value = constraint.dual_value
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            value = np.concatenate([np.asarray(v, dtype=float).reshape(-1) for v in value])
        duals[labels.get(constraint.id, f"constraint_{idx}")] = _snapshot(value)
    return duals


def result_from_problem(
    problem: cp.Problem,
    solver: Optional[str],
    timings: StageTimings,
    labels: Optional[Dict[int, str]] = None,
    message: str = "",
) -> SolveResult:
    """Build a :class:`SolveResult` from a problem that has been unpacked."""
    status = Status.from_cvxpy(problem.status)
    value = None if problem.value is None else float(problem.value)
    stats = getattr(problem, "solver_stats", None)
    num_iters = getattr(stats, "num_iters", None) if stats is not None else None
    if not message and not status.is_optimal:
        message = f"Solver {solver} finished with status {status.value}"
    if status.is_inaccurate:
        logger.warning("Solver %s returned an inaccurate solution (%s)", solver, status.value)
    return SolveResult(
        status=status,
        value=value,
        variables=variable_values(problem) if status.is_optimal else {},
        duals=dual_values(problem, labels) if status.is_optimal else {},
        solver=solver,
        message=message,
        timings=timings,
        num_iters=None if num_iters is None else int(num_iters),
    )


__all__ = ["unpack", "variable_values", "dual_values", "result_from_problem"]
