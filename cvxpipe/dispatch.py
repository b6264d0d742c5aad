"""
Solver dispatch.

A problem is classified by the most demanding cone its canonical form needs,
then the first installed solver from the configured preference list that
supports that class is chosen.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional

import cvxpy as cp

from .canon import get_problem_data
from .config import get_settings
from .core import ConicData
from .logging import get_logger

logger = get_logger(__name__)

# Solver used to canonicalize for classification; it accepts every cone type
# and a quadratic objective, and ships with cvxpy.
_CLASSIFY_SOLVER = "SCS"


class ProblemClass(Enum):
    """Problem families, ordered from least to most demanding."""

    LP = "lp"
    QP = "qp"
    SOCP = "socp"
    EXP = "exp"
    POW = "pow"
    SDP = "sdp"
    MIXED_INTEGER = "mixed_integer"


_CONTINUOUS = frozenset({ProblemClass.LP, ProblemClass.QP, ProblemClass.SOCP})
_GENERAL = _CONTINUOUS | {ProblemClass.EXP, ProblemClass.POW, ProblemClass.SDP}

SOLVER_CAPABILITIES: Dict[str, FrozenSet[ProblemClass]] = {
    "CLARABEL": _GENERAL,
    "SCS": _GENERAL,
    "ECOS": _CONTINUOUS | {ProblemClass.EXP},
    "CVXOPT": _CONTINUOUS | {ProblemClass.SDP},
    "MOSEK": _CONTINUOUS
    | {ProblemClass.EXP, ProblemClass.POW, ProblemClass.SDP, ProblemClass.MIXED_INTEGER},
    "OSQP": frozenset({ProblemClass.LP, ProblemClass.QP}),
    "ECOS_BB": _CONTINUOUS | {ProblemClass.EXP, ProblemClass.MIXED_INTEGER},
    "HIGHS": frozenset({ProblemClass.LP, ProblemClass.QP, ProblemClass.MIXED_INTEGER}),
    "GLPK_MI": frozenset({ProblemClass.LP, ProblemClass.MIXED_INTEGER}),
    "SCIP": _CONTINUOUS | {ProblemClass.MIXED_INTEGER},
}


def installed_solvers() -> List[str]:
    """Names of the solvers cvxpy can call in this environment."""
    return [name.upper() for name in cp.installed_solvers()]


def classify_data(data: ConicData) -> ProblemClass:
    """Classify canonical data by its most demanding cone block."""
    dims = data.dims
    if dims.psd:
        return ProblemClass.SDP
    if dims.p3d:
        return ProblemClass.POW
    if dims.exp:
        return ProblemClass.EXP
    if dims.soc:
        return ProblemClass.SOCP
    if data.P is not None and data.P.count_nonzero():
        return ProblemClass.QP
    return ProblemClass.LP


def classify(problem: cp.Problem, data: Optional[ConicData] = None) -> ProblemClass:
    """
    Classify a DCP problem by the cones of its canonical form.

    Mixed-integer problems are recognised without compiling. Otherwise
    ``data`` is classified when given; without it the problem is compiled
    for SCS first.

    Raises:
        cvxpy.error.DCPError: If the problem has to be compiled and is not DCP.
    """
    if problem.is_mixed_integer():
        return ProblemClass.MIXED_INTEGER
    if data is None:
        data = get_problem_data(problem, _CLASSIFY_SOLVER)
    return classify_data(data)


def supports(solver: str, problem_class: ProblemClass) -> bool:
    return problem_class in SOLVER_CAPABILITIES.get(solver.upper(), frozenset())


def general_solver(preference: Optional[Iterable[str]] = None) -> str:
    """
    First installed solver in ``preference`` able to take every continuous class.

    Data compiled for it can be classified and, when the class does not call
    for another solver, solved as is. Falls back to SCS.

    Raises:
        RuntimeError: If no such solver is installed.
    """
    available = installed_solvers()
    order = [s.upper() for s in (preference or get_settings().solver_preference)]
    for name in [*order, _CLASSIFY_SOLVER]:
        if name in available and _GENERAL <= SOLVER_CAPABILITIES.get(name, frozenset()):
            return name
    raise RuntimeError(
        f"No installed solver handles every continuous problem class "
        f"(installed: {', '.join(available) or 'none'})"
    )


def select_solver(
    problem: cp.Problem,
    preferred: Optional[str] = None,
    preference: Optional[Iterable[str]] = None,
    problem_class: Optional[ProblemClass] = None,
) -> str:
    """
    Pick the solver to use for ``problem``.

    An explicitly ``preferred`` solver (or the configured default) is returned
    as is once it is known to be installed; cvxpy reports a mismatch between
    solver and problem when canonicalizing. Otherwise the first installed
    solver in ``preference`` supporting ``problem_class`` wins; the class is
    computed with :func:`classify` when not given.

    Raises:
        ValueError: If the preferred solver is not installed.
        RuntimeError: If no installed solver supports the problem class.
    """
    settings = get_settings()
    available = installed_solvers()
    preferred = preferred or settings.solver
    if preferred is not None:
        name = preferred.upper()
        if name not in available:
            logger.warning("Requested solver %s is not installed", name)
            raise ValueError(
                f"Solver {name!r} is not installed (available: {', '.join(available)})"
            )
        return name

    if problem_class is None:
        problem_class = classify(problem)
    order = [s.upper() for s in (preference or settings.solver_preference)]
    for name in order:
        if name in available and supports(name, problem_class):
            logger.debug("Dispatching %s problem to %s", problem_class.value, name)
            return name

    logger.warning("No installed solver supports %s problems", problem_class.value)
    raise RuntimeError(
        f"No installed solver among {order} supports {problem_class.value} problems "
        f"(installed: {', '.join(available) or 'none'})"
    )


__all__ = [
    "ProblemClass",
    "SOLVER_CAPABILITIES",
    "installed_solvers",
    "classify",
    "classify_data",
    "general_solver",
    "supports",
    "select_solver",
]
