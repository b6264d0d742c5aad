"""
The solve pipeline and its bypass.

``solve`` runs every stage on each call:

    verify (DCP) -> dispatch -> canonicalize -> solve -> unpack

For problems that are solved repeatedly, :class:`CompiledProblem` runs the
first three stages once and afterwards hands the stored canonical data
straight to the solver. Solver failures and non-converged solves are reported
through :attr:`SolveResult.status`; they do not raise.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import cvxpy as cp
import numpy as np
from cvxpy.error import DCPError, SolverError

from .canon import get_problem_data, replace_vectors
from .config import get_settings
from .core import ConicData, SolveResult, StageTimings, Status
from .dispatch import classify_data, general_solver, select_solver
from .logging import get_logger
from .unpack import result_from_problem, unpack
from .verify import verify_dcp

logger = get_logger(__name__)


def _failure(
    status: Status,
    message: str,
    timings: StageTimings,
    solver: Optional[str] = None,
) -> SolveResult:
    return SolveResult(status=status, message=message, solver=solver, timings=timings)


def _run_solver(
    problem: cp.Problem,
    data: ConicData,
    timings: StageTimings,
    labels: Optional[Dict[int, str]],
    warm_start: bool,
    verbose: bool,
    solver_opts: Dict[str, Any],
) -> SolveResult:
    # cvxpy reads the options of this call back while inverting the result
    solver_inverse = data.inverse_data[-1] if data.inverse_data else None
    if hasattr(solver_inverse, "solver_options"):
        solver_inverse.solver_options = dict(solver_opts)
    try:
        with timings.stage("solve"):
            raw = data.chain.solve_via_data(problem, data.raw, warm_start, verbose, solver_opts)
        with timings.stage("unpack"):
            unpack(problem, raw, data.chain, data.inverse_data)
    except SolverError as exc:
        logger.warning("Solver %s failed: %s", data.solver, exc)
        return _failure(Status.SOLVER_ERROR, str(exc), timings, data.solver)

    result = result_from_problem(problem, data.solver, timings, labels)
    logger.debug(
        "Solved with %s: status=%s value=%s timings=%s",
        data.solver,
        result.status.value,
        result.value,
        timings.as_dict(),
    )
    return result


def _dispatch_and_canonicalize(
    problem: cp.Problem,
    solver: Optional[str],
    timings: StageTimings,
    solver_opts: Dict[str, Any],
    attempted: List[str],
) -> ConicData:
    """
    Choose a solver and canonicalize for it, each step timed in its own stage.

    Without a requested solver the problem is canonicalized once for a solver
    taking every continuous class, classified from that data and only
    canonicalized again when the class is dispatched elsewhere. Every solver
    canonicalized for is appended to ``attempted``.
    """
    if solver or get_settings().solver or problem.is_mixed_integer():
        with timings.stage("dispatch"):
            solver_name = select_solver(problem, solver)
        attempted.append(solver_name)
        with timings.stage("canonicalize"):
            return get_problem_data(problem, solver_name, solver_opts)

    with timings.stage("dispatch"):
        candidate = general_solver()
    attempted.append(candidate)
    with timings.stage("canonicalize"):
        data = get_problem_data(problem, candidate, solver_opts)
    with timings.stage("dispatch"):
        solver_name = select_solver(problem, problem_class=classify_data(data))
    if solver_name == candidate:
        return data
    attempted.append(solver_name)
    with timings.stage("canonicalize"):
        return get_problem_data(problem, solver_name, solver_opts)


def solve(
    problem: cp.Problem,
    solver: Optional[str] = None,
    verify: Optional[bool] = None,
    strict: bool = False,
    verbose: Optional[bool] = None,
    warm_start: bool = False,
    labels: Optional[Dict[int, str]] = None,
    **solver_opts: Any,
) -> SolveResult:
    """
    Solve ``problem`` through the full pipeline.

    Args:
        problem: The cvxpy problem.
        solver: Solver name; chosen by the dispatcher when omitted.
        verify: Run the DCP verification stage (settings default).
        strict: Raise :class:`cvxpy.error.DCPError` instead of returning a
            ``NOT_DCP`` result.
        verbose: Let the solver print its progress (settings default).
        warm_start: Forwarded to the solver.
        labels: Constraint id to label map used for dual values.
        **solver_opts: Solver-specific options.

    Returns:
        A :class:`SolveResult`. Check ``result.status`` before using values.

    Raises:
        cvxpy.error.DCPError: With ``strict=True`` on a non-DCP problem.
        ValueError: If the requested solver is not installed.
        RuntimeError: If no installed solver supports the problem.
    """
    settings = get_settings()
    verify = settings.verify if verify is None else verify
    verbose = settings.verbose if verbose is None else verbose
    timings = StageTimings()

    if verify:
        with timings.stage("verify"):
            report = verify_dcp(problem, labels)
        if not report.is_dcp:
            if strict:
                raise DCPError(report.explain())
            return _failure(Status.NOT_DCP, report.explain(), timings)

    attempted: List[str] = []
    try:
        data = _dispatch_and_canonicalize(problem, solver, timings, solver_opts, attempted)
    except DCPError as exc:
        # only reachable with verification disabled
        logger.warning("Problem rejected during canonicalization: %s", exc)
        if strict:
            raise
        return _failure(Status.NOT_DCP, str(exc), timings)
    except SolverError as exc:
        logger.warning("Canonicalization failed: %s", exc)
        target = attempted[-1] if attempted else solver
        return _failure(Status.SOLVER_ERROR, str(exc), timings, target)

    return _run_solver(problem, data, timings, labels, warm_start, verbose, solver_opts)


class CompiledProblem:
    """
    A problem canonicalized once and solved directly from its solver data.

    Verification, dispatch and canonicalization happen in :meth:`compile`;
    :meth:`solve` and :meth:`solve_raw` only call the solver (and unpack).
    After changing parameter values call :meth:`refresh`; to change the
    numbers of the canonical data directly use :meth:`update`.

    Example:
        >>> compiled = CompiledProblem.compile(problem, solver="SCS")
        >>> result = compiled.solve()
        >>> compiled.update(b=new_b)
        >>> result = compiled.solve()
    """

    def __init__(
        self,
        problem: cp.Problem,
        data: ConicData,
        compile_timings: Optional[StageTimings] = None,
        labels: Optional[Dict[int, str]] = None,
    ) -> None:
        if data.chain is None:
            raise ValueError("CompiledProblem needs data produced by get_problem_data")
        self.problem = problem
        self.data = data
        self.compile_timings = compile_timings or StageTimings()
        self.labels = labels

    @classmethod
    def compile(
        cls,
        problem: cp.Problem,
        solver: Optional[str] = None,
        verify: Optional[bool] = None,
        labels: Optional[Dict[int, str]] = None,
    ) -> "CompiledProblem":
        """
        Verify, dispatch and canonicalize ``problem``.

        Raises:
            cvxpy.error.DCPError: If the problem is not DCP.
        """
        settings = get_settings()
        verify = settings.verify if verify is None else verify
        timings = StageTimings()
        if verify:
            with timings.stage("verify"):
                report = verify_dcp(problem, labels)
            if not report.is_dcp:
                raise DCPError(report.explain())
        data = _dispatch_and_canonicalize(problem, solver, timings, {}, [])
        logger.debug("Compiled problem for %s in %.4fs", data.solver, timings.total)
        return cls(problem, data, timings, labels)

    @property
    def solver(self) -> Optional[str]:
        return self.data.solver

    def solve_raw(self, warm_start: bool = False, verbose: Optional[bool] = None, **solver_opts: Any) -> Any:
        """
        Call the solver on the stored data and return its raw output.

        The problem's variables are not touched.

        Raises:
            cvxpy.error.SolverError: If the solver fails outright.
        """
        verbose = get_settings().verbose if verbose is None else verbose
        return self.data.chain.solve_via_data(
            self.problem, self.data.raw, warm_start, verbose, solver_opts
        )

    def solve(self, warm_start: bool = False, verbose: Optional[bool] = None, **solver_opts: Any) -> SolveResult:
        """Solve from the stored data and unpack into the problem."""
        verbose = get_settings().verbose if verbose is None else verbose
        return _run_solver(
            self.problem, self.data, StageTimings(), self.labels, warm_start, verbose, solver_opts
        )

    def update(
        self,
        c: Optional[np.ndarray] = None,
        b: Optional[np.ndarray] = None,
        h: Optional[np.ndarray] = None,
    ) -> None:
        """
        Replace the cost vector or right-hand sides of the canonical data.

        ``b`` is the equality right-hand side and ``h`` the cone right-hand
        side, in canonical (not modeling) coordinates.

        Raises:
            ValueError: On a length mismatch.
        """
        replace_vectors(self.data, c=c, b=b, h=h)

    def refresh(self) -> None:
        """Re-canonicalize, e.g. after parameter values changed."""
        timings = StageTimings()
        with timings.stage("canonicalize"):
            self.data = get_problem_data(self.problem, self.data.solver)
        self.compile_timings = timings


@dataclass
class PipelineProfile:
    """
    Mean stage timings of the full pipeline and of the bypass path.

    Attributes:
        full: Mean timings of :func:`solve`.
        bypass: Mean timings of :meth:`CompiledProblem.solve`.
        compile: One-off timings of :meth:`CompiledProblem.compile`.
        repeats: Number of solves per path.
        solver: Solver used for both paths.
    """

    full: StageTimings
    bypass: StageTimings
    compile: StageTimings
    repeats: int
    solver: str

    @property
    def speedup(self) -> float:
        """Ratio of full-pipeline time to bypass time per solve."""
        bypass = self.bypass.total
        return self.full.total / bypass if bypass > 0.0 else float("inf")


def profile(problem: cp.Problem, solver: Optional[str] = None, repeats: int = 1) -> PipelineProfile:
    """
    Time the full pipeline against the bypass path on ``problem``.

    Raises:
        ValueError: If ``repeats`` is smaller than one.
        cvxpy.error.DCPError: If the problem is not DCP.
    """
    if repeats < 1:
        raise ValueError("repeats must be at least 1")

    compiled = CompiledProblem.compile(problem, solver=solver)
    solver_name = compiled.solver

    full: List[StageTimings] = []
    bypass: List[StageTimings] = []
    for _ in range(repeats):
        full.append(solve(problem, solver=solver_name).timings)
        bypass.append(compiled.solve().timings)

    result = PipelineProfile(
        full=StageTimings.mean(full),
        bypass=StageTimings.mean(bypass),
        compile=compiled.compile_timings,
        repeats=repeats,
        solver=solver_name,
    )
    logger.info(
        "Profile (%s, %d repeats): full %.4fs, bypass %.4fs, speedup %.1fx",
        solver_name,
        repeats,
        result.full.total,
        result.bypass.total,
        result.speedup,
    )
    return result


__all__ = ["solve", "CompiledProblem", "PipelineProfile", "profile"]
