"""
Canonicalization stage.

cvxpy rewrites a DCP problem into the data a particular solver consumes. The
layout of that data differs between solvers:

* ECOS style: ``c``, ``G``, ``h``, ``A``, ``b`` and ``dims``; the equality
  block is already separate.
* SCS/Clarabel style: ``c``, ``A``, ``b``, ``dims`` and optionally ``P``;
  equality rows are the first ``dims.zero`` rows of ``A``.

:func:`get_problem_data` normalizes both into a :class:`~cvxpipe.core.ConicData`
so that ``A x = b`` and ``h - G x`` lies in the cone product regardless of
which solver the data is for.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import cvxpy as cp
import numpy as np
import scipy.sparse as sp

from .core import ConeDims, ConicData
from .logging import get_logger
from .utils import as_csc, as_vector

logger = get_logger(__name__)

_OFFSET_KEY = "offset"


def _objective_offset(inverse_data: Optional[Sequence[Any]]) -> float:
    """Constant objective term, kept by cvxpy in the solver's inverse data.

    The solver entry is a plain dict in older cvxpy releases and a
    ``SolverInverseData`` wrapper with a dict-like ``get`` in newer ones.
    """
    if not inverse_data:
        return 0.0
    getter = getattr(inverse_data[-1], "get", None)
    if getter is None:
        return 0.0
    offset = getter(_OFFSET_KEY)
    return 0.0 if offset is None else float(np.sum(offset))


def from_solver_data(
    data: Dict[str, Any],
    solver: Optional[str] = None,
    chain: Any = None,
    inverse_data: Any = None,
) -> ConicData:
    """
    Normalize a cvxpy solver data mapping into :class:`ConicData`.

    Raises:
        ValueError: If required keys are missing.
    """
    if "c" not in data or "dims" not in data:
        raise ValueError("Solver data must contain at least 'c' and 'dims'")

    c = as_vector(data["c"])
    n = c.shape[0]
    dims = ConeDims.from_cvxpy(data["dims"])

    if "G" in data:
        a_mat = as_csc(data.get("A"), n)
        b_vec = as_vector(data.get("b"), a_mat.shape[0])
        g_mat = as_csc(data["G"], n)
        h_vec = as_vector(data.get("h"), g_mat.shape[0])
    else:
        if "A" not in data or "b" not in data:
            raise ValueError("Solver data must contain 'A' and 'b'")
        stacked = as_csc(data["A"], n)
        rhs = as_vector(data["b"], stacked.shape[0])
        split = dims.zero
        a_mat = stacked[:split, :]
        b_vec = rhs[:split]
        g_mat = stacked[split:, :]
        h_vec = rhs[split:]

    p_mat = data.get("P")
    if p_mat is not None:
        p_mat = as_csc(p_mat, n)
        # cvxpy may hand over only one triangle of P
        if sp.triu(p_mat, k=1).nnz and not sp.tril(p_mat, k=-1).nnz:
            p_mat = (p_mat + sp.triu(p_mat, k=1).T).tocsc()

    return ConicData(
        c=c,
        A=a_mat.tocsc(),
        b=b_vec,
        G=g_mat.tocsc(),
        h=h_vec,
        dims=dims,
        offset=_objective_offset(inverse_data),
        P=p_mat,
        solver=solver,
        raw=data,
        chain=chain,
        inverse_data=inverse_data,
    )


def get_problem_data(
    problem: cp.Problem,
    solver: str,
    solver_opts: Optional[Dict[str, Any]] = None,
    **kwargs: Any,
) -> ConicData:
    """
    Canonicalize ``problem`` for ``solver``.

    Args:
        problem: A DCP problem.
        solver: cvxpy solver name, e.g. ``"SCS"``.
        solver_opts: Options of the later solver call. cvxpy keeps them in the
            solver's inverse data and reads some of them while unpacking.
        **kwargs: Forwarded to :meth:`cvxpy.Problem.get_problem_data`.

    Raises:
        cvxpy.error.DCPError: If the problem is not DCP.
        cvxpy.error.SolverError: If the solver cannot handle the problem.
    """
    solver = solver.upper()
    data, chain, inverse_data = problem.get_problem_data(
        solver, solver_opts=dict(solver_opts or {}), **kwargs
    )
    conic = from_solver_data(data, solver=solver, chain=chain, inverse_data=inverse_data)
    logger.debug(
        "Canonicalized for %s: n=%d, eq=%d, cone=%d, dims=%s",
        solver,
        conic.n_variables,
        conic.n_eq,
        conic.n_cone,
        conic.dims,
    )
    return conic


def replace_vectors(
    data: ConicData,
    c: Optional[np.ndarray] = None,
    b: Optional[np.ndarray] = None,
    h: Optional[np.ndarray] = None,
) -> None:
    """
    Overwrite numeric vectors of ``data`` in place, keeping ``data.raw`` in sync.

    Raises:
        ValueError: If a vector has the wrong length.
    """
    if c is not None:
        data.c = as_vector(c, data.n_variables)
    if b is not None:
        data.b = as_vector(b, data.n_eq)
    if h is not None:
        data.h = as_vector(h, data.n_cone)

    if data.raw is None:
        return
    if "G" in data.raw:
        if c is not None:
            data.raw["c"] = data.c.copy()
        if b is not None:
            data.raw["b"] = data.b.copy() if data.n_eq else data.raw.get("b")
        if h is not None:
            data.raw["h"] = data.h.copy()
    else:
        if c is not None:
            data.raw["c"] = data.c.copy()
        if b is not None or h is not None:
            data.raw["b"] = np.concatenate([data.b, data.h])


__all__ = ["from_solver_data", "get_problem_data", "replace_vectors"]
