"""
Array coercion and cone projection helpers.

Solver data arrives from cvxpy as a mix of dense and sparse containers; the
helpers here normalize it to 1-D float vectors and CSC matrices so the rest of
the package can rely on one representation.
"""

from __future__ import annotations

from typing import Any, Optional

import numpy as np
import scipy.sparse as sp


def as_vector(vec: Any, size: Optional[int] = None) -> np.ndarray:
    """
    Return ``vec`` as a flat float array.

    ``None`` becomes a zero vector of length ``size`` (or an empty one).
    """

    if vec is None:
        return np.zeros(0 if size is None else size)
    if sp.issparse(vec):
        vec = vec.toarray()
    out = np.asarray(vec, dtype=float).reshape(-1)
    if size is not None and out.shape[0] != size:
        raise ValueError(f"Expected vector of length {size}, got {out.shape[0]}")
    return out


def as_csc(mat: Any, n_cols: int) -> sp.csc_matrix:
    """
    Return ``mat`` as a CSC matrix with ``n_cols`` columns.

    ``None`` or an empty block becomes a ``(0, n_cols)`` matrix.
    """

    if mat is None:
        return sp.csc_matrix((0, n_cols))
    out = sp.csc_matrix(mat, dtype=float)
    if out.shape[1] != n_cols:
        if out.shape[0] == 0:
            return sp.csc_matrix((0, n_cols))
        raise ValueError(f"Expected {n_cols} columns, got {out.shape[1]}")
    return out


def project_nonneg(v: np.ndarray) -> np.ndarray:
    """Euclidean projection onto the nonnegative orthant."""

    return np.maximum(np.asarray(v, dtype=float), 0.0)


def project_soc(v: np.ndarray) -> np.ndarray:
    """
    Euclidean projection onto the second-order cone ``{(t, u): ||u|| <= t}``.

    Uses the closed form from Boyd & Vandenberghe, exercise 8.3(c).
    """

    v = np.asarray(v, dtype=float).reshape(-1)
    t, u = v[0], v[1:]
    norm_u = float(np.linalg.norm(u))
    if norm_u <= t:
        return v.copy()
    if norm_u <= -t:
        return np.zeros_like(v)
    scale = 0.5 * (1.0 + t / norm_u)
    return np.concatenate([[scale * norm_u], scale * u])


def cone_distance(s: np.ndarray, nonneg: int, soc: tuple) -> float:
    """
    Infinity-norm distance of ``s`` from the nonnegative and SOC blocks.

    ``s`` is laid out as ``[nonneg rows, soc_1 rows, soc_2 rows, ...]``; any
    trailing rows (exponential, PSD, power cones) are ignored.
    """

    s = np.asarray(s, dtype=float).reshape(-1)
    worst = 0.0
    if nonneg:
        block = s[:nonneg]
        worst = max(worst, float(np.max(np.abs(block - project_nonneg(block)))))
    offset = nonneg
    for size in soc:
        block = s[offset:offset + size]
        worst = max(worst, float(np.max(np.abs(block - project_soc(block)))))
        offset += size
    return worst


__all__ = ["as_vector", "as_csc", "project_nonneg", "project_soc", "cone_distance"]
