"""
Karush-Kuhn-Tucker diagnostics for canonical conic data.

With the convention of :mod:`cvxpipe.core` the optimality conditions are

```
    A x = b,   s = h - G x in K,   z in K*,
    P x + c + A^T y + G^T z = 0,   z^T s = 0.
```

Cone membership is checked for the nonnegative and second-order blocks, which
are self-dual; exponential, semidefinite and power blocks are skipped.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import numpy as np

from .core import ConicData
from .utils import as_vector, cone_distance


def split_solution(raw: Any, data: ConicData) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Extract ``(x, y, z)`` from raw solver output.

    Understands SCS-style dicts (``x``, ``y`` over all rows), ECOS-style dicts
    (``x``, ``y``, ``z``) and objects exposing ``x`` and ``z`` attributes
    (Clarabel).

    Raises:
        ValueError: If the output format is not recognised.
    """
    if isinstance(raw, dict):
        if "z" in raw:
            x, y, z = raw["x"], raw.get("y"), raw["z"]
            return as_vector(x), as_vector(y, data.n_eq), as_vector(z)
        if "y" in raw:
            y_all = as_vector(raw["y"])
            return as_vector(raw["x"]), y_all[:data.n_eq], y_all[data.n_eq:]
    elif hasattr(raw, "x") and hasattr(raw, "z"):
        z_all = as_vector(raw.z)
        return as_vector(raw.x), z_all[:data.n_eq], z_all[data.n_eq:]
    raise ValueError(f"Unrecognised solver output of type {type(raw).__name__}")


def conic_residuals(
    data: ConicData,
    x: np.ndarray,
    y: Optional[np.ndarray] = None,
    z: Optional[np.ndarray] = None,
) -> Dict[str, float]:
    """
    Compute infinity norms of the KKT residuals at ``(x, y, z)``.

    Dual residuals are zero when the corresponding multipliers are omitted,
    so a primal-only check is ``conic_residuals(data, x)``.
    """

    x = as_vector(x, data.n_variables)
    slack = data.h - data.G @ x

    primal_eq = float(np.linalg.norm(data.A @ x - data.b, ord=np.inf)) if data.n_eq else 0.0
    primal_cone = cone_distance(slack, data.dims.nonneg, data.dims.soc)

    stationarity = data.c.copy()
    if data.P is not None:
        stationarity += data.P @ x
    if y is not None and data.n_eq:
        stationarity += data.A.T @ as_vector(y, data.n_eq)

    dual_cone = 0.0
    complementary = 0.0
    if z is not None:
        z = as_vector(z, data.n_cone)
        stationarity += data.G.T @ z
        dual_cone = cone_distance(z, data.dims.nonneg, data.dims.soc)
        complementary = abs(float(z @ slack))

    have_duals = z is not None or (y is not None and data.n_eq)
    dual = float(np.linalg.norm(stationarity, ord=np.inf)) if have_duals else 0.0
    return {
        "primal_eq": primal_eq,
        "primal_cone": primal_cone,
        "dual": dual,
        "dual_cone": dual_cone,
        "complementary": complementary,
    }


def is_conic_optimal(
    data: ConicData,
    x: np.ndarray,
    y: Optional[np.ndarray] = None,
    z: Optional[np.ndarray] = None,
    tol: float = 1e-6,
) -> bool:
    """
    Return True if all KKT residuals are below ``tol``.
    """

    residuals = conic_residuals(data, x, y, z)
    return all(value <= tol for value in residuals.values())


__all__ = ["split_solution", "conic_residuals", "is_conic_optimal"]
