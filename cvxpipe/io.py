"""
Persist canonical solver data and solve it without cvxpy.

Archives are ``.npz`` files holding the vectors, the CSC components of each
matrix and the cone dimensions as JSON. Loaded data carries no cvxpy objects:
it can be inspected, checked with :mod:`cvxpipe.kkt`, or passed to SCS
directly with :func:`solve_conic_data`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import numpy as np
import scipy.sparse as sp
import scs

from .core import ConeDims, ConicData
from .logging import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]

_FORMAT_VERSION = 1


def _pack_matrix(prefix: str, mat: sp.csc_matrix, out: Dict[str, Any]) -> None:
    mat = sp.csc_matrix(mat)
    out[f"{prefix}_data"] = mat.data
    out[f"{prefix}_indices"] = mat.indices
    out[f"{prefix}_indptr"] = mat.indptr
    out[f"{prefix}_shape"] = np.asarray(mat.shape, dtype=np.int64)


def _unpack_matrix(prefix: str, archive: Any) -> sp.csc_matrix:
    shape = tuple(int(v) for v in archive[f"{prefix}_shape"])
    return sp.csc_matrix(
        (archive[f"{prefix}_data"], archive[f"{prefix}_indices"], archive[f"{prefix}_indptr"]),
        shape=shape,
    )


def save_conic_data(data: ConicData, path: PathLike) -> Path:
    """
    Write ``data`` to an ``.npz`` archive.

    Returns:
        The path written (numpy appends ``.npz`` when missing).
    """
    path = Path(path)
    if path.suffix != ".npz":
        path = path.with_suffix(path.suffix + ".npz")
    arrays: Dict[str, Any] = {
        "c": data.c,
        "b": data.b,
        "h": data.h,
        "offset": np.asarray(data.offset, dtype=float),
        "meta": np.asarray(json.dumps({
            "version": _FORMAT_VERSION,
            "solver": data.solver,
            "dims": data.dims.as_dict(),
            "has_P": data.P is not None,
        })),
    }
    _pack_matrix("A", data.A, arrays)
    _pack_matrix("G", data.G, arrays)
    if data.P is not None:
        _pack_matrix("P", data.P, arrays)
    np.savez(path, **arrays)
    logger.debug("Saved conic data (%d vars) to %s", data.n_variables, path)
    return path


def load_conic_data(path: PathLike) -> ConicData:
    """
    Read an archive written by :func:`save_conic_data`.

    Raises:
        ValueError: If the archive has an unsupported format version.
    """
    with np.load(Path(path), allow_pickle=False) as archive:
        meta = json.loads(str(archive["meta"]))
        if meta.get("version") != _FORMAT_VERSION:
            raise ValueError(f"Unsupported conic data format version {meta.get('version')!r}")
        return ConicData(
            c=np.array(archive["c"], dtype=float),
            A=_unpack_matrix("A", archive),
            b=np.array(archive["b"], dtype=float),
            G=_unpack_matrix("G", archive),
            h=np.array(archive["h"], dtype=float),
            dims=ConeDims.from_cvxpy(meta["dims"]),
            offset=float(archive["offset"]),
            P=_unpack_matrix("P", archive) if meta.get("has_P") else None,
            solver=meta.get("solver"),
        )


def solve_conic_data(data: ConicData, **settings: Any) -> Tuple[np.ndarray, np.ndarray, np.ndarray, Dict[str, Any]]:
    """
    Solve canonical data with SCS, bypassing cvxpy completely.

    Data with exponential, semidefinite or power cones must have been
    canonicalized for SCS so that the cone blocks are in SCS order.

    Args:
        data: Canonical data, e.g. from :func:`load_conic_data`.
        **settings: SCS settings such as ``eps_abs`` or ``max_iters``.

    Returns:
        ``(x, y, s, info)`` as returned by SCS; ``y`` spans equality rows
        followed by cone rows.
    """
    a_mat, rhs = data.stacked()
    probdata: Dict[str, Any] = {"A": a_mat, "b": rhs, "c": data.c}
    if data.P is not None:
        probdata["P"] = sp.triu(data.P, format="csc")
    settings.setdefault("verbose", False)
    sol = scs.solve(probdata, data.dims.as_dict(), **settings)
    info = sol["info"]
    logger.debug("SCS finished with status %s", info.get("status"))
    return sol["x"], sol["y"], sol["s"], info


__all__ = ["save_conic_data", "load_conic_data", "solve_conic_data"]
