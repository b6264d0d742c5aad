"""
Core records shared by the pipeline stages.

The canonical solver data follows the convention

```
    minimize    1/2 x^T P x + c^T x + offset
    subject to  A x = b
                h - G x in K
```

where ``K`` is a product of cones described by :class:`ConeDims`: the
nonnegative orthant, then second-order cones, then the remaining cone blocks in
the order the target solver expects. ``P`` is only present for solvers that
accept a quadratic objective.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import numpy as np
import scipy.sparse as sp


class Status(Enum):
    """Solution status reported by the pipeline."""

    OPTIMAL = "optimal"
    OPTIMAL_INACCURATE = "optimal_inaccurate"
    INFEASIBLE = "infeasible"
    INFEASIBLE_INACCURATE = "infeasible_inaccurate"
    UNBOUNDED = "unbounded"
    UNBOUNDED_INACCURATE = "unbounded_inaccurate"
    INFEASIBLE_OR_UNBOUNDED = "infeasible_or_unbounded"
    USER_LIMIT = "user_limit"
    SOLVER_ERROR = "solver_error"
    NOT_DCP = "not_dcp"
    UNKNOWN = "unknown"

    @classmethod
    def from_cvxpy(cls, status: Optional[str]) -> "Status":
        """Map a cvxpy status string onto :class:`Status`."""
        if status is None:
            return cls.UNKNOWN
        try:
            return cls(str(status).lower())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_optimal(self) -> bool:
        return self in (Status.OPTIMAL, Status.OPTIMAL_INACCURATE)

    @property
    def is_inaccurate(self) -> bool:
        return self.value.endswith("_inaccurate")

    @property
    def is_solution(self) -> bool:
        """True when the solver finished with a certificate, accurate or not."""
        return self in (
            Status.OPTIMAL,
            Status.OPTIMAL_INACCURATE,
            Status.INFEASIBLE,
            Status.INFEASIBLE_INACCURATE,
            Status.UNBOUNDED,
            Status.UNBOUNDED_INACCURATE,
        )


@dataclass(frozen=True)
class ConeDims:
    """
    Sizes of the cone blocks of a conic problem.

    Attributes:
        zero: Rows of the zero cone (equality constraints).
        nonneg: Rows of the nonnegative orthant.
        soc: Dimension of each second-order cone.
        exp: Number of 3-dimensional exponential cones.
        psd: Order of each positive semidefinite cone.
        p3d: Exponent of each 3-dimensional power cone.
    """

    zero: int = 0
    nonneg: int = 0
    soc: Tuple[int, ...] = ()
    exp: int = 0
    psd: Tuple[int, ...] = ()
    p3d: Tuple[float, ...] = ()

    @classmethod
    def from_cvxpy(cls, dims: Any) -> "ConeDims":
        """
        Build from a cvxpy ``ConeDims`` object or an SCS/ECOS style dict.
        """
        if isinstance(dims, Mapping):
            return cls(
                zero=int(dims.get("z", dims.get("f", 0))),
                nonneg=int(dims.get("l", 0)),
                soc=tuple(int(q) for q in dims.get("q", ())),
                exp=int(dims.get("ep", dims.get("e", 0))),
                psd=tuple(int(s) for s in dims.get("s", ())),
                p3d=tuple(float(p) for p in dims.get("p", ())),
            )
        return cls(
            zero=int(getattr(dims, "zero", 0)),
            nonneg=int(getattr(dims, "nonneg", 0)),
            soc=tuple(int(q) for q in getattr(dims, "soc", ())),
            exp=int(getattr(dims, "exp", 0)),
            psd=tuple(int(s) for s in getattr(dims, "psd", ())),
            p3d=tuple(float(p) for p in getattr(dims, "p3d", ())),
        )

    @property
    def cone_rows(self) -> int:
        """Rows of ``G`` (everything except the zero cone)."""
        psd_rows = sum(n * (n + 1) // 2 for n in self.psd)
        return self.nonneg + sum(self.soc) + 3 * self.exp + psd_rows + 3 * len(self.p3d)

    @property
    def total(self) -> int:
        return self.zero + self.cone_rows

    def as_dict(self) -> Dict[str, Any]:
        """Return the cone descriptor in the SCS key convention."""
        return {
            "z": self.zero,
            "l": self.nonneg,
            "q": list(self.soc),
            "ep": self.exp,
            "s": list(self.psd),
            "p": list(self.p3d),
        }


@dataclass
class ConicData:
    """
    Canonical problem data handed to a numerical solver.

    ``raw``, ``chain`` and ``inverse_data`` are the cvxpy objects the data
    came from; they are ``None`` for data loaded from disk.
    """

    c: np.ndarray
    A: sp.csc_matrix
    b: np.ndarray
    G: sp.csc_matrix
    h: np.ndarray
    dims: ConeDims
    offset: float = 0.0
    P: Optional[sp.csc_matrix] = None
    solver: Optional[str] = None
    raw: Optional[Dict[str, Any]] = field(default=None, repr=False)
    chain: Any = field(default=None, repr=False)
    inverse_data: Any = field(default=None, repr=False)

    @property
    def n_variables(self) -> int:
        return int(self.c.shape[0])

    @property
    def n_eq(self) -> int:
        return int(self.A.shape[0])

    @property
    def n_cone(self) -> int:
        return int(self.G.shape[0])

    def stacked(self) -> Tuple[sp.csc_matrix, np.ndarray]:
        """Return ``[A; G]`` and ``[b; h]``, the single-matrix SCS layout."""
        return sp.vstack([self.A, self.G], format="csc"), np.concatenate([self.b, self.h])

    def objective(self, x: np.ndarray) -> float:
        """Evaluate the canonical objective (including ``offset``) at ``x``."""
        x = np.asarray(x, dtype=float).reshape(-1)
        value = float(self.c @ x) + self.offset
        if self.P is not None:
            value += 0.5 * float(x @ (self.P @ x))
        return value


STAGES = ("verify", "dispatch", "canonicalize", "solve", "unpack")


@dataclass
class StageTimings:
    """Wall-clock seconds spent in each pipeline stage."""

    verify: float = 0.0
    dispatch: float = 0.0
    canonicalize: float = 0.0
    solve: float = 0.0
    unpack: float = 0.0

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Accumulate the time spent inside the block into ``name``."""
        if name not in STAGES:
            raise ValueError(f"Unknown stage {name!r}")
        start = time.perf_counter()
        try:
            yield
        finally:
            setattr(self, name, getattr(self, name) + time.perf_counter() - start)

    @property
    def total(self) -> float:
        return sum(getattr(self, f.name) for f in fields(self))

    @property
    def overhead(self) -> float:
        """Time spent outside the numerical solver."""
        return self.total - self.solve

    @property
    def overhead_fraction(self) -> float:
        total = self.total
        return self.overhead / total if total > 0.0 else 0.0

    def as_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def mean(cls, samples: List["StageTimings"]) -> "StageTimings":
        if not samples:
            return cls()
        return cls(**{
            name: float(np.mean([getattr(s, name) for s in samples])) for name in STAGES
        })


@dataclass
class SolveResult:
    """
    Outcome of a solve through the pipeline.

    Attributes:
        status: Normalized solver status. Always check it before reading
            values; a non-optimal status is not raised as an error.
        value: Optimal objective value, ``+/-inf`` for infeasible/unbounded
            problems, ``None`` if the solver produced nothing.
        variables: Variable name to value snapshot.
        duals: Constraint label to dual value snapshot.
        solver: Name of the solver that ran, if any.
        message: Explanation for non-optimal outcomes.
        timings: Per-stage wall-clock timings.
        num_iters: Solver iterations when reported.
    """

    status: Status
    value: Optional[float] = None
    variables: Dict[str, np.ndarray] = field(default_factory=dict)
    duals: Dict[str, np.ndarray] = field(default_factory=dict)
    solver: Optional[str] = None
    message: str = ""
    timings: StageTimings = field(default_factory=StageTimings)
    num_iters: Optional[int] = None

    def value_of(self, name: str) -> np.ndarray:
        """Return the solution value of the variable called ``name``."""
        try:
            return self.variables[name]
        except KeyError:
            known = ", ".join(sorted(self.variables)) or "none"
            raise KeyError(f"No variable named {name!r} (known: {known})") from None


__all__ = ["Status", "ConeDims", "ConicData", "StageTimings", "SolveResult", "STAGES"]
