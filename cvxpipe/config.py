"""Process-wide settings for cvxpipe.

Defaults are read once from the environment at import time:

``CVXPIPE_SOLVER``
    Solver used when none is passed explicitly (e.g. ``SCS``).
``CVXPIPE_VERIFY``
    Whether the DCP verification stage runs (default ``1``).
``CVXPIPE_VERBOSE``
    Whether solvers print their own progress output (default ``0``).

Settings can be changed with :func:`set_settings` or temporarily with
:func:`settings_context`.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from dataclasses import dataclass, fields, replace
from typing import Iterator, Optional, Tuple

_TRUE_VALUES = ("1", "true", "yes", "on")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


def _env_solver(name: str) -> Optional[str]:
    raw = os.getenv(name, "").strip()
    return raw.upper() or None


@dataclass(frozen=True)
class Settings:
    """
    Pipeline defaults.

    Attributes:
        solver: Solver name used when a call does not name one. ``None`` lets
            the dispatcher choose from ``solver_preference``.
        solver_preference: Order in which installed solvers are tried by the
            dispatcher.
        verify: Run the DCP verification stage before canonicalization.
        verbose: Forward ``verbose=True`` to the solver.
        equivalence_atol: Absolute tolerance used by the equivalence check.
    """

    solver: Optional[str] = None
    solver_preference: Tuple[str, ...] = ("CLARABEL", "ECOS", "SCS", "OSQP", "CVXOPT")
    verify: bool = True
    verbose: bool = False
    equivalence_atol: float = 1e-9


_settings = Settings(
    solver=_env_solver("CVXPIPE_SOLVER"),
    verify=_env_flag("CVXPIPE_VERIFY", True),
    verbose=_env_flag("CVXPIPE_VERBOSE", False),
)


def get_settings() -> Settings:
    """Return the active settings."""
    return _settings


def set_settings(**changes: object) -> Settings:
    """
    Replace fields of the active settings.

    Raises:
        ValueError: If a keyword does not name a settings field.
    """
    global _settings
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(changes) - known)
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(unknown)}")
    if "solver" in changes and changes["solver"] is not None:
        changes["solver"] = str(changes["solver"]).upper()
    if "solver_preference" in changes:
        changes["solver_preference"] = tuple(str(s).upper() for s in changes["solver_preference"])
    _settings = replace(_settings, **changes)
    return _settings


@contextmanager
def settings_context(**changes: object) -> Iterator[Settings]:
    """
    Temporarily override settings.

    Example:
        >>> with settings_context(solver="SCS", verify=False):
        ...     pass
    """
    global _settings
    previous = _settings
    try:
        yield set_settings(**changes)
    finally:
        _settings = previous


__all__ = ["Settings", "get_settings", "set_settings", "settings_context"]
