"""Logging utilities for cvxpipe.

Every pipeline stage logs through a logger obtained from :func:`get_logger`.
Loggers live under the ``cvxpipe.`` namespace, write to stderr and stay quiet
(WARNING) unless the level is raised.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

_DEFAULT_LEVEL = logging.WARNING
_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

_loggers: dict[str, logging.Logger] = {}


def _coerce_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def _make_handler(level: int, stream: Optional[object] = None, fmt: str = _DEFAULT_FORMAT) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr if stream is None else stream)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create the cvxpipe logger for a module.

    Args:
        name: Logger name, usually ``__name__``. Names outside the
            ``cvxpipe`` namespace are prefixed with ``cvxpipe.``.

    Returns:
        A cached :class:`logging.Logger` with a single stderr handler.

    Example:
        >>> from cvxpipe.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.debug("canonicalized in %.3fs", 0.01)
    """
    if name is None:
        name = "cvxpipe"
    if name != "cvxpipe" and not name.startswith("cvxpipe."):
        name = f"cvxpipe.{name}"

    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(_DEFAULT_LEVEL)
        logger.addHandler(_make_handler(_DEFAULT_LEVEL))
        logger.propagate = False

    _loggers[name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the level of every cvxpipe logger, existing and future.

    Args:
        level: A :mod:`logging` level or its name (``"DEBUG"``, ``"INFO"``...).
    """
    global _DEFAULT_LEVEL
    level = _coerce_level(level)
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
    _DEFAULT_LEVEL = level


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[object] = None,
) -> None:
    """Reconfigure handlers of all cvxpipe loggers.

    Meant to be called once by an application; replaces existing handlers.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string; defaults to
            ``[LEVEL] name: message``.
        stream: Output stream (default: ``sys.stderr``).
    """
    global _DEFAULT_LEVEL
    level = _coerce_level(level)
    fmt = _DEFAULT_FORMAT if format_string is None else format_string

    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(_make_handler(level, stream, fmt))

    _DEFAULT_LEVEL = level


__all__ = ["get_logger", "set_log_level", "configure_logging"]
