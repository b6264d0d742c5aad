"""
Expression and problem construction.

:class:`ProblemBuilder` is a thin bookkeeping layer over cvxpy: it hands out
named variables and parameters, keeps labels for constraints and assembles a
:class:`cvxpy.Problem`. The symbolic expression tree itself, with its
curvature and sign metadata, is cvxpy's.

Example:
    >>> import cvxpy as cp
    >>> import numpy as np
    >>> from cvxpipe.builder import ProblemBuilder
    >>> pb = ProblemBuilder()
    >>> x = pb.variable("x", 3)
    >>> pb.minimize(cp.sum_squares(x - np.arange(3)))
    >>> pb.subject_to(x >= 0, name="nonneg")
    >>> problem = pb.build()
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Union

import cvxpy as cp
from cvxpy.constraints.constraint import Constraint

from .logging import get_logger

if TYPE_CHECKING:
    from .core import SolveResult

logger = get_logger(__name__)

Shape = Union[int, Tuple[int, ...]]


@dataclass(frozen=True)
class ExpressionInfo:
    """
    DCP metadata of an expression.

    Attributes:
        curvature: ``CONSTANT``, ``AFFINE``, ``CONVEX``, ``CONCAVE`` or
            ``UNKNOWN`` (quasi-curvatures are reported as cvxpy names them).
        sign: ``NONNEGATIVE``, ``NONPOSITIVE``, ``ZERO`` or ``UNKNOWN``.
        shape: Expression shape.
        is_dcp: Whether the expression itself follows the DCP rules.
    """

    curvature: str
    sign: str
    shape: Tuple[int, ...]
    is_dcp: bool

    @property
    def is_convex(self) -> bool:
        return self.curvature in ("CONSTANT", "AFFINE", "CONVEX")

    @property
    def is_concave(self) -> bool:
        return self.curvature in ("CONSTANT", "AFFINE", "CONCAVE")


def describe_expression(expr: Any) -> ExpressionInfo:
    """Report curvature, sign and shape of ``expr``."""
    if not isinstance(expr, cp.Expression):
        expr = cp.Constant(expr)
    return ExpressionInfo(
        curvature=str(expr.curvature),
        sign=str(expr.sign),
        shape=tuple(expr.shape),
        is_dcp=bool(expr.is_dcp()),
    )


class ProblemBuilder:
    """
    Collects the pieces of an optimization problem under readable names.

    Names must be unique across variables and parameters; constraint names
    must be unique among constraints. Unnamed constraints are labelled
    ``constraint_<index>``.
    """

    def __init__(self) -> None:
        self._variables: Dict[str, cp.Variable] = {}
        self._parameters: Dict[str, cp.Parameter] = {}
        self._constraints: Dict[str, Constraint] = {}
        self._objective: Optional[Union[cp.Minimize, cp.Maximize]] = None

    def _check_name(self, name: str) -> None:
        if not name:
            raise ValueError("Names must be non-empty strings")
        if name in self._variables or name in self._parameters:
            raise ValueError(f"Name {name!r} is already in use")

    def variable(self, name: str, shape: Shape = (), **attributes: Any) -> cp.Variable:
        """
        Declare a decision variable.

        Args:
            name: Unique name, used as the key in :class:`SolveResult`.
            shape: Variable shape; an int declares a vector.
            **attributes: cvxpy attributes such as ``nonneg=True``.
        """
        self._check_name(name)
        var = cp.Variable(shape, name=name, **attributes)
        self._variables[name] = var
        return var

    def parameter(
        self,
        name: str,
        shape: Shape = (),
        value: Any = None,
        **attributes: Any,
    ) -> cp.Parameter:
        """Declare a parameter whose value may change between solves."""
        self._check_name(name)
        param = cp.Parameter(shape, name=name, value=value, **attributes)
        self._parameters[name] = param
        return param

    def set_parameters(self, **values: Any) -> None:
        """Assign values to declared parameters by name."""
        for name, value in values.items():
            if name not in self._parameters:
                raise ValueError(f"No parameter named {name!r}")
            self._parameters[name].value = value

    def minimize(self, expr: Any) -> None:
        self._objective = cp.Minimize(expr)

    def maximize(self, expr: Any) -> None:
        self._objective = cp.Maximize(expr)

    def _next_label(self) -> str:
        index = len(self._constraints)
        while f"constraint_{index}" in self._constraints:
            index += 1
        return f"constraint_{index}"

    def subject_to(self, *constraints: Constraint, name: Optional[str] = None) -> None:
        """
        Add constraints.

        ``name`` may only be given together with a single constraint.
        """
        if name is not None and len(constraints) != 1:
            raise ValueError("A name can only be attached to a single constraint")
        for constraint in constraints:
            if not isinstance(constraint, Constraint):
                raise ValueError(f"Expected a cvxpy constraint, got {type(constraint).__name__}")
            label = name if name is not None else self._next_label()
            if label in self._constraints:
                raise ValueError(f"Constraint name {label!r} is already in use")
            self._constraints[label] = constraint

    @property
    def variables(self) -> Dict[str, cp.Variable]:
        return dict(self._variables)

    @property
    def parameters(self) -> Dict[str, cp.Parameter]:
        return dict(self._parameters)

    @property
    def constraints(self) -> Dict[str, Constraint]:
        return dict(self._constraints)

    @property
    def constraint_labels(self) -> Dict[int, str]:
        """Map of cvxpy constraint id to its label."""
        return {c.id: label for label, c in self._constraints.items()}

    def build(self) -> cp.Problem:
        """
        Assemble the problem.

        Without an objective the result is a feasibility problem
        (``Minimize(0)``).
        """
        objective = self._objective
        if objective is None:
            logger.debug("No objective set; building a feasibility problem")
            objective = cp.Minimize(0)
        problem = cp.Problem(objective, list(self._constraints.values()))
        logger.debug(
            "Built problem with %d variables, %d parameters, %d constraints",
            len(self._variables),
            len(self._parameters),
            len(self._constraints),
        )
        return problem

    def solve(self, **kwargs: Any) -> "SolveResult":
        """Build and solve through :func:`cvxpipe.pipeline.solve`.

        Duals in the result are keyed by constraint label.
        """
        from .pipeline import solve

        return solve(self.build(), labels=self.constraint_labels, **kwargs)


__all__ = ["ExpressionInfo", "describe_expression", "ProblemBuilder"]
