"""Expression evaluation capability.

Expressions are plain arithmetic over named variables, evaluated by
simpleeval without access to Python builtins. The engine depends only on
the ``Evaluator`` protocol so another implementation can be injected.
"""

from __future__ import annotations

import math
from typing import Any, Callable, Mapping, Protocol

from simpleeval import InvalidExpression, SimpleEval

from core.errors import BencherExpressionError

EXPRESSION_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "abs": abs,
    "min": min,
    "max": max,
    "round": round,
    "sqrt": math.sqrt,
    "log": math.log,
    "log2": math.log2,
    "log10": math.log10,
    "exp": math.exp,
    "floor": math.floor,
    "ceil": math.ceil,
    "int": int,
    "float": float,
}


class Evaluator(Protocol):
    """Pure ``(expression, bindings) -> result`` function."""

    def evaluate(self, expression: str, bindings: Mapping[str, Any]) -> object:
        ...


class SimpleEvaluator:
    """Evaluator backed by simpleeval.

    Variables and functions live in separate namespaces, so ``min`` names
    the aggregate while ``min(a, b)`` calls the function.
    """

    def __init__(self, functions: Mapping[str, Callable[..., Any]] | None = None) -> None:
        self._functions = dict(EXPRESSION_FUNCTIONS if functions is None else functions)

    def evaluate(self, expression: str, bindings: Mapping[str, Any]) -> object:
        """Evaluate an expression against variable bindings.

        Args:
            expression: Expression text, e.g. ``v - min``.
            bindings: Variable values visible to the expression.

        Returns:
            Raw evaluation result.

        Raises:
            BencherExpressionError: If parsing or evaluation fails.
        """
        interpreter = SimpleEval(functions=self._functions, names=dict(bindings))
        try:
            return interpreter.eval(expression)
        except (
            InvalidExpression,
            SyntaxError,
            ArithmeticError,
            LookupError,
            TypeError,
            ValueError,
        ) as error:
            raise BencherExpressionError(
                f"Failed to evaluate expression '{expression}': {error}. "
                f"Available variables: {', '.join(sorted(bindings))}."
            ) from error
