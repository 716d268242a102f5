"""Per-point expression mapping with confidence propagation.

Each band is mapped by evaluating the same value expression with the
band bound substituted for the central value. Bounds are never reordered,
so an expression decreasing in its variable yields lower > upper.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from core.errors import BencherExpressionError, BencherTypeMismatchError
from core.types import BandMap, LinearDatapoint, XYDatapoint
from core.values import Value, check_value, is_int_value, is_value
from stats.statistics import average
from virtual.evaluator import Evaluator


@dataclass(frozen=True)
class Aggregates:
    """Global ``min``/``max``/``avg`` of a resolved source axis."""

    minimum: Value = 0
    maximum: Value = 0
    average: Value = 0

    @classmethod
    def of(cls, values: Sequence[Value]) -> "Aggregates":
        """Aggregate central values; all zero for an empty source."""
        if not values:
            return cls()
        return cls(minimum=min(values), maximum=max(values), average=average(values))


@dataclass(frozen=True)
class LinearMapping:
    """Expressions producing a linear point from a linear point."""

    v_expression: str
    tag_expression: str


@dataclass(frozen=True)
class XYMapping:
    """Expressions producing an xy point.

    For an xy source the variables are ``x``/``y``; for a linear source the
    single value is exposed as ``v``.
    """

    x_expression: str
    y_expression: str
    tag_expression: str


def linear_bindings(v: Value, tag: int | None, aggregates: Aggregates) -> dict[str, Any]:
    return {
        "v": v,
        "V": v,
        "tag": tag,
        "min": aggregates.minimum,
        "max": aggregates.maximum,
        "avg": aggregates.average,
    }


def xy_bindings(
    x: Value,
    y: Value,
    tag: int | None,
    x_aggregates: Aggregates,
    y_aggregates: Aggregates,
) -> dict[str, Any]:
    return {
        "x": x,
        "X": x,
        "y": y,
        "Y": y,
        "tag": tag,
        "xmin": x_aggregates.minimum,
        "xmax": x_aggregates.maximum,
        "xavg": x_aggregates.average,
        "ymin": y_aggregates.minimum,
        "ymax": y_aggregates.maximum,
        "yavg": y_aggregates.average,
    }


def map_linear(
    point: LinearDatapoint,
    mapping: LinearMapping,
    aggregates: Aggregates,
    evaluator: Evaluator,
) -> LinearDatapoint:
    """Apply a linear mapping to one point and its bands.

    Args:
        point: Source point; must be tagged.
        mapping: Value and tag expressions.
        aggregates: Source-wide aggregates.
        evaluator: Expression evaluator.

    Returns:
        Mapped point keeping the source group.

    Raises:
        BencherExpressionError: If an expression fails or returns a non-number.
    """
    bindings = linear_bindings(point.v, point.tag, aggregates)
    v = _evaluate_value(evaluator, mapping.v_expression, bindings)
    tag = _evaluate_tag(evaluator, mapping.tag_expression, bindings)
    bands = _map_bands(
        point.confidence,
        lambda bound: _evaluate_value(
            evaluator, mapping.v_expression, {**bindings, "v": bound, "V": bound}
        ),
    )
    return LinearDatapoint(group=point.group, v=v, confidence=bands, tag=tag)


def map_xy(
    point: XYDatapoint,
    mapping: XYMapping,
    x_aggregates: Aggregates,
    y_aggregates: Aggregates,
    evaluator: Evaluator,
) -> XYDatapoint:
    """Apply an xy mapping to one xy point.

    X bands substitute ``x`` while ``y`` stays central, and the other way
    round for y bands.
    """
    bindings = xy_bindings(point.x, point.y, point.tag, x_aggregates, y_aggregates)
    x = _evaluate_value(evaluator, mapping.x_expression, bindings)
    y = _evaluate_value(evaluator, mapping.y_expression, bindings)
    tag = _evaluate_tag(evaluator, mapping.tag_expression, bindings)
    x_bands = _map_bands(
        point.x_confidence,
        lambda bound: _evaluate_value(
            evaluator, mapping.x_expression, {**bindings, "x": bound, "X": bound}
        ),
    )
    y_bands = _map_bands(
        point.y_confidence,
        lambda bound: _evaluate_value(
            evaluator, mapping.y_expression, {**bindings, "y": bound, "Y": bound}
        ),
    )
    return XYDatapoint(x=x, y=y, x_confidence=x_bands, y_confidence=y_bands, tag=tag)


def map_linear_to_xy(
    point: LinearDatapoint,
    mapping: XYMapping,
    aggregates: Aggregates,
    evaluator: Evaluator,
) -> XYDatapoint:
    """Derive an xy point from a linear point.

    Every band of ``v`` feeds both the x and the y expression.
    """
    bindings = linear_bindings(point.v, point.tag, aggregates)
    x = _evaluate_value(evaluator, mapping.x_expression, bindings)
    y = _evaluate_value(evaluator, mapping.y_expression, bindings)
    tag = _evaluate_tag(evaluator, mapping.tag_expression, bindings)
    x_bands = _map_bands(
        point.confidence,
        lambda bound: _evaluate_value(
            evaluator, mapping.x_expression, {**bindings, "v": bound, "V": bound}
        ),
    )
    y_bands = _map_bands(
        point.confidence,
        lambda bound: _evaluate_value(
            evaluator, mapping.y_expression, {**bindings, "v": bound, "V": bound}
        ),
    )
    return XYDatapoint(x=x, y=y, x_confidence=x_bands, y_confidence=y_bands, tag=tag)


def _map_bands(bands: BandMap, evaluate: Callable[[Value], Value]) -> BandMap:
    return {
        confidence: (evaluate(lower), evaluate(upper))
        for confidence, (lower, upper) in bands.items()
    }


def _evaluate_value(evaluator: Evaluator, expression: str, bindings: dict[str, Any]) -> Value:
    result = evaluator.evaluate(expression, bindings)
    if not is_value(result):
        raise BencherExpressionError(
            f"Expression '{expression}' returned {result!r} ({type(result).__name__}); "
            "expected an int or a float."
        )
    try:
        return check_value(result, f"result of '{expression}'")
    except BencherTypeMismatchError as error:
        raise BencherExpressionError(
            f"Expression '{expression}' returned a value that cannot be stored: {error}"
        ) from error


def _evaluate_tag(evaluator: Evaluator, expression: str, bindings: dict[str, Any]) -> int:
    result = evaluator.evaluate(expression, bindings)
    if not is_int_value(result):
        raise BencherExpressionError(
            f"Tag expression '{expression}' returned {result!r} ({type(result).__name__}); "
            "tag expressions must return an int."
        )
    return int(result)  # type: ignore[arg-type]
