"""Unit tests for per-point expression mapping."""

from __future__ import annotations

import pytest

from core.errors import BencherExpressionError
from core.types import LinearDatapoint, XYDatapoint
from core.values import Confidence
from virtual.evaluator import SimpleEvaluator
from virtual.transforms import (
    Aggregates,
    LinearMapping,
    XYMapping,
    map_linear,
    map_linear_to_xy,
    map_xy,
)

_EVALUATOR = SimpleEvaluator()


def test_map_linear_propagates_bands_through_expression() -> None:
    """Band bounds should be mapped by the value expression."""
    point = LinearDatapoint(group="get", v=10, confidence={Confidence.FIVE: (8, 12)}, tag=0)

    mapped = map_linear(point, LinearMapping("v * 2", "tag"), Aggregates(), _EVALUATOR)

    assert mapped.v == 20 and mapped.get_confidence(Confidence.FIVE) == (16, 24)


def test_non_monotonic_expression_inverts_bounds() -> None:
    """Decreasing expressions produce lower > upper; bounds are not swapped."""
    point = LinearDatapoint(group="get", v=10, confidence={Confidence.ONE: (5, 20)}, tag=0)

    mapped = map_linear(point, LinearMapping("100 - v", "tag"), Aggregates(), _EVALUATOR)

    assert mapped.get_confidence(Confidence.ONE) == (95, 80)


def test_tag_expression_must_return_int() -> None:
    """A float tag result should fail the mapping."""
    point = LinearDatapoint(group="get", v=10, tag=1)

    with pytest.raises(BencherExpressionError):
        map_linear(point, LinearMapping("v", "tag / 2"), Aggregates(), _EVALUATOR)


def test_value_expression_must_return_number() -> None:
    """Boolean results are not values."""
    point = LinearDatapoint(group="get", v=10, tag=1)

    with pytest.raises(BencherExpressionError):
        map_linear(point, LinearMapping("v > 3", "tag"), Aggregates(), _EVALUATOR)


@pytest.mark.parametrize(
    ("v", "expression"),
    [(10, "v * 2 ** 62"), (10.0, "v * 1e308")],
)
def test_value_expression_outside_storable_range_is_expression_error(
    v: int | float,
    expression: str,
) -> None:
    """Results past 64 bits or past the float range cannot be coerced."""
    point = LinearDatapoint(group="get", v=v, tag=1)

    with pytest.raises(BencherExpressionError):
        map_linear(point, LinearMapping(expression, "tag"), Aggregates(), _EVALUATOR)


def test_map_xy_keeps_other_axis_central_for_bands() -> None:
    """X bands should substitute x only, y bands y only."""
    point = XYDatapoint(
        x=2,
        y=10,
        x_confidence={Confidence.TEN: (1, 3)},
        y_confidence={Confidence.TEN: (9, 11)},
        tag=0,
    )

    mapped = map_xy(
        point,
        XYMapping("x * y", "y - x", "tag + 1"),
        Aggregates(),
        Aggregates(),
        _EVALUATOR,
    )

    assert (mapped.x, mapped.y, mapped.tag) == (20, 8, 1)
    assert mapped.get_x_confidence(Confidence.TEN) == (10, 30)
    assert mapped.get_y_confidence(Confidence.TEN) == (7, 9)


def test_map_xy_exposes_per_axis_aggregates() -> None:
    """Xy expressions should see x and y aggregates separately."""
    point = XYDatapoint(x=4, y=50, tag=0)

    mapped = map_xy(
        point,
        XYMapping("x - xmin", "y / ymax", "tag"),
        Aggregates.of([2, 4]),
        Aggregates.of([50, 100]),
        _EVALUATOR,
    )

    assert (mapped.x, mapped.y) == (2, 0.5)


def test_map_linear_to_xy_feeds_bands_to_both_axes() -> None:
    """Each v band should yield an x band and a y band."""
    point = LinearDatapoint(group="get", v=10, confidence={Confidence.FIVE: (8, 12)}, tag=3)

    mapped = map_linear_to_xy(point, XYMapping("tag", "v", "tag"), Aggregates(), _EVALUATOR)

    assert (mapped.x, mapped.y) == (3, 10)
    assert mapped.get_x_confidence(Confidence.FIVE) == (3, 3)
    assert mapped.get_y_confidence(Confidence.FIVE) == (8, 12)


def test_aggregates_of_integer_values_truncate_average() -> None:
    """Aggregates should follow the integer averaging rule."""
    assert Aggregates.of([12, 42, 5]) == Aggregates(minimum=5, maximum=42, average=19)
