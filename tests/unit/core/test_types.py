"""Unit tests for datapoint models."""

from __future__ import annotations

import pytest

from core.errors import BencherConfidenceError, BencherTypeMismatchError
from core.types import LinearDatapoint, XYDatapoint
from core.values import Confidence


def test_linear_datapoint_rejects_mismatched_band_tag() -> None:
    """Float bounds on an int value should fail."""
    with pytest.raises(BencherTypeMismatchError):
        LinearDatapoint(group="get", v=12, confidence={Confidence.FIVE: (1.0, 20.0)})


def test_with_confidence_adds_band() -> None:
    """Adding a band should keep the original point unchanged."""
    point = LinearDatapoint(group="get", v=12)

    banded = point.with_confidence(Confidence.TEN, 10, 14)

    assert banded.get_confidence(Confidence.TEN) == (10, 14) and point.confidence == {}


def test_xy_datapoint_string_includes_tag_and_bands() -> None:
    """String form should show the tag and first band per axis."""
    point = XYDatapoint(x=1, y=2.5, y_confidence={Confidence.ONE: (2.0, 3.0)}, tag=4)

    assert str(point) == "[4](1, 2.5 [2.0;3.0])"


def test_xy_linear_projection_keeps_tag() -> None:
    """Projecting an axis should carry its bands and the tag."""
    point = XYDatapoint(x=1, y=2, x_confidence={Confidence.FIVE: (0, 2)}, tag=3)

    projected = point.x_linear("line")

    assert projected == LinearDatapoint(
        group="line", v=1, confidence={Confidence.FIVE: (0, 2)}, tag=3
    )


def test_raw_percentile_keys_map_to_their_band() -> None:
    """An upper percentile key should land on its symmetric band."""
    point = LinearDatapoint(group="get", v=12, confidence={95: (10, 14)})

    assert point.confidence == {Confidence.FIVE: (10, 14)}
    assert isinstance(next(iter(point.confidence)), Confidence)


def test_xy_raw_percentile_keys_map_per_axis() -> None:
    """Raw percentile keys should be normalized on both axes."""
    point = XYDatapoint(x=1, y=2.0, x_confidence={1: (0, 2)}, y_confidence={75: (1.5, 2.5)})

    assert point.get_x_confidence(Confidence.ONE) == (0, 2)
    assert point.get_y_confidence(Confidence.TWENTY_FIVE) == (1.5, 2.5)


@pytest.mark.parametrize("key", [7, 50, "5"])
def test_unsupported_band_key_raises_confidence_error(key: object) -> None:
    """Keys outside the supported percentiles should be rejected."""
    with pytest.raises(BencherConfidenceError):
        LinearDatapoint(group="get", v=12, confidence={key: (10, 14)})
