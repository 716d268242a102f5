"""Unit tests for datapoint construction from samples."""

from __future__ import annotations

import pytest

from core.errors import BencherConfigError, BencherTypeMismatchError
from core.values import Confidence
from stats.samples import linear_from_sample, xy_from_samples


def test_linear_from_sample_builds_all_bands() -> None:
    """A sample should produce the median and four percentile bands."""
    point = linear_from_sample("get", list(reversed(range(100))))

    assert point is not None
    assert point.v == 50
    assert point.get_confidence(Confidence.ONE) == (1, 99)
    assert point.get_confidence(Confidence.TWENTY_FIVE) == (25, 75)


def test_linear_from_sample_average_centre() -> None:
    """The avg centre should use the truncated integer mean."""
    point = linear_from_sample("get", [1, 2, 4], centre="avg")

    assert point is not None and point.v == 2


def test_linear_from_empty_sample_is_none() -> None:
    """An empty sample should yield no datapoint."""
    assert linear_from_sample("get", []) is None


def test_linear_from_sample_rejects_mixed_types() -> None:
    """Mixing ints and floats in one sample should fail."""
    with pytest.raises(BencherTypeMismatchError):
        linear_from_sample("get", [1, 2.0])


def test_linear_from_sample_rejects_unknown_centre() -> None:
    """Only median and avg centres should be accepted."""
    with pytest.raises(BencherConfigError):
        linear_from_sample("get", [1], centre="mode")


def test_xy_from_samples_bands_each_axis() -> None:
    """X and y samples should each carry their own bands."""
    point = xy_from_samples([1, 2, 3], [0.5, 1.5, 2.5])

    assert point is not None
    assert (point.x, point.y) == (3, 2.5)
    assert point.get_y_confidence(Confidence.FIVE) == (1.5, 2.5)


def test_xy_from_samples_with_empty_axis_is_none() -> None:
    """An empty axis sample should yield no datapoint."""
    assert xy_from_samples([1], []) is None
