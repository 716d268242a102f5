"""Nearest-rank percentile and average helpers.

All percentile functions expect a sample already sorted ascending.
"""

from __future__ import annotations

import math
from typing import Sequence

from core.constants import MEDIAN_PERCENTILE
from core.errors import BencherNotFoundError
from core.values import Value, is_int_value


def percentile(sorted_sample: Sequence[Value], p: int) -> Value:
    """Return the nearest-rank percentile of a sorted sample.

    The index is ``ceil(n * p / 100)``, clamped to the last element.

    Args:
        sorted_sample: Ascending sample.
        p: Percentile in [0, 100].

    Returns:
        Sample element at the computed rank.

    Raises:
        BencherNotFoundError: If the sample is empty.
    """
    _require_values(sorted_sample)
    index = math.ceil(len(sorted_sample) * p / 100)
    return sorted_sample[min(index, len(sorted_sample) - 1)]


def median(sorted_sample: Sequence[Value]) -> Value:
    return percentile(sorted_sample, MEDIAN_PERCENTILE)


def average(sample: Sequence[Value]) -> Value:
    """Return the arithmetic mean of a sample.

    Integer samples are averaged with truncation toward zero so the
    result keeps the integer tag; any float element yields a float mean.

    Raises:
        BencherNotFoundError: If the sample is empty.
    """
    _require_values(sample)
    if all(is_int_value(value) for value in sample):
        total = sum(int(value) for value in sample)
        quotient = abs(total) // len(sample)
        return quotient if total >= 0 else -quotient
    return math.fsum(float(value) for value in sample) / len(sample)


def _require_values(sample: Sequence[Value]) -> None:
    if not sample:
        raise BencherNotFoundError(
            "Cannot compute statistics of an empty sample. Provide at least one value."
        )
