"""Build datapoints from raw benchmark samples.

A sample is summarized by its centre (median or average) plus one band
per supported confidence level.
"""

from __future__ import annotations

from typing import Sequence

from core.constants import DEFAULT_SAMPLE_CENTRE, SAMPLE_CENTRES
from core.errors import BencherConfigError, BencherTypeMismatchError
from core.types import BandMap, LinearDatapoint, XYDatapoint
from core.values import SUPPORTED_CONFIDENCES, Value, check_value, is_int_value
from stats.statistics import average, median, percentile


def linear_from_sample(
    group: str,
    sample: Sequence[Value],
    centre: str = DEFAULT_SAMPLE_CENTRE,
) -> LinearDatapoint | None:
    """Summarize one sample into a linear datapoint.

    Args:
        group: Group label of the resulting point.
        sample: Raw measurements, in any order.
        centre: ``median`` or ``avg``.

    Returns:
        Datapoint with all four bands, or None for an empty sample.

    Raises:
        BencherConfigError: If the centre is unknown.
        BencherTypeMismatchError: If the sample mixes ints and floats.
    """
    summary = _summarize(sample, centre, "sample")
    if summary is None:
        return None
    v, bands = summary
    return LinearDatapoint(group=group, v=v, confidence=bands)


def xy_from_samples(
    x_sample: Sequence[Value],
    y_sample: Sequence[Value],
    centre: str = DEFAULT_SAMPLE_CENTRE,
) -> XYDatapoint | None:
    """Summarize paired x and y samples into one xy datapoint.

    Returns:
        Datapoint with bands on both axes, or None if either sample is empty.
    """
    x_summary = _summarize(x_sample, centre, "x sample")
    y_summary = _summarize(y_sample, centre, "y sample")
    if x_summary is None or y_summary is None:
        return None
    return XYDatapoint(
        x=x_summary[0],
        y=y_summary[0],
        x_confidence=x_summary[1],
        y_confidence=y_summary[1],
    )


def _summarize(
    sample: Sequence[Value],
    centre: str,
    context: str,
) -> tuple[Value, BandMap] | None:
    if centre not in SAMPLE_CENTRES:
        raise BencherConfigError(
            f"Unsupported sample centre '{centre}'. Use one of: {', '.join(SAMPLE_CENTRES)}."
        )
    if not sample:
        return None
    for value in sample:
        check_value(value, context)
    int_count = sum(1 for value in sample if is_int_value(value))
    if 0 < int_count < len(sample):
        raise BencherTypeMismatchError(
            f"Invalid {context}: values mix int and float. Record one numeric type per sample."
        )
    ordered = sorted(sample)
    central = median(ordered) if centre == "median" else average(ordered)
    bands = {
        confidence: (percentile(ordered, confidence.lower), percentile(ordered, confidence.upper))
        for confidence in SUPPORTED_CONFIDENCES
    }
    return central, bands
