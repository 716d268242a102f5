"""Numeric value model and confidence band vocabulary.

A measured value is either an ``int`` or a ``float``; the Python type is
the tag. Magnitudes only drive display scaling and are never persisted.
"""

from __future__ import annotations

from collections import Counter
from enum import Enum, IntEnum
import math
from typing import Iterable, Union

from core.errors import BencherConfidenceError, BencherTypeMismatchError

Value = Union[int, float]

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class Magnitude(Enum):
    """Display scale of a value, ordered from smallest to largest."""

    NANO = "n"
    MICRO = "μ"
    MILI = "m"
    NORMAL = ""
    KILO = "K"
    MEGA = "M"
    GIGA = "G"

    @property
    def prefix(self) -> str:
        """SI prefix printed in front of units."""
        return self.value


_MAGNITUDE_ORDER = tuple(Magnitude)

_FLOAT_SCALES = {
    Magnitude.NANO: (1e9, 2),
    Magnitude.MICRO: (1e6, 2),
    Magnitude.MILI: (1e3, 2),
    Magnitude.NORMAL: (1.0, 3),
    Magnitude.KILO: (1e-3, 1),
    Magnitude.MEGA: (1e-6, 1),
    Magnitude.GIGA: (1e-9, 1),
}


class Confidence(IntEnum):
    """Symmetric percentile band, identified by its lower percentile."""

    ONE = 1
    FIVE = 5
    TEN = 10
    TWENTY_FIVE = 25

    @classmethod
    def from_percentile(cls, percentile: int) -> "Confidence":
        """Map a raw percentile (lower or upper) onto its band.

        Raises:
            BencherConfidenceError: For percentiles outside the supported bands.
        """
        try:
            return cls(min(percentile, 100 - percentile))
        except ValueError as error:
            raise BencherConfidenceError(
                f"Invalid confidence level: {percentile}. "
                "Use one of 1, 5, 10, 25, 75, 90, 95 or 99."
            ) from error

    @property
    def lower(self) -> int:
        return int(self)

    @property
    def upper(self) -> int:
        return 100 - int(self)


SUPPORTED_CONFIDENCES: tuple[Confidence, ...] = tuple(Confidence)


def is_int_value(value: object) -> bool:
    """Return whether a value carries the integer tag."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_value(value: object) -> bool:
    return is_int_value(value) or isinstance(value, float)


def check_value(value: object, context: str) -> Value:
    """Validate that an object is a storable Int or Float value.

    Args:
        value: Candidate value.
        context: Human readable location used in errors.

    Returns:
        The value unchanged.

    Raises:
        BencherTypeMismatchError: If the value is not int/float, overflows int64,
            or is a NaN or infinite float.
    """
    if not is_value(value):
        raise BencherTypeMismatchError(
            f"Invalid {context}: expected int or float, got {type(value).__name__}."
        )
    if is_int_value(value) and not _INT64_MIN <= value <= _INT64_MAX:  # type: ignore[operator]
        raise BencherTypeMismatchError(
            f"Invalid {context}: integer {value} does not fit in 64 bits."
        )
    if isinstance(value, float) and not math.isfinite(value):
        raise BencherTypeMismatchError(
            f"Invalid {context}: {value} is not a finite float. "
            "Record a finite measurement instead."
        )
    return value  # type: ignore[return-value]


def same_tag(left: Value, right: Value) -> bool:
    return is_int_value(left) == is_int_value(right)


def magnitude_of(value: Value) -> Magnitude:
    """Classify a value into its display magnitude."""
    if is_int_value(value):
        absolute = abs(int(value))
        if absolute < 1_000:
            return Magnitude.NORMAL
        if absolute < 1_000_000:
            return Magnitude.KILO
        if absolute < 1_000_000_000:
            return Magnitude.MEGA
        return Magnitude.GIGA
    absolute_float = abs(float(value))
    if absolute_float == 0.0:
        return Magnitude.NORMAL
    if absolute_float < 1e-6:
        return Magnitude.NANO
    if absolute_float < 1e-3:
        return Magnitude.MICRO
    if absolute_float < 1.0:
        return Magnitude.MILI
    if absolute_float < 1e3:
        return Magnitude.NORMAL
    if absolute_float < 1e6:
        return Magnitude.KILO
    if absolute_float < 1e9:
        return Magnitude.MEGA
    return Magnitude.GIGA


def choose_magnitude(values: Iterable[Value]) -> Magnitude:
    """Pick the most common magnitude, ties going to the larger one.

    Args:
        values: Central values of every displayed point.

    Returns:
        Chosen magnitude; plain when there are no values.
    """
    counts = Counter(magnitude_of(value) for value in values)
    if not counts:
        return Magnitude.NORMAL
    best = max(counts.values())
    for magnitude in reversed(_MAGNITUDE_ORDER):
        if counts[magnitude] == best:
            return magnitude
    return Magnitude.NORMAL


def display_with_magnitude(value: Value, magnitude: Magnitude) -> str:
    """Render a value scaled to a magnitude.

    Integers scaled down print one decimal; integers scaled up stay integral.
    """
    if is_int_value(value):
        int_value = int(value)
        if magnitude is Magnitude.NANO:
            return str(int_value * 1_000_000_000)
        if magnitude is Magnitude.MICRO:
            return str(int_value * 1_000_000)
        if magnitude is Magnitude.MILI:
            return str(int_value * 1_000)
        if magnitude is Magnitude.NORMAL:
            return str(int_value)
    scale, digits = _FLOAT_SCALES[magnitude]
    return f"{float(value) * scale:.{digits}f}"
