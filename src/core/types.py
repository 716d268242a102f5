"""Shared typed models.

This module defines immutable data models used by the store, the
virtual experiment engine, the SDK, and the CLI to keep interfaces
explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Mapping, Union

from core.errors import BencherConfidenceError, BencherTypeMismatchError
from core.values import (
    SUPPORTED_CONFIDENCES,
    Confidence,
    Magnitude,
    Value,
    check_value,
    is_int_value,
    magnitude_of,
    same_tag,
)

Band = tuple[Value, Value]
BandMap = Mapping[Confidence, Band]


def _normalize_bands(
    central: Value,
    bands: Mapping[int, Band],
    axis: str,
) -> dict[Confidence, Band]:
    """Validate bands and key them by canonical band.

    Raw percentiles are accepted as keys, so 95 lands on the 5/95 band.

    Raises:
        BencherConfidenceError: For a key outside the supported bands.
        BencherTypeMismatchError: For bounds whose tag disagrees with the value.
    """
    check_value(central, f"{axis} value")
    normalized: dict[Confidence, Band] = {}
    for key, (lower, upper) in bands.items():
        if not is_int_value(key):
            raise BencherConfidenceError(
                f"Invalid confidence level {key!r} on axis '{axis}'. "
                "Use one of 1, 5, 10, 25, 75, 90, 95 or 99."
            )
        confidence = Confidence.from_percentile(key)
        check_value(lower, f"{axis} {confidence.lower}% bound")
        check_value(upper, f"{axis} {confidence.upper}% bound")
        if not (same_tag(central, lower) and same_tag(central, upper)):
            raise BencherTypeMismatchError(
                f"Point type and error bar type do not match on axis '{axis}': "
                f"value {central!r} has band {confidence.lower}/{confidence.upper} "
                f"({lower!r}, {upper!r})."
            )
        normalized[confidence] = (lower, upper)
    return normalized


def _first_band(bands: BandMap) -> Band | None:
    for confidence in SUPPORTED_CONFIDENCES:
        if confidence in bands:
            return bands[confidence]
    return None


@dataclass(frozen=True)
class LinearDatapoint:
    """One column of a histogram group.

    Example: latency per operation for systems A and B has the points
    A/get, A/put, B/get and B/put; ``group`` is get or put.

    Attributes:
        group: Histogram group label, the key within a set.
        v: Central value.
        confidence: Band to (lower, upper) bounds, same tag as ``v``.
        tag: Optional position used by expressions.
    """

    group: str
    v: Value
    confidence: BandMap = field(default_factory=dict)
    tag: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", _normalize_bands(self.v, self.confidence, "v"))

    def with_tag(self, tag: int) -> "LinearDatapoint":
        return replace(self, tag=tag)

    def with_confidence(
        self,
        confidence: Confidence,
        lower: Value,
        upper: Value,
    ) -> "LinearDatapoint":
        """Return a copy with one band added or replaced.

        Raises:
            BencherTypeMismatchError: If the bounds disagree with the value tag.
        """
        bands = dict(self.confidence)
        bands[confidence] = (lower, upper)
        return replace(self, confidence=bands)

    def get_confidence(self, confidence: Confidence) -> Band | None:
        return self.confidence.get(confidence)

    @property
    def magnitude(self) -> Magnitude:
        return magnitude_of(self.v)

    def __str__(self) -> str:
        band = _first_band(self.confidence)
        if band is None:
            return f"{self.group}: {self.v}"
        return f"{self.group}: {self.v} ([{band[0]};{band[1]}])"


@dataclass(frozen=True)
class XYDatapoint:
    """One point on a line.

    Attributes:
        x: Central x value.
        y: Central y value.
        x_confidence: Bands for x, same tag as ``x``.
        y_confidence: Bands for y, same tag as ``y``.
        tag: Key of the point within its line.
    """

    x: Value
    y: Value
    x_confidence: BandMap = field(default_factory=dict)
    y_confidence: BandMap = field(default_factory=dict)
    tag: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "x_confidence", _normalize_bands(self.x, self.x_confidence, "x")
        )
        object.__setattr__(
            self, "y_confidence", _normalize_bands(self.y, self.y_confidence, "y")
        )

    def with_tag(self, tag: int) -> "XYDatapoint":
        return replace(self, tag=tag)

    def with_x_confidence(
        self,
        confidence: Confidence,
        lower: Value,
        upper: Value,
    ) -> "XYDatapoint":
        bands = dict(self.x_confidence)
        bands[confidence] = (lower, upper)
        return replace(self, x_confidence=bands)

    def with_y_confidence(
        self,
        confidence: Confidence,
        lower: Value,
        upper: Value,
    ) -> "XYDatapoint":
        bands = dict(self.y_confidence)
        bands[confidence] = (lower, upper)
        return replace(self, y_confidence=bands)

    def get_x_confidence(self, confidence: Confidence) -> Band | None:
        return self.x_confidence.get(confidence)

    def get_y_confidence(self, confidence: Confidence) -> Band | None:
        return self.y_confidence.get(confidence)

    def x_linear(self, group: str) -> LinearDatapoint:
        """Project the x axis onto a linear point."""
        return LinearDatapoint(
            group=group, v=self.x, confidence=dict(self.x_confidence), tag=self.tag
        )

    def y_linear(self, group: str) -> LinearDatapoint:
        """Project the y axis onto a linear point."""
        return LinearDatapoint(
            group=group, v=self.y, confidence=dict(self.y_confidence), tag=self.tag
        )

    @property
    def magnitudes(self) -> tuple[Magnitude, Magnitude]:
        return magnitude_of(self.x), magnitude_of(self.y)

    def __str__(self) -> str:
        tag = "" if self.tag is None else str(self.tag)
        x_band = _first_band(self.x_confidence)
        y_band = _first_band(self.y_confidence)
        x_text = str(self.x) if x_band is None else f"{self.x} [{x_band[0]};{x_band[1]}]"
        y_text = str(self.y) if y_band is None else f"{self.y} [{y_band[0]};{y_band[1]}]"
        return f"[{tag}]({x_text}, {y_text})"


@dataclass(frozen=True)
class LinearExperiment:
    """Display metadata shared by every set of a histogram experiment type."""

    exp_type: str
    horizontal_label: str
    v_label: str
    v_units: str


@dataclass(frozen=True)
class XYExperiment:
    """Display metadata shared by every line of a line-graph experiment type."""

    exp_type: str
    x_label: str
    x_units: str
    y_label: str
    y_units: str


@dataclass(frozen=True)
class VirtualLinearExperiment:
    """Histogram derived from another experiment type by expressions.

    Attributes:
        source_exp_type: Linear experiment type (concrete or virtual) to read.
        v_operation: Expression for the new value; identity when omitted.
        tag_operation: Expression for the new tag; identity when omitted.
    """

    exp_type: str
    source_exp_type: str
    horizontal_label: str
    v_label: str
    v_units: str
    v_operation: str | None = None
    tag_operation: str | None = None


@dataclass(frozen=True)
class VirtualXYExperiment:
    """Line graph derived from another experiment type by expressions.

    The source may be linear, in which case groups become lines.
    """

    exp_type: str
    source_exp_type: str
    x_label: str
    x_units: str
    y_label: str
    y_units: str
    x_operation: str | None = None
    y_operation: str | None = None
    tag_operation: str | None = None


ExperimentDescriptor = Union[
    LinearExperiment,
    XYExperiment,
    VirtualLinearExperiment,
    VirtualXYExperiment,
]


@dataclass(frozen=True)
class ExperimentCatalog:
    """Experiment descriptors loaded from the experiment config file.

    Attributes:
        default_database: Default store path resolved against the config dir.
        linear_experiments: Concrete histogram experiment types.
        xy_experiments: Concrete line experiment types.
        virtual_linear_experiments: Derived histogram experiment types.
        virtual_xy_experiments: Derived line experiment types.
    """

    default_database: str
    linear_experiments: tuple[LinearExperiment, ...] = ()
    xy_experiments: tuple[XYExperiment, ...] = ()
    virtual_linear_experiments: tuple[VirtualLinearExperiment, ...] = ()
    virtual_xy_experiments: tuple[VirtualXYExperiment, ...] = ()

    def find(self, exp_type: str) -> ExperimentDescriptor | None:
        """Find any descriptor by experiment type."""
        for descriptors in (
            self.linear_experiments,
            self.xy_experiments,
            self.virtual_linear_experiments,
            self.virtual_xy_experiments,
        ):
            for descriptor in descriptors:
                if descriptor.exp_type == exp_type:
                    return descriptor
        return None

    def exp_types(self) -> tuple[str, ...]:
        return tuple(
            descriptor.exp_type
            for descriptors in (
                self.linear_experiments,
                self.xy_experiments,
                self.virtual_linear_experiments,
                self.virtual_xy_experiments,
            )
            for descriptor in descriptors
        )


@dataclass(frozen=True)
class ExperimentStatus:
    """Row counts for one stored code."""

    database: str
    exp_type: str
    exp_label: str
    exp_code: str
    n_datapoints: int
    n_active_datapoints: int


@dataclass(frozen=True)
class LinearExperimentInfo:
    """Stored linear code joined with its descriptor display metadata."""

    database: str
    exp_type: str
    exp_label: str
    exp_code: str
    horizontal_label: str
    v_label: str
    v_units: str


@dataclass(frozen=True)
class XYExperimentInfo:
    """Stored xy code joined with its descriptor display metadata."""

    database: str
    exp_type: str
    exp_label: str
    exp_code: str
    x_label: str
    x_units: str
    y_label: str
    y_units: str


@dataclass(frozen=True)
class LinearExperimentSet:
    """All groups stored under one set label, e.g. system A."""

    set_label: str
    values: tuple[LinearDatapoint, ...]


@dataclass(frozen=True)
class XYExperimentLine:
    """All points of one labelled line."""

    line_label: str
    values: tuple[XYDatapoint, ...]


@dataclass(frozen=True)
class LinearExperimentView:
    """Resolved histogram ready for display or export."""

    exp_type: str
    horizontal_label: str
    v_label: str
    v_units: str
    sets: tuple[LinearExperimentSet, ...]
    magnitude: Magnitude


@dataclass(frozen=True)
class XYExperimentView:
    """Resolved line graph ready for display or export."""

    exp_type: str
    x_label: str
    x_units: str
    y_label: str
    y_units: str
    lines: tuple[XYExperimentLine, ...]
    x_magnitude: Magnitude
    y_magnitude: Magnitude
