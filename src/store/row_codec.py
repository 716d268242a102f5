"""Tagged value encoding for store rows.

Exactly one of ``{axis}_int`` and ``{axis}_float`` is populated per value,
and band bounds live in the matching ``{axis}_{kind}_{percentile}``
columns. The null pattern encodes the int/float tag on disk.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from core.errors import BencherStorageError
from core.types import BandMap, LinearDatapoint, XYDatapoint
from core.values import SUPPORTED_CONFIDENCES, Value, is_int_value
from store.schema import value_columns


def encode_value(axis: str, value: Value, bands: BandMap) -> dict[str, Any]:
    """Encode one value and its bands into column assignments.

    Args:
        axis: Column prefix.
        value: Central value.
        bands: Confidence bands sharing the value's tag.

    Returns:
        Mapping covering every column of the axis, unused ones as None.
    """
    columns: dict[str, Any] = {column: None for column in value_columns(axis)}
    kind = "int" if is_int_value(value) else "float"
    columns[f"{axis}_{kind}"] = value
    for confidence, (lower, upper) in bands.items():
        columns[f"{axis}_{kind}_{confidence.lower}"] = lower
        columns[f"{axis}_{kind}_{confidence.upper}"] = upper
    return columns


def decode_value(row: sqlite3.Row, axis: str) -> tuple[Value, BandMap]:
    """Decode one axis from a result row.

    Raises:
        BencherStorageError: If neither value column is populated.
    """
    if row[f"{axis}_int"] is not None:
        kind = "int"
        value: Value = int(row[f"{axis}_int"])
    elif row[f"{axis}_float"] is not None:
        kind = "float"
        value = float(row[f"{axis}_float"])
    else:
        raise BencherStorageError(
            f"Corrupt row: column '{axis}' has neither an int nor a float value."
        )
    bands = {}
    for confidence in SUPPORTED_CONFIDENCES:
        lower = row[f"{axis}_{kind}_{confidence.lower}"]
        upper = row[f"{axis}_{kind}_{confidence.upper}"]
        if lower is not None and upper is not None:
            bands[confidence] = (lower, upper) if kind == "int" else (float(lower), float(upper))
    return value, bands


def encode_linear(datapoint: LinearDatapoint) -> dict[str, Any]:
    return encode_value("v", datapoint.v, datapoint.confidence)


def decode_linear(row: sqlite3.Row) -> LinearDatapoint:
    v, bands = decode_value(row, "v")
    return LinearDatapoint(group=row["v_group"], v=v, confidence=bands)


def encode_xy(datapoint: XYDatapoint) -> dict[str, Any]:
    columns = encode_value("x", datapoint.x, datapoint.x_confidence)
    columns.update(encode_value("y", datapoint.y, datapoint.y_confidence))
    return columns


def decode_xy(row: sqlite3.Row) -> XYDatapoint:
    x, x_bands = decode_value(row, "x")
    y, y_bands = decode_value(row, "y")
    return XYDatapoint(x=x, y=y, x_confidence=x_bands, y_confidence=y_bands, tag=int(row["tag"]))
