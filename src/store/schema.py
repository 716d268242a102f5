"""Store table layout and connection handling.

This module owns the sqlite DDL for the three store tables, the
structural schema check run before federating a store, and the
translation of sqlite failures into Bencher storage errors.
"""

from __future__ import annotations

from contextlib import contextmanager
import sqlite3
from typing import Iterator

from core.constants import (
    EXPERIMENTS_TABLE,
    LINEAR_RESULTS_TABLE,
    LOWER_PERCENTILES,
    REQUIRED_TABLES,
    UPPER_PERCENTILES,
    XY_RESULTS_TABLE,
)
from core.errors import BencherSchemaError, BencherStorageError


def value_columns(prefix: str) -> tuple[str, ...]:
    """Return every column storing one tagged value and its bands.

    Args:
        prefix: Axis name, e.g. ``v``, ``x`` or ``y``.

    Returns:
        ``{prefix}_int`` and its band columns, then the float variants.
    """
    columns: list[str] = []
    for kind in ("int", "float"):
        columns.append(f"{prefix}_{kind}")
        columns.extend(f"{prefix}_{kind}_{p}" for p in LOWER_PERCENTILES)
        columns.extend(f"{prefix}_{kind}_{p}" for p in UPPER_PERCENTILES)
    return tuple(columns)


def _column_ddl(prefix: str) -> str:
    rows = []
    for column in value_columns(prefix):
        sql_type = "integer" if "_int" in column else "real"
        rows.append(f"{column} {sql_type}")
    return ",\n    ".join(rows)


_EXPERIMENTS_DDL = f"""
create table if not exists {EXPERIMENTS_TABLE} (
    experiment_code text primary key,
    experiment_type text not null,
    experiment_label text not null
)
"""

_LINEAR_RESULTS_DDL = f"""
create table if not exists {LINEAR_RESULTS_TABLE} (
    experiment_code text not null,
    v_group text not null,
    version integer not null,
    {_column_ddl("v")},
    primary key (experiment_code, v_group, version)
)
"""

_XY_RESULTS_DDL = f"""
create table if not exists {XY_RESULTS_TABLE} (
    experiment_code text not null,
    tag integer not null,
    version integer not null,
    {_column_ddl("x")},
    {_column_ddl("y")},
    primary key (experiment_code, tag, version)
)
"""


@contextmanager
def storage_errors(action: str, store: str) -> Iterator[None]:
    """Translate sqlite failures raised inside the block.

    Args:
        action: Short description of the attempted operation.
        store: Store path named in the error.

    Raises:
        BencherStorageError: For sqlite errors and out-of-range integers.
    """
    try:
        yield
    except (sqlite3.Error, OverflowError) as error:
        raise BencherStorageError(
            f"Failed to {action} in store {store}: {error}. "
            "Check that the store file is a writable bencher database."
        ) from error


def connect(path: str) -> sqlite3.Connection:
    """Open a sqlite connection with named-column rows."""
    with storage_errors("open connection", path):
        connection = sqlite3.connect(path)
    connection.row_factory = sqlite3.Row
    return connection


def create_schema(connection: sqlite3.Connection, store: str) -> None:
    """Create the store tables when they do not exist yet."""
    with storage_errors("create schema", store), connection:
        connection.execute(_EXPERIMENTS_DDL)
        connection.execute(_LINEAR_RESULTS_DDL)
        connection.execute(_XY_RESULTS_DDL)


def check_schema(connection: sqlite3.Connection, store: str) -> None:
    """Verify that every required table exists.

    Args:
        connection: Open store connection.
        store: Store path named in errors.

    Raises:
        BencherSchemaError: For the first missing table.
    """
    with storage_errors("inspect schema", store):
        rows = connection.execute(
            "select name from sqlite_master where type = 'table'"
        ).fetchall()
    present = {row[0] for row in rows}
    for table in REQUIRED_TABLES:
        if table not in present:
            raise BencherSchemaError(table, store)
