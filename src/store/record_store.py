"""Versioned record store over one sqlite file.

This module persists experiment registrations and append-only result
rows. Every write to a key inserts a new row with the next version;
reverting only flips version signs so the full history stays readable.
"""

from __future__ import annotations

from dataclasses import dataclass
import sqlite3
from types import TracebackType
from typing import Any, Sequence

from core.constants import (
    EXPERIMENTS_TABLE,
    LINEAR_RESULTS_TABLE,
    MEMORY_STORE_PATH,
    XY_RESULTS_TABLE,
)
from core.errors import BencherDuplicateError, BencherNotFoundError
from core.logging_config import get_logger
from core.types import ExperimentStatus, LinearDatapoint, XYDatapoint
from store.row_codec import decode_linear, decode_xy, encode_linear, encode_xy
from store.schema import connect, create_schema, storage_errors

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class StoredExperiment:
    """One row of the experiments table."""

    code: str
    exp_type: str
    label: str


@dataclass(frozen=True)
class _ResultTable:
    name: str
    key_column: str


_LINEAR = _ResultTable(LINEAR_RESULTS_TABLE, "v_group")
_XY = _ResultTable(XY_RESULTS_TABLE, "tag")
_RESULT_TABLES = (_LINEAR, _XY)


class RecordStore:
    """One physical store with an exclusively owned connection.

    Linear rows are keyed by ``(code, group)`` and xy rows by
    ``(code, tag)``. The current value of a key is the row holding the
    algebraically largest version, whatever its sign.
    """

    def __init__(self, connection: sqlite3.Connection, path: str) -> None:
        """Wrap an open connection.

        Args:
            connection: Connection owned by this store from now on.
            path: Store location used in listings and errors.
        """
        connection.row_factory = sqlite3.Row
        self._connection = connection
        self._path = path

    @classmethod
    def open(cls, path: str) -> "RecordStore":
        """Open a store file, creating the tables when missing.

        Args:
            path: Filesystem path, or ``:memory:``.

        Returns:
            Ready-to-use store.

        Raises:
            BencherStorageError: If sqlite cannot open or initialize the file.
        """
        store = cls(connect(path), path)
        create_schema(store.connection, path)
        return store

    @classmethod
    def in_memory(cls) -> "RecordStore":
        return cls.open(MEMORY_STORE_PATH)

    @property
    def path(self) -> str:
        return self._path

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "RecordStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def add_experiment(self, code: str, exp_type: str, label: str) -> bool:
        """Register a code under an experiment type and label.

        Args:
            code: Globally unique identifier of the set or line.
            exp_type: Experiment type the code belongs to.
            label: Human label displayed for the set or line.

        Returns:
            True when the code was created, False when it already matched.

        Raises:
            BencherDuplicateError: If the code exists with another type or label.
        """
        existing = self.find_experiment(code)
        if existing is not None:
            if existing.exp_type != exp_type or existing.label != label:
                raise BencherDuplicateError(
                    f"Experiment code '{code}' already exists with type "
                    f"'{existing.exp_type}' and label '{existing.label}'. "
                    "Use a new code or the original type and label."
                )
            return False
        with storage_errors("register experiment", self._path), self._connection:
            self._connection.execute(
                f"insert into {EXPERIMENTS_TABLE} "
                "(experiment_code, experiment_type, experiment_label) values (?, ?, ?)",
                (code, exp_type, label),
            )
        _LOGGER.info(
            "experiment_registered",
            store=self._path,
            exp_code=code,
            exp_type=exp_type,
            exp_label=label,
        )
        return True

    def find_experiment(self, code: str) -> StoredExperiment | None:
        with storage_errors("look up experiment", self._path):
            row = self._connection.execute(
                f"select experiment_code, experiment_type, experiment_label "
                f"from {EXPERIMENTS_TABLE} where experiment_code = ?",
                (code,),
            ).fetchone()
        if row is None:
            return None
        return StoredExperiment(code=row[0], exp_type=row[1], label=row[2])

    def get_experiment(self, code: str) -> StoredExperiment:
        """Return a registered experiment.

        Raises:
            BencherNotFoundError: If the code is unknown to this store.
        """
        experiment = self.find_experiment(code)
        if experiment is None:
            raise BencherNotFoundError(
                f"Experiment code '{code}' does not exist in store {self._path}. "
                "Register it with add-set or add-line first."
            )
        return experiment

    def list_experiments(self, exp_type: str | None = None) -> tuple[StoredExperiment, ...]:
        """List registered experiments ordered by code.

        Args:
            exp_type: Restrict to one experiment type when given.
        """
        query = (
            f"select experiment_code, experiment_type, experiment_label from {EXPERIMENTS_TABLE}"
        )
        params: tuple[Any, ...] = ()
        if exp_type is not None:
            query += " where experiment_type = ?"
            params = (exp_type,)
        with storage_errors("list experiments", self._path):
            rows = self._connection.execute(query + " order by experiment_code", params).fetchall()
        return tuple(StoredExperiment(code=row[0], exp_type=row[1], label=row[2]) for row in rows)

    def list_codes(self) -> tuple[str, ...]:
        return tuple(experiment.code for experiment in self.list_experiments())

    def add_linear(self, code: str, datapoint: LinearDatapoint) -> int:
        """Append a new version for the point's group.

        Returns:
            Version assigned to the new row.
        """
        self.get_experiment(code)
        return self._insert(_LINEAR, code, datapoint.group, encode_linear(datapoint))

    def add_xy(self, code: str, datapoint: XYDatapoint) -> int:
        """Append a new version for the point's tag.

        An untagged point takes the next unused tag of the line.

        Returns:
            Tag the point was stored under.
        """
        self.get_experiment(code)
        tag = datapoint.tag if datapoint.tag is not None else self._next_tag(code)
        self._insert(_XY, code, tag, encode_xy(datapoint))
        return tag

    def current_linear(self, code: str) -> tuple[LinearDatapoint, ...]:
        """Return one point per group, ordered by group."""
        return tuple(decode_linear(row) for row in self._current(_LINEAR, code))

    def current_xy(self, code: str) -> tuple[XYDatapoint, ...]:
        """Return one point per tag, ordered by tag."""
        return tuple(decode_xy(row) for row in self._current(_XY, code))

    def revert_linear(self, code: str, group: str, to_version: int | None = None) -> None:
        self._revert(_LINEAR, code, group, to_version)

    def revert_xy(self, code: str, tag: int, to_version: int | None = None) -> None:
        self._revert(_XY, code, tag, to_version)

    def linear_version(self, code: str, group: str) -> int:
        return self._version(_LINEAR, code, group)

    def xy_version(self, code: str, tag: int) -> int:
        return self._version(_XY, code, tag)

    def linear_versions(self, code: str, group: str) -> tuple[int, ...]:
        return self._versions(_LINEAR, code, group)

    def xy_versions(self, code: str, tag: int) -> tuple[int, ...]:
        return self._versions(_XY, code, tag)

    def status(self) -> tuple[ExperimentStatus, ...]:
        """Count stored rows and active keys for every code.

        Returns:
            One status row per registered code, ordered by code.
        """
        statuses = []
        for experiment in self.list_experiments():
            n_datapoints = 0
            n_active = 0
            for table in _RESULT_TABLES:
                total, active = self._counts(table, experiment.code)
                n_datapoints += total
                n_active += active
            statuses.append(
                ExperimentStatus(
                    database=self._path,
                    exp_type=experiment.exp_type,
                    exp_label=experiment.label,
                    exp_code=experiment.code,
                    n_datapoints=n_datapoints,
                    n_active_datapoints=n_active,
                )
            )
        return tuple(statuses)

    def _insert(self, table: _ResultTable, code: str, key: Any, columns: dict[str, Any]) -> int:
        with storage_errors("insert datapoint", self._path), self._connection:
            row = self._connection.execute(
                f"select max(abs(version)) from {table.name} "
                f"where experiment_code = ? and {table.key_column} = ?",
                (code, key),
            ).fetchone()
            version = 1 if row[0] is None else int(row[0]) + 1
            names = ["experiment_code", table.key_column, "version", *columns]
            placeholders = ", ".join("?" for _ in names)
            self._connection.execute(
                f"insert into {table.name} ({', '.join(names)}) values ({placeholders})",
                (code, key, version, *columns.values()),
            )
        _LOGGER.info(
            "datapoint_added",
            store=self._path,
            table=table.name,
            exp_code=code,
            key=key,
            version=version,
        )
        return version

    def _next_tag(self, code: str) -> int:
        with storage_errors("allocate tag", self._path):
            row = self._connection.execute(
                f"select max(tag) from {XY_RESULTS_TABLE} where experiment_code = ?",
                (code,),
            ).fetchone()
        return 0 if row[0] is None else int(row[0]) + 1

    def _current(self, table: _ResultTable, code: str) -> Sequence[sqlite3.Row]:
        self.get_experiment(code)
        key = table.key_column
        with storage_errors("read current datapoints", self._path):
            return self._connection.execute(
                f"select r.* from {table.name} r join ("
                f"select {key}, max(version) as version from {table.name} "
                f"where experiment_code = ? group by {key}"
                f") m on r.{key} = m.{key} and r.version = m.version "
                f"where r.experiment_code = ? order by r.{key}",
                (code, code),
            ).fetchall()

    def _revert(self, table: _ResultTable, code: str, key: Any, to_version: int | None) -> None:
        self.get_experiment(code)
        history = self._versions(table, code, key)
        if not history:
            return
        if to_version is not None and to_version not in history:
            raise BencherNotFoundError(
                f"Version {to_version} does not exist for key '{key}' of "
                f"'{code}'. Known versions: {', '.join(str(v) for v in history)}."
            )
        key_filter = f"experiment_code = ? and {table.key_column} = ?"
        with storage_errors("revert datapoint", self._path), self._connection:
            if to_version is None:
                self._connection.execute(
                    f"update {table.name} set version = -version where {key_filter} "
                    f"and version = (select max(version) from {table.name} where {key_filter})",
                    (code, key, code, key),
                )
            else:
                self._connection.execute(
                    f"update {table.name} set version = abs(version) "
                    f"where {key_filter} and abs(version) = ?",
                    (code, key, to_version),
                )
                self._connection.execute(
                    f"update {table.name} set version = -version "
                    f"where {key_filter} and version > ?",
                    (code, key, to_version),
                )
        _LOGGER.info(
            "datapoint_reverted",
            store=self._path,
            table=table.name,
            exp_code=code,
            key=key,
            to_version=to_version,
        )

    def _version(self, table: _ResultTable, code: str, key: Any) -> int:
        self.get_experiment(code)
        with storage_errors("read version", self._path):
            row = self._connection.execute(
                f"select max(version) from {table.name} "
                f"where experiment_code = ? and {table.key_column} = ?",
                (code, key),
            ).fetchone()
        if row[0] is None:
            raise BencherNotFoundError(
                f"Key '{key}' has no datapoints under '{code}'. Add a datapoint first."
            )
        return int(row[0])

    def _versions(self, table: _ResultTable, code: str, key: Any) -> tuple[int, ...]:
        self.get_experiment(code)
        with storage_errors("read versions", self._path):
            rows = self._connection.execute(
                f"select abs(version) from {table.name} "
                f"where experiment_code = ? and {table.key_column} = ? order by rowid",
                (code, key),
            ).fetchall()
        return tuple(int(row[0]) for row in rows)

    def _counts(self, table: _ResultTable, code: str) -> tuple[int, int]:
        key = table.key_column
        with storage_errors("count datapoints", self._path):
            total = self._connection.execute(
                f"select count(*) from {table.name} where experiment_code = ?",
                (code,),
            ).fetchone()[0]
            active = self._connection.execute(
                f"select count(*) from (select max(version) as version from {table.name} "
                f"where experiment_code = ? group by {key}) where version > 0",
                (code,),
            ).fetchone()[0]
        return int(total), int(active)
