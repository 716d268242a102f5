"""Python SDK for recording and reading benchmark results.

Writes always go to the default store named by the experiment config.
Reads go through a federation of the default store plus any extra
stores, and resolve virtual experiment types on the fly.
"""

from __future__ import annotations

from pathlib import Path
from types import TracebackType
from typing import Iterable, Sequence, cast

from core.config import BencherConfig
from core.errors import BencherError, BencherNotFoundError, BencherTypeMismatchError
from core.experiment_config import load_experiment_config
from core.logging_config import configure_logging
from core.selector import ALL, Selector
from core.types import (
    ExperimentCatalog,
    ExperimentStatus,
    LinearExperiment,
    LinearExperimentInfo,
    LinearExperimentView,
    VirtualLinearExperiment,
    VirtualXYExperiment,
    XYExperiment,
    XYExperimentInfo,
    XYExperimentView,
)
from core.values import choose_magnitude
from store.federation import StoreFederation
from store.handles import LinearSetHandle, XYLineHandle
from store.record_store import RecordStore
from virtual.engine import VirtualEngine
from virtual.evaluator import Evaluator


def load_catalog(config: BencherConfig | None = None) -> tuple[BencherConfig, ExperimentCatalog]:
    """Resolve runtime config, set up logging, and load experiment descriptors.

    Args:
        config: Optional runtime configuration; read from env when omitted.

    Returns:
        The runtime config and the loaded catalog.
    """
    resolved = config or BencherConfig.from_env()
    configure_logging(resolved.log_level)
    return resolved, load_experiment_config(resolved.config_path)


class BencherWriter:
    """Register sets and lines and record datapoints in the default store."""

    def __init__(self, catalog: ExperimentCatalog, store: RecordStore) -> None:
        """Create a writer.

        Args:
            catalog: Experiment descriptors used to validate types.
            store: Store receiving every write.
        """
        self._catalog = catalog
        self._store = store

    @classmethod
    def from_config(cls, config: BencherConfig | None = None) -> "BencherWriter":
        """Open the default store named by the experiment config."""
        _, catalog = load_catalog(config)
        return cls(catalog, RecordStore.open(catalog.default_database))

    @property
    def store(self) -> RecordStore:
        return self._store

    def add_linear_set(self, exp_type: str, label: str, code: str) -> LinearSetHandle:
        """Register a histogram set, or reopen a matching existing one.

        Args:
            exp_type: Concrete linear experiment type.
            label: Set label shown in plots and tables.
            code: Globally unique set code.

        Returns:
            Handle for recording datapoints.

        Raises:
            BencherNotFoundError: If the type is not configured.
            BencherTypeMismatchError: If the type is not a concrete linear type.
            BencherDuplicateError: If the code exists with another type or label.
        """
        self._require_type(exp_type, LinearExperiment, "linear")
        self._store.add_experiment(code, exp_type, label)
        return LinearSetHandle(self._store, code)

    def add_xy_line(self, exp_type: str, label: str, code: str) -> XYLineHandle:
        """Register a line, or reopen a matching existing one.

        Raises:
            BencherNotFoundError: If the type is not configured.
            BencherTypeMismatchError: If the type is not a concrete xy type.
            BencherDuplicateError: If the code exists with another type or label.
        """
        self._require_type(exp_type, XYExperiment, "xy")
        self._store.add_experiment(code, exp_type, label)
        return XYLineHandle(self._store, code)

    def get_linear_set(self, code: str) -> LinearSetHandle:
        """Return the handle of an existing set.

        Raises:
            BencherNotFoundError: If the code is unknown.
            BencherTypeMismatchError: If the code belongs to an xy type.
        """
        experiment = self._store.get_experiment(code)
        self._require_type(experiment.exp_type, LinearExperiment, "linear")
        return LinearSetHandle(self._store, code)

    def get_xy_line(self, code: str) -> XYLineHandle:
        experiment = self._store.get_experiment(code)
        self._require_type(experiment.exp_type, XYExperiment, "xy")
        return XYLineHandle(self._store, code)

    def list_codes(self) -> tuple[str, ...]:
        return self._store.list_codes()

    def close(self) -> None:
        self._store.close()

    def __enter__(self) -> "BencherWriter":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _require_type(self, exp_type: str, kind: type, kind_name: str) -> None:
        descriptor = self._catalog.find(exp_type)
        if descriptor is None:
            known = ", ".join(self._catalog.exp_types()) or "none"
            raise BencherNotFoundError(
                f"Experiment type '{exp_type}' is not configured. Known types: {known}."
            )
        if not isinstance(descriptor, kind):
            raise BencherTypeMismatchError(
                f"Experiment type '{exp_type}' is not a concrete {kind_name} experiment. "
                "Virtual experiments are read-only and sets and lines are not interchangeable."
            )


class BencherReader:
    """Query federated stores and resolve experiment views."""

    def __init__(
        self,
        catalog: ExperimentCatalog,
        federation: StoreFederation,
        evaluator: Evaluator | None = None,
    ) -> None:
        self._catalog = catalog
        self._federation = federation
        self._engine = VirtualEngine(catalog, federation, evaluator)

    @classmethod
    def from_config(
        cls,
        config: BencherConfig | None = None,
        extra_databases: Iterable[Path] = (),
    ) -> "BencherReader":
        """Open the default store plus every extra store.

        Args:
            config: Optional runtime configuration.
            extra_databases: Stores added on top of ``BENCHER_DATABASES``.

        Returns:
            Reader over the federated stores.

        Raises:
            BencherSchemaError: If a store lacks a required table.
            BencherIncompatibleStoresError: If two stores share a code.
        """
        resolved, catalog = load_catalog(config)
        paths = _unique_paths(
            [catalog.default_database, *resolved.extra_databases, *extra_databases]
        )
        stores: list[RecordStore] = []
        try:
            for path in paths:
                stores.append(RecordStore.open(path))
            federation = StoreFederation(stores)
        except BencherError:
            for store in stores:
                store.close()
            raise
        return cls(catalog, federation)

    @property
    def catalog(self) -> ExperimentCatalog:
        return self._catalog

    @property
    def federation(self) -> StoreFederation:
        return self._federation

    def status(self, selector: Selector = ALL) -> list[ExperimentStatus]:
        return self._federation.status(selector)

    def list_codes(self, selector: Selector = ALL) -> list[str]:
        return self._federation.list_codes(selector)

    def list_linear_experiments(self, selector: Selector = ALL) -> list[LinearExperimentInfo]:
        """List stored linear codes with their descriptor metadata.

        Returns:
            Rows sorted by store path, then code.
        """
        rows = []
        for database, experiment in self._federation.list_experiments():
            descriptor = self._catalog.find(experiment.exp_type)
            if not isinstance(descriptor, LinearExperiment):
                continue
            if not selector.matches(experiment.code, experiment.exp_type):
                continue
            rows.append(
                LinearExperimentInfo(
                    database=database,
                    exp_type=experiment.exp_type,
                    exp_label=experiment.label,
                    exp_code=experiment.code,
                    horizontal_label=descriptor.horizontal_label,
                    v_label=descriptor.v_label,
                    v_units=descriptor.v_units,
                )
            )
        return sorted(rows, key=lambda row: (row.database, row.exp_code))

    def list_xy_experiments(self, selector: Selector = ALL) -> list[XYExperimentInfo]:
        rows = []
        for database, experiment in self._federation.list_experiments():
            descriptor = self._catalog.find(experiment.exp_type)
            if not isinstance(descriptor, XYExperiment):
                continue
            if not selector.matches(experiment.code, experiment.exp_type):
                continue
            rows.append(
                XYExperimentInfo(
                    database=database,
                    exp_type=experiment.exp_type,
                    exp_label=experiment.label,
                    exp_code=experiment.code,
                    x_label=descriptor.x_label,
                    x_units=descriptor.x_units,
                    y_label=descriptor.y_label,
                    y_units=descriptor.y_units,
                )
            )
        return sorted(rows, key=lambda row: (row.database, row.exp_code))

    def linear_view(self, exp_type: str, selector: Selector = ALL) -> LinearExperimentView:
        """Resolve a concrete or virtual linear experiment type for display.

        Raises:
            BencherNotFoundError: If the type is unknown or has no sets.
            BencherTypeMismatchError: If the type is an xy experiment.
        """
        sets = self._engine.linear_sets(exp_type, selector)
        descriptor = cast(
            "LinearExperiment | VirtualLinearExperiment", self._catalog.find(exp_type)
        )
        if not sets:
            raise BencherNotFoundError(
                f"Experiment type '{exp_type}' has no selected sets. "
                "Record a set or relax the selector."
            )
        return LinearExperimentView(
            exp_type=exp_type,
            horizontal_label=descriptor.horizontal_label,
            v_label=descriptor.v_label,
            v_units=descriptor.v_units,
            sets=sets,
            magnitude=choose_magnitude(point.v for item in sets for point in item.values),
        )

    def xy_view(self, exp_type: str, selector: Selector = ALL) -> XYExperimentView:
        """Resolve a concrete or virtual xy experiment type for display.

        Raises:
            BencherNotFoundError: If the type is unknown or has no lines.
            BencherTypeMismatchError: If the type is a linear experiment.
        """
        lines = self._engine.xy_lines(exp_type, selector)
        descriptor = cast("XYExperiment | VirtualXYExperiment", self._catalog.find(exp_type))
        if not lines:
            raise BencherNotFoundError(
                f"Experiment type '{exp_type}' has no selected lines. "
                "Record a line or relax the selector."
            )
        points = [point for line in lines for point in line.values]
        return XYExperimentView(
            exp_type=exp_type,
            x_label=descriptor.x_label,
            x_units=descriptor.x_units,
            y_label=descriptor.y_label,
            y_units=descriptor.y_units,
            lines=lines,
            x_magnitude=choose_magnitude(point.x for point in points),
            y_magnitude=choose_magnitude(point.y for point in points),
        )

    def close(self) -> None:
        for store in self._federation.stores:
            store.close()

    def __enter__(self) -> "BencherReader":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()


def _unique_paths(paths: Sequence[Path | str]) -> list[str]:
    unique: list[str] = []
    for path in paths:
        text = str(path)
        if text not in unique:
            unique.append(text)
    return unique
