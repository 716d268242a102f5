"""Read-only union of several record stores.

Each experiment code must live in exactly one store, so a federated
lookup by code always resolves to a single owner.
"""

from __future__ import annotations

from typing import Sequence

from core.errors import BencherIncompatibleStoresError, BencherNotFoundError
from core.logging_config import get_logger
from core.selector import ALL, Selector
from core.types import ExperimentStatus, LinearDatapoint, XYDatapoint
from store.record_store import RecordStore, StoredExperiment
from store.schema import check_schema

_LOGGER = get_logger(__name__)


class StoreFederation:
    """Disjoint code namespace spanning several stores."""

    def __init__(self, stores: Sequence[RecordStore]) -> None:
        """Validate stores and index their codes.

        Args:
            stores: Opened stores, default store first.

        Raises:
            BencherSchemaError: If a store lacks a required table.
            BencherIncompatibleStoresError: If a store repeats a code seen in
                an earlier store.
        """
        self._stores = tuple(stores)
        self._owners: dict[str, RecordStore] = {}
        for store in self._stores:
            check_schema(store.connection, store.path)
            codes = store.list_codes()
            overlap = [code for code in codes if code in self._owners]
            if overlap:
                raise BencherIncompatibleStoresError(store.path, overlap)
            for code in codes:
                self._owners[code] = store
        _LOGGER.info(
            "federation_built",
            stores=[store.path for store in self._stores],
            code_count=len(self._owners),
        )

    @property
    def stores(self) -> tuple[RecordStore, ...]:
        return self._stores

    def owner(self, code: str) -> RecordStore:
        """Return the store holding a code.

        Raises:
            BencherNotFoundError: If no federated store has the code.
        """
        store = self._owners.get(code)
        if store is None:
            raise BencherNotFoundError(
                f"Experiment code '{code}' does not exist in any store. "
                "Run 'status' to list known codes."
            )
        return store

    def current_linear(self, code: str) -> tuple[LinearDatapoint, ...]:
        return self.owner(code).current_linear(code)

    def current_xy(self, code: str) -> tuple[XYDatapoint, ...]:
        return self.owner(code).current_xy(code)

    def status(self, selector: Selector = ALL) -> list[ExperimentStatus]:
        """Return row counts of every selected code.

        Returns:
            Status rows sorted by store path, then code.
        """
        rows = [
            status
            for store in self._stores
            for status in store.status()
            if selector.matches(status.exp_code, status.exp_type)
        ]
        return sorted(rows, key=lambda row: (row.database, row.exp_code))

    def list_codes(self, selector: Selector = ALL) -> list[str]:
        return [
            experiment.code
            for _, experiment in self.list_experiments()
            if selector.matches(experiment.code, experiment.exp_type)
        ]

    def list_experiments(
        self,
        exp_type: str | None = None,
    ) -> list[tuple[str, StoredExperiment]]:
        """Return ``(store path, experiment)`` pairs in store order."""
        return [
            (store.path, experiment)
            for store in self._stores
            for experiment in store.list_experiments(exp_type)
        ]

    def list_codes_labels_by_type(
        self,
        exp_type: str,
        selector: Selector = ALL,
    ) -> list[tuple[str, str]]:
        """Return ``(code, label)`` pairs of one type, in store then code order."""
        return [
            (experiment.code, experiment.label)
            for _, experiment in self.list_experiments(exp_type)
            if selector.matches(experiment.code, experiment.exp_type)
        ]
