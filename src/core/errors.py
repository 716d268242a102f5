"""Bencher exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations

from typing import Iterable


class BencherError(Exception):
    """Base exception for all Bencher failures."""


class BencherConfigError(BencherError):
    """Raised for invalid runtime or experiment configuration."""


class BencherNotFoundError(BencherError):
    """Raised when a code, experiment type, or key does not exist."""


class BencherDuplicateError(BencherError):
    """Raised when a code is reused with a different type or label."""


class BencherConfidenceError(BencherError):
    """Raised for percentiles outside the supported confidence bands."""


class BencherTypeMismatchError(BencherError):
    """Raised when int/float tags or linear/xy shapes disagree."""


class BencherExpressionError(BencherError):
    """Raised when a virtual experiment expression fails to evaluate."""


class BencherStorageError(BencherError):
    """Raised for failures of the underlying sqlite storage."""


class BencherSchemaError(BencherError):
    """Raised when a store is missing one of the required tables."""

    def __init__(self, table: str, store: str) -> None:
        self.table = table
        self.store = store
        super().__init__(
            f"Store {store} is missing required table '{table}'. "
            "Open the store with bencher once to create the schema."
        )


class BencherIncompatibleStoresError(BencherError):
    """Raised when two federated stores share experiment codes."""

    def __init__(self, store: str, codes: Iterable[str]) -> None:
        self.store = store
        self.codes = tuple(sorted(codes))
        super().__init__(
            f"Store {store} is incompatible with the previously opened stores: "
            f"codes {', '.join(self.codes)} appear more than once. "
            "Rename the codes or drop one of the stores."
        )
