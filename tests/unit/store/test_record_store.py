"""Unit tests for the versioned record store."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import (
    BencherDuplicateError,
    BencherNotFoundError,
    BencherTypeMismatchError,
)
from core.types import LinearDatapoint, XYDatapoint
from core.values import Confidence
from store.record_store import RecordStore


def _linear_store() -> RecordStore:
    store = RecordStore.in_memory()
    store.add_experiment("kv-a", "latency", "A")
    return store


def _values(store: RecordStore, code: str) -> dict[str, object]:
    return {point.group: point.v for point in store.current_linear(code)}


def test_add_then_current_returns_value() -> None:
    """A freshly written key should resolve to its value."""
    store = _linear_store()

    store.add_linear("kv-a", LinearDatapoint(group="get", v=12))

    assert _values(store, "kv-a") == {"get": 12}


@pytest.mark.parametrize("value", [float("nan"), float("inf")])
def test_non_finite_value_is_rejected_before_write(value: float) -> None:
    """A NaN or infinite value should fail and leave the code readable."""
    store = _linear_store()

    with pytest.raises(BencherTypeMismatchError):
        store.add_linear("kv-a", LinearDatapoint(group="get", v=value))

    assert store.current_linear("kv-a") == () and store.status()[0].n_datapoints == 0


def test_current_orders_groups_and_keeps_bands() -> None:
    """Current points should come back sorted by group with their bands."""
    store = _linear_store()
    store.add_linear("kv-a", LinearDatapoint(group="put", v=1.5))
    store.add_linear(
        "kv-a",
        LinearDatapoint(group="get", v=12, confidence={Confidence.FIVE: (10, 15)}),
    )

    points = store.current_linear("kv-a")

    assert [point.group for point in points] == ["get", "put"]
    assert points[0].get_confidence(Confidence.FIVE) == (10, 15)
    assert isinstance(points[1].v, float)


def test_revert_without_version_walks_back_history() -> None:
    """Reverting N-1 times should expose the first written value."""
    store = _linear_store()
    for value in (10, 20, 30):
        store.add_linear("kv-a", LinearDatapoint(group="get", v=value))

    store.revert_linear("kv-a", "get")
    store.revert_linear("kv-a", "get")

    assert _values(store, "kv-a") == {"get": 10}
    assert store.linear_versions("kv-a", "get") == (1, 2, 3)


def test_revert_to_version_reactivates_it() -> None:
    """Reverting to a version should make it current again."""
    store = _linear_store()
    for value in (10, 20, 30):
        store.add_linear("kv-a", LinearDatapoint(group="get", v=value))
    store.revert_linear("kv-a", "get")
    store.revert_linear("kv-a", "get")

    store.revert_linear("kv-a", "get", to_version=3)

    assert store.linear_version("kv-a", "get") == 3 and _values(store, "kv-a") == {"get": 30}


def test_revert_after_revert_to_version_drops_to_previous() -> None:
    """Undoing after a rollback should land on the version just below it."""
    store = _linear_store()
    for value in (10, 20, 30):
        store.add_linear("kv-a", LinearDatapoint(group="get", v=value))
    store.revert_linear("kv-a", "get", to_version=2)

    store.revert_linear("kv-a", "get")

    assert store.linear_version("kv-a", "get") == 1 and _values(store, "kv-a") == {"get": 10}


def test_add_after_revert_allocates_next_absolute_version() -> None:
    """New writes should never reuse a reverted version number."""
    store = _linear_store()
    store.add_linear("kv-a", LinearDatapoint(group="get", v=10))
    store.add_linear("kv-a", LinearDatapoint(group="get", v=20))
    store.revert_linear("kv-a", "get")

    version = store.add_linear("kv-a", LinearDatapoint(group="get", v=40))

    assert version == 3 and _values(store, "kv-a") == {"get": 40}


def test_revert_empty_key_is_noop() -> None:
    """Reverting a key without history should change nothing."""
    store = _linear_store()

    store.revert_linear("kv-a", "missing")

    assert store.linear_versions("kv-a", "missing") == ()


def test_revert_to_unknown_version_raises() -> None:
    """Rolling back to a version never written should fail."""
    store = _linear_store()
    store.add_linear("kv-a", LinearDatapoint(group="get", v=10))

    with pytest.raises(BencherNotFoundError):
        store.revert_linear("kv-a", "get", to_version=7)


def test_version_of_empty_key_raises() -> None:
    """A key without rows has no version."""
    store = _linear_store()

    with pytest.raises(BencherNotFoundError):
        store.linear_version("kv-a", "get")


def test_unknown_code_raises_not_found() -> None:
    """Operations on unregistered codes should fail."""
    store = RecordStore.in_memory()

    with pytest.raises(BencherNotFoundError):
        store.add_linear("nope", LinearDatapoint(group="get", v=1))


def test_add_experiment_is_idempotent_for_matching_metadata() -> None:
    """Registering the same code twice with equal metadata is a no-op."""
    store = RecordStore.in_memory()

    created = store.add_experiment("kv-a", "latency", "A")
    again = store.add_experiment("kv-a", "latency", "A")

    assert (created, again) == (True, False)


def test_add_experiment_rejects_mismatched_label() -> None:
    """Reusing a code with another label should fail."""
    store = _linear_store()

    with pytest.raises(BencherDuplicateError):
        store.add_experiment("kv-a", "latency", "B")


def test_xy_untagged_points_take_next_tag() -> None:
    """Untagged xy points should be assigned increasing tags from zero."""
    store = RecordStore.in_memory()
    store.add_experiment("line-a", "scaling", "A")

    first = store.add_xy("line-a", XYDatapoint(x=1, y=10))
    second = store.add_xy("line-a", XYDatapoint(x=2, y=20))
    store.add_xy("line-a", XYDatapoint(x=2, y=25, tag=second))

    assert (first, second) == (0, 1)
    assert [(point.tag, point.y) for point in store.current_xy("line-a")] == [(0, 10), (1, 25)]


def test_xy_revert_and_versions() -> None:
    """Xy keys should revert by tag like linear keys revert by group."""
    store = RecordStore.in_memory()
    store.add_experiment("line-a", "scaling", "A")
    store.add_xy("line-a", XYDatapoint(x=1, y=10, tag=0))
    store.add_xy("line-a", XYDatapoint(x=1, y=11, tag=0))

    store.revert_xy("line-a", 0)

    assert store.xy_version("line-a", 0) == 1 and store.xy_versions("line-a", 0) == (1, 2)


def test_status_counts_rows_and_active_keys() -> None:
    """Status should count every row and only keys still active."""
    store = _linear_store()
    store.add_linear("kv-a", LinearDatapoint(group="get", v=1))
    store.add_linear("kv-a", LinearDatapoint(group="get", v=2))
    store.add_linear("kv-a", LinearDatapoint(group="put", v=3))
    store.revert_linear("kv-a", "put")

    (status,) = store.status()

    assert (status.n_datapoints, status.n_active_datapoints) == (3, 1)


def test_store_file_persists_between_connections(tmp_path: Path) -> None:
    """Rows written to a file store should survive reopening."""
    path = str(tmp_path / "results.db")
    with RecordStore.open(path) as store:
        store.add_experiment("kv-a", "latency", "A")
        store.add_linear("kv-a", LinearDatapoint(group="get", v=12))

    with RecordStore.open(path) as reopened:
        values = _values(reopened, "kv-a")

    assert values == {"get": 12}
