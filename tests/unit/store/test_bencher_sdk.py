"""Unit tests for the SDK writer and reader."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from core.config import BencherConfig
from core.errors import (
    BencherIncompatibleStoresError,
    BencherNotFoundError,
    BencherTypeMismatchError,
)
from core.types import (
    ExperimentCatalog,
    LinearDatapoint,
    LinearExperiment,
    VirtualLinearExperiment,
    XYDatapoint,
    XYExperiment,
)
from core.values import Magnitude
from store.bencher_sdk import BencherReader, BencherWriter
from store.federation import StoreFederation
from store.record_store import RecordStore

_CATALOG = ExperimentCatalog(
    default_database=":memory:",
    linear_experiments=(LinearExperiment("latency", "operation", "latency", "s"),),
    xy_experiments=(XYExperiment("scaling", "threads", "", "throughput", "ops/s"),),
    virtual_linear_experiments=(
        VirtualLinearExperiment("latency-ms", "latency", "operation", "latency", "ms", "v * 1000"),
    ),
)


def _writer() -> BencherWriter:
    return BencherWriter(_CATALOG, RecordStore.in_memory())


def test_add_linear_set_returns_working_handle() -> None:
    """A registered set should accept datapoints through its handle."""
    writer = _writer()

    handle = writer.add_linear_set("latency", "System A", "kv-a")
    handle.add(LinearDatapoint(group="get", v=12))

    assert writer.get_linear_set("kv-a").current()[0].v == 12


def test_add_linear_set_rejects_virtual_type() -> None:
    """Virtual experiment types are never writable."""
    with pytest.raises(BencherTypeMismatchError):
        _writer().add_linear_set("latency-ms", "System A", "kv-a")


def test_add_xy_line_rejects_unknown_type() -> None:
    """Unconfigured experiment types should be reported."""
    with pytest.raises(BencherNotFoundError):
        _writer().add_xy_line("nope", "System A", "line-a")


def test_get_xy_line_rejects_linear_code() -> None:
    """A linear code cannot be opened as a line."""
    writer = _writer()
    writer.add_linear_set("latency", "System A", "kv-a")

    with pytest.raises(BencherTypeMismatchError):
        writer.get_xy_line("kv-a")


def test_get_linear_set_unknown_code_raises() -> None:
    """Unknown codes should not produce handles."""
    with pytest.raises(BencherNotFoundError):
        _writer().get_linear_set("missing")


def test_reader_builds_linear_view_with_magnitude() -> None:
    """Views should carry display metadata and the dominant magnitude."""
    writer = _writer()
    handle = writer.add_linear_set("latency", "System A", "kv-a")
    handle.add(LinearDatapoint(group="get", v=0.002))
    handle.add(LinearDatapoint(group="put", v=0.004))
    reader = BencherReader(_CATALOG, StoreFederation([writer.store]))

    view = reader.linear_view("latency")

    assert view.sets[0].set_label == "System A" and view.magnitude is Magnitude.MILI


def test_reader_virtual_view_uses_virtual_labels() -> None:
    """Virtual views should use the virtual descriptor's units."""
    writer = _writer()
    writer.add_linear_set("latency", "System A", "kv-a").add(LinearDatapoint(group="get", v=2))
    reader = BencherReader(_CATALOG, StoreFederation([writer.store]))

    view = reader.linear_view("latency-ms")

    assert view.v_units == "ms" and view.sets[0].values[0].v == 2000


def test_reader_empty_experiment_view_raises() -> None:
    """An experiment type without sets has no view."""
    reader = BencherReader(_CATALOG, StoreFederation([RecordStore.in_memory()]))

    with pytest.raises(BencherNotFoundError):
        reader.linear_view("latency")


def test_reader_lists_experiments_by_kind() -> None:
    """Listings should split codes into linear and xy experiments."""
    writer = _writer()
    writer.add_linear_set("latency", "System A", "kv-a")
    writer.add_xy_line("scaling", "System A", "line-a").add(XYDatapoint(x=1, y=100))
    reader = BencherReader(_CATALOG, StoreFederation([writer.store]))

    linear = reader.list_linear_experiments()
    xy = reader.list_xy_experiments()

    assert [row.exp_code for row in linear] == ["kv-a"] and xy[0].y_units == "ops/s"


def _file_config(tmp_path: Path) -> BencherConfig:
    config_path = tmp_path / ".bencher-config"
    config_path.write_text(
        json.dumps(
            {
                "default_database_filepath": "main.db",
                "linear_experiments": [
                    {
                        "exp_type": "latency",
                        "horizontal_label": "operation",
                        "v_label": "latency",
                        "v_units": "s",
                    }
                ],
            }
        ),
        encoding="utf-8",
    )
    return BencherConfig(
        config_path=config_path,
        extra_databases=(tmp_path / "extra.db",),
        log_level="WARNING",
    )


def test_from_config_opens_default_and_extra_stores(tmp_path: Path) -> None:
    """Readers built from config should federate every configured store."""
    config = _file_config(tmp_path)
    with BencherWriter.from_config(config) as writer:
        writer.add_linear_set("latency", "System A", "kv-a")
    with RecordStore.open(str(tmp_path / "extra.db")) as extra:
        extra.add_experiment("kv-b", "latency", "System B")

    with BencherReader.from_config(config) as reader:
        codes = reader.list_codes()

    assert codes == ["kv-a", "kv-b"]


def test_from_config_closes_stores_when_codes_overlap(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A failed federation should close every store it opened."""
    config = _file_config(tmp_path)
    with BencherWriter.from_config(config) as writer:
        writer.add_linear_set("latency", "System A", "kv-a")
    with RecordStore.open(str(tmp_path / "extra.db")) as extra:
        extra.add_experiment("kv-a", "latency", "System A")
    closed: list[str] = []
    original_close = RecordStore.close

    def _recording_close(store: RecordStore) -> None:
        closed.append(Path(store.path).name)
        original_close(store)

    monkeypatch.setattr(RecordStore, "close", _recording_close)

    with pytest.raises(BencherIncompatibleStoresError):
        BencherReader.from_config(config)

    assert sorted(closed) == ["extra.db", "main.db"]
