"""Integration tests for recording, reverting, and deriving experiments."""

from __future__ import annotations

from pathlib import Path

import yaml

from core.config import BencherConfig
from core.types import XYDatapoint
from core.values import Confidence
from stats.samples import linear_from_sample
from store.bencher_sdk import BencherReader, BencherWriter


def _write_config(root: Path) -> BencherConfig:
    config_path = root / "bencher.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "default_database_filepath": "results.db",
                "linear_experiments": [
                    {
                        "exp_type": "latency",
                        "horizontal_label": "operation",
                        "v_label": "latency",
                        "v_units": "us",
                    }
                ],
                "xy_experiments": [
                    {
                        "exp_type": "scaling",
                        "x_label": "threads",
                        "x_units": "",
                        "y_label": "throughput",
                        "y_units": "ops/s",
                    }
                ],
                "virtual_linear_experiments": [
                    {
                        "exp_type": "slowdown",
                        "source_exp_type": "latency",
                        "horizontal_label": "operation",
                        "v_label": "slowdown",
                        "v_units": "x",
                        "v_operation": "v / min",
                    }
                ],
                "virtual_xy_experiments": [
                    {
                        "exp_type": "latency-by-system",
                        "source_exp_type": "latency",
                        "x_label": "system",
                        "x_units": "",
                        "y_label": "latency",
                        "y_units": "us",
                    }
                ],
            }
        ),
        encoding="utf-8",
    )
    return BencherConfig(config_path=config_path, extra_databases=(), log_level="WARNING")


def test_recorded_samples_flow_into_virtual_views(tmp_path: Path) -> None:
    """Samples, reverts and virtual experiments should compose end to end."""
    config = _write_config(tmp_path)
    with BencherWriter.from_config(config) as writer:
        system_a = writer.add_linear_set("latency", "System A", "kv-a")
        system_b = writer.add_linear_set("latency", "System B", "kv-b")
        system_a.add(linear_from_sample("get", [10, 11, 12, 13, 14]))
        system_a.add(linear_from_sample("get", [90, 91, 92]))
        system_a.revert("get")
        system_b.add(linear_from_sample("get", [20, 21, 22, 23, 24]))
        line = writer.add_xy_line("scaling", "System A", "scaling-a")
        line.add(XYDatapoint(x=1, y=1_000))
        line.add(XYDatapoint(x=2, y=1_900))

    with BencherReader.from_config(config) as reader:
        slowdown = reader.linear_view("slowdown")
        by_system = reader.xy_view("latency-by-system")
        scaling = reader.xy_view("scaling")
        statuses = reader.status()

    slowdown_values = [item.values[0].v for item in slowdown.sets]
    (get_line,) = by_system.lines
    assert slowdown_values == [1.0, 23 / 13]
    assert slowdown.sets[0].values[0].get_confidence(Confidence.ONE) == (11 / 13, 14 / 13)
    assert [(point.x, point.y) for point in get_line.values] == [(0, 13), (1, 23)]
    assert [point.tag for point in scaling.lines[0].values] == [0, 1]
    assert [(row.exp_code, row.n_datapoints) for row in statuses] == [
        ("kv-a", 2),
        ("kv-b", 1),
        ("scaling-a", 2),
    ]
