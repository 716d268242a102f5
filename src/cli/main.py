"""Bencher CLI entry points.

This module exposes commands for registering experiments, recording and
reverting datapoints, and inspecting stores. It maps argparse commands
onto SDK calls.
"""

from __future__ import annotations

import argparse
from pathlib import Path
import sys
from typing import Any, Sequence

from core.config import BencherConfig
from core.constants import DEFAULT_SAMPLE_CENTRE, SAMPLE_CENTRES
from core.errors import BencherError
from core.selector import Selector
from core.types import (
    LinearDatapoint,
    LinearExperimentView,
    VirtualXYExperiment,
    XYDatapoint,
    XYExperiment,
    XYExperimentView,
)
from core.values import Value, display_with_magnitude
from stats.samples import linear_from_sample, xy_from_samples
from store.bencher_sdk import BencherReader, BencherWriter


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="bencher", description="Bencher benchmark recorder")
    parser.add_argument("--config", help="Override BENCHER_CONFIG for this command")
    parser.add_argument(
        "--database",
        action="append",
        default=[],
        help="Extra store to read from; repeat for several stores",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_status_command(subparsers)
    _add_list_command(subparsers)
    _add_register_commands(subparsers)
    _add_linear_command(subparsers)
    _add_xy_command(subparsers)
    _add_revert_commands(subparsers)
    _add_versions_commands(subparsers)
    _add_show_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Bencher CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args.config)
        if args.command in _READ_COMMANDS:
            extra = [Path(path).expanduser().resolve() for path in args.database]
            with BencherReader.from_config(config, extra_databases=extra) as reader:
                return _READ_COMMANDS[args.command](reader, args)
        if args.command in _WRITE_COMMANDS:
            with BencherWriter.from_config(config) as writer:
                return _WRITE_COMMANDS[args.command](writer, args)
    except BencherError as error:
        print(f"error={error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(config_path: str | None) -> BencherConfig:
    """Build runtime config with optional experiment config override.

    Args:
        config_path: Optional override path.

    Returns:
        Runtime config.
    """
    return BencherConfig.from_env(config_path=Path(config_path) if config_path else None)


def _run_status_command(reader: BencherReader, args: argparse.Namespace) -> int:
    for row in reader.status(_selector(args)):
        print(
            f"{row.database}\t{row.exp_type}\t{row.exp_label}\t{row.exp_code}\t"
            f"{row.n_datapoints}\t{row.n_active_datapoints}"
        )
    return 0


def _run_list_command(reader: BencherReader, args: argparse.Namespace) -> int:
    selector = _selector(args)
    for linear in reader.list_linear_experiments(selector):
        print(
            f"linear\t{linear.exp_code}\t{linear.exp_label}\t{linear.exp_type}\t"
            f"{linear.v_label} ({linear.v_units})\t{linear.database}"
        )
    for xy in reader.list_xy_experiments(selector):
        print(
            f"xy\t{xy.exp_code}\t{xy.exp_label}\t{xy.exp_type}\t"
            f"{xy.x_label} ({xy.x_units}) / {xy.y_label} ({xy.y_units})\t{xy.database}"
        )
    return 0


def _run_show_command(reader: BencherReader, args: argparse.Namespace) -> int:
    """Print one experiment type as a tab-separated table.

    Args:
        reader: SDK reader.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    descriptor = reader.catalog.find(args.exp_type)
    if isinstance(descriptor, (XYExperiment, VirtualXYExperiment)):
        _print_xy_view(reader.xy_view(args.exp_type, _selector(args)))
    else:
        _print_linear_view(reader.linear_view(args.exp_type, _selector(args)))
    return 0


def _run_add_set_command(writer: BencherWriter, args: argparse.Namespace) -> int:
    handle = writer.add_linear_set(args.exp_type, args.label, args.code)
    print(handle.code)
    return 0


def _run_add_line_command(writer: BencherWriter, args: argparse.Namespace) -> int:
    handle = writer.add_xy_line(args.exp_type, args.label, args.code)
    print(handle.code)
    return 0


def _run_add_linear_command(writer: BencherWriter, args: argparse.Namespace) -> int:
    """Record one linear datapoint from a value or a sample.

    Args:
        writer: SDK writer.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    handle = writer.get_linear_set(args.code)
    if len(args.values) == 1:
        datapoint: LinearDatapoint | None = LinearDatapoint(group=args.group, v=args.values[0])
    else:
        datapoint = linear_from_sample(args.group, args.values, args.centre)
    if datapoint is None:
        return 1
    version = handle.add(datapoint)
    print(f"version={version}")
    return 0


def _run_add_xy_command(writer: BencherWriter, args: argparse.Namespace) -> int:
    handle = writer.get_xy_line(args.code)
    if len(args.x) == 1 and len(args.y) == 1:
        datapoint: XYDatapoint | None = XYDatapoint(x=args.x[0], y=args.y[0])
    else:
        datapoint = xy_from_samples(args.x, args.y, args.centre)
    if datapoint is None:
        return 1
    if args.tag is not None:
        datapoint = datapoint.with_tag(args.tag)
    tag = handle.add(datapoint)
    print(f"tag={tag}")
    return 0


def _run_revert_linear_command(writer: BencherWriter, args: argparse.Namespace) -> int:
    handle = writer.get_linear_set(args.code)
    handle.revert(args.group, args.to_version)
    if handle.versions(args.group):
        print(f"version={handle.version(args.group)}")
    return 0


def _run_revert_xy_command(writer: BencherWriter, args: argparse.Namespace) -> int:
    handle = writer.get_xy_line(args.code)
    handle.revert(args.tag, args.to_version)
    if handle.versions(args.tag):
        print(f"version={handle.version(args.tag)}")
    return 0


def _run_versions_linear_command(writer: BencherWriter, args: argparse.Namespace) -> int:
    handle = writer.get_linear_set(args.code)
    print(f"version={handle.version(args.group)}")
    print(f"versions={','.join(str(v) for v in handle.versions(args.group))}")
    return 0


def _run_versions_xy_command(writer: BencherWriter, args: argparse.Namespace) -> int:
    handle = writer.get_xy_line(args.code)
    print(f"version={handle.version(args.tag)}")
    print(f"versions={','.join(str(v) for v in handle.versions(args.tag))}")
    return 0


_READ_COMMANDS: dict[str, Any] = {
    "status": _run_status_command,
    "list": _run_list_command,
    "show": _run_show_command,
}

_WRITE_COMMANDS: dict[str, Any] = {
    "add-set": _run_add_set_command,
    "add-line": _run_add_line_command,
    "add-linear": _run_add_linear_command,
    "add-xy": _run_add_xy_command,
    "revert-linear": _run_revert_linear_command,
    "revert-xy": _run_revert_xy_command,
    "versions-linear": _run_versions_linear_command,
    "versions-xy": _run_versions_xy_command,
}


def _print_linear_view(view: LinearExperimentView) -> None:
    prefix = view.magnitude.prefix
    print(f"{view.horizontal_label}\tset\t{view.v_label} ({prefix}{view.v_units})")
    for item in view.sets:
        for point in item.values:
            v_text = display_with_magnitude(point.v, view.magnitude)
            print(f"{point.group}\t{item.set_label}\t{v_text}")


def _print_xy_view(view: XYExperimentView) -> None:
    x_prefix = view.x_magnitude.prefix
    y_prefix = view.y_magnitude.prefix
    print(
        f"line\ttag\t{view.x_label} ({x_prefix}{view.x_units})\t"
        f"{view.y_label} ({y_prefix}{view.y_units})"
    )
    for line in view.lines:
        for point in line.values:
            x_text = display_with_magnitude(point.x, view.x_magnitude)
            y_text = display_with_magnitude(point.y, view.y_magnitude)
            print(f"{line.line_label}\t{point.tag}\t{x_text}\t{y_text}")


def _selector(args: argparse.Namespace) -> Selector:
    return Selector.from_patterns(
        code_include=args.include_code,
        code_exclude=args.exclude_code,
        type_include=args.include_type,
        type_exclude=args.exclude_type,
    )


def _value_arg(text: str) -> Value:
    """Parse a CLI number, keeping integers integral."""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError as error:
        raise argparse.ArgumentTypeError(f"'{text}' is not a number") from error


def _add_selector_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--include-code", action="append", default=[], help="Code regex to keep")
    parser.add_argument("--exclude-code", action="append", default=[], help="Code regex to drop")
    parser.add_argument("--include-type", action="append", default=[], help="Type regex to keep")
    parser.add_argument("--exclude-type", action="append", default=[], help="Type regex to drop")


def _add_centre_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--centre",
        choices=SAMPLE_CENTRES,
        default=DEFAULT_SAMPLE_CENTRE,
        help="Central value computed from a sample",
    )


def _add_status_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("status", help="Show row counts per experiment code")
    _add_selector_arguments(parser)


def _add_list_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("list", help="List experiment codes with display metadata")
    _add_selector_arguments(parser)


def _add_show_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("show", help="Print an experiment type as a table")
    parser.add_argument("exp_type", help="Concrete or virtual experiment type")
    _add_selector_arguments(parser)


def _add_register_commands(subparsers: Any) -> None:
    for name, help_text in (
        ("add-set", "Register a linear set"),
        ("add-line", "Register an xy line"),
    ):
        parser = subparsers.add_parser(name, help=help_text)
        parser.add_argument("exp_type", help="Experiment type from the config")
        parser.add_argument("label", help="Label displayed for the set or line")
        parser.add_argument("code", help="Globally unique code")


def _add_linear_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("add-linear", help="Record a linear datapoint")
    parser.add_argument("code", help="Set code")
    parser.add_argument("group", help="Histogram group")
    parser.add_argument("values", nargs="+", type=_value_arg, help="Value or raw sample")
    _add_centre_argument(parser)


def _add_xy_command(subparsers: Any) -> None:
    parser = subparsers.add_parser("add-xy", help="Record an xy datapoint")
    parser.add_argument("code", help="Line code")
    parser.add_argument("--x", nargs="+", type=_value_arg, required=True, help="X value or sample")
    parser.add_argument("--y", nargs="+", type=_value_arg, required=True, help="Y value or sample")
    parser.add_argument("--tag", type=int, help="Point tag; next free tag when omitted")
    _add_centre_argument(parser)


def _add_revert_commands(subparsers: Any) -> None:
    parser = subparsers.add_parser("revert-linear", help="Revert a linear group")
    parser.add_argument("code", help="Set code")
    parser.add_argument("group", help="Histogram group")
    parser.add_argument("--to-version", type=int, help="Version to reactivate")
    parser = subparsers.add_parser("revert-xy", help="Revert an xy point")
    parser.add_argument("code", help="Line code")
    parser.add_argument("tag", type=int, help="Point tag")
    parser.add_argument("--to-version", type=int, help="Version to reactivate")


def _add_versions_commands(subparsers: Any) -> None:
    parser = subparsers.add_parser("versions-linear", help="Show the version log of a group")
    parser.add_argument("code", help="Set code")
    parser.add_argument("group", help="Histogram group")
    parser = subparsers.add_parser("versions-xy", help="Show the version log of a point")
    parser.add_argument("code", help="Line code")
    parser.add_argument("tag", type=int, help="Point tag")
