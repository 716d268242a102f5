"""Experiment config file parsing.

This module loads the experiment-type descriptors and the default store
location from ``.bencher-config``. JSON is the native format; files with a
YAML suffix are parsed with PyYAML.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence, TypeVar, cast

import yaml

from core.constants import YAML_CONFIG_SUFFIXES
from core.errors import BencherConfigError
from core.types import (
    ExperimentCatalog,
    LinearExperiment,
    VirtualLinearExperiment,
    VirtualXYExperiment,
    XYExperiment,
)

_DescriptorT = TypeVar("_DescriptorT")

_ROOT_KEYS = {
    "default_database_filepath",
    "linear_experiments",
    "xy_experiments",
    "virtual_linear_experiments",
    "virtual_xy_experiments",
}


def load_experiment_config(config_path: Path) -> ExperimentCatalog:
    """Load and validate an experiment config file from disk.

    Args:
        config_path: Path to the JSON or YAML config file.

    Returns:
        Catalog with the default store resolved against the config directory.

    Raises:
        BencherConfigError: If the file is unreadable or fails validation.
    """
    config_file = config_path.expanduser().resolve()
    payload = _load_payload(config_file)
    return parse_experiment_config(payload, config_file.parent, str(config_file))


def parse_experiment_config(
    payload: object,
    base_dir: Path,
    source: str = "config",
) -> ExperimentCatalog:
    """Validate an already decoded config payload.

    Args:
        payload: Decoded JSON/YAML root object.
        base_dir: Directory relative store paths are resolved against.
        source: Name used in error messages.

    Returns:
        Validated experiment catalog.
    """
    root = _expect_mapping(payload, f"{source} root")
    unknown_keys = sorted(set(root) - _ROOT_KEYS)
    if unknown_keys:
        raise BencherConfigError(
            f"Unknown keys in {source}: {', '.join(unknown_keys)}. "
            f"Supported keys: {', '.join(sorted(_ROOT_KEYS))}."
        )
    database = root.get("default_database_filepath")
    if not isinstance(database, str) or not database:
        raise BencherConfigError(
            f"{source} field 'default_database_filepath' must be a non-empty string."
        )
    catalog = ExperimentCatalog(
        default_database=str((base_dir / database).resolve()),
        linear_experiments=_parse_list(root, "linear_experiments", _linear_experiment),
        xy_experiments=_parse_list(root, "xy_experiments", _xy_experiment),
        virtual_linear_experiments=_parse_list(
            root, "virtual_linear_experiments", _virtual_linear_experiment
        ),
        virtual_xy_experiments=_parse_list(root, "virtual_xy_experiments", _virtual_xy_experiment),
    )
    _validate_unique_types(catalog, source)
    return catalog


def _load_payload(config_file: Path) -> object:
    if not config_file.exists():
        raise BencherConfigError(
            f"Experiment config does not exist at {config_file}. Provide a valid config path."
        )
    try:
        text = config_file.read_text(encoding="utf-8")
    except OSError as error:
        raise BencherConfigError(
            f"Failed to read experiment config at {config_file}: {error}. "
            "Check file permissions and retry."
        ) from error
    if config_file.suffix in YAML_CONFIG_SUFFIXES:
        try:
            payload = cast(object, yaml.safe_load(text))
        except yaml.YAMLError as error:
            raise BencherConfigError(
                f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
            ) from error
    else:
        try:
            payload = cast(object, json.loads(text))
        except json.JSONDecodeError as error:
            raise BencherConfigError(
                f"Failed to parse JSON config at {config_file}: {error.msg}. "
                "Fix JSON syntax and retry."
            ) from error
    if payload is None:
        raise BencherConfigError(
            f"Experiment config at {config_file} is empty. Define 'default_database_filepath'."
        )
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        for key in value:
            if not isinstance(key, str):
                raise BencherConfigError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
        return cast(Mapping[str, object], value)
    raise BencherConfigError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _parse_list(
    root: Mapping[str, object],
    key: str,
    build: Callable[[Mapping[str, object], str], _DescriptorT],
) -> tuple[_DescriptorT, ...]:
    raw_rows = root.get(key)
    if raw_rows is None:
        return ()
    if not isinstance(raw_rows, Sequence) or isinstance(raw_rows, (str, bytes)):
        raise BencherConfigError(f"Config field '{key}' must be a list of objects.")
    descriptors = []
    for index, row in enumerate(raw_rows):
        context = f"{key} entry #{index + 1}"
        descriptors.append(build(_expect_mapping(row, context), context))
    return tuple(descriptors)


def _fields(
    row: Mapping[str, object],
    context: str,
    required: Sequence[str],
    optional: Sequence[str] = (),
) -> dict[str, Any]:
    unknown = sorted(set(row) - set(required) - set(optional))
    if unknown:
        raise BencherConfigError(f"Unknown fields in {context}: {', '.join(unknown)}.")
    values: dict[str, Any] = {}
    for name in required:
        value = row.get(name)
        if not isinstance(value, str):
            raise BencherConfigError(f"Invalid {context}: field '{name}' must be a string.")
        values[name] = value
    for name in optional:
        value = row.get(name)
        if value is not None and not isinstance(value, str):
            raise BencherConfigError(f"Invalid {context}: field '{name}' must be a string.")
        values[name] = value
    return values


def _linear_experiment(row: Mapping[str, object], context: str) -> LinearExperiment:
    return LinearExperiment(
        **_fields(row, context, ("exp_type", "horizontal_label", "v_label", "v_units"))
    )


def _xy_experiment(row: Mapping[str, object], context: str) -> XYExperiment:
    return XYExperiment(
        **_fields(row, context, ("exp_type", "x_label", "x_units", "y_label", "y_units"))
    )


def _virtual_linear_experiment(row: Mapping[str, object], context: str) -> VirtualLinearExperiment:
    return VirtualLinearExperiment(
        **_fields(
            row,
            context,
            ("exp_type", "source_exp_type", "horizontal_label", "v_label", "v_units"),
            ("v_operation", "tag_operation"),
        )
    )


def _virtual_xy_experiment(row: Mapping[str, object], context: str) -> VirtualXYExperiment:
    return VirtualXYExperiment(
        **_fields(
            row,
            context,
            ("exp_type", "source_exp_type", "x_label", "x_units", "y_label", "y_units"),
            ("x_operation", "y_operation", "tag_operation"),
        )
    )


def _validate_unique_types(catalog: ExperimentCatalog, source: str) -> None:
    seen: set[str] = set()
    for exp_type in catalog.exp_types():
        if exp_type in seen:
            raise BencherConfigError(
                f"Experiment type '{exp_type}' is declared more than once in {source}. "
                "Experiment types must be unique across all experiment lists."
            )
        seen.add(exp_type)
