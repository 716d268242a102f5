"""Runtime configuration model for Bencher.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import Path

from core.constants import (
    CONFIG_ENV_VAR,
    CONFIG_FILE_NAME,
    DATABASES_ENV_VAR,
    DEFAULT_LOG_LEVEL,
    LOG_LEVEL_ENV_VAR,
)
from core.errors import BencherConfigError


@dataclass(frozen=True)
class BencherConfig:
    """Validated runtime configuration.

    Attributes:
        config_path: Experiment config file location.
        extra_databases: Additional store paths merged into reads.
        log_level: Minimum structured log level name.
    """

    config_path: Path
    extra_databases: tuple[Path, ...]
    log_level: str

    @classmethod
    def from_env(
        cls,
        start_dir: Path | None = None,
        config_path: Path | None = None,
    ) -> "BencherConfig":
        """Build config from process environment variables.

        Args:
            start_dir: Directory where config discovery starts; cwd when omitted.
            config_path: Explicit experiment config path, overriding discovery.

        Returns:
            A validated config object.

        Raises:
            BencherConfigError: If environment values are invalid.
        """
        explicit_path = os.getenv(CONFIG_ENV_VAR)
        if config_path is not None:
            config_path = config_path.expanduser().resolve()
        elif explicit_path:
            config_path = Path(explicit_path).expanduser().resolve()
        else:
            config_path = find_config_file(start_dir or Path.cwd())
        return cls(
            config_path=config_path,
            extra_databases=_parse_databases(os.getenv(DATABASES_ENV_VAR, "")),
            log_level=_parse_log_level(os.getenv(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL)),
        )


def find_config_file(start_dir: Path) -> Path:
    """Walk up from a directory looking for the experiment config file.

    Args:
        start_dir: First directory to inspect.

    Returns:
        Resolved config file path.

    Raises:
        BencherConfigError: If no directory up to the root holds one.
    """
    directory = start_dir.expanduser().resolve()
    for candidate_dir in (directory, *directory.parents):
        candidate = candidate_dir / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    raise BencherConfigError(
        f"No {CONFIG_FILE_NAME} found in {directory} or any parent directory. "
        f"Create one or set {CONFIG_ENV_VAR} to its path."
    )


def _parse_databases(raw_value: str) -> tuple[Path, ...]:
    rows = [row.strip() for row in raw_value.split(os.pathsep)]
    return tuple(Path(row).expanduser().resolve() for row in rows if row)


def _parse_log_level(raw_value: str) -> str:
    """Parse the log level environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Upper-cased level name.

    Raises:
        BencherConfigError: If the value is not a logging level name.
    """
    level_name = raw_value.strip().upper()
    if not isinstance(logging.getLevelName(level_name), int):
        raise BencherConfigError(
            f"Invalid {LOG_LEVEL_ENV_VAR} value: expected a level name, got '{raw_value}'. "
            "Set it to DEBUG, INFO, WARNING or ERROR."
        )
    return level_name
