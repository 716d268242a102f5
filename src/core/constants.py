"""Core constants used across Bencher modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

CONFIG_FILE_NAME = ".bencher-config"
CONFIG_ENV_VAR = "BENCHER_CONFIG"
DATABASES_ENV_VAR = "BENCHER_DATABASES"
LOG_LEVEL_ENV_VAR = "BENCHER_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"
YAML_CONFIG_SUFFIXES = (".yaml", ".yml")
MEMORY_STORE_PATH = ":memory:"
UNKNOWN_STORE_PATH = "<unknown>"

EXPERIMENTS_TABLE = "experiments"
LINEAR_RESULTS_TABLE = "linear_results"
XY_RESULTS_TABLE = "xy_results"
REQUIRED_TABLES = (EXPERIMENTS_TABLE, LINEAR_RESULTS_TABLE, XY_RESULTS_TABLE)

LOWER_PERCENTILES = (1, 5, 10, 25)
UPPER_PERCENTILES = (99, 95, 90, 75)
MEDIAN_PERCENTILE = 50

LINEAR_AXES = ("v",)
XY_AXES = ("x", "y")

DEFAULT_V_EXPRESSION = "v"
DEFAULT_X_EXPRESSION = "x"
DEFAULT_Y_EXPRESSION = "y"
DEFAULT_TAG_EXPRESSION = "tag"
DEFAULT_LINEAR_TO_X_EXPRESSION = "tag"
DEFAULT_LINEAR_TO_Y_EXPRESSION = "v"

SAMPLE_CENTRES = ("median", "avg")
DEFAULT_SAMPLE_CENTRE = "median"
