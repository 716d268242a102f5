"""Public SDK surface for Bencher.

This module provides a stable import path for users recording benchmark
results. It re-exports the SDK clients and the typed datapoint models.
"""

from __future__ import annotations

from core.config import BencherConfig
from core.selector import Selector
from core.types import (
    ExperimentCatalog,
    LinearDatapoint,
    LinearExperimentView,
    XYDatapoint,
    XYExperimentView,
)
from core.values import Confidence, Magnitude
from stats.samples import linear_from_sample, xy_from_samples
from store.bencher_sdk import BencherReader, BencherWriter
from store.federation import StoreFederation
from store.record_store import RecordStore

__all__ = [
    "BencherConfig",
    "BencherReader",
    "BencherWriter",
    "Confidence",
    "ExperimentCatalog",
    "LinearDatapoint",
    "LinearExperimentView",
    "Magnitude",
    "RecordStore",
    "Selector",
    "StoreFederation",
    "XYDatapoint",
    "XYExperimentView",
    "linear_from_sample",
    "xy_from_samples",
]
