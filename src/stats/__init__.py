"""Sample statistics.

This module computes nearest-rank percentiles and averages over raw
benchmark samples. It seeds confidence bands and expression aggregates.
"""
