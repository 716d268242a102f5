"""Virtual experiment engine.

This module derives experiments from other experiments by applying
expressions to every resolved point at read time.
"""
