"""Storage and versioning layer.

This module persists experiment codes and versioned result rows in sqlite
stores, federates several stores for reads, and exposes the SDK clients.
"""
