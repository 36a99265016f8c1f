"""
Repository-layer exceptions for the location store.
"""

from __future__ import annotations


class LocationRepositoryError(Exception):
    """Base exception for location store failures."""


class SnapshotReadError(LocationRepositoryError):
    """Raised when the parent tables cannot be read for index construction."""


class BatchWriteError(LocationRepositoryError):
    """Raised when one polling-unit batch is rejected by the store."""


class SeedWriteError(LocationRepositoryError):
    """Raised when a parent-level upsert fails during seeding."""
