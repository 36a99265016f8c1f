"""
Repository error exports.
"""

from db.repositories.errors import (
    BatchWriteError,
    LocationRepositoryError,
    SeedWriteError,
    SnapshotReadError,
)

__all__ = [
    "LocationRepositoryError",
    "SnapshotReadError",
    "BatchWriteError",
    "SeedWriteError",
]
