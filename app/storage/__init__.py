"""
Storage layer exports.
"""

from app.storage.base import BatchSink
from app.storage.sqlalchemy_storage import SQLAlchemyPollingUnitSink

__all__ = ["BatchSink", "SQLAlchemyPollingUnitSink"]
