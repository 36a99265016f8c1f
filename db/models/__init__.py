"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.lga import LGA
from db.models.polling_unit import PollingUnit
from db.models.state import State
from db.models.ward import Ward

__all__ = [
    "State",
    "LGA",
    "Ward",
    "PollingUnit",
]
