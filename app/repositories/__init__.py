"""
app/repositories package marker.
"""

from app.repositories.location_repository import LocationRepository

__all__ = ["LocationRepository"]
