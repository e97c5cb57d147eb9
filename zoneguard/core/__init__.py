"""
Core domain models and pure functions for ZoneGuard.

This module contains the domain models and error taxonomy
that are independent of external I/O.
"""

from .models import (
    Coordinates, BoundingBox, CircularGeometry, PolygonGeometry, ZoneGeometry,
    Zone, ZoneBase, ZoneFilter, ZoneOverlap, ZoneType, ZoneStatus, RiskLevel,
    OverlapType, GeofenceEvent, WeatherConditions,
)
from .errors import (
    ZoneGuardError, ZoneValidationError, ZoneNotFoundError,
    PersistenceError, QueueTaskFailure,
)

__all__ = [
    "Coordinates", "BoundingBox", "CircularGeometry", "PolygonGeometry", "ZoneGeometry",
    "Zone", "ZoneBase", "ZoneFilter", "ZoneOverlap", "ZoneType", "ZoneStatus", "RiskLevel",
    "OverlapType", "GeofenceEvent", "WeatherConditions",
    "ZoneGuardError", "ZoneValidationError", "ZoneNotFoundError",
    "PersistenceError", "QueueTaskFailure",
]
