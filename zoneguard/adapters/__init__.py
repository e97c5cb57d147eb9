"""
Adapters for ZoneGuard hexagonal architecture.

This module contains the concrete implementations of port interfaces
that handle external I/O and infrastructure concerns.
"""

from .storage import SQLiteZoneRepository
from .mqtt import MqttEventBus
from .weather import OpenMeteoWeatherClient
from .memory import InMemoryZoneRepository, InMemoryEventBus, StaticEnvironment, InMemoryIncidentHistory

__all__ = ["SQLiteZoneRepository", "MqttEventBus", "OpenMeteoWeatherClient",
           "InMemoryZoneRepository", "InMemoryEventBus", "StaticEnvironment", "InMemoryIncidentHistory"]
