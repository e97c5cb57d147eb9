"""
In-memory adapters for ZoneGuard.

These adapters implement the ports without external infrastructure and
back the test suite and local runs.
"""

from .repository import InMemoryZoneRepository
from .event_bus import InMemoryEventBus
from .environment import StaticEnvironment, InMemoryIncidentHistory

__all__ = ["InMemoryZoneRepository", "InMemoryEventBus", "StaticEnvironment", "InMemoryIncidentHistory"]
