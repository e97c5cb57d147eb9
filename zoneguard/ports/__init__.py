"""
Port interfaces for ZoneGuard hexagonal architecture.

This module defines the port interfaces (Protocols) that define
the contracts between the core domain and external adapters.
"""

from .repository import ZoneRepositoryPort
from .event_bus import EventBusPort, MessageHandler
from .environment import EnvironmentPort, IncidentHistoryPort

__all__ = ["ZoneRepositoryPort", "EventBusPort", "MessageHandler",
           "EnvironmentPort", "IncidentHistoryPort"]
