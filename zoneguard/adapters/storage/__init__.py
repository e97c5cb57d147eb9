"""
Storage adapters for ZoneGuard hexagonal architecture.

This module contains the SQLite-based zone repository.
"""

from .sqlite_zones import SQLiteZoneRepository

__all__ = ["SQLiteZoneRepository"]
