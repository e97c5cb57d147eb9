"""
Orchestrators for ZoneGuard.

This module contains the zone service and the background task queue
that coordinate the flow between ports and adapters.
"""
from .task_queue import QueueItem, TaskType, ZoneTaskQueue
from .zone_service import ZoneService

__all__ = ["ZoneService", "ZoneTaskQueue", "TaskType", "QueueItem"]
