"""
Metrics definitions for ZoneGuard.

This module defines Prometheus metrics for monitoring
zone management, geofencing and the background task queue.
"""

from prometheus_client import Counter, Histogram, Gauge

# 카운터 메트릭
zones_mutated = Counter(
    "zones_mutated_total",
    "Number of zone create/update/delete operations",
    ["action"]
)

geofence_events = Counter(
    "geofence_events_total",
    "Number of geofence entry/exit transitions",
    ["type"]
)

geofence_alerts = Counter(
    "geofence_alerts_total",
    "Number of geofence alerts published",
    ["type"]
)

overlap_warnings = Counter(
    "zone_overlap_warnings_total",
    "Zone overlaps detected while creating zones"
)

risk_level_changes = Counter(
    "risk_level_changes_total",
    "Number of persisted risk level changes",
    ["level"]
)

queue_processed = Counter(
    "queue_tasks_processed_total",
    "Queue tasks processed successfully",
    ["type"]
)

queue_retries = Counter(
    "queue_task_retries_total",
    "Queue task retries after a failed attempt",
    ["type"]
)

queue_dropped = Counter(
    "queue_tasks_dropped_total",
    "Queue tasks dropped after exhausting attempts",
    ["type"]
)

cache_lookups = Counter(
    "zone_cache_lookups_total",
    "Zone cache lookups",
    ["result"]
)

events_published = Counter(
    "events_published_total",
    "Events handed to the event bus",
    ["event_type", "delivered"]
)

reconnects = Counter(
    "event_bus_reconnects_total",
    "Event bus reconnect attempts"
)

# 히스토그램 메트릭
risk_seconds = Histogram(
    "risk_calculation_duration_seconds",
    "Time spent calculating a zone risk score",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)

overlap_seconds = Histogram(
    "overlap_check_duration_seconds",
    "Time spent checking zone overlaps",
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0]
)

# 게이지 메트릭
queue_depth = Gauge(
    "zone_queue_depth",
    "Current depth of the zone task queue"
)

tracked_tourists = Gauge(
    "tracked_tourists",
    "Tourists with a known zone membership"
)

uptime_seconds = Gauge(
    "uptime_seconds",
    "Service uptime in seconds"
)
