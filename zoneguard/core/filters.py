"""
Zone filter matching shared by repository adapters.
"""

from typing import Iterable, List, Optional
from zoneguard.common.geo import bounding_boxes_intersect
from zoneguard.core.models import Zone, ZoneFilter


def matches_filter(zone: Zone, zone_filter: Optional[ZoneFilter]) -> bool:
    """zone이 필터 조건을 모두 만족하는지 확인합니다."""
    if zone_filter is None:
        return True

    f = zone_filter
    if f.types is not None and zone.type not in f.types:
        return False
    if f.risk_levels is not None and zone.risk_level not in f.risk_levels:
        return False
    if f.status is not None and zone.status not in f.status:
        return False
    if f.search_term:
        term = f.search_term.lower()
        haystack = f"{zone.name} {zone.description or ''}".lower()
        if term not in haystack:
            return False
    if f.bounding_box is not None and not bounding_boxes_intersect(zone.bounding_box, f.bounding_box):
        return False
    if f.has_alerts is not None and (zone.statistics.alerts_triggered_today > 0) != f.has_alerts:
        return False
    occupancy = zone.statistics.current_occupancy
    if f.min_occupancy is not None and occupancy < f.min_occupancy:
        return False
    if f.max_occupancy is not None and occupancy > f.max_occupancy:
        return False
    return True


def apply_filter(zones: Iterable[Zone], zone_filter: Optional[ZoneFilter]) -> List[Zone]:
    return [z for z in zones if matches_filter(z, zone_filter)]
