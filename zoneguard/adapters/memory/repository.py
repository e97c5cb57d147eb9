"""
In-memory zone repository for ZoneGuard.

Implements ZoneRepositoryPort over a dict; used by tests and local
runs without a database. Ids come from a monotonic counter and are
never reused after deletion.
"""

import itertools
from typing import Any, Dict, List, Optional
from zoneguard.core.filters import apply_filter
from zoneguard.core.models import TimeRange, Zone, ZoneBase, ZoneFilter, utc_now_iso

class InMemoryZoneRepository:
    """메모리 기반 zone 저장소"""

    def __init__(self, zones: Optional[List[Zone]] = None):
        self._zones: Dict[str, Zone] = {}
        self._analytics: Dict[str, Dict[str, Any]] = {}
        self._seq = itertools.count(1)
        for zone in zones or []:
            self._zones[zone.id] = zone

    async def fetch_zones(self, zone_filter: Optional[ZoneFilter] = None) -> List[Zone]:
        return apply_filter(list(self._zones.values()), zone_filter)

    async def fetch_zone(self, zone_id: str) -> Optional[Zone]:
        return self._zones.get(zone_id)

    async def create_zone(self, data: ZoneBase) -> Zone:
        zone_id = f"zone_{next(self._seq)}"
        while zone_id in self._zones:
            zone_id = f"zone_{next(self._seq)}"
        zone = Zone(id=zone_id, **data.model_dump())
        self._zones[zone_id] = zone
        return zone

    async def update_zone(self, zone_id: str, zone: Zone) -> Zone:
        if zone_id not in self._zones:
            raise KeyError(zone_id)
        stored = zone.model_copy(update={"id": zone_id, "updated_at": utc_now_iso()})
        self._zones[zone_id] = stored
        return stored

    async def delete_zone(self, zone_id: str) -> None:
        self._zones.pop(zone_id, None)
        self._analytics.pop(zone_id, None)

    async def fetch_analytics(self, zone_id: str,
                              time_range: Optional[TimeRange] = None) -> Optional[Dict[str, Any]]:
        return self._analytics.get(zone_id)

    def set_analytics(self, zone_id: str, analytics: Dict[str, Any]) -> None:
        """테스트/시드용 분석 데이터 설정"""
        self._analytics[zone_id] = analytics
