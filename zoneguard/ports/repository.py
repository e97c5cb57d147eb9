"""
Zone repository port interface.

This module defines the protocol for zone persistence.
"""

from typing import Any, Dict, List, Optional, Protocol
from zoneguard.core.models import TimeRange, Zone, ZoneBase, ZoneFilter

class ZoneRepositoryPort(Protocol):
    """zone 저장소 포트 인터페이스"""

    async def fetch_zones(self, zone_filter: Optional[ZoneFilter] = None) -> List[Zone]:
        """
        필터에 맞는 zone 목록을 조회합니다.

        Args:
            zone_filter: 조회 필터 (None이면 전체)

        Returns:
            zone 목록
        """
        ...

    async def fetch_zone(self, zone_id: str) -> Optional[Zone]:
        """
        id로 zone을 조회합니다.

        Returns:
            zone 또는 None
        """
        ...

    async def create_zone(self, data: ZoneBase) -> Zone:
        """
        zone을 저장하고 새 id를 할당합니다.

        Args:
            data: 저장할 zone 데이터

        Returns:
            id가 할당된 zone
        """
        ...

    async def update_zone(self, zone_id: str, zone: Zone) -> Zone:
        """
        zone 전체를 갱신합니다.

        Returns:
            갱신된 zone
        """
        ...

    async def delete_zone(self, zone_id: str) -> None:
        """zone을 삭제합니다."""
        ...

    async def fetch_analytics(self, zone_id: str,
                              time_range: Optional[TimeRange] = None) -> Optional[Dict[str, Any]]:
        """
        zone 분석 데이터를 조회합니다.

        Returns:
            분석 데이터 또는 None
        """
        ...
