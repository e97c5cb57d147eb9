"""
Risk signal port interfaces.

Environmental (weather/terrain) and incident history lookups that feed
the risk assessment engine.
"""

from typing import Protocol
from zoneguard.core.models import Coordinates, TerrainComplexity, WeatherConditions, Zone

class EnvironmentPort(Protocol):
    """환경 정보 포트 인터페이스"""

    async def get_weather(self, location: Coordinates) -> WeatherConditions:
        """
        위치의 현재 기상 정보를 조회합니다.

        Args:
            location: 조회 위치

        Returns:
            기상 정보
        """
        ...

    async def get_terrain_complexity(self, zone: Zone) -> TerrainComplexity:
        """zone의 지형 복잡도 등급을 반환합니다."""
        ...

class IncidentHistoryPort(Protocol):
    """사고/경보 이력 포트 인터페이스"""

    async def weekly_alert_count(self, zone_id: str) -> int:
        """최근 7일간 zone에서 발생한 경보 수"""
        ...

    async def incident_count(self, zone_id: str) -> int:
        """zone의 과거 사고 건수"""
        ...
