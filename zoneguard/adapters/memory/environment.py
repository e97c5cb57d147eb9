"""
Static environment and in-memory incident history providers.
"""

from typing import Dict, Optional
from zoneguard.core.models import Coordinates, TerrainComplexity, WeatherConditions, Zone, ZoneType

# zone 타입별 기본 지형 복잡도
DEFAULT_TERRAIN: Dict[ZoneType, TerrainComplexity] = {
    ZoneType.RISK_ZONE: "high",
    ZoneType.RESTRICTED_ZONE: "medium",
    ZoneType.BORDER_CHECKPOINT: "medium",
    ZoneType.EMERGENCY_ZONE: "medium",
}

def terrain_for_type(zone_type: ZoneType) -> TerrainComplexity:
    return DEFAULT_TERRAIN.get(zone_type, "low")

class StaticEnvironment:
    """고정 기상 정보와 zone별 지형 등급을 제공하는 환경 정보 제공자"""

    def __init__(self,
                 weather: Optional[WeatherConditions] = None,
                 terrain: Optional[Dict[str, TerrainComplexity]] = None):
        """
        Args:
            weather: 모든 위치에 반환할 기상 정보 (None이면 평온)
            terrain: zone id별 지형 등급 (없으면 zone 타입 기본값)
        """
        self.weather = weather or WeatherConditions()
        self.terrain = dict(terrain or {})

    async def get_weather(self, location: Coordinates) -> WeatherConditions:
        return self.weather

    async def get_terrain_complexity(self, zone: Zone) -> TerrainComplexity:
        return self.terrain.get(zone.id, terrain_for_type(zone.type))

class InMemoryIncidentHistory:
    """zone별 주간 경보/사고 건수 저장소"""

    def __init__(self):
        self.weekly_alerts: Dict[str, int] = {}
        self.incidents: Dict[str, int] = {}

    async def weekly_alert_count(self, zone_id: str) -> int:
        return self.weekly_alerts.get(zone_id, 0)

    async def incident_count(self, zone_id: str) -> int:
        return self.incidents.get(zone_id, 0)

    def record_alert(self, zone_id: str, count: int = 1) -> None:
        self.weekly_alerts[zone_id] = self.weekly_alerts.get(zone_id, 0) + count

    def record_incident(self, zone_id: str, count: int = 1) -> None:
        self.incidents[zone_id] = self.incidents.get(zone_id, 0) + count
