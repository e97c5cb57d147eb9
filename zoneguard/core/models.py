"""
Core domain models for ZoneGuard.

This module defines the zone, geometry and geofence models using
Pydantic v2 for type safety and validation.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

# 원형 zone 최대 반경 (미터)
MAX_RADIUS_M = 50_000
MIN_POLYGON_POINTS = 3
MAX_POLYGON_POINTS = 1000


def utc_now_iso() -> str:
    """현재 UTC 시각을 ISO 8601 문자열로 반환합니다."""
    return datetime.now(timezone.utc).isoformat()


class ZoneType(str, Enum):
    SAFE_ZONE = "safe_zone"
    TOURIST_ATTRACTION = "tourist_attraction"
    RISK_ZONE = "risk_zone"
    RESTRICTED_ZONE = "restricted_zone"
    EMERGENCY_ZONE = "emergency_zone"
    ACCOMMODATION = "accommodation"
    TRANSPORT_HUB = "transport_hub"
    MEDICAL_FACILITY = "medical_facility"
    POLICE_STATION = "police_station"
    BORDER_CHECKPOINT = "border_checkpoint"


class RiskLevel(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very_high"
    CRITICAL = "critical"


class ZoneStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"
    EMERGENCY_LOCKDOWN = "emergency_lockdown"


class OverlapType(str, Enum):
    CONTAINED = "contained"
    PARTIAL = "partial"
    ADJACENT = "adjacent"


ConflictSeverity = Literal["none", "low", "medium", "high"]
TerrainComplexity = Literal["low", "medium", "high"]
GeofenceEventType = Literal["entry", "exit"]


class Coordinates(BaseModel):
    """위경도 좌표 (불변)"""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class BoundingBox(BaseModel):
    """축 정렬 경계 상자"""
    northeast: Coordinates
    southwest: Coordinates


class CircularGeometry(BaseModel):
    """원형 zone 형상"""
    kind: Literal["circle"] = "circle"
    center: Coordinates
    radius: float = Field(gt=0, le=MAX_RADIUS_M)  # 미터


class PolygonGeometry(BaseModel):
    """다각형 zone 형상 (첫/마지막 점은 암묵적으로 연결)"""
    kind: Literal["polygon"] = "polygon"
    points: List[Coordinates] = Field(min_length=MIN_POLYGON_POINTS,
                                      max_length=MAX_POLYGON_POINTS)


ZoneGeometry = Annotated[Union[CircularGeometry, PolygonGeometry],
                         Field(discriminator="kind")]


class AccessRestrictions(BaseModel):
    max_occupancy: Optional[int] = Field(default=None, gt=0)
    requires_permission: bool = False
    requires_guide: bool = False


class AlertSettings(BaseModel):
    enable_entry_alerts: bool = True
    enable_exit_alerts: bool = False


class ZoneStatistics(BaseModel):
    current_occupancy: int = Field(default=0, ge=0)
    alerts_triggered_today: int = Field(default=0, ge=0)
    max_occupancy_today: int = Field(default=0, ge=0)
    total_visits_today: int = Field(default=0, ge=0)
    last_entry_time: Optional[str] = None
    last_exit_time: Optional[str] = None


class ZoneBase(BaseModel):
    """저장 전 zone 데이터 (id 미할당)"""
    name: str = Field(min_length=1)
    description: Optional[str] = None
    type: ZoneType = ZoneType.SAFE_ZONE
    geometry: ZoneGeometry
    bounding_box: BoundingBox
    risk_level: RiskLevel = RiskLevel.VERY_LOW
    risk_score: float = Field(default=0.0, ge=0, le=100)
    status: ZoneStatus = ZoneStatus.ACTIVE
    is_geofence_active: bool = True
    access_restrictions: AccessRestrictions = Field(default_factory=AccessRestrictions)
    alert_settings: AlertSettings = Field(default_factory=AlertSettings)
    statistics: ZoneStatistics = Field(default_factory=ZoneStatistics)
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


class Zone(ZoneBase):
    """저장된 zone"""
    id: str


class ZoneFilter(BaseModel):
    """zone 조회 필터"""
    types: Optional[List[ZoneType]] = None
    risk_levels: Optional[List[RiskLevel]] = None
    status: Optional[List[ZoneStatus]] = None
    search_term: Optional[str] = None
    bounding_box: Optional[BoundingBox] = None
    has_alerts: Optional[bool] = None
    min_occupancy: Optional[int] = None
    max_occupancy: Optional[int] = None


class ZoneOverlap(BaseModel):
    """두 zone 간 겹침 결과 (파생, 저장되지 않음)"""
    zone1_id: Optional[str]
    zone2_id: str
    overlap_type: OverlapType
    overlap_area: float
    overlap_percentage: float
    conflict_severity: ConflictSeverity


class GeofenceEvent(BaseModel):
    """지오펜스 진입/이탈 이벤트"""
    type: GeofenceEventType
    tourist_id: str
    zone_id: str
    zone_name: str
    location: Coordinates
    timestamp: str = Field(default_factory=utc_now_iso)
    risk_level: RiskLevel


class WeatherConditions(BaseModel):
    """환경 위험 평가용 기상 정보"""
    is_storm: bool = False
    visibility: float = 10_000.0  # 미터
    temperature: float = 20.0     # 섭씨


class TimeRange(BaseModel):
    start: str
    end: str
