"""
Risk assessment engine for ZoneGuard.

This module computes a 0-100 risk score for a zone as a weighted sum of
five independently bounded sub-scores, and maps scores to risk levels.
"""

import time
from typing import Dict
from pydantic import BaseModel
from zoneguard.common.geo import geometry_center
from zoneguard.core.models import (
    RiskLevel,
    TerrainComplexity,
    WeatherConditions,
    Zone,
    ZoneType,
)
from zoneguard.observability import metrics
from zoneguard.observability.logging_setup import get_logger
from zoneguard.ports.environment import EnvironmentPort, IncidentHistoryPort

log = get_logger("zoneguard.risk")

RISK_WEIGHTS: Dict[str, float] = {
    "alert_frequency": 0.30,
    "occupancy": 0.25,
    "incident_history": 0.20,
    "environment": 0.15,
    "access_complexity": 0.10,
}

# 최대 수용 인원 미설정 시 기본값
DEFAULT_CAPACITY = 100

# zone 타입별 기준 사고 건수
BASELINE_INCIDENTS: Dict[ZoneType, float] = {
    ZoneType.SAFE_ZONE: 0.1,
    ZoneType.TOURIST_ATTRACTION: 0.5,
    ZoneType.RISK_ZONE: 2.0,
    ZoneType.RESTRICTED_ZONE: 1.0,
    ZoneType.EMERGENCY_ZONE: 1.5,
    ZoneType.ACCOMMODATION: 0.3,
    ZoneType.TRANSPORT_HUB: 0.7,
    ZoneType.MEDICAL_FACILITY: 0.2,
    ZoneType.POLICE_STATION: 0.1,
    ZoneType.BORDER_CHECKPOINT: 1.0,
}

# (최소 점수, 레벨) - 높은 순
RISK_THRESHOLDS = [
    (90, RiskLevel.CRITICAL),
    (75, RiskLevel.VERY_HIGH),
    (60, RiskLevel.HIGH),
    (40, RiskLevel.MODERATE),
    (20, RiskLevel.LOW),
]


class RiskBreakdown(BaseModel):
    """위험 점수 구성 요소"""
    alert_frequency: float
    occupancy: float
    incident_history: float
    environment: float
    access_complexity: float
    total: float


def clamp_score(value: float) -> float:
    """점수를 [0, 100]으로 제한합니다."""
    return max(0.0, min(100.0, value))


def capacity_of(zone: Zone) -> int:
    return zone.access_restrictions.max_occupancy or DEFAULT_CAPACITY


def alert_frequency_score(alerts_today: int, alerts_this_week: int, capacity: int) -> float:
    """
    수용 인원으로 정규화한 경보 빈도 점수.

    Args:
        alerts_today: 오늘 발생한 경보 수
        alerts_this_week: 최근 7일 경보 수
        capacity: 수용 인원

    Returns:
        0-100 점수
    """
    capacity = max(1, capacity)
    daily = alerts_today / capacity * 100
    weekly = alerts_this_week / (capacity * 7) * 100
    return clamp_score(daily * 0.7 + weekly * 0.3)


def occupancy_score(current: int, capacity: int) -> float:
    """
    점유율 점수. 80%까지는 선형(0-40), 이후 급격히 증가(40-100).
    """
    utilization = current / max(1, capacity)
    if utilization <= 0.8:
        return clamp_score(utilization * 50)
    return clamp_score(40 + (utilization - 0.8) / 0.2 * 60)


def incident_score(incidents: int, zone_type: ZoneType) -> float:
    """zone 타입별 기준 대비 사고 이력 점수"""
    baseline = BASELINE_INCIDENTS.get(zone_type, 0.5)
    return clamp_score(incidents / max(1.0, baseline) * 30)


def environmental_score(weather: WeatherConditions, terrain: TerrainComplexity) -> float:
    """기상 및 지형 점수"""
    score = 0.0
    if weather.is_storm:
        score += 40
    if weather.visibility < 100:
        score += 20
    if weather.temperature < -10 or weather.temperature > 40:
        score += 15

    if terrain == "high":
        score += 25
    elif terrain == "medium":
        score += 10

    return clamp_score(score)


def access_complexity_score(zone: Zone) -> float:
    """접근 제한 및 zone 타입 점수"""
    score = 0.0
    if zone.access_restrictions.requires_permission:
        score += 20
    if zone.access_restrictions.requires_guide:
        score += 30
    if zone.type == ZoneType.RISK_ZONE:
        score += 25
    if zone.type == ZoneType.RESTRICTED_ZONE:
        score += 35
    return clamp_score(score)


def combine_scores(alert_frequency: float, occupancy: float, incident_history: float,
                   environment: float, access_complexity: float) -> RiskBreakdown:
    """하위 점수들을 제한 후 가중합합니다."""
    parts = {
        "alert_frequency": clamp_score(alert_frequency),
        "occupancy": clamp_score(occupancy),
        "incident_history": clamp_score(incident_history),
        "environment": clamp_score(environment),
        "access_complexity": clamp_score(access_complexity),
    }
    total = sum(parts[name] * weight for name, weight in RISK_WEIGHTS.items())
    return RiskBreakdown(**parts, total=clamp_score(total))


def risk_level_from_score(score: float) -> RiskLevel:
    """점수를 고정 임계값으로 위험 레벨에 매핑합니다."""
    for threshold, level in RISK_THRESHOLDS:
        if score >= threshold:
            return level
    return RiskLevel.VERY_LOW


def should_update_risk_level(previous_score: float, new_score: float,
                             hysteresis: float = 10.0) -> bool:
    """변동 폭이 히스테리시스 구간을 넘을 때만 갱신합니다."""
    return abs(new_score - previous_score) > hysteresis


class RiskAssessor:
    """외부 신호를 모아 zone 위험 점수를 계산하는 평가기"""

    def __init__(self, environment: EnvironmentPort, history: IncidentHistoryPort):
        self.environment = environment
        self.history = history

    async def assess(self, zone: Zone) -> RiskBreakdown:
        """
        zone의 위험 점수 구성 요소를 계산합니다.

        Args:
            zone: 평가할 zone

        Returns:
            하위 점수와 총점
        """
        t0 = time.perf_counter()
        capacity = capacity_of(zone)

        weekly_alerts = await self.history.weekly_alert_count(zone.id)
        incidents = await self.history.incident_count(zone.id)
        weather = await self.environment.get_weather(geometry_center(zone.geometry))
        terrain = await self.environment.get_terrain_complexity(zone)

        breakdown = combine_scores(
            alert_frequency=alert_frequency_score(
                zone.statistics.alerts_triggered_today, weekly_alerts, capacity),
            occupancy=occupancy_score(zone.statistics.current_occupancy, capacity),
            incident_history=incident_score(incidents, zone.type),
            environment=environmental_score(weather, terrain),
            access_complexity=access_complexity_score(zone),
        )

        metrics.risk_seconds.observe(time.perf_counter() - t0)
        log.debug("위험 점수 계산 완료",
                  zone_id=zone.id,
                  total=round(breakdown.total, 2),
                  occupancy=round(breakdown.occupancy, 2),
                  environment=round(breakdown.environment, 2))
        return breakdown

    async def calculate_risk(self, zone: Zone) -> float:
        """zone의 위험 점수 (0-100)"""
        breakdown = await self.assess(zone)
        return breakdown.total
