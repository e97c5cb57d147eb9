"""
Zone service orchestrator for ZoneGuard.

This module implements the public surface of the geofencing engine:
zone CRUD behind a TTL cache, containment and overlap queries,
entry/exit handling for tracked tourists and risk level mutation.
Side effects (event publishing, risk recalculation, analytics) run on
the zone task queue so the request path stays geometry-only.
"""

import asyncio
import re
import time
import uuid
from typing import Any, Dict, List, Optional, Set, Union
from pydantic import BaseModel, TypeAdapter, ValidationError
from zoneguard.common.cache import ZoneCache
from zoneguard.common.geo import (
    bounding_boxes_intersect,
    geometry_area,
    geometry_bounding_box,
    geometry_center,
    geometry_intersection_area,
    geometry_perimeter,
    point_in_geometry,
)
from zoneguard.core.errors import PersistenceError, ZoneGuardError, ZoneNotFoundError, ZoneValidationError
from zoneguard.core.models import (
    ConflictSeverity,
    Coordinates,
    GeofenceEvent,
    GeofenceEventType,
    OverlapType,
    RiskLevel,
    TimeRange,
    Zone,
    ZoneBase,
    ZoneFilter,
    ZoneGeometry,
    ZoneOverlap,
    ZoneStatus,
    utc_now_iso,
)
from zoneguard.core.risk import RiskAssessor, risk_level_from_score, should_update_risk_level
from zoneguard.observability import metrics
from zoneguard.observability.logging_setup import get_logger
from zoneguard.orchestrators.task_queue import QueueItem, TaskType, ZoneTaskQueue
from zoneguard.ports.event_bus import EventBusPort
from zoneguard.ports.repository import ZoneRepositoryPort

log = get_logger("zoneguard.service")

_geometry_adapter = TypeAdapter(ZoneGeometry)

# 작업 우선순위 (높을수록 먼저)
PRIORITY_GEOFENCE_CHECK = 5
PRIORITY_ZONE_UPDATE = 4
PRIORITY_ANALYTICS_UPDATE = 3
PRIORITY_RISK_CALCULATION = 2

# 원격 인스턴스에서 수신해 캐시 무효화를 일으키는 이벤트
REMOTE_EVENT_TYPES = {"zone_updated", "geofence_alert", "risk_level_changed"}

# 한 단계 병합하는 하위 문서 필드
NESTED_FIELDS = {"access_restrictions", "alert_settings", "statistics"}


def classify_overlap_type(percentage: float) -> OverlapType:
    """겹침 비율로 겹침 유형을 분류합니다."""
    if percentage > 90:
        return OverlapType.CONTAINED
    if percentage > 5:
        return OverlapType.PARTIAL
    return OverlapType.ADJACENT


def conflict_severity(percentage: float) -> ConflictSeverity:
    """겹침 비율로 충돌 심각도를 분류합니다 (25/50/75% 구간)."""
    if percentage > 75:
        return "high"
    if percentage > 50:
        return "medium"
    if percentage > 25:
        return "low"
    return "none"


def merge_analytics(bucket: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """
    분석 버킷에 지표를 병합합니다.

    숫자 값은 누적하고 그 외 값은 덮어씁니다.

    Args:
        bucket: 기존 버킷
        updates: 병합할 지표

    Returns:
        새 버킷
    """
    merged = dict(bucket)
    for key, value in updates.items():
        previous = merged.get(key)
        is_number = isinstance(value, (int, float)) and not isinstance(value, bool)
        was_number = isinstance(previous, (int, float)) and not isinstance(previous, bool)
        if is_number and was_number:
            merged[key] = previous + value
        else:
            merged[key] = value
    return merged


def _zone_key(zone_id: str) -> str:
    return f"zone:{zone_id}"


def _zone_list_key(zone_filter: Optional[ZoneFilter]) -> str:
    if zone_filter is None:
        return "zones:all"
    return f"zones:{zone_filter.model_dump_json(exclude_none=True)}"


def _analytics_bucket_key(zone_id: str) -> str:
    return f"analytics:{zone_id}:live"


def _analytics_fetch_key(zone_id: str, time_range: Optional[TimeRange]) -> str:
    if time_range is None:
        return f"analytics:{zone_id}:range"
    return f"analytics:{zone_id}:range:{time_range.start}:{time_range.end}"


class ZoneService:
    """zone 지오펜싱 및 위험 평가 오케스트레이터"""

    get_risk_level_from_score = staticmethod(risk_level_from_score)

    def __init__(self,
                 repository: ZoneRepositoryPort,
                 event_bus: EventBusPort,
                 risk_assessor: RiskAssessor,
                 *,
                 instance_id: Optional[str] = None,
                 cache: Optional[ZoneCache] = None,
                 queue: Optional[ZoneTaskQueue] = None,
                 zone_list_ttl: float = 120.0,
                 analytics_ttl: float = 600.0,
                 analytics_fetch_ttl: float = 300.0,
                 hysteresis: float = 10.0,
                 overlap_threshold: float = 10.0):
        """
        초기화합니다.

        Args:
            repository: zone 저장소 포트
            event_bus: 이벤트 배포 포트
            risk_assessor: 위험 평가기
            instance_id: 이 인스턴스의 식별자 (None이면 생성)
            cache: zone 캐시 (None이면 기본 TTL로 생성)
            queue: 작업 큐 (None이면 기본 설정으로 생성)
            zone_list_ttl: zone 목록 캐시 TTL (초)
            analytics_ttl: 분석 버킷 TTL (초)
            analytics_fetch_ttl: 저장소 분석 조회 캐시 TTL (초)
            hysteresis: 위험 점수 갱신 히스테리시스
            overlap_threshold: 겹침 보고 임계 비율 (%)
        """
        self.repository = repository
        self.event_bus = event_bus
        self.risk_assessor = risk_assessor
        self.instance_id = instance_id or f"zoneguard-{uuid.uuid4().hex[:8]}"
        self.cache = cache or ZoneCache()
        self.queue = queue or ZoneTaskQueue()
        self.zone_list_ttl = zone_list_ttl
        self.analytics_ttl = analytics_ttl
        self.analytics_fetch_ttl = analytics_fetch_ttl
        self.hysteresis = hysteresis
        self.overlap_threshold = overlap_threshold

        # 관광객별 현재 소속 zone id 집합
        self.memberships: Dict[str, Set[str]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._subscribed = False

        self.queue.register(TaskType.ZONE_UPDATE, self._handle_zone_update)
        self.queue.register(TaskType.GEOFENCE_CHECK, self._handle_geofence_check)
        self.queue.register(TaskType.RISK_CALCULATION, self._handle_risk_calculation)
        self.queue.register(TaskType.ANALYTICS_UPDATE, self._handle_analytics_update)

        log.info("ZoneService 초기화됨", instance_id=self.instance_id)

    @classmethod
    def from_settings(cls, settings, repository: ZoneRepositoryPort,
                      event_bus: EventBusPort, risk_assessor: RiskAssessor) -> "ZoneService":
        """설정 객체로 서비스를 생성합니다."""
        return cls(
            repository,
            event_bus,
            risk_assessor,
            instance_id=settings.instance_id,
            cache=ZoneCache(default_ttl=settings.cache.default_ttl_sec),
            queue=ZoneTaskQueue(
                max_attempts=settings.queue.max_attempts,
                rearm_delay=settings.queue.rearm_delay_sec,
                failure_history=settings.queue.failure_history,
            ),
            zone_list_ttl=settings.cache.zone_list_ttl_sec,
            analytics_ttl=settings.cache.analytics_ttl_sec,
            analytics_fetch_ttl=settings.cache.analytics_fetch_ttl_sec,
            hysteresis=settings.risk.hysteresis,
            overlap_threshold=settings.geofence.overlap_threshold_percent,
        )

    # ------------------------------------------------------------------
    # 수명 주기

    async def start(self) -> None:
        """큐 워커를 시작하고 이벤트 버스 수신을 구독합니다."""
        if not self._subscribed:
            self.event_bus.on_message(self.handle_remote_message)
            self._subscribed = True
        await self.event_bus.start()
        self.queue.start()
        log.info("ZoneService 시작됨")

    async def stop(self) -> None:
        """큐 워커와 이벤트 버스를 중지합니다."""
        await self.queue.stop()
        await self.event_bus.stop()
        log.info("ZoneService 중지됨")

    # ------------------------------------------------------------------
    # 내부 도우미

    def _zone_lock(self, zone_id: str) -> asyncio.Lock:
        lock = self._locks.get(zone_id)
        if lock is None:
            lock = self._locks[zone_id] = asyncio.Lock()
        return lock

    async def _persist(self, action: str, awaitable, zone_id: Optional[str] = None):
        """저장소 호출 실패를 PersistenceError로 감쌉니다 (재시도하지 않음)."""
        try:
            return await awaitable
        except ZoneGuardError:
            raise
        except KeyError as e:
            if zone_id is not None:
                raise ZoneNotFoundError(zone_id) from e
            raise PersistenceError(f"{action} failed: {e}") from e
        except Exception as e:
            log.error("저장소 호출 실패", action=action, error=str(e))
            raise PersistenceError(f"{action} failed: {e}") from e

    async def _publish(self, event_type: str, data: Dict[str, Any]) -> bool:
        """이벤트를 발송합니다. 실패해도 내부 상태 진행을 막지 않습니다."""
        try:
            delivered = await self.event_bus.publish(event_type, data)
        except Exception as e:
            log.warning("이벤트 발송 실패", event_type=event_type, error=str(e))
            return False
        if not delivered:
            log.debug("이벤트 미전달", event_type=event_type)
        return delivered

    def _invalidate_zone(self, zone_id: str) -> None:
        self.cache.delete(_zone_key(zone_id))
        self.cache.invalidate_pattern(r"^zones:")

    @staticmethod
    def _validate_geometry(raw: Any):
        if isinstance(raw, BaseModel):
            raw = raw.model_dump()
        try:
            return _geometry_adapter.validate_python(raw)
        except ValidationError as e:
            raise ZoneValidationError(f"invalid geometry: {e}") from e

    async def _load_zone(self, zone_id: str) -> Zone:
        """캐시를 거치지 않고 저장소에서 zone을 읽습니다 (변경 경로용)."""
        zone = await self._persist("fetch_zone", self.repository.fetch_zone(zone_id))
        if zone is None:
            raise ZoneNotFoundError(zone_id)
        return zone

    # ------------------------------------------------------------------
    # 조회

    async def fetch_zones(self, zone_filter: Optional[ZoneFilter] = None) -> List[Zone]:
        """
        zone 목록을 조회합니다 (캐시 우선).

        Args:
            zone_filter: 조회 필터

        Returns:
            zone 목록

        Raises:
            PersistenceError: 저장소 호출 실패
        """
        key = _zone_list_key(zone_filter)
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)

        zones = await self._persist("fetch_zones", self.repository.fetch_zones(zone_filter))
        self.cache.set(key, list(zones), ttl=self.zone_list_ttl)
        return list(zones)

    async def get_zone(self, zone_id: str) -> Optional[Zone]:
        """id로 zone을 조회합니다 (캐시 우선). 없으면 None."""
        key = _zone_key(zone_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        zone = await self._persist("fetch_zone", self.repository.fetch_zone(zone_id))
        if zone is not None:
            self.cache.set(key, zone)
        return zone

    # ------------------------------------------------------------------
    # 생성/수정/삭제

    async def create_zone(self, data: Union[ZoneBase, Dict[str, Any]]) -> Zone:
        """
        zone을 생성합니다.

        형상을 검증하고 경계 상자를 계산합니다. 기존 zone과의 겹침은
        경고로만 기록하며 생성을 막지 않습니다.

        Args:
            data: zone 데이터 (dict 또는 ZoneBase)

        Returns:
            생성된 zone

        Raises:
            ZoneValidationError: 형상 또는 필드가 잘못된 경우
            PersistenceError: 저장소 호출 실패
        """
        payload = data.model_dump() if isinstance(data, BaseModel) else dict(data)
        payload.pop("id", None)
        if "geometry" not in payload:
            raise ZoneValidationError("geometry is required")

        geometry = self._validate_geometry(payload["geometry"])
        payload["geometry"] = geometry.model_dump()
        payload["bounding_box"] = geometry_bounding_box(geometry).model_dump()

        try:
            base = ZoneBase.model_validate(payload)
        except ValidationError as e:
            raise ZoneValidationError(str(e)) from e

        overlaps = await self.check_zone_overlaps(base)
        for overlap in overlaps:
            metrics.overlap_warnings.inc()
            log.warning("새 zone이 기존 zone과 겹침",
                        name=base.name,
                        other_zone_id=overlap.zone2_id,
                        percentage=round(overlap.overlap_percentage, 2),
                        severity=overlap.conflict_severity)

        zone = await self._persist("create_zone", self.repository.create_zone(base))
        self.cache.invalidate_pattern(r"^zones:")
        metrics.zones_mutated.labels(action="create").inc()

        self.queue.add(TaskType.ANALYTICS_UPDATE,
                       {"zone_id": zone.id,
                        "metrics": {"created_at": zone.created_at, "zone_type": zone.type.value}},
                       priority=PRIORITY_ANALYTICS_UPDATE)

        log.info("zone 생성됨", zone_id=zone.id, name=zone.name, kind=zone.geometry.kind)
        return zone

    async def update_zone(self, zone_id: str, updates: Dict[str, Any]) -> Zone:
        """
        zone을 부분 갱신합니다.

        형상이 바뀌면 다시 검증하고 경계 상자를 재계산합니다.

        Args:
            zone_id: 갱신할 zone id
            updates: 변경할 필드

        Returns:
            갱신된 zone

        Raises:
            ZoneNotFoundError: zone이 없는 경우
            ZoneValidationError: 변경 내용이 잘못된 경우
        """
        async with self._zone_lock(zone_id):
            return await self._apply_update(zone_id, updates)

    async def _apply_update(self, zone_id: str, updates: Dict[str, Any]) -> Zone:
        # 호출자가 zone 잠금을 잡고 있어야 함
        current = await self._load_zone(zone_id)
        payload = current.model_dump()

        changes = {k: (v.model_dump() if isinstance(v, BaseModel) else v)
                   for k, v in updates.items() if k not in ("id", "bounding_box")}

        if "geometry" in changes:
            geometry = self._validate_geometry(changes["geometry"])
            changes["geometry"] = geometry.model_dump()
            changes["bounding_box"] = geometry_bounding_box(geometry).model_dump()

        for key, value in changes.items():
            if key in NESTED_FIELDS and isinstance(value, dict):
                payload[key] = {**payload.get(key, {}), **value}
            else:
                payload[key] = value

        try:
            zone = Zone.model_validate(payload)
        except ValidationError as e:
            raise ZoneValidationError(str(e)) from e

        updated = await self._persist("update_zone",
                                      self.repository.update_zone(zone_id, zone),
                                      zone_id=zone_id)
        self._invalidate_zone(zone_id)
        metrics.zones_mutated.labels(action="update").inc()

        self.queue.add(TaskType.ZONE_UPDATE, {"zone_id": zone_id}, priority=PRIORITY_ZONE_UPDATE)
        log.debug("zone 갱신됨", zone_id=zone_id, fields=sorted(changes))
        return updated

    async def delete_zone(self, zone_id: str) -> None:
        """
        zone을 삭제하고 파생 캐시와 관광객 소속 정보를 제거합니다.

        Raises:
            ZoneNotFoundError: zone이 없는 경우
        """
        async with self._zone_lock(zone_id):
            await self._load_zone(zone_id)
            await self._persist("delete_zone", self.repository.delete_zone(zone_id), zone_id=zone_id)

            self._invalidate_zone(zone_id)
            self.cache.invalidate_pattern(rf"^analytics:{re.escape(zone_id)}:")
            for zone_ids in self.memberships.values():
                zone_ids.discard(zone_id)
            self._prune_memberships()

        self._locks.pop(zone_id, None)
        metrics.zones_mutated.labels(action="delete").inc()
        log.info("zone 삭제됨", zone_id=zone_id)

    async def set_zone_status(self, zone_id: str, status: Union[ZoneStatus, str]) -> Zone:
        """zone 상태를 변경합니다 (활성/비활성/점검/비상 폐쇄)."""
        return await self.update_zone(zone_id, {"status": ZoneStatus(status)})

    # ------------------------------------------------------------------
    # 형상 질의

    def is_point_in_zone(self, point: Coordinates, zone: Zone) -> bool:
        return point_in_geometry(point, zone.geometry)

    async def find_zones_containing_point(self, point: Coordinates,
                                          zone_filter: Optional[ZoneFilter] = None) -> List[Zone]:
        """좌표를 포함하는 zone 목록을 반환합니다."""
        zones = await self.fetch_zones(zone_filter)
        return [zone for zone in zones if self.is_point_in_zone(point, zone)]

    def zone_area(self, zone: ZoneBase) -> float:
        """zone 면적 (제곱미터)"""
        return geometry_area(zone.geometry)

    def zone_perimeter(self, zone: ZoneBase) -> float:
        """zone 둘레 (미터)"""
        return geometry_perimeter(zone.geometry)

    def zone_center(self, zone: ZoneBase) -> Coordinates:
        return geometry_center(zone.geometry)

    def calculate_overlap_area(self, zone_a: ZoneBase, zone_b: ZoneBase) -> float:
        """
        두 zone의 교집합 면적을 계산합니다.

        경계 상자가 겹치지 않으면 면적 계산을 생략합니다.
        """
        if not bounding_boxes_intersect(zone_a.bounding_box, zone_b.bounding_box):
            return 0.0
        return geometry_intersection_area(zone_a.geometry, zone_b.geometry)

    async def check_zone_overlaps(self, zone: ZoneBase) -> List[ZoneOverlap]:
        """
        다른 모든 zone과의 겹침을 검사합니다.

        겹침 비율은 더 작은 zone 면적 기준이며 임계 비율을 넘는 경우만 보고합니다.

        Args:
            zone: 검사할 zone (저장 전 ZoneBase도 가능)

        Returns:
            겹침 목록
        """
        t0 = time.perf_counter()
        zone_id = getattr(zone, "id", None)
        area = self.zone_area(zone)
        overlaps: List[ZoneOverlap] = []

        for other in await self.fetch_zones():
            if other.id == zone_id:
                continue

            overlap_area = self.calculate_overlap_area(zone, other)
            if overlap_area <= 0:
                continue

            smaller = min(area, self.zone_area(other))
            if smaller <= 0:
                continue

            percentage = min(100.0, overlap_area / smaller * 100)
            if percentage <= self.overlap_threshold:
                continue

            overlaps.append(ZoneOverlap(
                zone1_id=zone_id,
                zone2_id=other.id,
                overlap_type=classify_overlap_type(percentage),
                overlap_area=overlap_area,
                overlap_percentage=percentage,
                conflict_severity=conflict_severity(percentage),
            ))

        metrics.overlap_seconds.observe(time.perf_counter() - t0)
        return overlaps

    # ------------------------------------------------------------------
    # 지오펜싱

    async def track_location(self, tourist_id: str, location: Coordinates,
                             zone_filter: Optional[ZoneFilter] = None) -> QueueItem:
        """
        관광객 위치를 받아 지오펜스 검사 작업을 추가합니다.

        활성 상태이고 지오펜스가 켜진 zone과 관광객이 현재 소속된 zone이
        후보가 됩니다.

        Args:
            tourist_id: 관광객 id
            location: 현재 위치
            zone_filter: 후보 zone 필터

        Returns:
            추가된 큐 항목
        """
        zones = await self.fetch_zones(zone_filter)
        candidates = [z.id for z in zones if self._is_geofenced(z)]
        # 현재 소속 zone은 비활성화되어도 이탈 판정을 위해 포함
        for zone_id in sorted(self.memberships.get(tourist_id, ())):
            if zone_id not in candidates:
                candidates.append(zone_id)
        return self.queue.add(TaskType.GEOFENCE_CHECK,
                              {"tourist_id": tourist_id,
                               "location": location.model_dump(),
                               "zone_ids": candidates},
                              priority=PRIORITY_GEOFENCE_CHECK)

    def zones_for_tourist(self, tourist_id: str) -> Set[str]:
        return set(self.memberships.get(tourist_id, set()))

    @staticmethod
    def _is_geofenced(zone: Zone) -> bool:
        return zone.status == ZoneStatus.ACTIVE and zone.is_geofence_active

    def _prune_memberships(self) -> None:
        # 처리 중인 작업이 같은 dict를 참조하므로 제자리에서 정리
        for tourist_id in [t for t, zone_ids in self.memberships.items() if not zone_ids]:
            del self.memberships[tourist_id]
        metrics.tracked_tourists.set(len(self.memberships))

    async def handle_zone_entry(self, tourist_id: str, zone_id: str,
                                location: Coordinates) -> GeofenceEvent:
        """관광객의 zone 진입을 처리합니다."""
        return await self._record_transition("entry", tourist_id, zone_id, location)

    async def handle_zone_exit(self, tourist_id: str, zone_id: str,
                               location: Coordinates) -> GeofenceEvent:
        """관광객의 zone 이탈을 처리합니다 (점유 인원은 0 미만으로 내려가지 않음)."""
        return await self._record_transition("exit", tourist_id, zone_id, location)

    async def _record_transition(self, kind: GeofenceEventType, tourist_id: str,
                                 zone_id: str, location: Coordinates) -> GeofenceEvent:
        now = utc_now_iso()
        async with self._zone_lock(zone_id):
            zone = await self._load_zone(zone_id)
            stats = zone.statistics.model_copy()

            if kind == "entry":
                stats.current_occupancy += 1
                stats.total_visits_today += 1
                stats.max_occupancy_today = max(stats.max_occupancy_today, stats.current_occupancy)
                stats.last_entry_time = now
                alert_enabled = zone.alert_settings.enable_entry_alerts
            else:
                stats.current_occupancy = max(0, stats.current_occupancy - 1)
                stats.last_exit_time = now
                alert_enabled = zone.alert_settings.enable_exit_alerts

            if alert_enabled:
                stats.alerts_triggered_today += 1

            updated = await self._apply_update(zone_id, {"statistics": stats.model_dump()})

        event = GeofenceEvent(
            type=kind,
            tourist_id=tourist_id,
            zone_id=zone_id,
            zone_name=updated.name,
            location=location,
            timestamp=now,
            risk_level=updated.risk_level,
        )
        metrics.geofence_events.labels(type=kind).inc()

        if alert_enabled:
            metrics.geofence_alerts.labels(type=kind).inc()
            await self._publish("geofence_alert", event.model_dump(mode="json"))

        self.queue.add(TaskType.RISK_CALCULATION, {"zone_id": zone_id},
                       priority=PRIORITY_RISK_CALCULATION)

        log.info("지오펜스 전이 처리됨",
                 type=kind,
                 tourist_id=tourist_id,
                 zone_id=zone_id,
                 occupancy=updated.statistics.current_occupancy)
        return event

    # ------------------------------------------------------------------
    # 위험도

    async def calculate_zone_risk(self, zone_id: str) -> float:
        """zone 위험 점수 (0-100)를 계산합니다."""
        zone = await self.get_zone(zone_id)
        if zone is None:
            raise ZoneNotFoundError(zone_id)
        return await self.risk_assessor.calculate_risk(zone)

    async def update_zone_risk_level(self, zone_id: str, level: Union[RiskLevel, str],
                                     score: Optional[float] = None) -> Zone:
        """
        zone 위험 레벨을 저장하고 risk_level_changed 이벤트를 발송합니다.

        Args:
            zone_id: zone id
            level: 새 위험 레벨
            score: 새 위험 점수 (선택)

        Returns:
            갱신된 zone
        """
        level = RiskLevel(level)
        updates: Dict[str, Any] = {"risk_level": level}
        if score is not None:
            updates["risk_score"] = score

        zone = await self.update_zone(zone_id, updates)
        metrics.risk_level_changes.labels(level=level.value).inc()
        await self._publish("risk_level_changed", {
            "zone_id": zone_id,
            "risk_level": level.value,
            "risk_score": zone.risk_score,
        })
        log.info("위험 레벨 변경됨", zone_id=zone_id, level=level.value, score=zone.risk_score)
        return zone

    # ------------------------------------------------------------------
    # 분석 및 일일 통계

    async def update_zone_analytics(self, zone_id: str, data: Dict[str, Any]) -> QueueItem:
        """zone 분석 버킷 병합 작업을 추가합니다."""
        if await self.get_zone(zone_id) is None:
            raise ZoneNotFoundError(zone_id)
        return self.queue.add(TaskType.ANALYTICS_UPDATE,
                              {"zone_id": zone_id, "metrics": dict(data)},
                              priority=PRIORITY_ANALYTICS_UPDATE)

    def live_analytics(self, zone_id: str) -> Dict[str, Any]:
        """큐 작업으로 누적된 분석 버킷 (만료 시 빈 dict)"""
        return dict(self.cache.get(_analytics_bucket_key(zone_id)) or {})

    async def get_zone_analytics(self, zone_id: str,
                                 time_range: Optional[TimeRange] = None) -> Optional[Dict[str, Any]]:
        """저장소의 zone 분석 데이터를 조회합니다 (캐시 우선)."""
        key = _analytics_fetch_key(zone_id, time_range)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        analytics = await self._persist("fetch_analytics",
                                        self.repository.fetch_analytics(zone_id, time_range))
        if analytics is not None:
            self.cache.set(key, analytics, ttl=self.analytics_fetch_ttl)
        return analytics

    async def reset_daily_statistics(self, zone_id: str) -> Zone:
        """
        일일 통계를 초기화합니다 (외부 스케줄러의 일 단위 롤오버).

        현재 점유 인원은 유지하고 당일 최대 점유는 현재 값으로 맞춥니다.
        """
        async with self._zone_lock(zone_id):
            zone = await self._load_zone(zone_id)
            stats = zone.statistics
            return await self._apply_update(zone_id, {"statistics": {
                "alerts_triggered_today": 0,
                "total_visits_today": 0,
                "max_occupancy_today": stats.current_occupancy,
            }})

    # ------------------------------------------------------------------
    # 원격 메시지

    async def handle_remote_message(self, message: Dict[str, Any]) -> None:
        """
        다른 인스턴스의 이벤트를 받아 해당 zone의 로컬 캐시를 무효화합니다.

        자기 자신이 보낸 메시지는 무시합니다.
        """
        if message.get("origin") == self.instance_id:
            return

        event_type = message.get("type")
        if event_type not in REMOTE_EVENT_TYPES:
            log.debug("처리하지 않는 원격 이벤트", event_type=event_type)
            return

        data = message.get("data") or {}
        zone_id = data.get("zone_id")
        if not zone_id:
            log.debug("zone_id 없는 원격 이벤트 무시", event_type=event_type)
            return

        self._invalidate_zone(zone_id)
        log.debug("원격 이벤트로 캐시 무효화", event_type=event_type, zone_id=zone_id)

    # ------------------------------------------------------------------
    # 큐 처리기

    async def _handle_zone_update(self, payload: Dict[str, Any]) -> None:
        zone_id = payload["zone_id"]
        self._invalidate_zone(zone_id)
        await self._publish("zone_updated", {"zone_id": zone_id})

    async def _handle_geofence_check(self, payload: Dict[str, Any]) -> None:
        """
        후보 zone마다 포함 여부를 다시 계산하고 이전 소속과 비교합니다.

        소속은 zone 단위로 즉시 갱신되므로 재시도 시 이미 처리된
        전이는 다시 발생하지 않습니다. 비활성 zone은 밖으로 간주합니다.
        """
        tourist_id = payload["tourist_id"]
        location = Coordinates.model_validate(payload["location"])

        try:
            for zone_id in payload.get("zone_ids", []):
                zone = await self.get_zone(zone_id)
                # 대기 중 다른 변경이 소속을 바꿀 수 있으므로 await 이후에 읽음
                was_inside = zone_id in self.memberships.get(tourist_id, ())
                if zone is None:
                    self.memberships.get(tourist_id, set()).discard(zone_id)
                    continue

                inside = self._is_geofenced(zone) and self.is_point_in_zone(location, zone)

                if inside and not was_inside:
                    await self.handle_zone_entry(tourist_id, zone_id, location)
                    self.memberships.setdefault(tourist_id, set()).add(zone_id)
                elif was_inside and not inside:
                    await self.handle_zone_exit(tourist_id, zone_id, location)
                    self.memberships.get(tourist_id, set()).discard(zone_id)
        finally:
            self._prune_memberships()

    async def _handle_risk_calculation(self, payload: Dict[str, Any]) -> None:
        zone_id = payload["zone_id"]
        zone = await self.get_zone(zone_id)
        if zone is None:
            log.debug("삭제된 zone의 위험 계산 생략", zone_id=zone_id)
            return

        score = await self.risk_assessor.calculate_risk(zone)
        if not should_update_risk_level(zone.risk_score, score, self.hysteresis):
            return

        level = risk_level_from_score(score)
        if level != zone.risk_level:
            await self.update_zone_risk_level(zone_id, level, score)
        else:
            await self.update_zone(zone_id, {"risk_score": score})

    async def _handle_analytics_update(self, payload: Dict[str, Any]) -> None:
        zone_id = payload["zone_id"]
        key = _analytics_bucket_key(zone_id)
        bucket = self.cache.get(key) or {}
        self.cache.set(key, merge_analytics(bucket, payload.get("metrics") or {}),
                       ttl=self.analytics_ttl)
