# zoneguard/settings.py
from __future__ import annotations
from pydantic import BaseModel, Field

class CacheConfig(BaseModel):
    default_ttl_sec: float = 300.0            # 단일 zone 조회
    zone_list_ttl_sec: float = 120.0          # fetch_zones 결과
    analytics_ttl_sec: float = 600.0          # 분석 버킷 병합
    analytics_fetch_ttl_sec: float = 300.0    # 저장소 분석 조회

class QueueConfig(BaseModel):
    max_attempts: int = 3
    rearm_delay_sec: float = 0.1
    failure_history: int = 100

class RiskConfig(BaseModel):
    hysteresis: float = 10.0

class GeofenceConfig(BaseModel):
    overlap_threshold_percent: float = 10.0

class EventBusConfig(BaseModel):
    enabled: bool = True
    host: str = "localhost"
    port: int = 1883
    username: str | None = None
    password: str | None = None
    tls: bool = False
    client_id: str | None = None
    keepalive: int = 30
    topic_prefix: str = "zoneguard/zones"
    qos: int = 1
    max_reconnect_attempts: int = 5
    backoff_initial_sec: float = 2.0
    backoff_max_sec: float = 60.0

class StorageConfig(BaseModel):
    backend: str = "sqlite"                   # "sqlite" | "memory"
    zones_path: str = "/data/zones.db"

class WeatherConfig(BaseModel):
    enabled: bool = False
    base_url: str = "https://api.open-meteo.com"
    timeout_sec: int = 5

class Observability(BaseModel):
    http_port: int = 8099
    metrics_enabled: bool = True
    service_name: str = "ZoneGuard"
    build_version: str = "0.1.0"
    build_date: str = "2026-10-01"
    log_level: str = "INFO"
    json_logs: bool = False

class Settings(BaseModel):
    # 인스턴스 식별자 (이벤트 버스 자기 메시지 필터링용)
    instance_id: str | None = None

    # 하위 섹션 (기본값/팩토리로 누락 방지)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    geofence: GeofenceConfig = Field(default_factory=GeofenceConfig)
    event_bus: EventBusConfig = Field(default_factory=EventBusConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    weather: WeatherConfig = Field(default_factory=WeatherConfig)
    observability: Observability = Field(default_factory=Observability)
