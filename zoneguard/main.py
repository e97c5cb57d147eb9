# zoneguard/main.py
import os, asyncio, signal, uuid
from contextlib import AsyncExitStack
from zoneguard.settings import Settings
from zoneguard.observability.logging_setup import setup_logging, get_logger
from zoneguard.observability.server import start_http
from zoneguard.adapters.storage.sqlite_zones import SQLiteZoneRepository
from zoneguard.adapters.mqtt.event_bus import MqttEventBus
from zoneguard.adapters.weather.open_meteo import OpenMeteoWeatherClient
from zoneguard.adapters.memory import InMemoryZoneRepository, InMemoryEventBus, StaticEnvironment, InMemoryIncidentHistory
from zoneguard.core.risk import RiskAssessor
from zoneguard.orchestrators.zone_service import ZoneService

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def build_settings() -> Settings:
    s = Settings()
    s.instance_id = os.getenv("INSTANCE_ID", s.instance_id)

    # 캐시
    s.cache.default_ttl_sec = float(os.getenv("CACHE_TTL_SEC", s.cache.default_ttl_sec))
    s.cache.zone_list_ttl_sec = float(os.getenv("CACHE_ZONE_LIST_TTL_SEC", s.cache.zone_list_ttl_sec))
    s.cache.analytics_ttl_sec = float(os.getenv("CACHE_ANALYTICS_TTL_SEC", s.cache.analytics_ttl_sec))

    # 큐
    s.queue.max_attempts = int(os.getenv("QUEUE_MAX_ATTEMPTS", s.queue.max_attempts))
    s.queue.rearm_delay_sec = float(os.getenv("QUEUE_REARM_DELAY_SEC", s.queue.rearm_delay_sec))

    # 위험도/지오펜스
    s.risk.hysteresis = float(os.getenv("RISK_HYSTERESIS", s.risk.hysteresis))
    s.geofence.overlap_threshold_percent = float(os.getenv("OVERLAP_THRESHOLD_PERCENT", s.geofence.overlap_threshold_percent))

    # 이벤트 버스 (MQTT)
    s.event_bus.enabled = _b("EVENT_BUS_ENABLED", s.event_bus.enabled)
    s.event_bus.host = os.getenv("MQTT_HOST", s.event_bus.host)
    s.event_bus.port = int(os.getenv("MQTT_PORT", s.event_bus.port))
    s.event_bus.username = os.getenv("MQTT_USERNAME", s.event_bus.username)
    s.event_bus.password = os.getenv("MQTT_PASSWORD", s.event_bus.password)
    s.event_bus.client_id = os.getenv("MQTT_CLIENT_ID", s.event_bus.client_id)
    s.event_bus.tls = _b("MQTT_TLS", s.event_bus.tls)
    s.event_bus.topic_prefix = os.getenv("MQTT_TOPIC_PREFIX", s.event_bus.topic_prefix)
    s.event_bus.max_reconnect_attempts = int(os.getenv("MQTT_MAX_RECONNECT_ATTEMPTS", s.event_bus.max_reconnect_attempts))

    # 저장소
    s.storage.backend = os.getenv("STORAGE_BACKEND", s.storage.backend)
    s.storage.zones_path = os.getenv("ZONES_DB_PATH", s.storage.zones_path)

    # 기상
    s.weather.enabled = _b("WEATHER_ENABLED", s.weather.enabled)
    s.weather.base_url = os.getenv("WEATHER_BASE_URL", s.weather.base_url)

    # 관측성
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.http_port = int(os.getenv("METRICS_PORT", s.observability.http_port))
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)
    s.observability.json_logs = _b("JSON_LOGS", s.observability.json_logs)

    return s

async def build_repository(s: Settings):
    if s.storage.backend == "memory":
        return InMemoryZoneRepository()
    repository = SQLiteZoneRepository(s.storage.zones_path)
    await repository.init()
    return repository

def build_event_bus(s: Settings, instance_id: str):
    if not s.event_bus.enabled:
        # 배포 없이 단독 실행
        return InMemoryEventBus(connected=False)
    return MqttEventBus(
        host=s.event_bus.host,
        port=s.event_bus.port,
        topic_prefix=s.event_bus.topic_prefix,
        instance_id=instance_id,
        username=s.event_bus.username,
        password=s.event_bus.password,
        tls=s.event_bus.tls,
        client_id=s.event_bus.client_id or instance_id,
        keepalive=s.event_bus.keepalive,
        qos=s.event_bus.qos,
        max_reconnect_attempts=s.event_bus.max_reconnect_attempts,
        backoff_initial=s.event_bus.backoff_initial_sec,
        backoff_max=s.event_bus.backoff_max_sec,
    )

async def main():
    s = build_settings()
    setup_logging(s.observability.log_level, s.observability.json_logs)
    log = get_logger("zoneguard.main")
    log.info("설정 로드 완료")

    async with AsyncExitStack() as stack:
        repository = await build_repository(s)
        log.info("zone 저장소 생성 완료", backend=s.storage.backend)

        if s.weather.enabled:
            environment = await stack.enter_async_context(
                OpenMeteoWeatherClient(s.weather.base_url, s.weather.timeout_sec))
        else:
            environment = StaticEnvironment()
        risk_assessor = RiskAssessor(environment, InMemoryIncidentHistory())

        # 이벤트 버스 origin과 서비스 instance_id는 같아야 함
        s.instance_id = s.instance_id or f"zoneguard-{uuid.uuid4().hex[:8]}"
        event_bus = build_event_bus(s, s.instance_id)
        service = ZoneService.from_settings(s, repository, event_bus, risk_assessor)
        log.info("zone 서비스 생성 완료", instance_id=service.instance_id)

        http_task = await start_http(s, service)
        if http_task:
            log.info("HTTP 서버 시작됨")

        stop = asyncio.Future()
        try:
            loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
                except NotImplementedError: pass
        except RuntimeError: pass

        await service.start()
        log.info("zone 서비스 시작")
        await stop

        await service.stop()
        if http_task: http_task.cancel()

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
