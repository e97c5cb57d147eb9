"""
애플리케이션 조립 테스트
"""

import pytest
from zoneguard.adapters.memory import InMemoryEventBus, InMemoryZoneRepository
from zoneguard.adapters.mqtt import MqttEventBus
from zoneguard.adapters.storage import SQLiteZoneRepository
from zoneguard.main import build_event_bus, build_repository, build_settings


def test_build_settings_from_env(monkeypatch):
    monkeypatch.setenv("INSTANCE_ID", "edge-1")
    monkeypatch.setenv("QUEUE_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("EVENT_BUS_ENABLED", "false")
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("METRICS_PORT", "9100")

    s = build_settings()

    assert s.instance_id == "edge-1"
    assert s.queue.max_attempts == 5
    assert s.event_bus.enabled is False
    assert s.storage.backend == "memory"
    assert s.observability.http_port == 9100


def test_build_settings_defaults(monkeypatch):
    for name in ("INSTANCE_ID", "EVENT_BUS_ENABLED", "STORAGE_BACKEND"):
        monkeypatch.delenv(name, raising=False)
    s = build_settings()
    assert s.instance_id is None
    assert s.event_bus.enabled is True
    assert s.storage.backend == "sqlite"


@pytest.mark.asyncio
async def test_build_repository_memory(monkeypatch):
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    assert isinstance(await build_repository(build_settings()), InMemoryZoneRepository)


@pytest.mark.asyncio
async def test_build_repository_sqlite(monkeypatch, temp_db_path):
    monkeypatch.setenv("STORAGE_BACKEND", "sqlite")
    monkeypatch.setenv("ZONES_DB_PATH", temp_db_path)
    repository = await build_repository(build_settings())
    assert isinstance(repository, SQLiteZoneRepository)
    assert await repository.fetch_zones() == []


def test_build_event_bus(monkeypatch):
    monkeypatch.setenv("EVENT_BUS_ENABLED", "false")
    disabled = build_event_bus(build_settings(), "edge-1")
    assert isinstance(disabled, InMemoryEventBus)
    assert disabled.connected is False

    monkeypatch.setenv("EVENT_BUS_ENABLED", "true")
    monkeypatch.setenv("MQTT_TOPIC_PREFIX", "tourism/zones")
    bus = build_event_bus(build_settings(), "edge-1")
    assert isinstance(bus, MqttEventBus)
    assert bus.topic_prefix == "tourism/zones"
    assert bus.client_id == "edge-1"
