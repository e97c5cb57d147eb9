"""
테스트 설정 및 픽스처

이 모듈은 pytest 설정과 공통 픽스처를 제공합니다.
"""

import pytest
import tempfile
import os
from zoneguard.settings import Settings
from zoneguard.adapters.memory import (
    InMemoryZoneRepository,
    InMemoryEventBus,
    StaticEnvironment,
    InMemoryIncidentHistory,
)
from zoneguard.common.cache import ZoneCache
from zoneguard.core.risk import RiskAssessor
from zoneguard.orchestrators.task_queue import ZoneTaskQueue
from zoneguard.orchestrators.zone_service import ZoneService


# 뉴델리 인디아 게이트 부근
DELHI = (28.6129, 77.2295)


class FakeClock:
    """수동으로 진행시키는 시계"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def temp_db_path():
    """임시 데이터베이스 파일 경로"""
    with tempfile.NamedTemporaryFile(suffix='.db', delete=False) as f:
        temp_path = f.name
    yield temp_path
    # 테스트 후 파일 정리
    if os.path.exists(temp_path):
        os.unlink(temp_path)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_settings():
    """테스트용 설정"""
    settings = Settings()
    settings.observability.service_name = "test-service"
    settings.observability.build_version = "1.0.0"
    settings.observability.log_level = "INFO"
    settings.observability.http_port = 8080
    return settings


@pytest.fixture
def circle_zone_data():
    """원형 zone 생성 데이터 팩토리"""
    def _make(name="India Gate", lat=DELHI[0], lon=DELHI[1], radius=500.0, **extra):
        data = {
            "name": name,
            "type": "tourist_attraction",
            "geometry": {
                "kind": "circle",
                "center": {"latitude": lat, "longitude": lon},
                "radius": radius,
            },
        }
        data.update(extra)
        return data
    return _make


@pytest.fixture
def square_zone_data():
    """사각형 폴리곤 zone 생성 데이터 팩토리"""
    def _make(name="Old Fort", south=28.60, west=77.24, size=0.01, **extra):
        data = {
            "name": name,
            "type": "safe_zone",
            "geometry": {
                "kind": "polygon",
                "points": [
                    {"latitude": south, "longitude": west},
                    {"latitude": south, "longitude": west + size},
                    {"latitude": south + size, "longitude": west + size},
                    {"latitude": south + size, "longitude": west},
                ],
            },
        }
        data.update(extra)
        return data
    return _make


@pytest.fixture
def repository():
    return InMemoryZoneRepository()


@pytest.fixture
def event_bus():
    return InMemoryEventBus()


@pytest.fixture
def environment():
    return StaticEnvironment()


@pytest.fixture
def incident_history():
    return InMemoryIncidentHistory()


@pytest.fixture
def risk_assessor(environment, incident_history):
    return RiskAssessor(environment, incident_history)


@pytest.fixture
def service(repository, event_bus, risk_assessor, fake_clock):
    """테스트용 zone 서비스 (큐 지연 없음, 수동 시계 캐시)"""
    return ZoneService(
        repository,
        event_bus,
        risk_assessor,
        instance_id="test-instance",
        cache=ZoneCache(clock=fake_clock),
        queue=ZoneTaskQueue(rearm_delay=0),
    )


@pytest.fixture
async def running_service(service):
    """큐 워커가 동작 중인 zone 서비스"""
    await service.start()
    yield service
    await service.stop()


# pytest 설정
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line(
        "markers", "slow: 느린 테스트 마커"
    )
    config.addinivalue_line(
        "markers", "integration: 통합 테스트 마커"
    )


def pytest_collection_modifyitems(config, items):
    """테스트 아이템 수정"""
    for item in items:
        # 통합 테스트 마커 추가
        if "integration" in item.name or "end_to_end" in item.name:
            item.add_marker(pytest.mark.integration)
