"""
HTTP server runner for ZoneGuard observability.

This module runs the FastAPI health and metrics app with uvicorn,
either as a background task next to the zone service or standalone.
"""

import asyncio
import uvicorn
from typing import Optional
from zoneguard.observability.health import create_app
from zoneguard.orchestrators.zone_service import ZoneService
from zoneguard.settings import Settings
from zoneguard.observability.logging_setup import setup_logging, get_logger

log = get_logger("zoneguard.observability")

def build_server(settings: Settings, service: Optional[ZoneService] = None,
                 host: str = "0.0.0.0", port: Optional[int] = None) -> uvicorn.Server:
    """
    uvicorn 서버를 구성합니다.

    Args:
        settings: 애플리케이션 설정
        service: 레디니스 검사 대상 zone 서비스
        host: 바인딩할 호스트
        port: 바인딩할 포트 (None이면 설정에서 가져옴)
    """
    if port is None:
        port = settings.observability.http_port

    app = create_app(settings, service)
    return uvicorn.Server(uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=settings.observability.log_level.lower(),
        access_log=False
    ))

async def start_http(settings: Settings, service: Optional[ZoneService] = None) -> Optional[asyncio.Task]:
    """HTTP 서버를 백그라운드 태스크로 시작합니다. 메트릭 비활성화 시 None."""
    if not settings.observability.metrics_enabled:
        return None
    server = build_server(settings, service)
    log.info("HTTP 서버 시작 중", port=settings.observability.http_port)
    return asyncio.create_task(server.serve(), name="zoneguard-http")

def run_http_server(settings: Settings, host: str = "0.0.0.0", port: Optional[int] = None):
    """HTTP 서버만 단독으로 실행합니다 (서비스 없이 health/metrics)."""
    setup_logging(settings.observability.log_level, settings.observability.json_logs)
    server = build_server(settings, None, host, port)
    log.info(f"HTTP 서버 시작 중 host:{host} port:{server.config.port}")
    server.run()

if __name__ == "__main__":
    run_http_server(Settings())
