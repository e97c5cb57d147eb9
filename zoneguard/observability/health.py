"""
HTTP endpoints for ZoneGuard observability.

This module implements health, readiness, metrics, and info endpoints
for monitoring and operational visibility.
"""

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import time
from typing import Optional
from zoneguard.settings import Settings
from zoneguard.observability import metrics as zone_metrics
from zoneguard.observability.logging_setup import get_logger
from zoneguard.orchestrators.zone_service import ZoneService

log = get_logger("zoneguard.http")

def create_app(settings: Settings, service: Optional[ZoneService] = None) -> FastAPI:
    """
    FastAPI 애플리케이션을 생성합니다.

    Args:
        settings: 애플리케이션 설정
        service: 레디니스 검사 대상 zone 서비스 (없으면 not ready)
    """
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="ZoneGuard Geofencing and Risk Assessment Service"
    )

    start_time = time.time()

    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/ready")
    async def ready():
        """레디니스 체크 엔드포인트 (큐 워커 동작 여부)"""
        if service is None or not service.queue.running:
            return JSONResponse({
                "status": "not_ready",
                "service": settings.observability.service_name,
                "timestamp": time.time()
            }, status_code=503)

        return JSONResponse({
            "status": "ready",
            "service": settings.observability.service_name,
            "queue_depth": len(service.queue),
            "queue_failures": len(service.queue.failures),
            "event_bus_connected": bool(getattr(service.event_bus, "connected", False)),
            "timestamp": time.time()
        })

    @app.get("/metrics")
    async def metrics():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")

        zone_metrics.uptime_seconds.set(time.time() - start_time)
        try:
            return Response(
                generate_latest(),
                media_type=CONTENT_TYPE_LATEST
            )
        except Exception as e:
            log.error(f"메트릭 생성 오류: {e}")
            raise HTTPException(status_code=500, detail="Metrics generation failed")

    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        uptime = time.time() - start_time
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "instance_id": service.instance_id if service else settings.instance_id,
            "uptime_seconds": int(uptime),
            "metrics_enabled": settings.observability.metrics_enabled,
            "log_level": settings.observability.log_level
        })

    @app.get("/")
    async def root():
        """루트 엔드포인트"""
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "metrics": "/metrics",
                "info": "/info"
            }
        })

    return app
