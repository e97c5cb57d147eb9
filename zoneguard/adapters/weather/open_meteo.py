"""
Open-Meteo weather client for ZoneGuard.

Implements EnvironmentPort: current weather from the Open-Meteo
forecast API and terrain complexity from a per-zone-type table.
"""

import asyncio
import aiohttp
from typing import Any, Dict, Optional
from zoneguard.adapters.memory.environment import terrain_for_type
from zoneguard.common.retry import retry_with_backoff
from zoneguard.core.models import Coordinates, TerrainComplexity, WeatherConditions, Zone
from zoneguard.observability.logging_setup import get_logger

log = get_logger("zoneguard.weather")

# WMO 날씨 코드 중 뇌우
STORM_CODES = {95, 96, 99}

def parse_current_weather(data: Dict[str, Any]) -> WeatherConditions:
    """
    Open-Meteo 응답의 current 블록을 기상 정보로 변환합니다.

    Args:
        data: /v1/forecast 응답 JSON

    Returns:
        기상 정보 (누락 필드는 기본값)
    """
    current = data.get("current") or {}
    defaults = WeatherConditions()
    code = current.get("weather_code")
    visibility = current.get("visibility")
    temperature = current.get("temperature_2m")
    return WeatherConditions(
        is_storm=code in STORM_CODES,
        visibility=float(visibility) if visibility is not None else defaults.visibility,
        temperature=float(temperature) if temperature is not None else defaults.temperature,
    )

class OpenMeteoWeatherClient:
    """Open-Meteo 기반 환경 정보 제공자"""

    def __init__(self, base_url: str = "https://api.open-meteo.com", timeout: int = 5):
        """
        초기화합니다.

        Args:
            base_url: API 기본 URL
            timeout: 요청 타임아웃 (초)
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        if self.session:
            await self.session.close()
            self.session = None

    async def _fetch(self, location: Coordinates) -> Dict[str, Any]:
        if not self.session:
            raise RuntimeError("세션이 초기화되지 않았습니다. async with를 사용하세요.")

        params = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "current": "temperature_2m,weather_code,visibility",
        }

        async def _request():
            async with self.session.get(f"{self.base_url}/v1/forecast", params=params) as response:
                response.raise_for_status()
                return await response.json()

        return await retry_with_backoff(_request, max_retries=2, base_delay=0.5)

    async def get_weather(self, location: Coordinates) -> WeatherConditions:
        """
        위치의 현재 기상 정보를 조회합니다.

        조회 실패 시 평온한 기본값을 반환해 위험 계산을 막지 않습니다.
        """
        try:
            data = await self._fetch(location)
            return parse_current_weather(data)
        except (aiohttp.ClientError, asyncio.TimeoutError, TimeoutError, RuntimeError, ValueError) as e:
            log.warning(f"기상 정보 조회 실패 error:{str(e)}")
            return WeatherConditions()

    async def get_terrain_complexity(self, zone: Zone) -> TerrainComplexity:
        return terrain_for_type(zone.type)
