"""
Weather adapters for ZoneGuard.

This module provides the EnvironmentPort implementation backed by
the Open-Meteo forecast API.
"""

from .open_meteo import OpenMeteoWeatherClient, parse_current_weather

__all__ = ["OpenMeteoWeatherClient", "parse_current_weather"]
