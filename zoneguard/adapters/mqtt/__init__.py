"""
MQTT event distribution adapter for ZoneGuard.

This module provides the implementation of EventBusPort
for publishing and receiving zone events over MQTT.
"""

from .event_bus import MqttEventBus, ConnectionState

__all__ = ["MqttEventBus", "ConnectionState"]
