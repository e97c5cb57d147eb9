"""
Event distribution port interface.

This module defines the protocol for fire-and-forget zone events
(zone_updated, geofence_alert, risk_level_changed).
"""

from typing import Any, Awaitable, Callable, Dict, Protocol

MessageHandler = Callable[[Dict[str, Any]], Awaitable[None]]

class EventBusPort(Protocol):
    """이벤트 배포 포트 인터페이스"""

    async def start(self) -> None:
        """연결을 시작합니다."""
        ...

    async def stop(self) -> None:
        """연결을 종료합니다."""
        ...

    async def publish(self, event_type: str, data: Dict[str, Any]) -> bool:
        """
        이벤트를 발송합니다. 연결되어 있지 않으면 아무것도 하지 않습니다.

        Args:
            event_type: 이벤트 타입
            data: 이벤트 데이터

        Returns:
            전달 여부
        """
        ...

    def on_message(self, handler: MessageHandler) -> None:
        """
        다른 인스턴스에서 수신한 메시지 처리기를 등록합니다.

        Args:
            handler: {"type": ..., "data": {...}, "origin": ...} 형식 메시지 처리기
        """
        ...
