"""
In-memory event bus for ZoneGuard.

Records published events and lets tests inject inbound messages.
"""

from collections import deque
from typing import Any, Deque, Dict, List, Tuple
from zoneguard.ports.event_bus import MessageHandler

class InMemoryEventBus:
    """메모리 기반 이벤트 버스"""

    def __init__(self, connected: bool = True, max_history: int = 1000):
        self.connected = connected
        self.published: Deque[Tuple[str, Dict[str, Any]]] = deque(maxlen=max_history)
        self._handlers: List[MessageHandler] = []

    async def start(self) -> None:
        self.connected = True

    async def stop(self) -> None:
        self.connected = False

    async def publish(self, event_type: str, data: Dict[str, Any]) -> bool:
        # 미연결 상태에서는 발송하지 않음 (fire-and-forget)
        if not self.connected:
            return False
        self.published.append((event_type, data))
        return True

    def on_message(self, handler: MessageHandler) -> None:
        self._handlers.append(handler)

    async def inject(self, message: Dict[str, Any]) -> None:
        """다른 인스턴스에서 메시지가 도착한 것처럼 처리기를 호출합니다."""
        for handler in self._handlers:
            await handler(message)

    def events_of(self, event_type: str) -> List[Dict[str, Any]]:
        return [data for t, data in self.published if t == event_type]
