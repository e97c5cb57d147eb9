"""
MQTT event bus adapter for ZoneGuard.

Publishes zone events as JSON under ``<topic_prefix>/<event_type>`` and
forwards messages from other instances to registered handlers. The
connection is a reconnecting state machine
(disconnected -> connecting -> connected -> disconnected) with
exponential backoff capped at a maximum number of attempts.
"""

import asyncio
import json
import ssl
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from aiomqtt import Client, MqttError, Will
from zoneguard.common.retry import backoff_delay, exponential_backoff
from zoneguard.core.models import utc_now_iso
from zoneguard.observability import metrics
from zoneguard.observability.logging_setup import get_logger
from zoneguard.ports.event_bus import MessageHandler

log = get_logger("zoneguard.mqtt")


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class MqttEventBus:
    """재연결 MQTT 이벤트 버스 어댑터"""

    def __init__(self,
                 *,
                 host: str,
                 port: int,
                 topic_prefix: str,
                 instance_id: str,
                 username: str | None = None,
                 password: str | None = None,
                 tls: bool = False,
                 client_id: str | None = None,
                 keepalive: int = 30,
                 qos: int = 1,
                 max_reconnect_attempts: int = 5,
                 backoff_initial: float = 2.0,
                 backoff_max: float = 60.0,
                 client_factory: Optional[Callable[[], Any]] = None):
        """
        초기화합니다.

        Args:
            host: MQTT 브로커 호스트
            port: MQTT 브로커 포트
            topic_prefix: 토픽 접두사
            instance_id: 이 인스턴스의 식별자 (메시지 origin)
            username: 사용자명
            password: 비밀번호
            tls: TLS 사용 여부
            client_id: 클라이언트 ID
            keepalive: keepalive 시간
            qos: 발송/구독 QoS
            max_reconnect_attempts: 연속 재연결 최대 시도 횟수
            backoff_initial: 초기 백오프 시간
            backoff_max: 최대 백오프 시간
            client_factory: aiomqtt Client 생성 함수 (테스트에서 교체)
        """
        self.host = host
        self.port = port
        self.topic_prefix = topic_prefix.rstrip("/")
        self.instance_id = instance_id
        self.username = username
        self.password = password
        self.tls = tls
        self.client_id = client_id
        self.keepalive = keepalive
        self.qos = qos
        self.max_reconnect_attempts = max_reconnect_attempts
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self._client_factory = client_factory or self._build_client

        self.state = ConnectionState.DISCONNECTED
        self.reconnect_attempts = 0
        self._client: Any = None
        self._handlers: List[MessageHandler] = []
        self._task: Optional[asyncio.Task] = None
        self._running = False

    def _build_client(self) -> Client:
        """aiomqtt 클라이언트를 생성합니다."""
        tls_context = ssl.create_default_context() if self.tls else None
        will = Will(
            topic=f"{self.topic_prefix}/state/{self.instance_id}",
            payload=b"offline",
            qos=1,
            retain=True,
        )
        return Client(
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            identifier=self.client_id,
            keepalive=self.keepalive,
            tls_context=tls_context,
            will=will,
        )

    def _set_state(self, state: ConnectionState) -> None:
        if state != self.state:
            log.debug("이벤트 버스 상태 변경", previous=self.state.value, current=state.value)
        self.state = state

    @property
    def connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED and self._client is not None

    def on_message(self, handler: MessageHandler) -> None:
        self._handlers.append(handler)

    async def start(self) -> None:
        """연결 루프를 백그라운드로 시작합니다."""
        if self._task is not None and not self._task.done():
            return
        self._running = True
        self.reconnect_attempts = 0
        self._task = asyncio.create_task(self._run(), name="mqtt-event-bus")

    async def stop(self) -> None:
        """연결을 종료합니다."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._client = None
        self._set_state(ConnectionState.DISCONNECTED)
        log.info("MQTT 이벤트 버스 종료됨")

    async def _run(self) -> None:
        while self._running:
            self._set_state(ConnectionState.CONNECTING)
            try:
                async with self._client_factory() as client:
                    self._client = client
                    self._set_state(ConnectionState.CONNECTED)
                    self.reconnect_attempts = 0
                    log.info("MQTT 브로커 연결됨", host=self.host, port=self.port)

                    await client.subscribe(f"{self.topic_prefix}/+", qos=self.qos)
                    async for message in client.messages:
                        await self._dispatch(message.payload)
            except MqttError as e:
                log.warning("MQTT 연결 끊김", error=str(e))
            finally:
                self._client = None
                self._set_state(ConnectionState.DISCONNECTED)

            if not self._running:
                break

            self.reconnect_attempts += 1
            if self.reconnect_attempts > self.max_reconnect_attempts:
                log.error("MQTT 재연결 포기", attempts=self.max_reconnect_attempts)
                self._running = False
                break

            metrics.reconnects.inc()
            log.info("MQTT 재연결 대기",
                     attempt=self.reconnect_attempts,
                     delay=backoff_delay(self.reconnect_attempts, self.backoff_initial, self.backoff_max))
            await exponential_backoff(self.reconnect_attempts, self.backoff_initial, self.backoff_max)

    async def _dispatch(self, payload: Any) -> None:
        """수신 메시지를 파싱해 처리기로 전달합니다."""
        try:
            if isinstance(payload, (bytes, bytearray)):
                payload = payload.decode("utf-8")
            message = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError, TypeError) as e:
            log.error("수신 메시지 파싱 오류", error=str(e))
            return

        if not isinstance(message, dict) or "type" not in message:
            log.debug("알 수 없는 메시지 형식 무시")
            return

        for handler in self._handlers:
            try:
                await handler(message)
            except Exception as e:
                log.error("메시지 처리기 오류", event_type=message.get("type"), error=str(e))

    async def publish(self, event_type: str, data: Dict[str, Any]) -> bool:
        """
        이벤트를 발송합니다 (fire-and-forget).

        연결되어 있지 않거나 발송에 실패하면 False를 반환하고 예외를 전파하지 않습니다.
        """
        if not self.connected:
            metrics.events_published.labels(event_type=event_type, delivered="false").inc()
            log.debug("이벤트 버스 미연결, 발송 생략", event_type=event_type)
            return False

        body = json.dumps({
            "type": event_type,
            "data": data,
            "origin": self.instance_id,
            "timestamp": utc_now_iso(),
        }, ensure_ascii=False, default=str)

        try:
            await self._client.publish(f"{self.topic_prefix}/{event_type}",
                                       payload=body.encode("utf-8"),
                                       qos=self.qos)
        except MqttError as e:
            metrics.events_published.labels(event_type=event_type, delivered="false").inc()
            log.warning("이벤트 발송 실패", event_type=event_type, error=str(e))
            return False

        metrics.events_published.labels(event_type=event_type, delivered="true").inc()
        return True
