"""
Zone task queue for ZoneGuard.

A priority work list drained by a single asyncio worker. Failed tasks
are re-inserted at the front with an incremented retry count until the
attempt limit is reached, after which they are dropped and recorded.
"""

import asyncio
import itertools
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional
from zoneguard.core.errors import QueueTaskFailure
from zoneguard.observability import metrics
from zoneguard.observability.logging_setup import get_logger

log = get_logger("zoneguard.queue")


class TaskType(str, Enum):
    ZONE_UPDATE = "zone_update"
    GEOFENCE_CHECK = "geofence_check"
    RISK_CALCULATION = "risk_calculation"
    ANALYTICS_UPDATE = "analytics_update"


TaskHandler = Callable[[Dict[str, Any]], Awaitable[None]]


@dataclass
class QueueItem:
    """큐 항목"""
    id: str
    type: TaskType
    payload: Dict[str, Any]
    priority: int
    enqueued_at: float = field(default_factory=time.time)
    retries: int = 0


class ZoneTaskQueue:
    """우선순위 기반 zone 작업 큐 (단일 소비자)"""

    def __init__(self,
                 *,
                 max_attempts: int = 3,
                 rearm_delay: float = 0.1,
                 failure_history: int = 100):
        """
        초기화합니다.

        Args:
            max_attempts: 작업당 최대 시도 횟수
            rearm_delay: 항목 처리 후 다음 항목까지 양보하는 지연 (초)
            failure_history: 보관할 최종 실패 기록 수
        """
        self.max_attempts = max_attempts
        self.rearm_delay = rearm_delay
        self.failures: Deque[QueueTaskFailure] = deque(maxlen=failure_history)

        self._items: List[QueueItem] = []
        self._handlers: Dict[TaskType, TaskHandler] = {}
        self._seq = itertools.count(1)
        self._wakeup = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()
        self._worker: Optional[asyncio.Task] = None
        self._running = False

    def register(self, task_type: TaskType, handler: TaskHandler) -> None:
        """작업 타입별 처리기를 등록합니다."""
        self._handlers[TaskType(task_type)] = handler

    def add(self, task_type: TaskType, payload: Dict[str, Any], priority: int = 0) -> QueueItem:
        """
        작업을 추가합니다.

        같은 우선순위끼리는 추가된 순서를 유지합니다 (안정 정렬).

        Args:
            task_type: 작업 타입
            payload: 처리기에 전달할 데이터
            priority: 우선순위 (높을수록 먼저)

        Returns:
            생성된 큐 항목
        """
        task_type = TaskType(task_type)
        item = QueueItem(
            id=f"{task_type.value}_{next(self._seq)}",
            type=task_type,
            payload=payload,
            priority=priority,
        )
        self._items.append(item)
        self._items.sort(key=lambda i: -i.priority)

        self._idle.clear()
        self._wakeup.set()
        metrics.queue_depth.set(len(self._items))
        log.debug("큐 작업 추가됨", task_id=item.id, priority=priority)
        return item

    def __len__(self) -> int:
        return len(self._items)

    @property
    def pending(self) -> List[QueueItem]:
        return list(self._items)

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """소비자 워커를 시작합니다."""
        if self._worker is not None and not self._worker.done():
            return
        self._running = True
        self._worker = asyncio.create_task(self._run(), name="zone-task-queue")
        log.info("큐 워커 시작됨")

    async def stop(self) -> None:
        """소비자 워커를 중지합니다. 처리 중이던 항목을 포함해 남은 항목은 유지됩니다."""
        self._running = False
        self._wakeup.set()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        log.info("큐 워커 중지됨", remaining=len(self._items))

    async def join(self) -> None:
        """큐가 비고 처리 중인 항목이 없을 때까지 대기합니다."""
        await self._idle.wait()

    async def _run(self) -> None:
        while self._running:
            if not self._items:
                self._idle.set()
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            item = self._items.pop(0)
            metrics.queue_depth.set(len(self._items))
            try:
                await self.process_item(item)
            except asyncio.CancelledError:
                # 중지 시 처리 중이던 항목은 시도 횟수 변경 없이 맨 앞으로 복귀
                self._items.insert(0, item)
                metrics.queue_depth.set(len(self._items))
                raise

            # 다른 작업이 실행될 수 있도록 양보
            await asyncio.sleep(self.rearm_delay)

    async def process_item(self, item: QueueItem) -> bool:
        """
        항목 하나를 처리합니다. 실패 시 재시도 또는 폐기합니다.

        Returns:
            처리 성공 여부
        """
        handler = self._handlers.get(item.type)
        try:
            if handler is None:
                raise LookupError(f"no handler registered for {item.type.value}")
            await handler(item.payload)
        except Exception as e:
            attempts = item.retries + 1
            if attempts < self.max_attempts:
                item.retries = attempts
                self._items.insert(0, item)
                metrics.queue_retries.labels(type=item.type.value).inc()
                metrics.queue_depth.set(len(self._items))
                log.warning("큐 작업 실패, 재시도 예정",
                            task_id=item.id,
                            attempt=attempts,
                            error=str(e))
            else:
                failure = QueueTaskFailure(item.id, item.type.value, attempts, e, item.payload)
                self.failures.append(failure)
                metrics.queue_dropped.labels(type=item.type.value).inc()
                log.error("큐 작업 폐기됨",
                          task_id=item.id,
                          attempts=attempts,
                          error=str(e))
            return False

        metrics.queue_processed.labels(type=item.type.value).inc()
        return True
