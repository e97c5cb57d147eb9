"""
Error taxonomy for ZoneGuard.

Validation and not-found errors are raised synchronously to callers.
Persistence errors wrap repository failures. Queue task failures are
internal and only recorded after the final attempt.
"""

from typing import Any, Dict, Optional


class ZoneGuardError(Exception):
    """ZoneGuard 기본 예외"""


class ZoneValidationError(ZoneGuardError):
    """잘못된 zone 형상 또는 필드"""


class ZoneNotFoundError(ZoneGuardError):
    """존재하지 않는 zone id 참조"""

    def __init__(self, zone_id: str):
        super().__init__(f"Zone {zone_id} not found")
        self.zone_id = zone_id


class PersistenceError(ZoneGuardError):
    """저장소 협력자 실패 (재시도하지 않음)"""


class QueueTaskFailure(ZoneGuardError):
    """최대 시도 횟수를 소진한 큐 작업 (내부 전용)"""

    def __init__(self, task_id: str, task_type: str, attempts: int,
                 error: BaseException, payload: Optional[Dict[str, Any]] = None):
        super().__init__(f"task {task_id} ({task_type}) failed after {attempts} attempts: {error}")
        self.task_id = task_id
        self.task_type = task_type
        self.attempts = attempts
        self.error = error
        self.payload = payload or {}
