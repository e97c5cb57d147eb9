"""
In-memory TTL cache for ZoneGuard.

Keys map to values with a per-entry time-to-live. Expired entries are
evicted lazily on read; there is no size-based eviction.
"""

import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Pattern, Union
from zoneguard.observability import metrics

@dataclass
class CacheEntry:
    """캐시 항목"""
    value: Any
    stored_at: float
    ttl: float

class ZoneCache:
    """TTL 기반 zone 캐시"""

    def __init__(self, default_ttl: float = 300.0,
                 clock: Callable[[], float] = time.monotonic):
        """
        초기화합니다.

        Args:
            default_ttl: 기본 TTL (초)
            clock: 현재 시각 함수 (테스트에서 교체 가능)
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[Any]:
        """
        값을 조회합니다. 만료된 항목은 제거하고 None을 반환합니다.

        Args:
            key: 조회할 키

        Returns:
            값 또는 None
        """
        entry = self._entries.get(key)
        if entry is None:
            metrics.cache_lookups.labels(result="miss").inc()
            return None

        if self._clock() - entry.stored_at > entry.ttl:
            del self._entries[key]
            metrics.cache_lookups.labels(result="expired").inc()
            return None

        metrics.cache_lookups.labels(result="hit").inc()
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        값을 저장합니다.

        Args:
            key: 저장할 키
            value: 저장할 값
            ttl: TTL (초), None이면 기본 TTL
        """
        self._entries[key] = CacheEntry(
            value=value,
            stored_at=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def invalidate_pattern(self, pattern: Union[str, Pattern[str]]) -> int:
        """
        패턴과 일치하는 모든 키를 삭제합니다.

        Args:
            pattern: 정규식 (문자열 또는 컴파일된 패턴, re.search 기준)

        Returns:
            삭제된 항목 수
        """
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        doomed = [k for k in self._entries if regex.search(k)]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._entries)
