"""
SQLite-based zone repository for ZoneGuard.

This module implements ZoneRepositoryPort on SQLite. Each zone is
stored as a JSON document next to a few indexed columns; filtering is
applied after loading.
"""

import json
import uuid
import aiosqlite
from typing import Any, Dict, List, Optional
from zoneguard.core.filters import apply_filter
from zoneguard.core.models import TimeRange, Zone, ZoneBase, ZoneFilter, utc_now_iso
from zoneguard.observability.logging_setup import get_logger

log = get_logger("zoneguard.sqlite_zones")

# SQLite 스키마
SCHEMA = """
CREATE TABLE IF NOT EXISTS zones (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    status TEXT NOT NULL,
    doc TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_zones_type ON zones(type);
CREATE TABLE IF NOT EXISTS zone_analytics (
    zone_id TEXT NOT NULL,
    range_start TEXT NOT NULL DEFAULT '',
    range_end TEXT NOT NULL DEFAULT '',
    doc TEXT NOT NULL,
    PRIMARY KEY (zone_id, range_start, range_end)
);
"""

class SQLiteZoneRepository:
    """SQLite 기반 zone 저장소"""

    def __init__(self, path: str):
        """
        초기화합니다.

        Args:
            path: SQLite 데이터베이스 파일 경로
        """
        self.path = path
        log.info(f"SQLiteZoneRepository 초기화: {path}")

    async def init(self) -> None:
        """데이터베이스를 초기화합니다."""
        async with aiosqlite.connect(self.path) as db:
            await db.executescript(SCHEMA)
            await db.commit()
        log.info("SQLiteZoneRepository 스키마 초기화 완료")

    async def fetch_zones(self, zone_filter: Optional[ZoneFilter] = None) -> List[Zone]:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT doc FROM zones ORDER BY id")
            rows = await cursor.fetchall()
        zones = [Zone.model_validate_json(row[0]) for row in rows]
        return apply_filter(zones, zone_filter)

    async def fetch_zone(self, zone_id: str) -> Optional[Zone]:
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute("SELECT doc FROM zones WHERE id = ?", (zone_id,))
            row = await cursor.fetchone()
        return Zone.model_validate_json(row[0]) if row else None

    async def create_zone(self, data: ZoneBase) -> Zone:
        """
        zone을 저장하고 새 id를 할당합니다.

        id는 uuid 기반이라 삭제 후에도 재사용되지 않습니다.
        """
        zone = Zone(id=f"zone_{uuid.uuid4().hex[:16]}", **data.model_dump())
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "INSERT INTO zones (id, type, status, doc, updated_at) VALUES (?, ?, ?, ?, ?)",
                (zone.id, zone.type.value, zone.status.value, zone.model_dump_json(), zone.updated_at)
            )
            await db.commit()
        log.debug(f"zone 저장됨 id:{zone.id}")
        return zone

    async def update_zone(self, zone_id: str, zone: Zone) -> Zone:
        stored = zone.model_copy(update={"id": zone_id, "updated_at": utc_now_iso()})
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "UPDATE zones SET type = ?, status = ?, doc = ?, updated_at = ? WHERE id = ?",
                (stored.type.value, stored.status.value, stored.model_dump_json(),
                 stored.updated_at, zone_id)
            )
            await db.commit()
            if cursor.rowcount == 0:
                raise KeyError(zone_id)
        return stored

    async def delete_zone(self, zone_id: str) -> None:
        async with aiosqlite.connect(self.path) as db:
            await db.execute("DELETE FROM zones WHERE id = ?", (zone_id,))
            await db.execute("DELETE FROM zone_analytics WHERE zone_id = ?", (zone_id,))
            await db.commit()
        log.debug(f"zone 삭제됨 id:{zone_id}")

    async def fetch_analytics(self, zone_id: str,
                              time_range: Optional[TimeRange] = None) -> Optional[Dict[str, Any]]:
        start = time_range.start if time_range else ""
        end = time_range.end if time_range else ""
        async with aiosqlite.connect(self.path) as db:
            cursor = await db.execute(
                "SELECT doc FROM zone_analytics WHERE zone_id = ? AND range_start = ? AND range_end = ?",
                (zone_id, start, end)
            )
            row = await cursor.fetchone()
        return json.loads(row[0]) if row else None

    async def save_analytics(self, zone_id: str, analytics: Dict[str, Any],
                             time_range: Optional[TimeRange] = None) -> None:
        """분석 데이터를 저장합니다 (외부 집계 작업용)."""
        start = time_range.start if time_range else ""
        end = time_range.end if time_range else ""
        async with aiosqlite.connect(self.path) as db:
            await db.execute(
                "INSERT OR REPLACE INTO zone_analytics (zone_id, range_start, range_end, doc) "
                "VALUES (?, ?, ?, ?)",
                (zone_id, start, end, json.dumps(analytics, ensure_ascii=False))
            )
            await db.commit()
