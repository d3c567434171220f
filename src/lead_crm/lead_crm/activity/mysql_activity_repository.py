from __future__ import annotations

from typing import Any, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, from_db_json, to_db_json
from ..users.mysql_user_repository import JOINED_USER_COLUMNS, to_user
from .model import ActivityLog, ActivityLogEntry
from .repository import ActivityLogRepository


def _to_log(r: dict) -> ActivityLog:
    return ActivityLog(
        log_id=int(r["log_id"]),
        user_id=str(r["user_id"]),
        action=r["action"],
        entity_type=r["entity_type"],
        entity_id=r.get("entity_id"),
        details=from_db_json(r.get("details")),
        created_at=from_db_datetime(r.get("created_at")),
    )


def _to_entry(r: dict) -> ActivityLogEntry:
    return ActivityLogEntry(log=_to_log(r), user=to_user(r, prefix="user_"))


class MySQLActivityLogRepository(ActivityLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> ActivityLog:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO activity_logs(user_id, action, entity_type, entity_id, details)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (user_id, action, entity_type, entity_id, to_db_json(details)),
            )
            cur.execute(
                """
                SELECT log_id, user_id, action, entity_type, entity_id, details, created_at
                FROM activity_logs
                WHERE log_id=%s
                """,
                (int(cur.lastrowid),),
            )
            return _to_log(fetchone(cur))

    def _list(self, where: str, params: tuple, limit: int) -> Sequence[ActivityLogEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT al.log_id, al.user_id, al.action, al.entity_type, al.entity_id, al.details, al.created_at,
                       {JOINED_USER_COLUMNS}
                FROM activity_logs al
                JOIN users u ON u.user_id = al.user_id
                {where}
                ORDER BY al.created_at DESC, al.log_id DESC
                LIMIT %s
                """,
                params + (int(limit),),
            )
            return [_to_entry(r) for r in fetchall(cur)]

    def list_recent(self, limit: int) -> Sequence[ActivityLogEntry]:
        return self._list("", (), limit)

    def list_for_user(self, user_id: str, limit: int) -> Sequence[ActivityLogEntry]:
        return self._list("WHERE al.user_id=%s", (user_id,), limit)
