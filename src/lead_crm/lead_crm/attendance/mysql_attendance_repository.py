from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional, Sequence

import mysql.connector

from ..core.enums import AttendanceStatus
from ..core.exceptions import DuplicateRecordError, ValidationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    from_db_json,
    is_duplicate_key,
    is_missing_reference,
    to_db_datetime,
    to_db_json,
)
from ..users.mysql_user_repository import JOINED_USER_COLUMNS, to_user
from .model import AttendanceRecord, AttendanceRecordEntry, Location
from .repository import AttendanceRepository, check_update_fields

_COLUMNS = """
    attendance_id, user_id, record_date, punch_in, punch_out,
    punch_in_location, punch_out_location, total_hours, status, notes, created_at
"""

_ENTRY_COLUMNS = f"""
    ar.attendance_id, ar.user_id, ar.record_date, ar.punch_in, ar.punch_out,
    ar.punch_in_location, ar.punch_out_location, ar.total_hours, ar.status, ar.notes, ar.created_at,
    {JOINED_USER_COLUMNS}
"""

_DATETIME_FIELDS = {"punch_in", "punch_out"}
_LOCATION_FIELDS = {"punch_in_location", "punch_out_location"}


def _to_record(r: dict) -> AttendanceRecord:
    total = r.get("total_hours")
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=str(r["user_id"]),
        record_date=from_db_datetime(r["record_date"]),
        punch_in=from_db_datetime(r.get("punch_in")),
        punch_out=from_db_datetime(r.get("punch_out")),
        punch_in_location=Location.from_dict(from_db_json(r.get("punch_in_location"))),
        punch_out_location=Location.from_dict(from_db_json(r.get("punch_out_location"))),
        total_hours=Decimal(str(total)) if total is not None else None,
        status=AttendanceStatus(r["status"]),
        notes=r.get("notes"),
        created_at=from_db_datetime(r.get("created_at")),
    )


def _to_entry(r: dict) -> AttendanceRecordEntry:
    return AttendanceRecordEntry(record=_to_record(r), user=to_user(r, prefix="user_"))


def _to_db_value(field: str, value: Any) -> Any:
    if field in _DATETIME_FIELDS:
        return to_db_datetime(value)
    if field in _LOCATION_FIELDS:
        return to_db_json(value.to_dict()) if value is not None else None
    if field == "status":
        return AttendanceStatus(value).value
    return value


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_by_id(self, cur, attendance_id: int) -> AttendanceRecord:
        cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (attendance_id,))
        r = fetchone(cur)
        if not r:
            raise LookupError(f"Attendance record {attendance_id} not found")
        return _to_record(r)

    def find_by_user_and_day_window(
        self, user_id: str, day_start: datetime, day_end: datetime
    ) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s AND record_date BETWEEN %s AND %s
                ORDER BY record_date DESC
                LIMIT 1
                """,
                (user_id, to_db_datetime(day_start), to_db_datetime(day_end)),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def insert(
        self,
        *,
        user_id: str,
        record_date: datetime,
        punch_in: Optional[datetime],
        punch_in_location: Optional[Location] = None,
        status: AttendanceStatus = AttendanceStatus.PRESENT,
        notes: Optional[str] = None,
    ) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(user_id, record_date, punch_in, punch_in_location, status, notes)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        user_id,
                        to_db_datetime(record_date),
                        to_db_datetime(punch_in),
                        _to_db_value("punch_in_location", punch_in_location),
                        status.value,
                        notes,
                    ),
                )
                return self._get_by_id(cur, int(cur.lastrowid))
        except mysql.connector.IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateRecordError(f"Attendance record already exists for {user_id} on {record_date}") from e
            if is_missing_reference(e):
                raise ValidationError(f"Unknown user: {user_id}") from e
            raise

    def update(self, attendance_id: int, **fields: Any) -> AttendanceRecord:
        check_update_fields(fields)
        with db_cursor(self._conn_factory) as (_, cur):
            if fields:
                assignments = ", ".join(f"{name}=%s" for name in fields)
                params = [_to_db_value(name, value) for name, value in fields.items()]
                params.append(int(attendance_id))
                cur.execute(f"UPDATE attendance_records SET {assignments} WHERE attendance_id=%s", tuple(params))
            return self._get_by_id(cur, int(attendance_id))

    def count_where(
        self,
        *,
        status: Optional[AttendanceStatus] = None,
        day_start: Optional[datetime] = None,
        day_end: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> int:
        clauses: list[str] = []
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(AttendanceStatus(status).value)
        if day_start is not None:
            clauses.append("record_date >= %s")
            params.append(to_db_datetime(day_start))
        if day_end is not None:
            clauses.append("record_date <= %s")
            params.append(to_db_datetime(day_end))
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(user_id)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM attendance_records {where}", tuple(params))
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_by_filters(
        self,
        *,
        user_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceRecordEntry]:
        clauses: list[str] = []
        params: list[object] = []

        if user_id is not None:
            clauses.append("ar.user_id=%s")
            params.append(user_id)
        if start is not None:
            clauses.append("ar.record_date >= %s")
            params.append(to_db_datetime(start))
        if end is not None:
            clauses.append("ar.record_date <= %s")
            params.append(to_db_datetime(end))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ENTRY_COLUMNS}
                FROM attendance_records ar
                JOIN users u ON u.user_id = ar.user_id
                {where}
                ORDER BY ar.record_date DESC, ar.attendance_id DESC
                """,
                tuple(params),
            )
            return [_to_entry(r) for r in fetchall(cur)]
