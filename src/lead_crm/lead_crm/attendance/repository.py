from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceRecordEntry, Location

# Columns a caller may change through ``update``.
UPDATABLE_FIELDS = frozenset(
    {
        "punch_in",
        "punch_out",
        "punch_in_location",
        "punch_out_location",
        "total_hours",
        "status",
        "notes",
    }
)


class AttendanceRepository(Protocol):
    """Store contract for attendance records.

    Implementations must keep at most one record per (user_id, record_date)
    and raise DuplicateRecordError from ``insert`` when that would break.
    """

    def find_by_user_and_day_window(
        self, user_id: str, day_start: datetime, day_end: datetime
    ) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update(self, attendance_id: int, **fields: Any) -> AttendanceRecord:
        raise NotImplementedError

    def count_where(
        self,
        *,
        status: Optional[AttendanceStatus] = None,
        day_start: Optional[datetime] = None,
        day_end: Optional[datetime] = None,
        user_id: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def list_by_filters(
        self,
        *,
        user_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceRecordEntry]:
        """Records matching the filters joined with their owner, newest record_date first.

        Records whose user no longer exists are left out.
        """
        raise NotImplementedError


def check_update_fields(fields: dict) -> None:
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update attendance fields: {', '.join(sorted(unknown))}")
