from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo
from typing import Any, Optional, Protocol, Sequence

import pytz

from ..common.datetime_utils import day_window, hours_between, localize, now_local
from ..common.validators import parse_location, require_non_empty
from ..core.constants import ACTION_PUNCHED_IN, ACTION_PUNCHED_OUT, ATTENDANCE_ENTITY
from ..core.exceptions import DuplicateRecordError, PreconditionFailedError, ValidationError
from .model import AttendanceRecord, AttendanceRecordEntry, Location
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

PUNCH_IN_REQUIRED = "punch_in_required"


class ActivitySink(Protocol):
    def log_activity(
        self,
        *,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> Any:
        raise NotImplementedError


class AttendanceService:
    """Punch-in / punch-out state transitions for one record per user per day.

    The calendar day is always computed from an explicit instant and the
    configured timezone. Every public method takes ``now`` so callers and
    tests can pin the clock.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        activity: Optional[ActivitySink] = None,
        *,
        tz: Optional[tzinfo] = None,
    ):
        self._attendance = attendance
        self._activity = activity
        self._tz = tz or pytz.utc

    def _now(self, now: Optional[datetime]) -> datetime:
        return localize(now, self._tz) if now else now_local(self._tz)

    def _today(self, user_id: str, now: datetime) -> Optional[AttendanceRecord]:
        day_start, day_end = day_window(now, self._tz)
        return self._attendance.find_by_user_and_day_window(user_id, day_start, day_end)

    def _emit(self, *, user_id: str, action: str, record: AttendanceRecord, details: dict) -> None:
        if self._activity is None:
            return
        try:
            self._activity.log_activity(
                user_id=user_id,
                action=action,
                entity_type=ATTENDANCE_ENTITY,
                entity_id=str(record.attendance_id),
                details=details,
            )
        except Exception:
            # Audit trail is best-effort; the punch itself already succeeded.
            logger.exception("Failed to log %s for attendance %s", action, record.attendance_id)

    def _repunch_in(self, record: AttendanceRecord, now: datetime, location: Optional[Location]) -> AttendanceRecord:
        changes: dict[str, Any] = {"punch_in": now, "punch_in_location": location}
        if record.punch_out is not None:
            # A new punch-in reopens the day; the old punch-out no longer pairs with it.
            logger.info("Re-punch-in after punch-out for attendance %s; clearing punch-out", record.attendance_id)
            changes.update(punch_out=None, punch_out_location=None, total_hours=None)
        return self._attendance.update(record.attendance_id, **changes)

    def punch_in(self, user_id: str, location: Any = None, *, now: Optional[datetime] = None) -> AttendanceRecord:
        """Record a punch-in for today.

        A second punch-in on the same day replaces the earlier time and
        location (last write wins); it is never rejected.
        """
        user_id = require_non_empty(user_id, "user_id")
        loc = parse_location(location)
        now = self._now(now)

        existing = self._today(user_id, now)
        if existing is None:
            day_start, _ = day_window(now, self._tz)
            try:
                record = self._attendance.insert(
                    user_id=user_id,
                    record_date=day_start,
                    punch_in=now,
                    punch_in_location=loc,
                )
            except DuplicateRecordError:
                # Another request created today's record between our read and insert.
                existing = self._today(user_id, now)
                if existing is None:
                    raise
                logger.info("Concurrent punch-in for %s; retrying as update", user_id)
                record = self._repunch_in(existing, now, loc)
        else:
            record = self._repunch_in(existing, now, loc)

        self._emit(
            user_id=user_id,
            action=ACTION_PUNCHED_IN,
            record=record,
            details={"location": loc.to_dict() if loc else None},
        )
        return record

    def punch_out(self, user_id: str, location: Any = None, *, now: Optional[datetime] = None) -> AttendanceRecord:
        user_id = require_non_empty(user_id, "user_id")
        loc = parse_location(location)
        now = self._now(now)

        record = self._today(user_id, now)
        if record is None or record.punch_in is None:
            raise PreconditionFailedError("No punch-in record found for today", precondition=PUNCH_IN_REQUIRED)

        total_hours = hours_between(record.punch_in, now)
        record = self._attendance.update(
            record.attendance_id,
            punch_out=now,
            punch_out_location=loc,
            total_hours=total_hours,
        )

        self._emit(
            user_id=user_id,
            action=ACTION_PUNCHED_OUT,
            record=record,
            details={"location": loc.to_dict() if loc else None, "totalHours": str(total_hours)},
        )
        return record

    def get_by_date(self, user_id: str, on: date | datetime) -> Optional[AttendanceRecord]:
        """Record for the calendar day containing ``on``, or None."""
        user_id = require_non_empty(user_id, "user_id")
        day_start, day_end = day_window(on, self._tz)
        return self._attendance.find_by_user_and_day_window(user_id, day_start, day_end)

    def get_today(self, user_id: str, *, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        return self.get_by_date(user_id, self._now(now))

    def list_records(
        self,
        *,
        user_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceRecordEntry]:
        """Records with their owner, newest first; both date bounds are inclusive whole days."""
        if start_date and end_date and start_date > end_date:
            raise ValidationError("startDate must not be after endDate")

        start = day_window(start_date, self._tz)[0] if start_date else None
        end = day_window(end_date, self._tz)[1] if end_date else None
        return self._attendance.list_by_filters(user_id=user_id, start=start, end=end)
