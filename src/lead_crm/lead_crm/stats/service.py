from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

import pytz

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import day_window, iter_days, localize, now_local
from ..core.constants import MAX_STATS_RANGE_DAYS
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import ValidationError
from ..users.repository import UserRepository


@dataclass(frozen=True)
class AttendanceStats:
    total_employees: int
    present_today: int
    attendance_rate: int

    def to_dict(self) -> dict:
        return {
            "totalEmployees": self.total_employees,
            "presentToday": self.present_today,
            "attendanceRate": self.attendance_rate,
        }


@dataclass(frozen=True)
class DailyAttendanceStats:
    day: date
    total_employees: int
    present: int
    attendance_rate: int

    def to_dict(self) -> dict:
        return {
            "date": self.day.isoformat(),
            "totalEmployees": self.total_employees,
            "present": self.present,
            "attendanceRate": self.attendance_rate,
        }


def compute_attendance_rate(present: int, total: int) -> int:
    """Whole-number percentage, halves rounded up; 0 when there is nobody to count."""
    if total <= 0:
        return 0
    rate = Decimal(present) * 100 / Decimal(total)
    return int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class AttendanceStatsService:
    """Organization-wide attendance figures derived from the record store."""

    def __init__(self, attendance: AttendanceRepository, users: UserRepository, *, tz: Optional[tzinfo] = None):
        self._attendance = attendance
        self._users = users
        self._tz = tz or pytz.utc

    def _present_on(self, day: date | datetime) -> int:
        day_start, day_end = day_window(day, self._tz)
        return self._attendance.count_where(
            status=AttendanceStatus.PRESENT,
            day_start=day_start,
            day_end=day_end,
        )

    def get_attendance_stats(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceStats:
        """Today's figures.

        ``start_date``/``end_date`` are accepted for API compatibility and do
        not change the result; use ``get_daily_stats`` for a range.
        """
        now = localize(now, self._tz) if now else now_local(self._tz)

        total = self._users.count_by_role(Role.EMPLOYEE)
        present = self._present_on(now)
        return AttendanceStats(
            total_employees=total,
            present_today=present,
            attendance_rate=compute_attendance_rate(present, total),
        )

    def get_daily_stats(self, start_date: date, end_date: date) -> list[DailyAttendanceStats]:
        """The same aggregate for each day of an inclusive range, oldest first.

        The employee count is the current one; role history is not tracked.
        """
        if start_date > end_date:
            raise ValidationError("startDate must not be after endDate")
        if (end_date - start_date).days + 1 > MAX_STATS_RANGE_DAYS:
            raise ValidationError(f"Date range must not exceed {MAX_STATS_RANGE_DAYS} days")

        total = self._users.count_by_role(Role.EMPLOYEE)
        out: list[DailyAttendanceStats] = []
        for day in iter_days(start_date, end_date):
            present = self._present_on(day)
            out.append(
                DailyAttendanceStats(
                    day=day,
                    total_employees=total,
                    present=present,
                    attendance_rate=compute_attendance_rate(present, total),
                )
            )
        return out
