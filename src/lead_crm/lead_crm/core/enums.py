from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role supplied by the identity provider."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class AttendanceStatus(str, Enum):
    """Attendance status as stored in the database.

    Records are created as PRESENT; nothing in the engine reclassifies them.
    """

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half_day"
