from __future__ import annotations

from datetime import datetime

import pytest
import pytz

from src.lead_crm.lead_crm.activity.service import ActivityLogService
from src.lead_crm.lead_crm.attendance.service import AttendanceService
from src.lead_crm.lead_crm.core.enums import Role
from src.lead_crm.lead_crm.stats.service import AttendanceStatsService

from tests.fakes import InMemoryActivity, InMemoryAttendance, InMemoryUsers, make_user


@pytest.fixture
def tz():
    return pytz.utc


@pytest.fixture
def fixed_now(tz):
    return tz.localize(datetime(2026, 2, 2, 9, 0, 0))


@pytest.fixture
def attendance_repo(users_repo):
    return InMemoryAttendance(users_repo)


@pytest.fixture
def activity_repo(users_repo):
    return InMemoryActivity(users_repo)


@pytest.fixture
def users_repo():
    return InMemoryUsers([make_user("u1"), make_user("u2"), make_user("boss", Role.ADMIN)])


@pytest.fixture
def attendance_service(attendance_repo, activity_repo, tz):
    return AttendanceService(attendance_repo, ActivityLogService(activity_repo), tz=tz)


@pytest.fixture
def stats_service(attendance_repo, users_repo, tz):
    return AttendanceStatsService(attendance_repo, users_repo, tz=tz)
