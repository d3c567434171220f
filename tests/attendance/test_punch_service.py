from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from src.lead_crm.lead_crm.attendance.model import Location
from src.lead_crm.lead_crm.attendance.service import PUNCH_IN_REQUIRED, AttendanceService
from src.lead_crm.lead_crm.core.enums import AttendanceStatus
from src.lead_crm.lead_crm.core.exceptions import PreconditionFailedError, ValidationError

from tests.fakes import InMemoryAttendance


def test_full_day_scenario(attendance_service, attendance_repo, activity_repo, fixed_now):
    punched_in = attendance_service.punch_in("U1", {"lat": 1, "lng": 1}, now=fixed_now)
    out_at = fixed_now.replace(hour=17, minute=30)
    rec = attendance_service.punch_out("U1", now=out_at)

    assert rec.attendance_id == punched_in.attendance_id
    assert rec.punch_in == fixed_now
    assert rec.punch_in_location == Location(lat=1.0, lng=1.0)
    assert rec.punch_out == out_at
    assert rec.total_hours == Decimal("8.5")
    assert rec.status == AttendanceStatus.PRESENT

    assert [log.action for log in activity_repo.logs] == ["punched_in", "punched_out"]
    assert all(log.entity_type == "attendance" for log in activity_repo.logs)
    assert all(log.entity_id == str(rec.attendance_id) for log in activity_repo.logs)
    assert activity_repo.logs[0].details == {"location": {"lat": 1.0, "lng": 1.0}}
    assert activity_repo.logs[1].details == {"location": None, "totalHours": "8.50"}


def test_repeated_punch_in_keeps_one_record_per_day(attendance_service, attendance_repo, fixed_now):
    for minutes in (0, 5, 90, 300):
        attendance_service.punch_in("u1", now=fixed_now + timedelta(minutes=minutes))

    assert len(attendance_repo.records) == 1


def test_repeated_punch_in_latest_wins(attendance_service, attendance_repo, activity_repo, fixed_now):
    t0 = fixed_now
    t1 = fixed_now + timedelta(minutes=42)

    attendance_service.punch_in("u1", {"lat": 10, "lng": 20}, now=t0)
    rec = attendance_service.punch_in("u1", {"lat": 11, "lng": 21, "address": "HQ"}, now=t1)

    assert rec.punch_in == t1
    assert rec.punch_in_location == Location(lat=11.0, lng=21.0, address="HQ")
    assert [log.action for log in activity_repo.logs] == ["punched_in", "punched_in"]


def test_punch_in_on_next_day_creates_new_record(attendance_service, attendance_repo, fixed_now):
    attendance_service.punch_in("u1", now=fixed_now)
    attendance_service.punch_in("u1", now=fixed_now + timedelta(days=1))

    assert len(attendance_repo.records) == 2


def test_punch_in_after_punch_out_reopens_day(attendance_service, fixed_now):
    attendance_service.punch_in("u1", now=fixed_now)
    attendance_service.punch_out("u1", now=fixed_now + timedelta(hours=3))

    rec = attendance_service.punch_in("u1", now=fixed_now + timedelta(hours=4))

    assert rec.punch_out is None
    assert rec.total_hours is None


def test_punch_out_without_punch_in_fails_and_writes_nothing(attendance_service, attendance_repo, activity_repo, fixed_now):
    with pytest.raises(PreconditionFailedError) as exc:
        attendance_service.punch_out("U2", {"lat": 1, "lng": 1}, now=fixed_now)

    assert exc.value.precondition == PUNCH_IN_REQUIRED
    assert attendance_repo.records == {}
    assert attendance_repo.writes == 0
    assert activity_repo.logs == []


def test_punch_out_with_yesterdays_punch_in_only_fails(attendance_service, attendance_repo, fixed_now):
    attendance_service.punch_in("u1", now=fixed_now - timedelta(days=1))
    before = dict(attendance_repo.records)

    with pytest.raises(PreconditionFailedError):
        attendance_service.punch_out("u1", now=fixed_now)

    assert attendance_repo.records == before


def test_punch_out_on_record_without_punch_in_fails(attendance_service, attendance_repo, tz, fixed_now):
    from src.lead_crm.lead_crm.common.datetime_utils import day_window

    day_start, _ = day_window(fixed_now, tz)
    attendance_repo.insert(user_id="u1", record_date=day_start, punch_in=None)

    with pytest.raises(PreconditionFailedError):
        attendance_service.punch_out("u1", now=fixed_now)


def test_total_hours_two_and_a_half(attendance_service, fixed_now):
    attendance_service.punch_in("u1", now=fixed_now)
    rec = attendance_service.punch_out("u1", now=fixed_now + timedelta(hours=2, minutes=30))

    assert rec.total_hours == Decimal("2.50")


def test_total_hours_rounded_to_two_places(attendance_service, fixed_now):
    attendance_service.punch_in("u1", now=fixed_now)
    rec = attendance_service.punch_out("u1", now=fixed_now + timedelta(minutes=20))

    assert rec.total_hours == Decimal("0.33")


def test_second_punch_out_overwrites_first(attendance_service, activity_repo, fixed_now):
    attendance_service.punch_in("u1", now=fixed_now)
    attendance_service.punch_out("u1", now=fixed_now + timedelta(hours=1))
    rec = attendance_service.punch_out("u1", now=fixed_now + timedelta(hours=2))

    assert rec.total_hours == Decimal("2.00")
    assert [log.action for log in activity_repo.logs] == ["punched_in", "punched_out", "punched_out"]


@pytest.mark.parametrize(
    "location",
    [
        "somewhere",
        {"lat": "abc", "lng": 1},
        {"lat": 1},
        {"lat": 91, "lng": 0},
        {"lat": 0, "lng": -181},
        {"lat": True, "lng": 1},
        {"lat": 1, "lng": 1, "address": 42},
    ],
)
def test_malformed_location_rejected_before_store_access(attendance_service, attendance_repo, activity_repo, fixed_now, location):
    with pytest.raises(ValidationError):
        attendance_service.punch_in("u1", location, now=fixed_now)

    assert attendance_repo.writes == 0
    assert activity_repo.logs == []


def test_blank_user_id_rejected(attendance_service, fixed_now):
    with pytest.raises(ValidationError):
        attendance_service.punch_in("  ", now=fixed_now)


def test_audit_failure_does_not_fail_punch(attendance_repo, tz, fixed_now, caplog):
    class BrokenSink:
        def log_activity(self, **kwargs):
            raise RuntimeError("audit store down")

    svc = AttendanceService(attendance_repo, BrokenSink(), tz=tz)

    rec = svc.punch_in("u1", now=fixed_now)

    assert rec.punch_in == fixed_now
    assert len(attendance_repo.records) == 1
    assert "Failed to log punched_in" in caplog.text


def test_concurrent_insert_retries_as_update(attendance_repo, activity_repo, tz, fixed_now):
    from src.lead_crm.lead_crm.activity.service import ActivityLogService

    class RacyAttendance(InMemoryAttendance):
        """Simulates another request inserting between our lookup and insert."""

        def __init__(self):
            super().__init__()
            self.raced = False

        def insert(self, **kwargs):
            if not self.raced:
                self.raced = True
                super().insert(**{**kwargs, "punch_in": kwargs["punch_in"] - timedelta(seconds=1)})
            return super().insert(**kwargs)

    repo = RacyAttendance()
    svc = AttendanceService(repo, ActivityLogService(activity_repo), tz=tz)

    rec = svc.punch_in("u1", now=fixed_now)

    assert len(repo.records) == 1
    assert rec.punch_in == fixed_now
    assert len(activity_repo.logs) == 1


def test_get_by_date_returns_none_when_absent(attendance_service, fixed_now):
    assert attendance_service.get_by_date("u1", fixed_now.date()) is None


def test_get_by_date_and_today(attendance_service, fixed_now):
    created = attendance_service.punch_in("u1", now=fixed_now)

    assert attendance_service.get_by_date("u1", fixed_now.date()) == created
    assert attendance_service.get_today("u1", now=fixed_now + timedelta(hours=10)) == created
    assert attendance_service.get_by_date("u2", fixed_now.date()) is None


def test_list_records_newest_first_and_filtered(attendance_service, fixed_now):
    for days_ago in (3, 1, 2):
        attendance_service.punch_in("u1", now=fixed_now - timedelta(days=days_ago))
    attendance_service.punch_in("u2", now=fixed_now)

    rows = attendance_service.list_records(user_id="u1")
    assert [e.record.record_date.date() for e in rows] == [
        (fixed_now - timedelta(days=d)).date() for d in (1, 2, 3)
    ]

    ranged = attendance_service.list_records(
        start_date=(fixed_now - timedelta(days=2)).date(),
        end_date=fixed_now.date(),
    )
    assert {(e.record.user_id, e.record.record_date.date()) for e in ranged} == {
        ("u1", (fixed_now - timedelta(days=1)).date()),
        ("u1", (fixed_now - timedelta(days=2)).date()),
        ("u2", fixed_now.date()),
    }


def test_list_records_rejects_inverted_range(attendance_service, fixed_now):
    with pytest.raises(ValidationError):
        attendance_service.list_records(start_date=fixed_now.date(), end_date=(fixed_now - timedelta(days=1)).date())


def test_list_records_carries_owner(attendance_service, fixed_now):
    attendance_service.punch_in("u1", now=fixed_now)

    (entry,) = attendance_service.list_records()

    assert entry.user.user_id == "u1"
    assert entry.user.first_name == "U1"
    assert entry.user.email == "u1@example.com"


def test_list_records_skips_records_of_unknown_users(attendance_service, fixed_now):
    attendance_service.punch_in("u1", now=fixed_now)
    attendance_service.punch_in("ghost", now=fixed_now)

    assert [e.record.user_id for e in attendance_service.list_records()] == ["u1"]
