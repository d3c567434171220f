from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import AttendanceStatus
from ..users.model import User, user_summary_to_dict


@dataclass(frozen=True)
class Location:
    """Geographic snapshot taken at punch time."""

    lat: float
    lng: float
    address: Optional[str] = None

    def to_dict(self) -> dict:
        data: dict = {"lat": self.lat, "lng": self.lng}
        if self.address is not None:
            data["address"] = self.address
        return data

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Location"]:
        if not data:
            return None
        return cls(lat=float(data["lat"]), lng=float(data["lng"]), address=data.get("address"))


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per user per calendar day.

    ``record_date`` is the start of the day window the record belongs to,
    not the time of any punch.
    """

    attendance_id: int
    user_id: str
    record_date: datetime
    punch_in: Optional[datetime]
    punch_out: Optional[datetime]
    punch_in_location: Optional[Location] = None
    punch_out_location: Optional[Location] = None
    total_hours: Optional[Decimal] = None
    status: AttendanceStatus = AttendanceStatus.PRESENT
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceRecordEntry:
    """Read-model for listings: a record joined with its owner."""

    record: AttendanceRecord
    user: User


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def record_to_dict(record: AttendanceRecord) -> dict:
    """JSON shape used by the HTTP layer (camelCase, as the web client expects)."""
    return {
        "id": record.attendance_id,
        "userId": record.user_id,
        "date": _iso(record.record_date),
        "punchIn": _iso(record.punch_in),
        "punchOut": _iso(record.punch_out),
        "punchInLocation": record.punch_in_location.to_dict() if record.punch_in_location else None,
        "punchOutLocation": record.punch_out_location.to_dict() if record.punch_out_location else None,
        "totalHours": str(record.total_hours) if record.total_hours is not None else None,
        "status": record.status.value,
        "notes": record.notes,
        "createdAt": _iso(record.created_at),
    }


def entry_to_dict(entry: AttendanceRecordEntry) -> dict:
    data = record_to_dict(entry.record)
    data["user"] = user_summary_to_dict(entry.user)
    return data
