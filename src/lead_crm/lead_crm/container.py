from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo

from .activity.mysql_activity_repository import MySQLActivityLogRepository
from .activity.repository import ActivityLogRepository
from .activity.service import ActivityLogService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.datetime_utils import get_timezone
from .core.constants import DEFAULT_TIMEZONE
from .database.connection import DBConfig, DatabaseConnection
from .stats.service import AttendanceStatsService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    activity_repo: ActivityLogRepository

    activity_service: ActivityLogService
    attendance_service: AttendanceService
    stats_service: AttendanceStatsService


def build_services(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    activity_repo: ActivityLogRepository,
    tz: tzinfo,
) -> Container:
    """Wire services over any repository implementations (MySQL or in-memory)."""

    activity_service = ActivityLogService(activity_repo)
    attendance_service = AttendanceService(attendance_repo, activity_service, tz=tz)
    stats_service = AttendanceStatsService(attendance_repo, users_repo, tz=tz)

    return Container(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        activity_repo=activity_repo,
        activity_service=activity_service,
        attendance_service=attendance_service,
        stats_service=stats_service,
    )


def build_container(*, db_config: dict, timezone: str = DEFAULT_TIMEZONE) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
        connect_timeout=int(db_config.get("connect_timeout", 10)),
    )
    conn = DatabaseConnection(config)

    return build_services(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        activity_repo=MySQLActivityLogRepository(conn),
        tz=get_timezone(timezone),
    )
