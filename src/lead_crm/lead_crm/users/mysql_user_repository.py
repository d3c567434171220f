from __future__ import annotations

from typing import Optional

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, from_db_datetime
from .model import User
from .repository import UserRepository

# Joined queries alias the user columns to avoid clashing with the parent table.
JOINED_USER_COLUMNS = """
    u.email AS user_email, u.first_name AS user_first_name, u.last_name AS user_last_name,
    u.role AS user_role, u.created_at AS user_created_at
"""


def to_user(row: dict, *, prefix: str = "") -> User:
    return User(
        user_id=str(row["user_id"]),
        email=row.get(f"{prefix}email"),
        first_name=row.get(f"{prefix}first_name"),
        last_name=row.get(f"{prefix}last_name"),
        role=Role(row[f"{prefix}role"]),
        created_at=from_db_datetime(row.get(f"{prefix}created_at")),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, email, first_name, last_name, role, created_at
                FROM users
                WHERE user_id=%s
                """,
                (user_id,),
            )
            row = fetchone(cur)
            return to_user(row) if row else None

    def count_by_role(self, role: Role) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM users WHERE role=%s", (Role(role).value,))
            row = fetchone(cur)
            return int(row["n"]) if row else 0
