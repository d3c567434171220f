from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: Users are owned by the identity provider; this core only reads them.
    """

    user_id: str
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    role: Role = Role.EMPLOYEE
    created_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or self.email or self.user_id


def user_to_dict(user: User) -> dict:
    return {
        "id": user.user_id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "name": user.full_name,
        "role": user.role.value,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


def user_summary_to_dict(user: User) -> dict:
    """Joined user shape embedded in attendance rows and activity entries."""
    return {
        "id": user.user_id,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "name": user.full_name,
    }
