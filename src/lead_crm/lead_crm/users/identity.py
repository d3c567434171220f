from __future__ import annotations

from dataclasses import dataclass
from functools import wraps

from flask import g, jsonify, session

from ..core.enums import Role
from ..core.exceptions import AuthenticationError


@dataclass(frozen=True)
class Identity:
    """Who is calling, as established upstream by the auth middleware."""

    user_id: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def current_identity() -> Identity:
    user_id = session.get("user_id")
    if not user_id:
        raise AuthenticationError("Unauthorized")
    try:
        role = Role(session.get("role") or Role.EMPLOYEE.value)
    except ValueError as e:
        raise AuthenticationError("Unauthorized") from e
    return Identity(user_id=str(user_id), role=role)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            g.identity = current_identity()
        except AuthenticationError as e:
            return jsonify({"message": str(e)}), 401
        return view(*args, **kwargs)

    return wrapper
