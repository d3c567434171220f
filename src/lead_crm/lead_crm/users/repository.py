from __future__ import annotations

from typing import Optional, Protocol

from ..core.enums import Role
from .model import User


class UserRepository(Protocol):
    """Repository interface for User.

    Note: services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, user_id: str) -> Optional[User]:
        raise NotImplementedError

    def count_by_role(self, role: Role) -> int:
        raise NotImplementedError
