from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from .model import ActivityLog, ActivityLogEntry


class ActivityLogRepository(Protocol):
    def create(
        self,
        *,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> ActivityLog:
        raise NotImplementedError

    def list_recent(self, limit: int) -> Sequence[ActivityLogEntry]:
        raise NotImplementedError

    def list_for_user(self, user_id: str, limit: int) -> Sequence[ActivityLogEntry]:
        raise NotImplementedError
