from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_ACTIVITY_LIMIT, MAX_ACTIVITY_LIMIT
from .model import ActivityLog, ActivityLogEntry
from .repository import ActivityLogRepository

logger = logging.getLogger(__name__)


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_ACTIVITY_LIMIT
    return max(1, min(int(limit), MAX_ACTIVITY_LIMIT))


class ActivityLogService:
    """Audit trail: records state-changing actions and serves the activity feed."""

    def __init__(self, logs: ActivityLogRepository):
        self._logs = logs

    def log_activity(
        self,
        *,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> ActivityLog:
        entry = self._logs.create(
            user_id=require_non_empty(user_id, "user_id"),
            action=require_non_empty(action, "action"),
            entity_type=require_non_empty(entity_type, "entity_type"),
            entity_id=entity_id,
            details=details,
        )
        logger.debug("activity %s %s/%s by %s", action, entity_type, entity_id, user_id)
        return entry

    def get_activity_logs(self, limit: Optional[int] = None) -> Sequence[ActivityLogEntry]:
        return self._logs.list_recent(clamp_limit(limit))

    def get_user_activity_logs(self, user_id: str, limit: Optional[int] = None) -> Sequence[ActivityLogEntry]:
        return self._logs.list_for_user(require_non_empty(user_id, "user_id"), clamp_limit(limit))
