from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..users.model import User, user_summary_to_dict


@dataclass(frozen=True)
class ActivityLog:
    """Audit event describing a state-changing action."""

    log_id: int
    user_id: str
    action: str
    entity_type: str
    entity_id: Optional[str]
    details: Optional[dict[str, Any]]
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ActivityLogEntry:
    """Read-model for the activity feed (log joined with the acting user)."""

    log: ActivityLog
    user: User


def entry_to_dict(entry: ActivityLogEntry) -> dict:
    log = entry.log
    return {
        "id": log.log_id,
        "userId": log.user_id,
        "action": log.action,
        "entityType": log.entity_type,
        "entityId": log.entity_id,
        "details": log.details,
        "timestamp": log.created_at.isoformat() if log.created_at else None,
        "user": user_summary_to_dict(entry.user),
    }
