from __future__ import annotations

import logging
from typing import Any, Iterable

from roleready.db import notifications as notifications_db
from roleready.schemas.notifications import NotificationOut

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("readiness_outdated", "mentor_validation", "roadmap_updated", "role_changed")


def create_or_update(
    user_id: str,
    type_: str,
    *,
    title: str,
    message: str,
    action_url: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> NotificationOut:
    """Keep at most one unread notification per (user, type)."""
    if type_ not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {type_}")
    row = notifications_db.upsert_unread(
        user_id=user_id,
        type_=type_,
        title=title,
        message=message,
        action_url=action_url,
        metadata=metadata or {},
    )
    return NotificationOut(**row)


def notify_readiness_outdated(user_id: str, message: str, metadata: dict[str, Any] | None = None) -> NotificationOut:
    return create_or_update(
        user_id,
        "readiness_outdated",
        title="Readiness Score Outdated",
        message=message,
        action_url="/dashboard/readiness",
        metadata=metadata,
    )


def list_notifications(user_id: str, *, unread_only: bool = False, limit: int = 50) -> list[NotificationOut]:
    rows = notifications_db.list_notifications(user_id, unread_only=unread_only, limit=limit)
    return [NotificationOut(**row) for row in rows]


def unread_count(user_id: str) -> int:
    return notifications_db.count_unread(user_id)


def mark_as_read(user_id: str, notification_ids: Iterable[str] | None = None) -> int:
    return notifications_db.mark_read(user_id, notification_ids)


def mark_type_read(user_id: str, type_: str) -> int:
    return notifications_db.mark_read(user_id, None, type_)


def purge_read_notifications(days: int) -> int:
    deleted = notifications_db.purge_read(days)
    if deleted:
        logger.info("notification_retention_purge deleted=%s", deleted)
    return deleted
