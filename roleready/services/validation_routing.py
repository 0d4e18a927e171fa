from __future__ import annotations

import logging

from roleready.db import users as users_db
from roleready.schemas.mentor import ValidationRouting

logger = logging.getLogger(__name__)


def _active_admin_ids() -> list[str]:
    return [row["id"] for row in users_db.list_users(role="admin", is_active=True, limit=1000)]


def get_validation_recipients(user_id: str) -> ValidationRouting:
    """Route a validation request to the assigned mentor, or to every active admin."""
    user = users_db.get_user(user_id)
    if not user:
        return ValidationRouting(
            user_id=user_id,
            recipient_type="admin",
            recipient_ids=_active_admin_ids(),
            reason="User not found",
        )

    mentor_id = user.get("mentor_id")
    if not mentor_id:
        return ValidationRouting(
            user_id=user_id,
            recipient_type="admin",
            recipient_ids=_active_admin_ids(),
            reason="No mentor assigned",
        )

    mentor = users_db.get_user(mentor_id)
    if not mentor or not mentor["is_active"]:
        logger.info("validation_routing_fallback user=%s mentor=%s", user_id, mentor_id)
        return ValidationRouting(
            user_id=user_id,
            recipient_type="admin",
            recipient_ids=_active_admin_ids(),
            reason="Assigned mentor is inactive",
        )

    return ValidationRouting(user_id=user_id, recipient_type="mentor", recipient_ids=[mentor_id])


def can_mentor_see_user_validations(mentor_id: str, user_id: str) -> bool:
    user = users_db.get_user(user_id)
    return bool(user and user.get("mentor_id") == mentor_id)


def mentor_visible_user_ids(mentor_id: str, user_ids: list[str]) -> set[str]:
    """Subset of ``user_ids`` assigned to the mentor."""
    users = users_db.get_users_by_ids(user_ids)
    return {user_id for user_id, user in users.items() if user.get("mentor_id") == mentor_id}
