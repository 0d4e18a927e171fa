from __future__ import annotations

import logging
from typing import Any

from roleready.activity.db import log_activity
from roleready.db import target_roles as target_roles_db
from roleready.db import user_skills as user_skills_db
from roleready.db import users as users_db
from roleready.db.connection import utc_now
from roleready.integrations.email import send_validation_request_notice
from roleready.schemas.mentor import InboxEntry, MentorStats, QueueItem, ValidationRequestResponse
from roleready.schemas.users import UserSkillOut

from . import evaluation_service, notification_service
from .errors import ForbiddenError, NotFoundError, ServiceError
from .user_service import user_skill_out
from .validation_routing import can_mentor_see_user_validations, get_validation_recipients

logger = logging.getLogger(__name__)

QUEUE_STATUSES = ("none", "pending")
QUEUE_SOURCES = ("self", "resume")
_VALIDATION_EVALUATIONS = ("readiness", "roadmap", "report")


class MentorQueueError(ServiceError):
    pass


def _queue_items(users: dict[str, dict[str, Any]], rows: list[dict[str, Any]]) -> list[QueueItem]:
    targets = target_roles_db.get_active_target_roles(users.keys())
    items: list[QueueItem] = []
    for row in rows:
        user = users[row["user_id"]]
        target = targets.get(row["user_id"])
        items.append(
            QueueItem(
                **row,
                is_verified=row["validation_status"] == "validated",
                user_name=user["name"],
                user_email=user["email"],
                target_role_name=target["role_name"] if target else None,
            )
        )
    return items


def _pending_for_users(users: list[dict[str, Any]]) -> list[QueueItem]:
    by_id = {user["id"]: user for user in users}
    rows = user_skills_db.list_skills_for_users(
        by_id.keys(),
        statuses=QUEUE_STATUSES,
        sources=QUEUE_SOURCES,
        newest_first=True,
    )
    return _queue_items(by_id, rows)


def _assigned_users(mentor_id: str) -> list[dict[str, Any]]:
    return users_db.list_users(role="user", is_active=True, mentor_id=mentor_id, limit=10000)


def get_pending_validations_for_mentor(mentor_id: str) -> list[QueueItem]:
    return _pending_for_users(_assigned_users(mentor_id))


def get_pending_validations_for_admin() -> list[QueueItem]:
    """Skills of users with no mentor; these fall to the admins."""
    users = users_db.list_users(role="user", is_active=True, unassigned_only=True, limit=10000)
    return _pending_for_users(users)


def get_users_with_pending_validations(mentor_id: str) -> list[InboxEntry]:
    users = {user["id"]: user for user in _assigned_users(mentor_id)}
    rows = user_skills_db.list_skills_for_users(users.keys(), statuses=("pending",), newest_first=False)
    targets = target_roles_db.get_active_target_roles(users.keys())

    grouped: dict[str, dict[str, Any]] = {}
    for row in rows:
        entry = grouped.get(row["user_id"])
        if entry is None:
            user = users[row["user_id"]]
            target = targets.get(row["user_id"])
            entry = grouped[row["user_id"]] = {
                "user_id": user["id"],
                "name": user["name"],
                "email": user["email"],
                "target_role_name": target["role_name"] if target else "Not Set",
                "pending_count": 0,
                "oldest_pending_at": row["requested_at"] or row["created_at"],
            }
        entry["pending_count"] += 1

    entries = [InboxEntry(**entry) for entry in grouped.values()]
    entries.sort(key=lambda entry: entry.oldest_pending_at or "")
    return entries


def _check_reviewer_access(actor: dict[str, Any], user_id: str) -> None:
    if actor["role"] == "admin":
        return
    if actor["role"] != "mentor" or not can_mentor_see_user_validations(actor["id"], user_id):
        raise ForbiddenError("User not found or not assigned to this mentor")


def get_pending_skills_for_user(actor: dict[str, Any], user_id: str) -> list[QueueItem]:
    _check_reviewer_access(actor, user_id)
    user = users_db.get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    rows = user_skills_db.list_skills_for_users(
        [user_id],
        statuses=("pending",),
        sources=QUEUE_SOURCES,
        newest_first=False,
    )
    return _queue_items({user_id: user}, rows)


def get_mentor_validation_stats(mentor_id: str) -> MentorStats:
    assigned = [user["id"] for user in _assigned_users(mentor_id)]
    validated = user_skills_db.count_reviewed_by(mentor_id, "validated")
    rejected = user_skills_db.count_reviewed_by(mentor_id, "rejected")
    return MentorStats(
        pending=user_skills_db.count_by_status_for_users(assigned, "pending"),
        validated=validated,
        rejected=rejected,
        total_reviewed=validated + rejected,
        assigned_students=len(assigned),
    )


def get_validation_history(mentor_id: str, *, limit: int = 50) -> list[UserSkillOut]:
    return [user_skill_out(row) for row in user_skills_db.list_reviewed_by(mentor_id, limit=limit)]


def _require_user_skill(user_skill_id: str) -> dict[str, Any]:
    row = user_skills_db.get_user_skill(user_skill_id)
    if not row:
        raise NotFoundError("User skill not found")
    return row


def request_validation(owner: dict[str, Any], user_skill_id: str) -> ValidationRequestResponse:
    row = _require_user_skill(user_skill_id)
    if row["user_id"] != owner["id"]:
        raise ForbiddenError("You can only request validation for your own skills")
    if row["validation_status"] == "pending":
        raise MentorQueueError("Validation already requested for this skill")
    if row["validation_status"] == "validated":
        raise MentorQueueError("This skill is already validated")

    now = utc_now()
    updated = user_skills_db.update_user_skill(
        user_skill_id,
        validation_status="pending",
        requested_at=now,
        validated_by=None,
        validated_at=None,
        validation_note=None,
    )
    routing = get_validation_recipients(owner["id"])
    recipients = users_db.get_users_by_ids(routing.recipient_ids)
    email_sent = send_validation_request_notice(
        [user["email"] for user in recipients.values()],
        {
            "user_name": owner["name"],
            "user_email": owner["email"],
            "skill_name": row["skill_name"],
            "level": row["level"],
            "recipient_type": routing.recipient_type,
            "reason": routing.reason,
            "requested_at": now,
        },
    )
    log_activity(
        user_id=owner["id"],
        action="validation_requested",
        entity_type="user_skill",
        entity_id=user_skill_id,
        details={"recipient_type": routing.recipient_type, "recipients": len(routing.recipient_ids)},
    )
    return ValidationRequestResponse(
        user_skill=user_skill_out(updated),  # type: ignore[arg-type]
        routing=routing,
        email_sent=email_sent,
    )


def _load_for_review(actor: dict[str, Any], user_skill_id: str) -> dict[str, Any]:
    row = _require_user_skill(user_skill_id)
    if row["user_id"] == actor["id"]:
        raise ForbiddenError("You cannot validate your own skills")
    _check_reviewer_access(actor, row["user_id"])
    return row


def approve_skill(actor: dict[str, Any], user_skill_id: str, note: str | None = None) -> UserSkillOut:
    row = _load_for_review(actor, user_skill_id)
    if row["validation_status"] == "validated":
        raise MentorQueueError("This skill is already validated")

    note = (note or "").strip() or None
    updated = user_skills_db.update_user_skill(
        user_skill_id,
        validation_status="validated",
        source="validated",
        validated_by=actor["id"],
        validated_at=utc_now(),
        validation_note=note,
    )
    skill_name = row["skill_name"]
    metadata = {
        "user_skill_id": user_skill_id,
        "skill_name": skill_name,
        "mentor_id": actor["id"],
        "mentor_name": actor["name"],
        "action": "approved",
    }
    evaluation_service.mark_outdated(row["user_id"], _VALIDATION_EVALUATIONS)
    notification_service.create_or_update(
        row["user_id"],
        "readiness_outdated",
        title="Skill Validated!",
        message=(
            f"Your {skill_name} skill has been validated by a mentor. "
            "Recalculate your readiness to see updated scores."
        ),
        action_url="/dashboard/readiness",
        metadata=metadata,
    )
    notification_service.create_or_update(
        row["user_id"],
        "mentor_validation",
        title="Skill Approved",
        message=f"{actor['name']} approved your {skill_name} skill" + (f': "{note}"' if note else "."),
        action_url="/dashboard/skills",
        metadata={**metadata, "validation_note": note},
    )
    log_activity(
        user_id=actor["id"],
        action="skill_approved",
        entity_type="user_skill",
        entity_id=user_skill_id,
        details={"user_id": row["user_id"], "skill_name": skill_name},
    )
    logger.info("skill_approved user_skill=%s reviewer=%s", user_skill_id, actor["id"])
    return user_skill_out(updated)  # type: ignore[arg-type]


def reject_skill(actor: dict[str, Any], user_skill_id: str, note: str) -> UserSkillOut:
    note = (note or "").strip()
    if not note or len(note) > 500:
        raise MentorQueueError("A rejection note between 1 and 500 characters is required")
    row = _load_for_review(actor, user_skill_id)
    if row["validation_status"] == "validated":
        raise MentorQueueError("This skill is already validated")
    if row["validation_status"] == "rejected":
        raise MentorQueueError("This skill has already been rejected")

    updated = user_skills_db.update_user_skill(
        user_skill_id,
        validation_status="rejected",
        validated_by=actor["id"],
        validated_at=utc_now(),
        validation_note=note,
    )
    skill_name = row["skill_name"]
    metadata = {
        "user_skill_id": user_skill_id,
        "skill_name": skill_name,
        "mentor_id": actor["id"],
        "mentor_name": actor["name"],
        "action": "rejected",
    }
    evaluation_service.mark_outdated(row["user_id"], _VALIDATION_EVALUATIONS)
    notification_service.create_or_update(
        row["user_id"],
        "readiness_outdated",
        title="Skill Validation Update",
        message=(
            f"Your {skill_name} skill was not approved. "
            "Recalculate your readiness and consider regenerating your roadmap."
        ),
        action_url="/dashboard/readiness",
        metadata={**metadata, "recommend_roadmap_regeneration": True},
    )
    notification_service.create_or_update(
        row["user_id"],
        "mentor_validation",
        title="Skill Needs Improvement",
        message=f'{actor["name"]} reviewed your {skill_name} skill: "{note}"',
        action_url="/dashboard/skills",
        metadata={**metadata, "validation_note": note},
    )
    log_activity(
        user_id=actor["id"],
        action="skill_rejected",
        entity_type="user_skill",
        entity_id=user_skill_id,
        details={"user_id": row["user_id"], "skill_name": skill_name},
    )
    logger.info("skill_rejected user_skill=%s reviewer=%s", user_skill_id, actor["id"])
    return user_skill_out(updated)  # type: ignore[arg-type]
