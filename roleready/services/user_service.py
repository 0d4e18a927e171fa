from __future__ import annotations

import logging
import sqlite3
from typing import Any

from roleready.activity.db import log_activity
from roleready.db import catalog as catalog_db
from roleready.db import snapshots as snapshots_db
from roleready.db import target_roles as target_roles_db
from roleready.db import user_skills as user_skills_db
from roleready.db import users as users_db
from roleready.schemas.users import (
    MentorWorkload,
    TargetRoleChangeResponse,
    TargetRoleOut,
    UserCreateRequest,
    UserOut,
    UserRegisterRequest,
    UserSkillBulkRequest,
    UserSkillBulkResponse,
    UserSkillCreateRequest,
    UserSkillOut,
    UserUpdateRequest,
)

from . import evaluation_service, notification_service
from .catalog_service import find_skill_by_name
from .errors import ConflictError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)

_SKILL_CHANGE_EVALUATIONS = ("readiness", "roadmap", "report")


class UserError(ServiceError):
    pass


def user_out(row: dict[str, Any]) -> UserOut:
    return UserOut(**row)


def user_skill_out(row: dict[str, Any]) -> UserSkillOut:
    return UserSkillOut(**row, is_verified=row["validation_status"] == "validated")


def require_user(user_id: str) -> dict[str, Any]:
    user = users_db.get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


# Users


def register_user(payload: UserRegisterRequest) -> UserOut:
    return _create_user(name=payload.name, email=payload.email, role="user", actor_id=None)


def create_user(payload: UserCreateRequest, *, actor_id: str | None = None) -> UserOut:
    return _create_user(name=payload.name, email=payload.email, role=payload.role, actor_id=actor_id)


def _create_user(*, name: str, email: str, role: str, actor_id: str | None) -> UserOut:
    if users_db.get_user_by_email(email):
        raise ConflictError("A user with this email already exists")
    try:
        row = users_db.create_user(name=name.strip(), email=email, role=role)
    except sqlite3.IntegrityError as exc:
        raise ConflictError("A user with this email already exists") from exc
    log_activity(user_id=actor_id or row["id"], action="user_created", entity_type="user", entity_id=row["id"])
    return user_out(row)


def get_user(user_id: str) -> UserOut:
    return user_out(require_user(user_id))


def list_users(
    *,
    role: str | None = None,
    is_active: bool | None = None,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[UserOut]:
    rows = users_db.list_users(role=role, is_active=is_active, search=search, limit=limit, offset=offset)
    return [user_out(row) for row in rows]


def update_user(user_id: str, payload: UserUpdateRequest, *, actor_id: str | None = None) -> UserOut:
    user = require_user(user_id)
    fields = payload.model_dump(exclude_none=True)
    if fields.get("role") and fields["role"] != "user" and user["mentor_id"]:
        fields["mentor_id"] = None
    row = users_db.update_user(user_id, **fields)
    log_activity(user_id=actor_id, action="user_updated", entity_type="user", entity_id=user_id, details=fields)
    return user_out(row)  # type: ignore[arg-type]


def assign_mentor(user_id: str, mentor_id: str, *, actor_id: str | None = None) -> UserOut:
    user = require_user(user_id)
    if user["role"] != "user":
        raise UserError("Mentors can only be assigned to users with the 'user' role")
    if user_id == mentor_id:
        raise UserError("A user cannot mentor themselves")
    mentor = users_db.get_user(mentor_id)
    if not mentor or mentor["role"] != "mentor":
        raise NotFoundError("Mentor not found")
    if not mentor["is_active"]:
        raise UserError("Cannot assign an inactive mentor")
    row = users_db.set_mentor(user_id, mentor_id)
    log_activity(
        user_id=actor_id,
        action="mentor_assigned",
        entity_type="user",
        entity_id=user_id,
        details={"mentor_id": mentor_id, "previous_mentor_id": user["mentor_id"]},
    )
    return user_out(row)  # type: ignore[arg-type]


def unassign_mentor(user_id: str, *, actor_id: str | None = None) -> UserOut:
    user = require_user(user_id)
    row = users_db.set_mentor(user_id, None)
    log_activity(
        user_id=actor_id,
        action="mentor_unassigned",
        entity_type="user",
        entity_id=user_id,
        details={"previous_mentor_id": user["mentor_id"]},
    )
    return user_out(row)  # type: ignore[arg-type]


def mentor_workload() -> list[MentorWorkload]:
    counts = users_db.count_assigned_users()
    mentors = users_db.list_users(role="mentor", limit=1000)
    workload = [
        MentorWorkload(
            mentor_id=mentor["id"],
            name=mentor["name"],
            email=mentor["email"],
            is_active=mentor["is_active"],
            assigned_users=counts.get(mentor["id"], 0),
        )
        for mentor in mentors
    ]
    workload.sort(key=lambda item: (item.assigned_users, item.name.lower()))
    return workload


# User skills


def skills_changed(user_id: str, message: str, metadata: dict[str, Any]) -> None:
    evaluation_service.mark_outdated(user_id, _SKILL_CHANGE_EVALUATIONS)
    if target_roles_db.get_active_target_role(user_id):
        notification_service.notify_readiness_outdated(user_id, message, metadata)


def list_user_skills(user_id: str, *, validation_status: str | None = None) -> list[UserSkillOut]:
    require_user(user_id)
    return [user_skill_out(row) for row in user_skills_db.list_user_skills(user_id, validation_status=validation_status)]


def _resolve_skill(payload: UserSkillCreateRequest) -> dict[str, Any]:
    if payload.skill_id:
        skill = catalog_db.get_skill(payload.skill_id)
    else:
        skill = find_skill_by_name(payload.skill_name or "")
    if not skill:
        raise NotFoundError("Skill not found")
    if not skill["is_active"]:
        raise UserError("Cannot add an inactive skill")
    return skill


def add_user_skill(user_id: str, payload: UserSkillCreateRequest) -> UserSkillOut:
    require_user(user_id)
    skill = _resolve_skill(payload)
    if user_skills_db.get_user_skill_by_skill(user_id, skill["id"]):
        raise UserError("You already have this skill in your profile")
    try:
        row = user_skills_db.create_user_skill(
            user_id=user_id,
            skill_id=skill["id"],
            level=payload.level,
            source=payload.source,
        )
    except sqlite3.IntegrityError as exc:
        raise UserError("You already have this skill in your profile") from exc
    skills_changed(
        user_id,
        f"You added {skill['name']} to your profile. Recalculate your readiness score.",
        {"skill_id": skill["id"], "skill_name": skill["name"], "action": "added"},
    )
    log_activity(user_id=user_id, action="skill_added", entity_type="user_skill", entity_id=row["id"])
    return user_skill_out(row)


def bulk_add_user_skills(user_id: str, payload: UserSkillBulkRequest) -> UserSkillBulkResponse:
    require_user(user_id)
    added: list[UserSkillOut] = []
    skipped: list[str] = []
    for item in payload.skills:
        label = item.skill_name or item.skill_id or ""
        try:
            skill = _resolve_skill(item)
        except ServiceError:
            skipped.append(label)
            continue
        if user_skills_db.get_user_skill_by_skill(user_id, skill["id"]):
            skipped.append(skill["name"])
            continue
        row = user_skills_db.create_user_skill(
            user_id=user_id,
            skill_id=skill["id"],
            level=item.level,
            source=item.source,
        )
        added.append(user_skill_out(row))
    if added:
        skills_changed(
            user_id,
            f"You added {len(added)} skills to your profile. Recalculate your readiness score.",
            {"added": [item.skill_name for item in added], "action": "bulk_added"},
        )
        log_activity(
            user_id=user_id,
            action="skills_bulk_added",
            entity_type="user_skill",
            details={"added": len(added), "skipped": len(skipped)},
        )
    return UserSkillBulkResponse(added=added, skipped=skipped)


def _require_owned_skill(user_id: str, user_skill_id: str) -> dict[str, Any]:
    row = user_skills_db.get_user_skill(user_skill_id)
    if not row or row["user_id"] != user_id:
        raise NotFoundError("Skill not found in your profile")
    return row


def update_user_skill_level(user_id: str, user_skill_id: str, level: str) -> UserSkillOut:
    row = _require_owned_skill(user_id, user_skill_id)
    if row["level"] == level:
        return user_skill_out(row)
    updated = user_skills_db.update_user_skill(user_skill_id, level=level)
    skills_changed(
        user_id,
        "Your skill level has changed. Recalculate your readiness score.",
        {"skill_id": row["skill_id"], "skill_name": row["skill_name"], "old_level": row["level"], "new_level": level},
    )
    log_activity(
        user_id=user_id,
        action="skill_level_updated",
        entity_type="user_skill",
        entity_id=user_skill_id,
        details={"old_level": row["level"], "new_level": level},
    )
    return user_skill_out(updated)  # type: ignore[arg-type]


def remove_user_skill(user_id: str, user_skill_id: str) -> None:
    row = _require_owned_skill(user_id, user_skill_id)
    user_skills_db.delete_user_skill(user_skill_id)
    skills_changed(
        user_id,
        f"You removed {row['skill_name']} from your profile. Recalculate your readiness score.",
        {"skill_id": row["skill_id"], "skill_name": row["skill_name"], "action": "removed"},
    )
    log_activity(user_id=user_id, action="skill_removed", entity_type="user_skill", entity_id=user_skill_id)


# Target role


def target_role_out(row: dict[str, Any]) -> TargetRoleOut:
    return TargetRoleOut(**row)


def get_active_target_role(user_id: str) -> TargetRoleOut | None:
    require_user(user_id)
    row = target_roles_db.get_active_target_role(user_id)
    return target_role_out(row) if row else None


def set_target_role(
    user_id: str,
    role_id: str,
    *,
    actor: dict[str, Any],
) -> TargetRoleChangeResponse:
    require_user(user_id)
    role = catalog_db.get_role(role_id)
    if not role:
        raise NotFoundError("Role not found")
    if not role["is_active"]:
        raise UserError("Cannot select an inactive role")

    current = target_roles_db.get_active_target_role(user_id)
    if current and current["role_id"] == role_id:
        return TargetRoleChangeResponse(target_role=target_role_out(current), changed=False, previous_role_id=role_id)

    readiness_at_change = None
    if current:
        latest = snapshots_db.get_latest_snapshot(user_id, current["role_id"])
        readiness_at_change = latest["percentage"] if latest else None

    selected_by = "admin" if actor["role"] == "admin" and actor["id"] != user_id else "self"
    row = target_roles_db.change_target_role(
        user_id=user_id,
        role_id=role_id,
        selected_by=selected_by,
        selected_by_user_id=actor["id"],
        readiness_at_change=readiness_at_change,
    )

    evaluation_service.mark_outdated(user_id, ("readiness", "roadmap", "ats", "report"))
    notification_service.notify_readiness_outdated(
        user_id,
        f"Your target role changed to {role['name']}. Calculate your readiness for the new role.",
        {"role_id": role_id, "role_name": role["name"], "trigger": "role_change"},
    )
    notification_service.create_or_update(
        user_id,
        "role_changed",
        title="Target Role Updated",
        message=f"Your target role is now {role['name']}.",
        action_url="/dashboard/roadmap",
        metadata={
            "role_id": role_id,
            "role_name": role["name"],
            "previous_role_id": current["role_id"] if current else None,
        },
    )
    log_activity(
        user_id=actor["id"],
        action="target_role_changed",
        entity_type="target_role",
        entity_id=row["id"],
        details={"user_id": user_id, "role_id": role_id, "previous_role_id": current["role_id"] if current else None},
    )
    logger.info("target_role_changed user=%s role=%s selected_by=%s", user_id, role_id, selected_by)
    return TargetRoleChangeResponse(
        target_role=target_role_out(row),
        changed=True,
        previous_role_id=current["role_id"] if current else None,
    )


def target_role_history(user_id: str, *, include_active: bool = False, limit: int = 50) -> list[TargetRoleOut]:
    require_user(user_id)
    rows = target_roles_db.list_target_role_history(user_id, include_active=include_active, limit=limit)
    return [target_role_out(row) for row in rows]
