from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from roleready.api.errors import raise_service_error
from roleready.core.rate_limit import rate_limit
from roleready.core.security import ensure_self_or_admin, get_current_user, require_roles
from roleready.schemas.mentor import (
    ApproveRequest,
    InboxEntry,
    MentorStats,
    QueueItem,
    RejectRequest,
    ValidationRouting,
)
from roleready.schemas.users import UserSkillOut
from roleready.services import mentor_queue_service
from roleready.services.errors import ServiceError
from roleready.services.validation_routing import get_validation_recipients

router = APIRouter()

_reviewer = require_roles("mentor", "admin")


@router.get("/mentor/queue", response_model=list[QueueItem])
def mentor_queue(reviewer: dict[str, Any] = Depends(_reviewer)):
    if reviewer["role"] == "admin":
        return mentor_queue_service.get_pending_validations_for_admin()
    return mentor_queue_service.get_pending_validations_for_mentor(reviewer["id"])


@router.get("/mentor/inbox", response_model=list[InboxEntry])
def mentor_inbox(mentor: dict[str, Any] = Depends(require_roles("mentor"))):
    return mentor_queue_service.get_users_with_pending_validations(mentor["id"])


@router.get("/mentor/users/{user_id}/skills", response_model=list[QueueItem])
def mentor_user_skills(user_id: str, reviewer: dict[str, Any] = Depends(_reviewer)):
    try:
        return mentor_queue_service.get_pending_skills_for_user(reviewer, user_id)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/mentor/skills/{user_skill_id}/approve", response_model=UserSkillOut)
@rate_limit()
def approve_skill(
    request: Request,
    user_skill_id: str,
    payload: ApproveRequest | None = None,
    reviewer: dict[str, Any] = Depends(_reviewer),
):
    note = payload.note if payload else None
    try:
        return mentor_queue_service.approve_skill(reviewer, user_skill_id, note)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/mentor/skills/{user_skill_id}/reject", response_model=UserSkillOut)
@rate_limit()
def reject_skill(
    request: Request,
    user_skill_id: str,
    payload: RejectRequest,
    reviewer: dict[str, Any] = Depends(_reviewer),
):
    try:
        return mentor_queue_service.reject_skill(reviewer, user_skill_id, payload.note)
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/mentor/stats", response_model=MentorStats)
def mentor_stats(reviewer: dict[str, Any] = Depends(_reviewer)):
    return mentor_queue_service.get_mentor_validation_stats(reviewer["id"])


@router.get("/mentor/history", response_model=list[UserSkillOut])
def mentor_history(
    limit: int = Query(default=50, ge=1, le=200),
    reviewer: dict[str, Any] = Depends(_reviewer),
):
    return mentor_queue_service.get_validation_history(reviewer["id"], limit=limit)


@router.get("/admin/validation-queue", response_model=list[QueueItem])
def admin_validation_queue(_: dict[str, Any] = Depends(require_roles("admin"))):
    return mentor_queue_service.get_pending_validations_for_admin()


@router.get("/users/{user_id}/validation-routing", response_model=ValidationRouting)
def validation_routing(user_id: str, user: dict[str, Any] = Depends(get_current_user)):
    ensure_self_or_admin(user, user_id)
    return get_validation_recipients(user_id)
