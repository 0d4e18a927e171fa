from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from roleready.api.errors import raise_service_error
from roleready.core.rate_limit import rate_limit
from roleready.core.security import ensure_self_or_admin, get_current_user
from roleready.schemas.mentor import ValidationRequestResponse
from roleready.schemas.users import (
    UserSkillBulkRequest,
    UserSkillBulkResponse,
    UserSkillCreateRequest,
    UserSkillOut,
    UserSkillUpdateRequest,
)
from roleready.services import mentor_queue_service, user_service
from roleready.services.errors import ServiceError
from roleready.services.validation_routing import can_mentor_see_user_validations

router = APIRouter()


@router.get("/users/{user_id}/skills", response_model=list[UserSkillOut])
def list_skills(
    user_id: str,
    validation_status: str | None = Query(default=None),
    user: dict[str, Any] = Depends(get_current_user),
):
    if not (user["role"] == "mentor" and can_mentor_see_user_validations(user["id"], user_id)):
        ensure_self_or_admin(user, user_id)
    try:
        return user_service.list_user_skills(user_id, validation_status=validation_status)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/users/{user_id}/skills", response_model=UserSkillOut, status_code=201)
@rate_limit()
def add_skill(
    request: Request,
    user_id: str,
    payload: UserSkillCreateRequest,
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return user_service.add_user_skill(user_id, payload)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/users/{user_id}/skills/bulk", response_model=UserSkillBulkResponse, status_code=201)
@rate_limit()
def bulk_add_skills(
    request: Request,
    user_id: str,
    payload: UserSkillBulkRequest,
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return user_service.bulk_add_user_skills(user_id, payload)
    except ServiceError as exc:
        raise_service_error(exc)


@router.patch("/users/{user_id}/skills/{user_skill_id}", response_model=UserSkillOut)
@rate_limit()
def update_skill(
    request: Request,
    user_id: str,
    user_skill_id: str,
    payload: UserSkillUpdateRequest,
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return user_service.update_user_skill_level(user_id, user_skill_id, payload.level)
    except ServiceError as exc:
        raise_service_error(exc)


@router.delete("/users/{user_id}/skills/{user_skill_id}", status_code=204)
@rate_limit()
def remove_skill(
    request: Request,
    user_id: str,
    user_skill_id: str,
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        user_service.remove_user_skill(user_id, user_skill_id)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post(
    "/users/{user_id}/skills/{user_skill_id}/request-validation",
    response_model=ValidationRequestResponse,
)
@rate_limit()
def request_validation(
    request: Request,
    user_id: str,
    user_skill_id: str,
    user: dict[str, Any] = Depends(get_current_user),
):
    if user["id"] != user_id:
        raise HTTPException(status_code=403, detail="You can only request validation for your own skills")
    try:
        return mentor_queue_service.request_validation(user, user_skill_id)
    except ServiceError as exc:
        raise_service_error(exc)
