from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from roleready.api.errors import raise_service_error
from roleready.core.rate_limit import rate_limit
from roleready.core.security import api_key_auth, get_current_user, require_roles
from roleready.schemas.users import (
    MentorAssignRequest,
    MentorWorkload,
    UserCreateRequest,
    UserOut,
    UserRegisterRequest,
    UserUpdateRequest,
)
from roleready.services import user_service
from roleready.services.errors import ServiceError

router = APIRouter()


@router.post("/users/register", response_model=UserOut, status_code=201)
@rate_limit()
def register(request: Request, payload: UserRegisterRequest, _: None = Depends(api_key_auth)):
    try:
        return user_service.register_user(payload)
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/users/me", response_model=UserOut)
def me(user: dict[str, Any] = Depends(get_current_user)):
    return user_service.user_out(user)


@router.post("/users", response_model=UserOut, status_code=201)
@rate_limit()
def create_user(
    request: Request,
    payload: UserCreateRequest,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return user_service.create_user(payload, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/users", response_model=list[UserOut])
def list_users(
    role: str | None = Query(default=None),
    is_active: bool | None = Query(default=None),
    search: str | None = Query(default=None, max_length=100),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    _: dict[str, Any] = Depends(require_roles("admin")),
):
    return user_service.list_users(role=role, is_active=is_active, search=search, limit=limit, offset=offset)


@router.patch("/users/{user_id}", response_model=UserOut)
@rate_limit()
def update_user(
    request: Request,
    user_id: str,
    payload: UserUpdateRequest,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return user_service.update_user(user_id, payload, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)


@router.put("/users/{user_id}/mentor", response_model=UserOut)
@rate_limit()
def assign_mentor(
    request: Request,
    user_id: str,
    payload: MentorAssignRequest,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return user_service.assign_mentor(user_id, payload.mentor_id, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)


@router.delete("/users/{user_id}/mentor", response_model=UserOut)
@rate_limit()
def unassign_mentor(
    request: Request,
    user_id: str,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return user_service.unassign_mentor(user_id, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/mentors/workload", response_model=list[MentorWorkload])
def mentor_workload(_: dict[str, Any] = Depends(require_roles("admin"))):
    return user_service.mentor_workload()
