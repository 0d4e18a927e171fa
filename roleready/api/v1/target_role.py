from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from roleready.api.errors import raise_service_error
from roleready.core.rate_limit import rate_limit
from roleready.core.security import ensure_self_or_admin, get_current_user
from roleready.schemas.users import TargetRoleChangeResponse, TargetRoleOut, TargetRoleSetRequest
from roleready.services import user_service
from roleready.services.errors import ServiceError

router = APIRouter()


@router.get("/users/{user_id}/target-role", response_model=TargetRoleOut | None)
def get_target_role(user_id: str, user: dict[str, Any] = Depends(get_current_user)):
    ensure_self_or_admin(user, user_id)
    try:
        return user_service.get_active_target_role(user_id)
    except ServiceError as exc:
        raise_service_error(exc)


@router.put("/users/{user_id}/target-role", response_model=TargetRoleChangeResponse)
@rate_limit()
def set_target_role(
    request: Request,
    user_id: str,
    payload: TargetRoleSetRequest,
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return user_service.set_target_role(user_id, payload.role_id, actor=user)
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/users/{user_id}/target-role/history", response_model=list[TargetRoleOut])
def target_role_history(
    user_id: str,
    include_active: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return user_service.target_role_history(user_id, include_active=include_active, limit=limit)
    except ServiceError as exc:
        raise_service_error(exc)
