from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from roleready.api.errors import raise_service_error
from roleready.core.rate_limit import rate_limit
from roleready.core.security import ensure_self_or_admin, get_current_user
from roleready.schemas.readiness import (
    ReadinessCalculateRequest,
    ReadinessPreviewRequest,
    ReadinessPreviewResponse,
    ReadinessSnapshotOut,
    ReadinessSnapshotResponse,
)
from roleready.schemas.users import EvaluationState
from roleready.services import evaluation_service, readiness_service
from roleready.services.errors import ServiceError

router = APIRouter()


@router.post("/users/{user_id}/readiness", response_model=ReadinessSnapshotResponse, status_code=201)
@rate_limit()
def calculate_readiness(
    request: Request,
    user_id: str,
    payload: ReadinessCalculateRequest | None = None,
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    body = payload or ReadinessCalculateRequest()
    try:
        return readiness_service.calculate_for_user(
            user_id,
            body.role_id,
            trigger=body.trigger,
            trigger_details=body.trigger_details,
        )
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/users/{user_id}/readiness/latest", response_model=ReadinessSnapshotOut | None)
def latest_readiness(
    user_id: str,
    role_id: str | None = Query(default=None),
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return readiness_service.get_latest_snapshot(user_id, role_id)
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/users/{user_id}/readiness/history", response_model=list[ReadinessSnapshotOut])
def readiness_history(
    user_id: str,
    role_id: str | None = Query(default=None),
    limit: int = Query(default=10, ge=1, le=100),
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return readiness_service.get_snapshot_history(user_id, role_id=role_id, limit=limit)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/readiness/preview", response_model=ReadinessPreviewResponse)
@rate_limit()
def preview_readiness(
    request: Request,
    payload: ReadinessPreviewRequest,
    user: dict[str, Any] = Depends(get_current_user),
):
    try:
        return readiness_service.preview_readiness(user["id"], payload)
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/users/{user_id}/evaluation-state", response_model=EvaluationState)
def evaluation_state(user_id: str, user: dict[str, Any] = Depends(get_current_user)):
    ensure_self_or_admin(user, user_id)
    try:
        return evaluation_service.get_evaluation_state(user_id)
    except ServiceError as exc:
        raise_service_error(exc)
