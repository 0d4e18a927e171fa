from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from roleready.api.errors import raise_service_error
from roleready.core.rate_limit import rate_limit
from roleready.core.security import ensure_self_or_admin, get_current_user
from roleready.schemas.roadmap import BulkStepUpdateRequest, RoadmapGenerateRequest, RoadmapOut, StepUpdateRequest
from roleready.services import roadmap_service
from roleready.services.errors import ServiceError

router = APIRouter()


@router.post("/users/{user_id}/roadmap", response_model=RoadmapOut, status_code=201)
@rate_limit()
def generate_roadmap(
    request: Request,
    user_id: str,
    payload: RoadmapGenerateRequest | None = None,
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    body = payload or RoadmapGenerateRequest()
    try:
        return roadmap_service.generate_roadmap_for_user(user_id, body.role_id, body.max_steps)
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/users/{user_id}/roadmap", response_model=RoadmapOut)
def active_roadmap(
    user_id: str,
    role_id: str | None = Query(default=None),
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return roadmap_service.get_active_roadmap(user_id, role_id)
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/users/{user_id}/roadmap/history", response_model=list[RoadmapOut])
def roadmap_history(
    user_id: str,
    include_archived: bool = Query(default=False),
    limit: int = Query(default=20, ge=1, le=100),
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    return roadmap_service.get_roadmap_history(user_id, include_archived=include_archived, limit=limit)


@router.get("/roadmaps/{roadmap_id}", response_model=RoadmapOut)
def get_roadmap(roadmap_id: str, user: dict[str, Any] = Depends(get_current_user)):
    try:
        return roadmap_service.get_roadmap(roadmap_id, actor=user)
    except ServiceError as exc:
        raise_service_error(exc)


@router.patch("/roadmaps/{roadmap_id}/steps/{step_id}", response_model=RoadmapOut)
@rate_limit()
def update_step(
    request: Request,
    roadmap_id: str,
    step_id: str,
    payload: StepUpdateRequest,
    user: dict[str, Any] = Depends(get_current_user),
):
    try:
        return roadmap_service.update_step_status(roadmap_id, step_id, payload.status, payload.notes, actor=user)
    except ServiceError as exc:
        raise_service_error(exc)


@router.patch("/roadmaps/{roadmap_id}/steps", response_model=RoadmapOut)
@rate_limit()
def bulk_update_steps(
    request: Request,
    roadmap_id: str,
    payload: BulkStepUpdateRequest,
    user: dict[str, Any] = Depends(get_current_user),
):
    try:
        return roadmap_service.bulk_update_steps(roadmap_id, payload.updates, actor=user)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/roadmaps/{roadmap_id}/archive", response_model=RoadmapOut)
@rate_limit()
def archive_roadmap(request: Request, roadmap_id: str, user: dict[str, Any] = Depends(get_current_user)):
    try:
        return roadmap_service.archive_roadmap(roadmap_id, actor=user)
    except ServiceError as exc:
        raise_service_error(exc)
