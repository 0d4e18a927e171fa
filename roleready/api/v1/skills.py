from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from roleready.api.errors import raise_service_error
from roleready.core.rate_limit import rate_limit
from roleready.core.security import api_key_auth, require_roles
from roleready.schemas.catalog import SkillCreateRequest, SkillOut, SkillUpdateRequest
from roleready.services import catalog_service
from roleready.services.errors import ServiceError

router = APIRouter()


@router.get("/skills", response_model=list[SkillOut])
def list_skills(
    search: str | None = Query(default=None, max_length=100),
    domain: str | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    limit: int = Query(default=500, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    _: None = Depends(api_key_auth),
):
    return catalog_service.list_skills(
        search=search,
        domain=domain,
        include_inactive=include_inactive,
        limit=limit,
        offset=offset,
    )


@router.get("/skills/{skill_id}", response_model=SkillOut)
def get_skill(skill_id: str, _: None = Depends(api_key_auth)):
    try:
        return catalog_service.get_skill(skill_id)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/skills", response_model=SkillOut, status_code=201)
@rate_limit()
def create_skill(
    request: Request,
    payload: SkillCreateRequest,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return catalog_service.create_skill(payload, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)


@router.patch("/skills/{skill_id}", response_model=SkillOut)
@rate_limit()
def update_skill(
    request: Request,
    skill_id: str,
    payload: SkillUpdateRequest,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return catalog_service.update_skill(skill_id, payload, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)


@router.delete("/skills/{skill_id}", response_model=SkillOut)
@rate_limit()
def deactivate_skill(
    request: Request,
    skill_id: str,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return catalog_service.deactivate_skill(skill_id, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)
