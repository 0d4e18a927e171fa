from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from roleready.api.errors import raise_service_error
from roleready.core.rate_limit import rate_limit
from roleready.core.security import api_key_auth, require_roles
from roleready.schemas.catalog import (
    BenchmarkCreateRequest,
    BenchmarkUpdateRequest,
    RoleCreateRequest,
    RoleDetail,
    RoleSummary,
    RoleUpdateRequest,
)
from roleready.services import catalog_service
from roleready.services.errors import ServiceError

router = APIRouter()


@router.get("/roles", response_model=list[RoleSummary])
def list_roles(
    search: str | None = Query(default=None, max_length=100),
    include_inactive: bool = Query(default=False),
    _: None = Depends(api_key_auth),
):
    return catalog_service.list_roles(include_inactive=include_inactive, search=search)


@router.get("/roles/{role_id}", response_model=RoleDetail)
def get_role(role_id: str, _: None = Depends(api_key_auth)):
    try:
        return catalog_service.get_role(role_id)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/roles", response_model=RoleDetail, status_code=201)
@rate_limit()
def create_role(
    request: Request,
    payload: RoleCreateRequest,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return catalog_service.create_role(payload, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)


@router.patch("/roles/{role_id}", response_model=RoleDetail)
@rate_limit()
def update_role(
    request: Request,
    role_id: str,
    payload: RoleUpdateRequest,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return catalog_service.update_role(role_id, payload, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)


@router.delete("/roles/{role_id}", response_model=RoleDetail)
@rate_limit()
def deactivate_role(
    request: Request,
    role_id: str,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return catalog_service.deactivate_role(role_id, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/roles/{role_id}/benchmarks", response_model=RoleDetail)
@rate_limit()
def add_benchmark(
    request: Request,
    role_id: str,
    payload: BenchmarkCreateRequest,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return catalog_service.add_benchmark(role_id, payload, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)


@router.patch("/roles/{role_id}/benchmarks/{skill_id}", response_model=RoleDetail)
@rate_limit()
def update_benchmark(
    request: Request,
    role_id: str,
    skill_id: str,
    payload: BenchmarkUpdateRequest,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return catalog_service.update_benchmark(role_id, skill_id, payload, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)


@router.delete("/roles/{role_id}/benchmarks/{skill_id}", response_model=RoleDetail)
@rate_limit()
def remove_benchmark(
    request: Request,
    role_id: str,
    skill_id: str,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return catalog_service.remove_benchmark(role_id, skill_id, actor_id=admin["id"])
    except ServiceError as exc:
        raise_service_error(exc)
