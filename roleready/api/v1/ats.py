from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from roleready.api.errors import raise_service_error
from roleready.core.rate_limit import rate_limit
from roleready.core.security import ensure_self_or_admin, get_current_user
from roleready.schemas.ats import ATSCalculateRequest, ATSScoreOut
from roleready.services import ats_service
from roleready.services.errors import ServiceError

router = APIRouter()


@router.get("/users/{user_id}/ats-score", response_model=ATSScoreOut)
def get_ats_score(
    user_id: str,
    role_id: str | None = Query(default=None),
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return ats_service.get_ats_score(user_id, role_id)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/users/{user_id}/ats-score", response_model=ATSScoreOut)
@rate_limit()
def calculate_ats_score(
    request: Request,
    user_id: str,
    payload: ATSCalculateRequest | None = None,
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    body = payload or ATSCalculateRequest()
    try:
        return ats_service.calculate_ats_for_user(user_id, body.role_id)
    except ServiceError as exc:
        raise_service_error(exc)
