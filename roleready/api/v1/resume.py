from typing import Any

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile

from roleready.api.errors import raise_service_error
from roleready.core.config import settings
from roleready.core.rate_limit import rate_limit
from roleready.core.security import ensure_self_or_admin, get_current_user
from roleready.schemas.resume import (
    ResumeOut,
    ResumeSummary,
    ResumeSyncRequest,
    ResumeSyncResponse,
    ResumeTextRequest,
    SkillSuggestionResponse,
)
from roleready.services import resume_service
from roleready.services.errors import ServiceError

router = APIRouter()


@router.post("/users/{user_id}/resume", response_model=ResumeOut, status_code=201)
@rate_limit()
async def upload_resume(
    request: Request,
    user_id: str,
    file: UploadFile = File(...),
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    # One byte past the cap is enough to detect an oversized upload.
    content = await file.read(settings.max_resume_upload_bytes + 1)
    try:
        return resume_service.upload_resume_file(user_id, file.filename or "", file.content_type, content)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/users/{user_id}/resume/text", response_model=ResumeOut, status_code=201)
@rate_limit()
def upload_resume_text(
    request: Request,
    user_id: str,
    payload: ResumeTextRequest,
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return resume_service.upload_resume_text(user_id, payload.text, payload.file_name)
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/users/{user_id}/resume", response_model=ResumeOut)
def active_resume(user_id: str, user: dict[str, Any] = Depends(get_current_user)):
    ensure_self_or_admin(user, user_id)
    try:
        return resume_service.get_active_resume(user_id)
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/users/{user_id}/resumes", response_model=list[ResumeSummary])
def list_resumes(
    user_id: str,
    limit: int = Query(default=20, ge=1, le=100),
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return resume_service.list_resumes(user_id, limit=limit)
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/users/{user_id}/resume/suggestions", response_model=SkillSuggestionResponse)
def skill_suggestions(
    user_id: str,
    resume_id: str | None = Query(default=None),
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return resume_service.suggest_skills(user_id, resume_id)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/users/{user_id}/resume/sync-skills", response_model=ResumeSyncResponse)
@rate_limit()
def sync_skills(
    request: Request,
    user_id: str,
    payload: ResumeSyncRequest,
    resume_id: str | None = Query(default=None),
    user: dict[str, Any] = Depends(get_current_user),
):
    ensure_self_or_admin(user, user_id)
    try:
        return resume_service.sync_resume_skills(user_id, payload, resume_id)
    except ServiceError as exc:
        raise_service_error(exc)
