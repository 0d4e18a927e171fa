from __future__ import annotations

import logging
from typing import Any

from roleready.activity.db import log_activity
from roleready.db import catalog as catalog_db
from roleready.db import resumes as resumes_db
from roleready.db import target_roles as target_roles_db
from roleready.normalize.normalize_resume import ResumeSections
from roleready.schemas.ats import ATSScoreOut
from roleready.scoring.ats import calculate_ats_score

from . import evaluation_service
from .catalog_service import get_benchmark_inputs
from .errors import NotFoundError, ServiceError
from .user_service import require_user

logger = logging.getLogger(__name__)


class ATSScoringError(ServiceError):
    pass


def _resolve_role(user_id: str, role_id: str | None) -> dict[str, Any]:
    if not role_id:
        active = target_roles_db.get_active_target_role(user_id)
        if not active:
            raise NotFoundError("No target role selected. Please select a target role first.")
        role_id = active["role_id"]
    role = catalog_db.get_role(role_id)
    if not role:
        raise NotFoundError("Role not found")
    return role


def _score_out(row: dict[str, Any], role_name: str, *, is_outdated: bool) -> ATSScoreOut:
    return ATSScoreOut(
        **row["result"],
        user_id=row["user_id"],
        role_id=row["role_id"],
        role_name=role_name,
        resume_id=row["resume_id"],
        calculated_at=row["calculated_at"],
        is_outdated=is_outdated,
    )


def calculate_ats_for_user(user_id: str, role_id: str | None = None) -> ATSScoreOut:
    require_user(user_id)
    role = _resolve_role(user_id, role_id)
    resume = resumes_db.get_active_resume(user_id)
    if not resume:
        raise NotFoundError("No active resume found. Please upload a resume first.")
    benchmarks = get_benchmark_inputs(role["id"])
    if not benchmarks:
        raise ATSScoringError("Role has no active benchmarks configured")

    sections = ResumeSections(**(resume.get("sections") or {}))
    result = calculate_ats_score(
        resume["raw_text"],
        benchmarks,
        experience_text=sections.experience,
        has_experience_section=sections.has_experience,
        has_education_section=sections.has_education,
    )
    row = resumes_db.upsert_ats_score(
        user_id=user_id,
        role_id=role["id"],
        resume_id=resume["id"],
        total_score=result.total_score,
        level=result.level,
        result=result.model_dump(),
    )
    evaluation_service.mark_complete(user_id, "ats")
    log_activity(
        user_id=user_id,
        action="ats_calculated",
        entity_type="ats_score",
        entity_id=row["id"],
        details={"role_id": role["id"], "total_score": result.total_score, "level": result.level},
    )
    logger.info("ats_score user=%s role=%s score=%s", user_id, role["id"], result.total_score)
    return _score_out(row, role["name"], is_outdated=False)


def get_ats_score(user_id: str, role_id: str | None = None) -> ATSScoreOut:
    """Return the stored score, computing it on first request."""
    require_user(user_id)
    role = _resolve_role(user_id, role_id)
    row = resumes_db.get_ats_score(user_id, role["id"])
    if row is None:
        return calculate_ats_for_user(user_id, role["id"])

    resume = resumes_db.get_active_resume(user_id)
    newer_resume = resume is not None and resume["id"] != row["resume_id"]
    return _score_out(row, role["name"], is_outdated=row["is_outdated"] or newer_resume)
