from __future__ import annotations

import logging
from typing import Iterable

from roleready.db import resumes as resumes_db
from roleready.db import users as users_db
from roleready.db.connection import utc_now
from roleready.schemas.common import EVALUATION_TYPES
from roleready.schemas.users import EvaluationState

from .errors import NotFoundError, ServiceError

logger = logging.getLogger(__name__)


def _check_types(types: Iterable[str]) -> list[str]:
    selected = list(dict.fromkeys(types))
    unknown = [item for item in selected if item not in EVALUATION_TYPES]
    if unknown:
        raise ServiceError(f"Unknown evaluation type(s): {', '.join(unknown)}")
    return selected


def mark_outdated(user_id: str, types: Iterable[str]) -> None:
    selected = _check_types(types)
    if not selected:
        return
    users_db.set_evaluation_flags(user_id, {name: True for name in selected})
    if "ats" in selected:
        resumes_db.mark_ats_scores_outdated(user_id)
    logger.debug("evaluation_outdated user=%s types=%s", user_id, selected)


def mark_complete(user_id: str, type_: str) -> None:
    _check_types([type_])
    users_db.set_evaluation_flags(user_id, {type_: False}, {type_: utc_now()})


def get_evaluation_state(user_id: str) -> EvaluationState:
    user = users_db.get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    return EvaluationState(
        user_id=user_id,
        readiness_outdated=user["readiness_outdated"],
        roadmap_outdated=user["roadmap_outdated"],
        ats_outdated=user["ats_outdated"],
        report_outdated=user["report_outdated"],
        last_readiness_at=user["last_readiness_at"],
        last_roadmap_at=user["last_roadmap_at"],
        last_ats_at=user["last_ats_at"],
        last_report_at=user["last_report_at"],
    )
