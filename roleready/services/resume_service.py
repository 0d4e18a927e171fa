from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from roleready.activity.db import log_activity
from roleready.core.config import settings
from roleready.db import catalog as catalog_db
from roleready.db import resumes as resumes_db
from roleready.db import user_skills as user_skills_db
from roleready.normalize.normalize_resume import normalize_resume_sections
from roleready.normalize.utils import normalize_match_text, skill_variations
from roleready.parsing.models import ParsedDoc
from roleready.parsing.parse import UnsupportedDocumentError, parse_document_bytes, parse_text
from roleready.schemas.resume import (
    ResumeOut,
    ResumeSummary,
    ResumeSyncRequest,
    ResumeSyncResponse,
    SkillSuggestion,
    SkillSuggestionResponse,
    SkippedSkill,
)
from roleready.schemas.users import UserSkillOut
from roleready.taxonomy import TaxonomyProvider, get_default_taxonomy_provider

from . import evaluation_service
from .errors import ForbiddenError, NotFoundError, ServiceError
from .user_service import require_user, skills_changed, user_skill_out

logger = logging.getLogger(__name__)

RESUME_MATCH_CONFIDENCE = 80


class ResumeError(ServiceError):
    pass


def confidence_to_level(confidence: int) -> str:
    if confidence >= 90:
        return "expert"
    if confidence >= 70:
        return "advanced"
    if confidence >= 50:
        return "intermediate"
    if confidence >= 25:
        return "beginner"
    return "none"


def _variation_in_text(normalized_text: str, variation: str) -> bool:
    if len(variation) < 2:
        return False
    pattern = re.compile(rf"(?<![a-z0-9]){re.escape(variation)}(?![a-z0-9])")
    if pattern.search(normalized_text):
        return True
    # Longer names may sit inside compound tokens ("reactjs" in "reactjsdeveloper").
    return len(variation) > 3 and variation in normalized_text


def match_skills_in_text(
    normalized_text: str,
    skills: Iterable[dict[str, Any]],
    taxonomy: TaxonomyProvider | None = None,
) -> list[tuple[dict[str, Any], str]]:
    """Return (skill, matched variation) pairs for skills named in the text."""
    provider = taxonomy or get_default_taxonomy_provider()
    matched: list[tuple[dict[str, Any], str]] = []
    seen: set[str] = set()
    for skill in skills:
        if skill["name"] in seen:
            continue
        variations = skill_variations(skill["name"])
        for alias in provider.aliases_for(skill["name"]):
            variations.append(normalize_match_text(alias))
        for variation in dict.fromkeys(variations):
            if _variation_in_text(normalized_text, variation):
                matched.append((skill, variation))
                seen.add(skill["name"])
                break
    return matched


def _resume_out(row: dict[str, Any]) -> ResumeOut:
    return ResumeOut(**row)


def _store(user_id: str, parsed: ParsedDoc) -> ResumeOut:
    if parsed.is_empty:
        detail = "; ".join(parsed.parsing_warnings) or "The document is empty."
        raise ResumeError(f"Could not extract text from resume. {detail}")
    sections = normalize_resume_sections(parsed.text)
    row = resumes_db.insert_resume(
        user_id=user_id,
        file_name=parsed.file_name,
        source_type=parsed.source_type,
        raw_text=parsed.text,
        sections=sections.model_dump(),
        parsing_warnings=parsed.parsing_warnings,
    )
    evaluation_service.mark_outdated(user_id, ["ats"])
    log_activity(
        user_id=user_id,
        action="resume_uploaded",
        entity_type="resume",
        entity_id=row["id"],
        details={"source_type": parsed.source_type, "words": parsed.word_count, "content_hash": parsed.content_hash},
    )
    logger.info(
        "resume_stored user=%s resume=%s type=%s pages=%s", user_id, row["id"], parsed.source_type, len(parsed.pages)
    )
    return _resume_out(row)


def upload_resume_file(user_id: str, file_name: str, content_type: str | None, content: bytes) -> ResumeOut:
    require_user(user_id)
    if not content:
        raise ResumeError("Uploaded file is empty")
    if len(content) > settings.max_resume_upload_bytes:
        raise ResumeError(
            f"Resume exceeds the {settings.max_resume_upload_bytes} byte upload limit",
            status_code=413,
        )
    try:
        parsed = parse_document_bytes(content, file_name, content_type)
    except UnsupportedDocumentError as exc:
        raise ResumeError(str(exc), status_code=415) from exc
    return _store(user_id, parsed)


def upload_resume_text(user_id: str, text: str, file_name: str = "pasted-resume.txt") -> ResumeOut:
    require_user(user_id)
    return _store(user_id, parse_text(text, file_name))


def get_active_resume(user_id: str) -> ResumeOut:
    require_user(user_id)
    row = resumes_db.get_active_resume(user_id)
    if not row:
        raise NotFoundError("No active resume found. Please upload a resume first.")
    return _resume_out(row)


def list_resumes(user_id: str, *, limit: int = 20) -> list[ResumeSummary]:
    require_user(user_id)
    return [
        ResumeSummary(
            id=row["id"],
            file_name=row["file_name"],
            source_type=row["source_type"],
            is_active=row["is_active"],
            word_count=len(row["raw_text"].split()),
            created_at=row["created_at"],
        )
        for row in resumes_db.list_resumes(user_id, limit=limit)
    ]


def _load_resume(user_id: str, resume_id: str | None) -> dict[str, Any]:
    if resume_id is None:
        row = resumes_db.get_active_resume(user_id)
        if not row:
            raise NotFoundError("No active resume found. Please upload a resume first.")
        return row
    row = resumes_db.get_resume(resume_id)
    if not row:
        raise NotFoundError("Resume not found")
    if row["user_id"] != user_id:
        raise ForbiddenError("You can only access your own resume")
    return row


def suggest_skills(user_id: str, resume_id: str | None = None) -> SkillSuggestionResponse:
    require_user(user_id)
    resume = _load_resume(user_id, resume_id)
    normalized = normalize_match_text(resume["raw_text"])
    catalog = catalog_db.list_skills(include_inactive=False, limit=100_000)
    existing = {row["skill_id"]: row for row in user_skills_db.list_user_skills(user_id)}

    suggestions: list[SkillSuggestion] = []
    for skill, variation in match_skills_in_text(normalized, catalog):
        owned = existing.get(skill["id"])
        suggestions.append(
            SkillSuggestion(
                skill_id=skill["id"],
                skill_name=skill["name"],
                skill_domain=skill["domain"],
                confidence=RESUME_MATCH_CONFIDENCE,
                suggested_level=confidence_to_level(RESUME_MATCH_CONFIDENCE),
                matched_on=variation,
                already_has=owned is not None,
                current_level=owned["level"] if owned else None,
                validation_status=owned["validation_status"] if owned else None,
            )
        )
    logger.info("resume_skill_suggestions user=%s resume=%s matched=%s", user_id, resume["id"], len(suggestions))
    return SkillSuggestionResponse(
        resume_id=resume["id"],
        suggestions=suggestions,
        total_matched=len(suggestions),
        new_skills=sum(1 for item in suggestions if not item.already_has),
    )


def sync_resume_skills(user_id: str, payload: ResumeSyncRequest, resume_id: str | None = None) -> ResumeSyncResponse:
    """Copy matched resume skills into the user's profile.

    Validated skills are never touched. Other existing skills are only updated
    when `overwrite` is set.
    """
    suggestions = suggest_skills(user_id, resume_id)
    selected = set(payload.skill_ids) if payload.skill_ids is not None else None

    added: list[UserSkillOut] = []
    updated: list[UserSkillOut] = []
    skipped: list[SkippedSkill] = []
    for suggestion in suggestions.suggestions:
        if selected is not None and suggestion.skill_id not in selected:
            continue
        if suggestion.confidence < payload.min_confidence:
            skipped.append(_skipped(suggestion, "below_min_confidence"))
            continue
        level = confidence_to_level(suggestion.confidence)
        existing = user_skills_db.get_user_skill_by_skill(user_id, suggestion.skill_id)
        if existing is None:
            row = user_skills_db.create_user_skill(
                user_id=user_id,
                skill_id=suggestion.skill_id,
                level=level,
                source="resume",
            )
            added.append(user_skill_out(row))
            continue
        if existing["validation_status"] == "validated":
            skipped.append(_skipped(suggestion, "validated"))
            continue
        if not payload.overwrite:
            skipped.append(_skipped(suggestion, "already_exists"))
            continue
        row = user_skills_db.update_user_skill(existing["id"], level=level, source="resume")
        updated.append(user_skill_out(row))  # type: ignore[arg-type]

    if added or updated:
        skills_changed(
            user_id,
            f"{len(added) + len(updated)} skills were synced from your resume. Recalculate your readiness score.",
            {"added": len(added), "updated": len(updated), "action": "resume_sync"},
        )
        log_activity(
            user_id=user_id,
            action="resume_skills_synced",
            entity_type="resume",
            entity_id=suggestions.resume_id,
            details={"added": len(added), "updated": len(updated), "skipped": len(skipped)},
        )
    return ResumeSyncResponse(added=added, updated=updated, skipped=skipped)


def _skipped(suggestion: SkillSuggestion, reason: str) -> SkippedSkill:
    return SkippedSkill(skill_id=suggestion.skill_id, skill_name=suggestion.skill_name, reason=reason)
