from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from roleready.schemas.common import SkillLevel
from roleready.schemas.users import UserSkillOut


class ResumeTextRequest(BaseModel):
    text: str = Field(min_length=1, max_length=100_000)
    file_name: str = Field(default="pasted-resume.txt", min_length=1, max_length=255)


class ResumeOut(BaseModel):
    id: str
    user_id: str
    file_name: str
    source_type: str
    raw_text: str
    sections: dict[str, Any] = Field(default_factory=dict)
    parsing_warnings: list[str] = Field(default_factory=list)
    is_active: bool
    created_at: str


class ResumeSummary(BaseModel):
    id: str
    file_name: str
    source_type: str
    is_active: bool
    word_count: int
    created_at: str


class SkillSuggestion(BaseModel):
    skill_id: str
    skill_name: str
    skill_domain: str
    confidence: int
    suggested_level: SkillLevel
    matched_on: str
    already_has: bool
    current_level: SkillLevel | None = None
    validation_status: str | None = None


class SkillSuggestionResponse(BaseModel):
    resume_id: str
    suggestions: list[SkillSuggestion] = Field(default_factory=list)
    total_matched: int
    new_skills: int


class ResumeSyncRequest(BaseModel):
    skill_ids: list[str] | None = Field(default=None, max_length=500)
    overwrite: bool = False
    min_confidence: int = Field(default=0, ge=0, le=100)


class SkippedSkill(BaseModel):
    skill_id: str
    skill_name: str
    reason: str


class ResumeSyncResponse(BaseModel):
    added: list[UserSkillOut] = Field(default_factory=list)
    updated: list[UserSkillOut] = Field(default_factory=list)
    skipped: list[SkippedSkill] = Field(default_factory=list)
