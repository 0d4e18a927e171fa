from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from roleready.schemas.common import SnapshotTrigger, SkillLevel, SkillSource, ValidationStatus
from roleready.schemas.scoring import BenchmarkInput, ReadinessLabel, ReadinessResult, SkillBreakdownItem, SkillGap


class ReadinessCalculateRequest(BaseModel):
    role_id: str | None = None
    trigger: SnapshotTrigger = "manual"
    trigger_details: dict[str, Any] = Field(default_factory=dict)


class ReadinessPreviewSkill(BaseModel):
    skill_id: str
    level: SkillLevel = "beginner"
    source: SkillSource = "self"
    validation_status: ValidationStatus = "none"


class ReadinessPreviewRequest(BaseModel):
    role_id: str | None = None
    benchmarks: list[BenchmarkInput] | None = Field(default=None, max_length=200)
    user_skills: list[ReadinessPreviewSkill] | None = Field(default=None, max_length=500)


class ReadinessPreviewResponse(BaseModel):
    result: ReadinessResult
    gaps: list[SkillGap] = Field(default_factory=list)


class ReadinessSnapshotOut(BaseModel):
    id: str
    user_id: str
    role_id: str
    role_name: str
    total_score: float
    max_possible_score: float
    percentage: float
    label: ReadinessLabel
    skills_met: int
    skills_missing: int
    total_benchmarks: int
    required_skills_met: int
    required_skills_count: int
    has_all_required: bool
    breakdown: list[SkillBreakdownItem] = Field(default_factory=list)
    trigger: SnapshotTrigger
    trigger_details: dict[str, Any] = Field(default_factory=dict)
    created_at: str


class ReadinessSnapshotResponse(BaseModel):
    snapshot: ReadinessSnapshotOut
    gaps: list[SkillGap] = Field(default_factory=list)
