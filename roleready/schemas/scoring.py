from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from roleready.schemas.common import Importance, SkillLevel, SkillSource, ValidationStatus

ReadinessLabel = Literal["ready", "almost_ready", "developing", "not_ready"]
ATSScoreLevel = Literal["excellent", "good", "fair", "poor"]
StepType = Literal["learn_new", "improve", "validate"]
StepStatus = Literal["not_started", "in_progress", "completed", "skipped"]
PriorityRule = Literal[
    "RULE_1_REQUIRED_MISSING",
    "RULE_2_REJECTED",
    "RULE_3_UNVALIDATED_REQUIRED",
    "RULE_4_OPTIONAL_MISSING",
]
PriorityBucket = Literal["CRITICAL", "HIGH", "MEDIUM", "LOW"]
StepCategory = Literal["required_gap", "rejected", "strengthen", "optional_gap"]
MessageType = Literal["success", "info", "action"]


class BenchmarkInput(BaseModel):
    skill_id: str
    skill_name: str
    importance: Importance = "optional"
    weight: float = Field(ge=0)
    required_level: SkillLevel = "beginner"
    is_active: bool = True


class UserSkillInput(BaseModel):
    skill_id: str
    level: SkillLevel = "beginner"
    source: SkillSource = "self"
    validation_status: ValidationStatus = "none"


class SkillBreakdownItem(BaseModel):
    skill_id: str
    skill_name: str
    importance: Importance
    weight: float
    required_level: SkillLevel
    user_level: SkillLevel
    source: SkillSource | None = None
    validation_status: ValidationStatus | None = None
    is_validated: bool
    level_points: int
    validation_multiplier: float
    raw_score: float
    weighted_score: float
    max_possible_score: float
    meets_requirement: bool
    is_missing: bool


class ReadinessResult(BaseModel):
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


class SkillGap(BaseModel):
    skill_id: str
    skill_name: str
    importance: Importance
    weight: float
    current_level: SkillLevel
    required_level: SkillLevel
    levels_needed: int
    priority: float
    is_missing: bool


class ATSScoreComponents(BaseModel):
    relevance: int
    context_depth: int
    structure: int
    impact: int


class ATSScoreResult(BaseModel):
    total_score: int
    level: ATSScoreLevel
    components: ATSScoreComponents
    matched_keywords: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    word_count: int
    action_verb_count: int


class RoadmapStep(BaseModel):
    step_id: str
    skill_id: str
    skill_name: str
    step_type: StepType
    current_level: SkillLevel
    target_level: SkillLevel
    importance: Importance
    weight: float
    priority: float
    rule: PriorityRule
    priority_level: PriorityBucket
    category: StepCategory
    validation_status: ValidationStatus | None = None
    estimated_hours: int
    action_description: str
    resources: list[str] = Field(default_factory=list)
    status: StepStatus = "not_started"
    started_at: str | None = None
    completed_at: str | None = None
    user_notes: str | None = None


class RoadmapEdgeCase(BaseModel):
    is_fully_ready: bool
    only_optional_gaps: bool
    has_pending_validation: bool
    pending_validation_count: int
    has_unvalidated_required: bool
    unvalidated_required_count: int
    message: str
    message_type: MessageType


class GeneratedRoadmap(BaseModel):
    user_id: str
    role_id: str
    role_name: str
    title: str
    description: str
    steps: list[RoadmapStep] = Field(default_factory=list)
    total_steps: int
    total_estimated_hours: int
    current_readiness: float
    projected_readiness: float
    priority_breakdown: dict[str, int] = Field(default_factory=dict)
    category_breakdown: dict[str, int] = Field(default_factory=dict)
    rule_breakdown: dict[str, int] = Field(default_factory=dict)
    edge_case: RoadmapEdgeCase
