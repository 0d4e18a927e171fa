from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from roleready.schemas.common import SkillLevel, SkillSource, UserRole, ValidationStatus

_EMAIL_HINT = "@"


class UserRegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=200)

    @field_validator("email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if _EMAIL_HINT not in normalized or normalized.startswith("@") or normalized.endswith("@"):
            raise ValueError("email must be a valid address")
        return normalized


class UserCreateRequest(UserRegisterRequest):
    role: UserRole = "user"


class UserUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    role: UserRole | None = None
    is_active: bool | None = None


class MentorAssignRequest(BaseModel):
    mentor_id: str = Field(min_length=1)


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    mentor_id: str | None = None
    is_active: bool
    created_at: str
    updated_at: str


class MentorWorkload(BaseModel):
    mentor_id: str
    name: str
    email: str
    is_active: bool
    assigned_users: int


class EvaluationState(BaseModel):
    user_id: str
    readiness_outdated: bool
    roadmap_outdated: bool
    ats_outdated: bool
    report_outdated: bool
    last_readiness_at: str | None = None
    last_roadmap_at: str | None = None
    last_ats_at: str | None = None
    last_report_at: str | None = None


class UserSkillCreateRequest(BaseModel):
    skill_id: str | None = None
    skill_name: str | None = Field(default=None, max_length=100)
    level: SkillLevel = "beginner"
    source: SkillSource = "self"

    @model_validator(mode="after")
    def _validate_reference(self) -> "UserSkillCreateRequest":
        if not self.skill_id and not (self.skill_name or "").strip():
            raise ValueError("Either skill_id or skill_name is required")
        if self.source == "validated":
            raise ValueError("source 'validated' is set by mentor review only")
        return self


class UserSkillBulkRequest(BaseModel):
    skills: list[UserSkillCreateRequest] = Field(min_length=1, max_length=100)


class UserSkillUpdateRequest(BaseModel):
    level: SkillLevel


class UserSkillOut(BaseModel):
    id: str
    user_id: str
    skill_id: str
    skill_name: str
    skill_domain: str
    level: SkillLevel
    source: SkillSource
    validation_status: ValidationStatus
    validated_by: str | None = None
    validated_at: str | None = None
    validation_note: str | None = None
    requested_at: str | None = None
    is_verified: bool
    created_at: str
    updated_at: str


class UserSkillBulkResponse(BaseModel):
    added: list[UserSkillOut] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


class TargetRoleSetRequest(BaseModel):
    role_id: str = Field(min_length=1)


class TargetRoleOut(BaseModel):
    id: str
    user_id: str
    role_id: str
    role_name: str | None = None
    role_color_class: str | None = None
    is_active: bool
    selected_by: str
    selected_by_user_id: str | None = None
    readiness_at_change: float | None = None
    activated_at: str
    deactivated_at: str | None = None


class TargetRoleChangeResponse(BaseModel):
    target_role: TargetRoleOut
    changed: bool
    previous_role_id: str | None = None
