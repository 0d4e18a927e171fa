from __future__ import annotations

from pydantic import BaseModel, Field

from roleready.schemas.common import Importance, SkillDomain, SkillLevel


class SkillCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    domain: SkillDomain = "technical"
    description: str | None = Field(default=None, max_length=500)


class SkillUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    domain: SkillDomain | None = None
    description: str | None = Field(default=None, max_length=500)
    is_active: bool | None = None


class SkillOut(BaseModel):
    id: str
    name: str
    normalized_name: str
    domain: SkillDomain
    description: str | None = None
    is_active: bool
    created_at: str
    updated_at: str


class BenchmarkCreateRequest(BaseModel):
    skill_id: str = Field(min_length=1)
    importance: Importance = "optional"
    weight: float = Field(ge=1, le=100)
    required_level: SkillLevel = "beginner"
    is_active: bool = True


class BenchmarkUpdateRequest(BaseModel):
    importance: Importance | None = None
    weight: float | None = Field(default=None, ge=1, le=100)
    required_level: SkillLevel | None = None
    is_active: bool | None = None


class BenchmarkOut(BaseModel):
    skill_id: str
    skill_name: str
    skill_domain: str
    importance: Importance
    weight: float
    required_level: SkillLevel
    is_active: bool


class RoleCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    color_class: str | None = Field(default=None, max_length=100)
    benchmarks: list[BenchmarkCreateRequest] = Field(default_factory=list, max_length=100)


class RoleUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    color_class: str | None = Field(default=None, max_length=100)
    is_active: bool | None = None


class RoleSummary(BaseModel):
    id: str
    name: str
    description: str | None = None
    color_class: str | None = None
    is_active: bool
    skill_count: int
    required_skill_count: int
    total_weight: float
    weights_sum_to_100: bool
    created_at: str
    updated_at: str


class RoleDetail(RoleSummary):
    benchmarks: list[BenchmarkOut] = Field(default_factory=list)


class SeedReport(BaseModel):
    skills_created: int = 0
    roles_created: int = 0
    benchmarks_upserted: int = 0
    warnings: list[str] = Field(default_factory=list)
