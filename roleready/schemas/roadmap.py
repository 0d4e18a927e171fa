from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from roleready.schemas.scoring import RoadmapEdgeCase, RoadmapStep, StepStatus

RoadmapStatus = Literal["active", "completed", "archived"]


class RoadmapGenerateRequest(BaseModel):
    role_id: str | None = None
    max_steps: int | None = Field(default=None, ge=1)


class StepUpdateRequest(BaseModel):
    status: StepStatus
    notes: str | None = Field(default=None, max_length=1000)


class BulkStepUpdateItem(StepUpdateRequest):
    step_id: str = Field(min_length=1)


class BulkStepUpdateRequest(BaseModel):
    updates: list[BulkStepUpdateItem] = Field(min_length=1, max_length=100)


class RoadmapOut(BaseModel):
    id: str
    user_id: str
    role_id: str
    role_name: str
    snapshot_id: str | None = None
    title: str
    description: str
    status: RoadmapStatus
    steps: list[RoadmapStep] = Field(default_factory=list)
    total_steps: int
    completed_steps: int
    progress_percentage: int
    total_estimated_hours: int
    completed_hours: int
    current_readiness: float
    projected_readiness: float
    priority_breakdown: dict[str, int] = Field(default_factory=dict)
    category_breakdown: dict[str, int] = Field(default_factory=dict)
    rule_breakdown: dict[str, int] = Field(default_factory=dict)
    edge_case: RoadmapEdgeCase | None = None
    created_at: str
    updated_at: str
    completed_at: str | None = None
    archived_at: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "RoadmapOut":
        data = dict(row)
        summary = data.pop("summary", {}) or {}
        return cls(**data, **summary)
