from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

from roleready.schemas.users import UserSkillOut


class QueueItem(UserSkillOut):
    user_name: str
    user_email: str
    target_role_name: str | None = None


class InboxEntry(BaseModel):
    user_id: str
    name: str
    email: str
    target_role_name: str
    pending_count: int
    oldest_pending_at: str | None = None


class MentorStats(BaseModel):
    pending: int
    validated: int
    rejected: int
    total_reviewed: int
    assigned_students: int


class ApproveRequest(BaseModel):
    note: str | None = Field(default=None, max_length=500)


class RejectRequest(BaseModel):
    note: str = Field(min_length=1, max_length=500)

    @field_validator("note")
    @classmethod
    def _note_not_blank(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("A rejection note is required")
        return cleaned


class ValidationRouting(BaseModel):
    user_id: str
    recipient_type: Literal["mentor", "admin"]
    recipient_ids: list[str] = Field(default_factory=list)
    reason: str | None = None


class ValidationRequestResponse(BaseModel):
    user_skill: UserSkillOut
    routing: ValidationRouting
    email_sent: bool = False
