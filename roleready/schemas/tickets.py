from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

TicketCategory = Literal["bug", "feature", "account", "payment", "other"]
TicketPriority = Literal["low", "medium", "high"]
TicketStatus = Literal["open", "in_progress", "waiting_user", "resolved", "closed"]


class TicketCreateRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    category: TicketCategory = "other"
    priority: TicketPriority = "medium"

    @field_validator("subject", "description")
    @classmethod
    def _strip(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must not be blank")
        return cleaned


class TicketReplyRequest(BaseModel):
    body: str = Field(min_length=1, max_length=5000)

    @field_validator("body")
    @classmethod
    def _strip(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("must not be blank")
        return cleaned


class TicketAdminUpdateRequest(BaseModel):
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assigned_to: str | None = None

    @model_validator(mode="after")
    def _require_change(self) -> "TicketAdminUpdateRequest":
        if self.status is None and self.priority is None and self.assigned_to is None:
            raise ValueError("Provide at least one of status, priority or assigned_to")
        return self


class TicketMessageOut(BaseModel):
    id: str
    ticket_id: str
    sender_id: str
    sender_role: str
    body: str
    created_at: str


class TicketOut(BaseModel):
    id: str
    ticket_number: str
    user_id: str
    creator_role: str
    subject: str
    description: str
    category: TicketCategory
    priority: TicketPriority
    status: TicketStatus
    assigned_to: str | None = None
    resolved_at: str | None = None
    created_at: str
    updated_at: str


class TicketDetail(TicketOut):
    messages: list[TicketMessageOut] = Field(default_factory=list)
