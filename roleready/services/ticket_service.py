from __future__ import annotations

import logging
from typing import Any

from roleready.activity.db import log_activity
from roleready.db import tickets as tickets_db
from roleready.db import users as users_db
from roleready.db.connection import utc_now
from roleready.schemas.tickets import (
    TicketAdminUpdateRequest,
    TicketCreateRequest,
    TicketDetail,
    TicketMessageOut,
    TicketOut,
)

from .errors import ForbiddenError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)


class TicketError(ServiceError):
    pass


def _detail(row: dict[str, Any]) -> TicketDetail:
    messages = [TicketMessageOut(**message) for message in tickets_db.list_messages(row["id"])]
    return TicketDetail(**row, messages=messages)


def _require_ticket(ticket_id: str, actor: dict[str, Any]) -> dict[str, Any]:
    row = tickets_db.get_ticket(ticket_id)
    if not row:
        raise NotFoundError("Ticket not found")
    if actor["role"] != "admin" and row["user_id"] != actor["id"]:
        raise ForbiddenError("You can only access your own tickets")
    return row


def create_ticket(actor: dict[str, Any], payload: TicketCreateRequest) -> TicketDetail:
    row = tickets_db.create_ticket(
        user_id=actor["id"],
        creator_role=actor["role"],
        subject=payload.subject,
        description=payload.description,
        category=payload.category,
        priority=payload.priority,
    )
    log_activity(
        user_id=actor["id"],
        action="ticket_created",
        entity_type="ticket",
        entity_id=row["id"],
        details={"ticket_number": row["ticket_number"], "category": payload.category},
    )
    logger.info("ticket_created ticket=%s user=%s", row["ticket_number"], actor["id"])
    return _detail(row)


def list_my_tickets(actor: dict[str, Any], *, status: str | None = None) -> list[TicketOut]:
    return [TicketOut(**row) for row in tickets_db.list_tickets(user_id=actor["id"], status=status)]


def get_ticket(ticket_id: str, *, actor: dict[str, Any]) -> TicketDetail:
    return _detail(_require_ticket(ticket_id, actor))


def reply_to_ticket(ticket_id: str, body: str, *, actor: dict[str, Any]) -> TicketDetail:
    row = _require_ticket(ticket_id, actor)
    if row["status"] == "closed":
        raise TicketError("Cannot reply to a closed ticket")

    sender_role = "admin" if actor["role"] == "admin" and actor["id"] != row["user_id"] else "user"
    tickets_db.add_message(ticket_id=ticket_id, sender_id=actor["id"], sender_role=sender_role, body=body)
    if sender_role == "admin" and row["status"] == "open":
        tickets_db.update_ticket(ticket_id, status="in_progress")
    elif sender_role == "user" and row["status"] == "waiting_user":
        tickets_db.update_ticket(ticket_id, status="in_progress")

    log_activity(user_id=actor["id"], action="ticket_reply", entity_type="ticket", entity_id=ticket_id)
    return _detail(tickets_db.get_ticket(ticket_id))  # type: ignore[arg-type]


def list_all_tickets(
    *,
    status: str | None = None,
    category: str | None = None,
    priority: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[TicketOut]:
    rows = tickets_db.list_tickets(status=status, category=category, priority=priority, limit=limit, offset=offset)
    return [TicketOut(**row) for row in rows]


def admin_update_ticket(ticket_id: str, payload: TicketAdminUpdateRequest, *, actor: dict[str, Any]) -> TicketDetail:
    row = _require_ticket(ticket_id, actor)
    fields: dict[str, Any] = {}
    if payload.priority is not None:
        fields["priority"] = payload.priority
    if payload.assigned_to is not None:
        assignee = users_db.get_user(payload.assigned_to)
        if not assignee or assignee["role"] != "admin" or not assignee["is_active"]:
            raise TicketError("Tickets can only be assigned to an active admin")
        fields["assigned_to"] = payload.assigned_to
    if payload.status is not None and payload.status != row["status"]:
        fields["status"] = payload.status
        if payload.status == "resolved":
            fields["resolved_at"] = utc_now()
        elif payload.status != "closed":
            fields["resolved_at"] = None

    updated = tickets_db.update_ticket(ticket_id, **fields)
    log_activity(
        user_id=actor["id"],
        action="ticket_updated",
        entity_type="ticket",
        entity_id=ticket_id,
        details={key: value for key, value in fields.items() if key != "resolved_at"},
    )
    return _detail(updated)  # type: ignore[arg-type]
