from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from roleready.api.errors import raise_service_error
from roleready.core.rate_limit import rate_limit
from roleready.core.security import get_current_user, require_roles
from roleready.schemas.tickets import (
    TicketAdminUpdateRequest,
    TicketCreateRequest,
    TicketDetail,
    TicketOut,
    TicketReplyRequest,
)
from roleready.services import ticket_service
from roleready.services.errors import ServiceError

router = APIRouter()


@router.post("/tickets", response_model=TicketDetail, status_code=201)
@rate_limit()
def create_ticket(request: Request, payload: TicketCreateRequest, user: dict[str, Any] = Depends(get_current_user)):
    return ticket_service.create_ticket(user, payload)


@router.get("/tickets", response_model=list[TicketOut])
def my_tickets(
    status: str | None = Query(default=None),
    user: dict[str, Any] = Depends(get_current_user),
):
    return ticket_service.list_my_tickets(user, status=status)


@router.get("/tickets/{ticket_id}", response_model=TicketDetail)
def get_ticket(ticket_id: str, user: dict[str, Any] = Depends(get_current_user)):
    try:
        return ticket_service.get_ticket(ticket_id, actor=user)
    except ServiceError as exc:
        raise_service_error(exc)


@router.post("/tickets/{ticket_id}/messages", response_model=TicketDetail, status_code=201)
@rate_limit()
def reply(
    request: Request,
    ticket_id: str,
    payload: TicketReplyRequest,
    user: dict[str, Any] = Depends(get_current_user),
):
    try:
        return ticket_service.reply_to_ticket(ticket_id, payload.body, actor=user)
    except ServiceError as exc:
        raise_service_error(exc)


@router.get("/admin/tickets", response_model=list[TicketOut])
def admin_tickets(
    status: str | None = Query(default=None),
    category: str | None = Query(default=None),
    priority: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    _: dict[str, Any] = Depends(require_roles("admin")),
):
    return ticket_service.list_all_tickets(
        status=status,
        category=category,
        priority=priority,
        limit=limit,
        offset=offset,
    )


@router.patch("/admin/tickets/{ticket_id}", response_model=TicketDetail)
@rate_limit()
def admin_update_ticket(
    request: Request,
    ticket_id: str,
    payload: TicketAdminUpdateRequest,
    admin: dict[str, Any] = Depends(require_roles("admin")),
):
    try:
        return ticket_service.admin_update_ticket(ticket_id, payload, actor=admin)
    except ServiceError as exc:
        raise_service_error(exc)
