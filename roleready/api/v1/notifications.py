from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from roleready.core.rate_limit import rate_limit
from roleready.core.security import get_current_user
from roleready.schemas.notifications import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationListResponse,
    UnreadCountResponse,
)
from roleready.services import notification_service

router = APIRouter()


@router.get("/notifications", response_model=NotificationListResponse)
def list_notifications(
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
    user: dict[str, Any] = Depends(get_current_user),
):
    return NotificationListResponse(
        notifications=notification_service.list_notifications(user["id"], unread_only=unread_only, limit=limit),
        unread_count=notification_service.unread_count(user["id"]),
    )


@router.get("/notifications/unread-count", response_model=UnreadCountResponse)
def unread_count(user: dict[str, Any] = Depends(get_current_user)):
    return UnreadCountResponse(unread_count=notification_service.unread_count(user["id"]))


@router.post("/notifications/read", response_model=MarkReadResponse)
@rate_limit()
def mark_read(
    request: Request,
    payload: MarkReadRequest | None = None,
    user: dict[str, Any] = Depends(get_current_user),
):
    ids = payload.notification_ids if payload else None
    return MarkReadResponse(updated=notification_service.mark_as_read(user["id"], ids))
