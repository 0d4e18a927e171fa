from typing import Any

from fastapi import APIRouter, Depends, Query

from roleready.activity import db as activity_db
from roleready.core.security import require_roles

router = APIRouter()


@router.get("/admin/activity/summary")
def summary(_: dict[str, Any] = Depends(require_roles("admin"))):
    return activity_db.get_summary()


@router.get("/admin/activity/latest")
def latest(
    limit: int = Query(default=20, ge=1, le=200),
    _: dict[str, Any] = Depends(require_roles("admin")),
):
    return activity_db.get_latest(limit=limit)
