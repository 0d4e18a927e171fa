from __future__ import annotations

import logging
from typing import Any

from roleready.activity.db import log_activity
from roleready.core.config import settings
from roleready.db import roadmaps as roadmaps_db
from roleready.db.connection import utc_now
from roleready.schemas.roadmap import BulkStepUpdateItem, RoadmapOut
from roleready.schemas.scoring import ReadinessResult
from roleready.scoring.roadmap import generate_roadmap
from roleready.scoring.rounding import round_int

from . import evaluation_service, notification_service, readiness_service
from .errors import ForbiddenError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)

STEP_STATUSES = ("not_started", "in_progress", "completed", "skipped")


class RoadmapError(ServiceError):
    pass


def generate_roadmap_for_user(user_id: str, role_id: str | None = None, max_steps: int | None = None) -> RoadmapOut:
    """Recalculate readiness, then store a fresh roadmap for the user and role.

    Older active roadmaps for the same pair are archived in the same transaction.
    """
    cap = settings.roadmap_max_steps_cap
    if max_steps is not None and max_steps < 1:
        raise RoadmapError("max_steps must be at least 1")
    limit = min(max_steps, cap) if max_steps is not None else cap

    snapshot = readiness_service.calculate_for_user(user_id, role_id, trigger="manual")
    result = ReadinessResult(
        **snapshot.snapshot.model_dump(exclude={"id", "trigger", "trigger_details", "created_at"})
    )
    generated = generate_roadmap(result, max_steps=limit)

    row = roadmaps_db.insert_roadmap(roadmap=generated.model_dump(), snapshot_id=snapshot.snapshot.id)
    evaluation_service.mark_complete(user_id, "roadmap")
    notification_service.create_or_update(
        user_id,
        "roadmap_updated",
        title="Roadmap Updated",
        message=f"Your roadmap for {generated.role_name} has {generated.total_steps} step(s).",
        action_url="/dashboard/roadmap",
        metadata={"roadmap_id": row["id"], "role_id": generated.role_id},
    )
    log_activity(
        user_id=user_id,
        action="roadmap_generated",
        entity_type="roadmap",
        entity_id=row["id"],
        details={"role_id": generated.role_id, "total_steps": generated.total_steps},
    )
    return RoadmapOut.from_row(row)


def get_active_roadmap(user_id: str, role_id: str | None = None) -> RoadmapOut:
    row = roadmaps_db.get_active_roadmap(user_id, role_id)
    if not row:
        raise NotFoundError("No active roadmap found")
    return RoadmapOut.from_row(row)


def _require_roadmap(roadmap_id: str, actor: dict[str, Any]) -> dict[str, Any]:
    row = roadmaps_db.get_roadmap(roadmap_id)
    if not row:
        raise NotFoundError("Roadmap not found")
    if actor["role"] != "admin" and actor["id"] != row["user_id"]:
        raise ForbiddenError("You can only access your own roadmap")
    return row


def get_roadmap(roadmap_id: str, *, actor: dict[str, Any]) -> RoadmapOut:
    return RoadmapOut.from_row(_require_roadmap(roadmap_id, actor))


def get_roadmap_history(user_id: str, *, include_archived: bool = False, limit: int = 20) -> list[RoadmapOut]:
    rows = roadmaps_db.list_roadmaps(user_id, include_archived=include_archived, limit=limit)
    return [RoadmapOut.from_row(row) for row in rows]


def _apply_status(step: dict[str, Any], status: str, notes: str | None, now: str) -> None:
    if status not in STEP_STATUSES:
        raise RoadmapError(f"Invalid step status: {status}")
    step["status"] = status
    if status == "in_progress" and not step.get("started_at"):
        step["started_at"] = now
    step["completed_at"] = now if status == "completed" else None
    if notes is not None:
        step["user_notes"] = notes


def _progress(steps: list[dict[str, Any]]) -> dict[str, Any]:
    total = len(steps)
    completed = [step for step in steps if step.get("status") == "completed"]
    percentage = round_int(len(completed) / total * 100) if total else 0
    return {
        "completed_steps": len(completed),
        "progress_percentage": percentage,
        "completed_hours": sum(int(step.get("estimated_hours") or 0) for step in completed),
        "all_completed": total > 0 and len(completed) == total,
    }


def _save(row: dict[str, Any], steps: list[dict[str, Any]], now: str) -> dict[str, Any]:
    progress = _progress(steps)
    status = "completed" if progress["all_completed"] else "active"
    completed_at = (row.get("completed_at") or now) if status == "completed" else None
    saved = roadmaps_db.save_progress(
        row["id"],
        steps=steps,
        status=status,
        completed_steps=progress["completed_steps"],
        progress_percentage=progress["progress_percentage"],
        completed_hours=progress["completed_hours"],
        completed_at=completed_at,
    )
    if status == "completed" and row["status"] != "completed":
        logger.info("roadmap_completed roadmap=%s user=%s", row["id"], row["user_id"])
    return saved  # type: ignore[return-value]


def bulk_update_steps(roadmap_id: str, updates: list[BulkStepUpdateItem], *, actor: dict[str, Any]) -> RoadmapOut:
    row = _require_roadmap(roadmap_id, actor)
    if row["status"] == "archived":
        raise RoadmapError("Cannot update an archived roadmap")

    steps = row["steps"]
    by_id = {step["step_id"]: step for step in steps}
    now = utc_now()
    for update in updates:
        step = by_id.get(update.step_id)
        if step is None:
            raise NotFoundError(f"Step not found: {update.step_id}")
        _apply_status(step, update.status, update.notes, now)

    saved = _save(row, steps, now)
    log_activity(
        user_id=actor["id"],
        action="roadmap_steps_updated",
        entity_type="roadmap",
        entity_id=roadmap_id,
        details={"steps": [update.step_id for update in updates]},
    )
    return RoadmapOut.from_row(saved)


def update_step_status(
    roadmap_id: str,
    step_id: str,
    status: str,
    notes: str | None = None,
    *,
    actor: dict[str, Any],
) -> RoadmapOut:
    if status not in STEP_STATUSES:
        raise RoadmapError(f"Invalid step status: {status}")
    return bulk_update_steps(
        roadmap_id,
        [BulkStepUpdateItem(step_id=step_id, status=status, notes=notes)],
        actor=actor,
    )


def archive_roadmap(roadmap_id: str, *, actor: dict[str, Any]) -> RoadmapOut:
    row = _require_roadmap(roadmap_id, actor)
    if row["status"] == "archived":
        raise RoadmapError("Roadmap is already archived")
    archived = roadmaps_db.archive_roadmap(roadmap_id)
    log_activity(user_id=actor["id"], action="roadmap_archived", entity_type="roadmap", entity_id=roadmap_id)
    return RoadmapOut.from_row(archived)  # type: ignore[arg-type]
