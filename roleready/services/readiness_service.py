from __future__ import annotations

import logging
from typing import Any

from roleready.activity.db import log_activity
from roleready.db import catalog as catalog_db
from roleready.db import snapshots as snapshots_db
from roleready.db import target_roles as target_roles_db
from roleready.db import user_skills as user_skills_db
from roleready.db import users as users_db
from roleready.schemas.readiness import (
    ReadinessPreviewRequest,
    ReadinessPreviewResponse,
    ReadinessSnapshotOut,
    ReadinessSnapshotResponse,
)
from roleready.schemas.scoring import ReadinessResult, UserSkillInput
from roleready.scoring.readiness import calculate_readiness, get_skill_gaps

from . import evaluation_service, notification_service
from .catalog_service import get_benchmark_inputs
from .errors import NotFoundError, ServiceError

logger = logging.getLogger(__name__)

SNAPSHOT_TRIGGERS = ("role_change", "skill_update", "validation", "manual")


class ReadinessError(ServiceError):
    pass


def user_skill_inputs(user_id: str) -> list[UserSkillInput]:
    return [
        UserSkillInput(
            skill_id=row["skill_id"],
            level=row["level"],
            source=row["source"],
            validation_status=row["validation_status"],
        )
        for row in user_skills_db.list_user_skills(user_id)
    ]


def calculate_readiness_only(user_id: str, role_id: str) -> ReadinessResult:
    if not users_db.get_user(user_id):
        raise NotFoundError("User not found")
    role = catalog_db.get_role(role_id)
    if not role:
        raise NotFoundError("Role not found")
    benchmarks = get_benchmark_inputs(role_id)
    if not benchmarks:
        raise ReadinessError("Role has no active benchmarks configured")
    return calculate_readiness(
        user_id=user_id,
        role_id=role_id,
        role_name=role["name"],
        benchmarks=benchmarks,
        user_skills=user_skill_inputs(user_id),
    )


def _snapshot_out(row: dict[str, Any]) -> ReadinessSnapshotOut:
    return ReadinessSnapshotOut(**row)


def calculate_and_snapshot(
    user_id: str,
    role_id: str,
    *,
    trigger: str = "manual",
    trigger_details: dict[str, Any] | None = None,
) -> ReadinessSnapshotResponse:
    """Calculate readiness, persist a snapshot and clear the outdated state."""
    if trigger not in SNAPSHOT_TRIGGERS:
        raise ReadinessError(f"Unknown snapshot trigger: {trigger}")
    result = calculate_readiness_only(user_id, role_id)
    row = snapshots_db.insert_snapshot(
        result=result.model_dump(),
        trigger=trigger,
        trigger_details=trigger_details,
    )

    active = target_roles_db.get_active_target_role(user_id)
    if active and active["role_id"] == role_id:
        target_roles_db.set_readiness_at_change(active["id"], result.percentage)

    notification_service.mark_type_read(user_id, "readiness_outdated")
    evaluation_service.mark_complete(user_id, "readiness")
    log_activity(
        user_id=user_id,
        action="readiness_calculated",
        entity_type="readiness_snapshot",
        entity_id=row["id"],
        details={"role_id": role_id, "percentage": result.percentage, "trigger": trigger},
    )
    logger.info(
        "readiness_snapshot user=%s role=%s percentage=%s trigger=%s",
        user_id,
        role_id,
        result.percentage,
        trigger,
    )
    return ReadinessSnapshotResponse(snapshot=_snapshot_out(row), gaps=get_skill_gaps(result))


def _resolve_role_id(user_id: str, role_id: str | None) -> str:
    if role_id:
        return role_id
    active = target_roles_db.get_active_target_role(user_id)
    if not active:
        raise ReadinessError("No target role selected. Please select a target role first.")
    return active["role_id"]


def calculate_for_user(
    user_id: str,
    role_id: str | None = None,
    *,
    trigger: str = "manual",
    trigger_details: dict[str, Any] | None = None,
) -> ReadinessSnapshotResponse:
    return calculate_and_snapshot(
        user_id,
        _resolve_role_id(user_id, role_id),
        trigger=trigger,
        trigger_details=trigger_details,
    )


def recalculate_for_active_role(user_id: str, *, trigger: str = "manual") -> ReadinessSnapshotResponse:
    return calculate_for_user(user_id, None, trigger=trigger)


def get_latest_snapshot(user_id: str, role_id: str | None = None) -> ReadinessSnapshotOut | None:
    if not users_db.get_user(user_id):
        raise NotFoundError("User not found")
    row = snapshots_db.get_latest_snapshot(user_id, role_id)
    return _snapshot_out(row) if row else None


def get_snapshot_history(user_id: str, *, role_id: str | None = None, limit: int = 10) -> list[ReadinessSnapshotOut]:
    if not users_db.get_user(user_id):
        raise NotFoundError("User not found")
    return [_snapshot_out(row) for row in snapshots_db.list_snapshots(user_id, role_id=role_id, limit=limit)]


def preview_readiness(user_id: str, payload: ReadinessPreviewRequest) -> ReadinessPreviewResponse:
    """Calculate without persisting anything.

    Benchmarks come from the payload or the given role. Skills come from the
    payload or the user's profile.
    """
    role_name = "Custom benchmarks"
    role_id = payload.role_id or "preview"
    if payload.benchmarks is not None:
        benchmarks = payload.benchmarks
    elif payload.role_id:
        role = catalog_db.get_role(payload.role_id)
        if not role:
            raise NotFoundError("Role not found")
        role_name = role["name"]
        benchmarks = get_benchmark_inputs(payload.role_id)
    else:
        raise ReadinessError("Provide a role_id or a list of benchmarks")
    if not benchmarks:
        raise ReadinessError("Role has no active benchmarks configured")

    if payload.user_skills is not None:
        skills = [UserSkillInput(**item.model_dump()) for item in payload.user_skills]
    else:
        skills = user_skill_inputs(user_id)

    result = calculate_readiness(
        user_id=user_id,
        role_id=role_id,
        role_name=role_name,
        benchmarks=benchmarks,
        user_skills=skills,
    )
    return ReadinessPreviewResponse(result=result, gaps=get_skill_gaps(result))
