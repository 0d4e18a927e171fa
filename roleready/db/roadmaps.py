from __future__ import annotations

from typing import Any

from .connection import execute, fetch_all, fetch_one, from_json, new_id, to_json, transaction, utc_now


def _decode(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    row["steps"] = from_json(row.pop("steps_json"), [])
    row["summary"] = from_json(row.pop("summary_json"), {})
    return row


def insert_roadmap(*, roadmap: dict[str, Any], snapshot_id: str | None) -> dict[str, Any]:
    """Archive active roadmaps for the same user and role, then store the new one."""
    roadmap_id = new_id()
    now = utc_now()
    summary = {
        "priority_breakdown": roadmap["priority_breakdown"],
        "category_breakdown": roadmap["category_breakdown"],
        "rule_breakdown": roadmap["rule_breakdown"],
        "edge_case": roadmap["edge_case"],
    }
    with transaction() as conn:
        conn.execute(
            """
            UPDATE roadmaps SET status = 'archived', archived_at = ?, updated_at = ?
            WHERE user_id = ? AND role_id = ? AND status = 'active'
            """,
            (now, now, roadmap["user_id"], roadmap["role_id"]),
        )
        conn.execute(
            """
            INSERT INTO roadmaps (
                id, user_id, role_id, role_name, snapshot_id, title, description, status,
                steps_json, summary_json, total_steps, completed_steps, progress_percentage,
                total_estimated_hours, completed_hours, current_readiness, projected_readiness,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, 'active', ?, ?, ?, 0, 0, ?, 0, ?, ?, ?, ?)
            """,
            (
                roadmap_id,
                roadmap["user_id"],
                roadmap["role_id"],
                roadmap["role_name"],
                snapshot_id,
                roadmap["title"],
                roadmap["description"],
                to_json(roadmap["steps"]),
                to_json(summary),
                roadmap["total_steps"],
                roadmap["total_estimated_hours"],
                roadmap["current_readiness"],
                roadmap["projected_readiness"],
                now,
                now,
            ),
        )
    return get_roadmap(roadmap_id)  # type: ignore[return-value]


def get_roadmap(roadmap_id: str) -> dict[str, Any] | None:
    return _decode(fetch_one("SELECT * FROM roadmaps WHERE id = ?", (roadmap_id,)))


def get_active_roadmap(user_id: str, role_id: str | None = None) -> dict[str, Any] | None:
    sql = "SELECT * FROM roadmaps WHERE user_id = ? AND status IN ('active', 'completed')"
    params: list[Any] = [user_id]
    if role_id:
        sql += " AND role_id = ?"
        params.append(role_id)
    sql += " ORDER BY created_at DESC, rowid DESC LIMIT 1"
    return _decode(fetch_one(sql, tuple(params)))


def list_roadmaps(user_id: str, *, include_archived: bool = False, limit: int = 20) -> list[dict[str, Any]]:
    sql = "SELECT * FROM roadmaps WHERE user_id = ?"
    if not include_archived:
        sql += " AND status != 'archived'"
    sql += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
    return [_decode(row) for row in fetch_all(sql, (user_id, limit))]  # type: ignore[misc]


def save_progress(
    roadmap_id: str,
    *,
    steps: list[dict[str, Any]],
    status: str,
    completed_steps: int,
    progress_percentage: int,
    completed_hours: int,
    completed_at: str | None,
) -> dict[str, Any] | None:
    execute(
        """
        UPDATE roadmaps
        SET steps_json = ?, status = ?, completed_steps = ?, progress_percentage = ?,
            completed_hours = ?, completed_at = ?, updated_at = ?
        WHERE id = ?
        """,
        (
            to_json(steps),
            status,
            completed_steps,
            progress_percentage,
            completed_hours,
            completed_at,
            utc_now(),
            roadmap_id,
        ),
    )
    return get_roadmap(roadmap_id)


def archive_roadmap(roadmap_id: str) -> dict[str, Any] | None:
    now = utc_now()
    execute(
        "UPDATE roadmaps SET status = 'archived', archived_at = ?, updated_at = ? WHERE id = ?",
        (now, now, roadmap_id),
    )
    return get_roadmap(roadmap_id)
