from __future__ import annotations

from typing import Any

from .connection import execute, fetch_all, fetch_one, from_json, new_id, to_json, utc_now


def _decode(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    row["has_all_required"] = bool(row["has_all_required"])
    row["breakdown"] = from_json(row.pop("breakdown_json"), [])
    row["trigger_details"] = from_json(row.pop("trigger_details_json"), {})
    return row


def insert_snapshot(
    *,
    result: dict[str, Any],
    trigger: str,
    trigger_details: dict[str, Any] | None,
) -> dict[str, Any]:
    snapshot_id = new_id()
    execute(
        """
        INSERT INTO readiness_snapshots (
            id, user_id, role_id, role_name, total_score, max_possible_score, percentage, label,
            skills_met, skills_missing, total_benchmarks, required_skills_met, required_skills_count,
            has_all_required, breakdown_json, trigger, trigger_details_json, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            snapshot_id,
            result["user_id"],
            result["role_id"],
            result["role_name"],
            result["total_score"],
            result["max_possible_score"],
            result["percentage"],
            result["label"],
            result["skills_met"],
            result["skills_missing"],
            result["total_benchmarks"],
            result["required_skills_met"],
            result["required_skills_count"],
            1 if result["has_all_required"] else 0,
            to_json(result["breakdown"]),
            trigger,
            to_json(trigger_details or {}),
            utc_now(),
        ),
    )
    return get_snapshot(snapshot_id)  # type: ignore[return-value]


def get_snapshot(snapshot_id: str) -> dict[str, Any] | None:
    return _decode(fetch_one("SELECT * FROM readiness_snapshots WHERE id = ?", (snapshot_id,)))


def get_latest_snapshot(user_id: str, role_id: str | None = None) -> dict[str, Any] | None:
    if role_id:
        row = fetch_one(
            "SELECT * FROM readiness_snapshots WHERE user_id = ? AND role_id = ? "
            "ORDER BY created_at DESC, rowid DESC LIMIT 1",
            (user_id, role_id),
        )
    else:
        row = fetch_one(
            "SELECT * FROM readiness_snapshots WHERE user_id = ? ORDER BY created_at DESC, rowid DESC LIMIT 1",
            (user_id,),
        )
    return _decode(row)


def list_snapshots(user_id: str, *, role_id: str | None = None, limit: int = 10) -> list[dict[str, Any]]:
    sql = "SELECT * FROM readiness_snapshots WHERE user_id = ?"
    params: list[Any] = [user_id]
    if role_id:
        sql += " AND role_id = ?"
        params.append(role_id)
    sql += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
    params.append(limit)
    return [_decode(row) for row in fetch_all(sql, tuple(params))]  # type: ignore[misc]
