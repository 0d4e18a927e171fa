from __future__ import annotations

from typing import Any, Iterable

from .connection import execute, fetch_all, fetch_one, new_id, utc_now

_UPDATABLE = {
    "level",
    "source",
    "validation_status",
    "validated_by",
    "validated_at",
    "validation_note",
    "requested_at",
}

_SELECT = """
    SELECT us.*, s.name AS skill_name, s.domain AS skill_domain, s.normalized_name AS skill_normalized_name
    FROM user_skills us
    JOIN skills s ON s.id = us.skill_id
"""


def create_user_skill(*, user_id: str, skill_id: str, level: str, source: str) -> dict[str, Any]:
    user_skill_id = new_id()
    now = utc_now()
    execute(
        """
        INSERT INTO user_skills (id, user_id, skill_id, level, source, validation_status, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, 'none', ?, ?)
        """,
        (user_skill_id, user_id, skill_id, level, source, now, now),
    )
    return get_user_skill(user_skill_id)  # type: ignore[return-value]


def get_user_skill(user_skill_id: str) -> dict[str, Any] | None:
    return fetch_one(f"{_SELECT} WHERE us.id = ?", (user_skill_id,))


def get_user_skill_by_skill(user_id: str, skill_id: str) -> dict[str, Any] | None:
    return fetch_one(f"{_SELECT} WHERE us.user_id = ? AND us.skill_id = ?", (user_id, skill_id))


def list_user_skills(user_id: str, *, validation_status: str | None = None) -> list[dict[str, Any]]:
    sql = f"{_SELECT} WHERE us.user_id = ?"
    params: list[Any] = [user_id]
    if validation_status:
        sql += " AND us.validation_status = ?"
        params.append(validation_status)
    sql += " ORDER BY s.name COLLATE NOCASE"
    return fetch_all(sql, tuple(params))


def update_user_skill(user_skill_id: str, **fields: Any) -> dict[str, Any] | None:
    updates = {key: value for key, value in fields.items() if key in _UPDATABLE}
    if updates:
        assignments = ", ".join(f"{key} = ?" for key in updates)
        execute(
            f"UPDATE user_skills SET {assignments}, updated_at = ? WHERE id = ?",
            (*updates.values(), utc_now(), user_skill_id),
        )
    return get_user_skill(user_skill_id)


def delete_user_skill(user_skill_id: str) -> bool:
    return execute("DELETE FROM user_skills WHERE id = ?", (user_skill_id,)) > 0


def list_skills_for_users(
    user_ids: Iterable[str],
    *,
    statuses: Iterable[str],
    sources: Iterable[str] | None = None,
    newest_first: bool = True,
) -> list[dict[str, Any]]:
    ids = list(dict.fromkeys(user_ids))
    status_list = list(statuses)
    if not ids or not status_list:
        return []
    clauses = [
        f"us.user_id IN ({','.join('?' for _ in ids)})",
        f"us.validation_status IN ({','.join('?' for _ in status_list)})",
    ]
    params: list[Any] = [*ids, *status_list]
    if sources is not None:
        source_list = list(sources)
        clauses.append(f"us.source IN ({','.join('?' for _ in source_list)})")
        params.extend(source_list)
    order = "DESC" if newest_first else "ASC"
    return fetch_all(
        f"{_SELECT} WHERE {' AND '.join(clauses)} "
        f"ORDER BY COALESCE(us.requested_at, us.created_at) {order}",
        tuple(params),
    )


def count_by_status_for_users(user_ids: Iterable[str], status: str) -> int:
    ids = list(dict.fromkeys(user_ids))
    if not ids:
        return 0
    row = fetch_one(
        f"SELECT COUNT(*) AS total FROM user_skills "
        f"WHERE validation_status = ? AND user_id IN ({','.join('?' for _ in ids)})",
        (status, *ids),
    )
    return int(row["total"]) if row else 0


def count_reviewed_by(validator_id: str, status: str) -> int:
    row = fetch_one(
        "SELECT COUNT(*) AS total FROM user_skills WHERE validated_by = ? AND validation_status = ?",
        (validator_id, status),
    )
    return int(row["total"]) if row else 0


def list_reviewed_by(validator_id: str, *, limit: int = 50) -> list[dict[str, Any]]:
    return fetch_all(
        f"{_SELECT} WHERE us.validated_by = ? AND us.validation_status IN ('validated', 'rejected') "
        "ORDER BY us.validated_at DESC LIMIT ?",
        (validator_id, limit),
    )
