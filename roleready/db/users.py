from __future__ import annotations

from typing import Any, Iterable

from .connection import execute, fetch_all, fetch_one, new_id, utc_now

_USER_UPDATABLE = {"name", "role", "is_active", "mentor_id"}


def _normalize(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    row["is_active"] = bool(row["is_active"])
    for flag in ("readiness_outdated", "roadmap_outdated", "ats_outdated", "report_outdated"):
        row[flag] = bool(row[flag])
    return row


def create_user(*, name: str, email: str, role: str = "user", mentor_id: str | None = None) -> dict[str, Any]:
    user_id = new_id()
    now = utc_now()
    execute(
        """
        INSERT INTO users (id, name, email, role, mentor_id, is_active, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, 1, ?, ?)
        """,
        (user_id, name, email.strip().lower(), role, mentor_id, now, now),
    )
    return get_user(user_id)  # type: ignore[return-value]


def get_user(user_id: str) -> dict[str, Any] | None:
    return _normalize(fetch_one("SELECT * FROM users WHERE id = ?", (user_id,)))


def get_user_by_email(email: str) -> dict[str, Any] | None:
    return _normalize(fetch_one("SELECT * FROM users WHERE email = ?", (email.strip().lower(),)))


def get_users_by_ids(user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
    ids = list(dict.fromkeys(user_ids))
    if not ids:
        return {}
    placeholders = ",".join("?" for _ in ids)
    rows = fetch_all(f"SELECT * FROM users WHERE id IN ({placeholders})", tuple(ids))
    return {row["id"]: _normalize(row) for row in rows}  # type: ignore[misc]


def list_users(
    *,
    role: str | None = None,
    is_active: bool | None = None,
    search: str | None = None,
    mentor_id: str | None = None,
    unassigned_only: bool = False,
    limit: int = 100,
    offset: int = 0,
) -> list[dict[str, Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    if role:
        clauses.append("role = ?")
        params.append(role)
    if is_active is not None:
        clauses.append("is_active = ?")
        params.append(1 if is_active else 0)
    if search:
        clauses.append("(LOWER(name) LIKE ? OR email LIKE ?)")
        pattern = f"%{search.strip().lower()}%"
        params.extend([pattern, pattern])
    if mentor_id:
        clauses.append("mentor_id = ?")
        params.append(mentor_id)
    if unassigned_only:
        clauses.append("mentor_id IS NULL")
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    rows = fetch_all(
        f"SELECT * FROM users {where} ORDER BY created_at DESC LIMIT ? OFFSET ?",
        (*params, limit, offset),
    )
    return [_normalize(row) for row in rows]  # type: ignore[misc]


def update_user(user_id: str, **fields: Any) -> dict[str, Any] | None:
    updates = {key: value for key, value in fields.items() if key in _USER_UPDATABLE}
    if updates:
        if "is_active" in updates:
            updates["is_active"] = 1 if updates["is_active"] else 0
        assignments = ", ".join(f"{key} = ?" for key in updates)
        execute(
            f"UPDATE users SET {assignments}, updated_at = ? WHERE id = ?",
            (*updates.values(), utc_now(), user_id),
        )
    return get_user(user_id)


def set_mentor(user_id: str, mentor_id: str | None) -> dict[str, Any] | None:
    execute(
        "UPDATE users SET mentor_id = ?, updated_at = ? WHERE id = ?",
        (mentor_id, utc_now(), user_id),
    )
    return get_user(user_id)


def count_assigned_users() -> dict[str, int]:
    rows = fetch_all(
        """
        SELECT mentor_id, COUNT(*) AS count
        FROM users
        WHERE mentor_id IS NOT NULL AND role = 'user' AND is_active = 1
        GROUP BY mentor_id
        """
    )
    return {row["mentor_id"]: int(row["count"]) for row in rows}


def set_evaluation_flags(user_id: str, flags: dict[str, bool], stamps: dict[str, str] | None = None) -> None:
    columns: dict[str, Any] = {f"{name}_outdated": 1 if value else 0 for name, value in flags.items()}
    for name, stamp in (stamps or {}).items():
        columns[f"last_{name}_at"] = stamp
    if not columns:
        return
    assignments = ", ".join(f"{key} = ?" for key in columns)
    execute(
        f"UPDATE users SET {assignments}, updated_at = ? WHERE id = ?",
        (*columns.values(), utc_now(), user_id),
    )
