from __future__ import annotations

from typing import Any, Iterable

from .connection import execute, fetch_all, fetch_one, new_id, transaction, utc_now

_SELECT = """
    SELECT t.*, r.name AS role_name, r.color_class AS role_color_class
    FROM target_roles t
    LEFT JOIN roles r ON r.id = t.role_id
"""


def _normalize(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    row["is_active"] = bool(row["is_active"])
    return row


def get_active_target_role(user_id: str) -> dict[str, Any] | None:
    return _normalize(fetch_one(f"{_SELECT} WHERE t.user_id = ? AND t.is_active = 1", (user_id,)))


def get_active_target_roles(user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
    ids = list(dict.fromkeys(user_ids))
    if not ids:
        return {}
    rows = fetch_all(
        f"{_SELECT} WHERE t.is_active = 1 AND t.user_id IN ({','.join('?' for _ in ids)})",
        tuple(ids),
    )
    return {row["user_id"]: _normalize(row) for row in rows}  # type: ignore[misc]


def change_target_role(
    *,
    user_id: str,
    role_id: str,
    selected_by: str,
    selected_by_user_id: str | None,
    readiness_at_change: float | None,
) -> dict[str, Any]:
    """Deactivate the current target and activate a new one atomically."""
    now = utc_now()
    target_id = new_id()
    with transaction() as conn:
        conn.execute(
            """
            UPDATE target_roles
            SET is_active = 0, deactivated_at = ?, readiness_at_change = COALESCE(?, readiness_at_change)
            WHERE user_id = ? AND is_active = 1
            """,
            (now, readiness_at_change, user_id),
        )
        conn.execute(
            """
            INSERT INTO target_roles (
                id, user_id, role_id, is_active, selected_by, selected_by_user_id, activated_at
            ) VALUES (?, ?, ?, 1, ?, ?, ?)
            """,
            (target_id, user_id, role_id, selected_by, selected_by_user_id, now),
        )
    return _normalize(fetch_one(f"{_SELECT} WHERE t.id = ?", (target_id,)))  # type: ignore[return-value]


def list_target_role_history(user_id: str, *, include_active: bool = False, limit: int = 50) -> list[dict[str, Any]]:
    sql = f"{_SELECT} WHERE t.user_id = ?"
    if not include_active:
        sql += " AND t.is_active = 0"
    sql += " ORDER BY t.activated_at DESC LIMIT ?"
    rows = fetch_all(sql, (user_id, limit))
    return [_normalize(row) for row in rows]  # type: ignore[misc]


def set_readiness_at_change(target_id: str, readiness: float) -> None:
    execute("UPDATE target_roles SET readiness_at_change = ? WHERE id = ?", (readiness, target_id))
