from __future__ import annotations

from typing import Any, Iterable

from .connection import days_ago, execute, fetch_all, fetch_one, from_json, new_id, to_json, transaction, utc_now


def _decode(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    row["is_read"] = bool(row["is_read"])
    row["metadata"] = from_json(row.pop("metadata_json"), {})
    return row


def upsert_unread(
    *,
    user_id: str,
    type_: str,
    title: str,
    message: str,
    action_url: str | None,
    metadata: dict[str, Any],
) -> dict[str, Any]:
    """Refresh the unread notification of this type, or insert one if none exists."""
    now = utc_now()
    with transaction() as conn:
        row = conn.execute(
            "SELECT id FROM notifications WHERE user_id = ? AND type = ? AND is_read = 0 LIMIT 1",
            (user_id, type_),
        ).fetchone()
        if row:
            notification_id = row[0]
            conn.execute(
                """
                UPDATE notifications
                SET title = ?, message = ?, action_url = ?, metadata_json = ?, updated_at = ?
                WHERE id = ?
                """,
                (title, message, action_url, to_json(metadata), now, notification_id),
            )
        else:
            notification_id = new_id()
            conn.execute(
                """
                INSERT INTO notifications (
                    id, user_id, type, title, message, action_url, metadata_json, is_read, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (notification_id, user_id, type_, title, message, action_url, to_json(metadata), now, now),
            )
    return _decode(fetch_one("SELECT * FROM notifications WHERE id = ?", (notification_id,)))  # type: ignore[return-value]


def list_notifications(user_id: str, *, unread_only: bool = False, limit: int = 50) -> list[dict[str, Any]]:
    sql = "SELECT * FROM notifications WHERE user_id = ?"
    if unread_only:
        sql += " AND is_read = 0"
    sql += " ORDER BY updated_at DESC LIMIT ?"
    return [_decode(row) for row in fetch_all(sql, (user_id, limit))]  # type: ignore[misc]


def count_unread(user_id: str) -> int:
    row = fetch_one("SELECT COUNT(*) AS total FROM notifications WHERE user_id = ? AND is_read = 0", (user_id,))
    return int(row["total"]) if row else 0


def mark_read(user_id: str, notification_ids: Iterable[str] | None = None, type_: str | None = None) -> int:
    now = utc_now()
    sql = "UPDATE notifications SET is_read = 1, read_at = ?, updated_at = ? WHERE user_id = ? AND is_read = 0"
    params: list[Any] = [now, now, user_id]
    if notification_ids is not None:
        ids = list(notification_ids)
        if not ids:
            return 0
        sql += f" AND id IN ({','.join('?' for _ in ids)})"
        params.extend(ids)
    if type_:
        sql += " AND type = ?"
        params.append(type_)
    return execute(sql, tuple(params))


def purge_read(days: int) -> int:
    return execute(
        "DELETE FROM notifications WHERE is_read = 1 AND read_at < ?",
        (days_ago(days),),
    )

