from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from roleready.core.config import settings

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_db_path() -> Path:
    return Path(settings.activity_db_path)


def init_db() -> None:
    if not settings.activity_log_enabled:
        return
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS activity_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                created_at TEXT NOT NULL,
                user_id TEXT,
                action TEXT NOT NULL,
                entity_type TEXT,
                entity_id TEXT,
                details_json TEXT
            )
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_activity_log_created_at
            ON activity_log (created_at)
            """
        )
        conn.commit()


def log_activity(
    *,
    user_id: str | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    if not settings.activity_log_enabled:
        return
    try:
        init_db()
        with sqlite3.connect(_get_db_path()) as conn:
            conn.execute(
                """
                INSERT INTO activity_log (created_at, user_id, action, entity_type, entity_id, details_json)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    _utc_now(),
                    user_id,
                    action,
                    entity_type,
                    entity_id,
                    json.dumps(details or {}, ensure_ascii=False),
                ),
            )
            conn.commit()
    except sqlite3.Error as exc:
        logger.warning("activity_log_failed action=%s: %s", action, exc)


def purge_old_records() -> dict[str, int]:
    if not settings.activity_log_enabled:
        return {"activity_log": 0}
    init_db()
    cutoff = (datetime.now(timezone.utc) - timedelta(days=max(0, settings.activity_retention_days))).isoformat()
    with sqlite3.connect(_get_db_path()) as conn:
        cur = conn.execute("DELETE FROM activity_log WHERE created_at < ?", (cutoff,))
        conn.commit()
        return {"activity_log": cur.rowcount}


def _row_to_dict(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def get_summary() -> dict[str, Any]:
    if not settings.activity_log_enabled:
        return {"total": 0, "total_7d": 0, "by_action": {}}
    init_db()
    since = (datetime.now(timezone.utc) - timedelta(days=7)).isoformat()
    with sqlite3.connect(_get_db_path()) as conn:
        total = conn.execute("SELECT COUNT(*) FROM activity_log").fetchone()[0]
        total_7d = conn.execute(
            "SELECT COUNT(*) FROM activity_log WHERE created_at >= ?",
            (since,),
        ).fetchone()[0]
        by_action = {
            action: count
            for action, count in conn.execute(
                "SELECT action, COUNT(*) FROM activity_log GROUP BY action ORDER BY COUNT(*) DESC"
            ).fetchall()
        }
    return {"total": total, "total_7d": total_7d, "by_action": by_action}


def get_latest(limit: int = 20) -> list[dict[str, Any]]:
    if not settings.activity_log_enabled:
        return []
    init_db()
    with sqlite3.connect(_get_db_path()) as conn:
        conn.row_factory = _row_to_dict
        rows = conn.execute(
            """
            SELECT created_at, user_id, action, entity_type, entity_id, details_json
            FROM activity_log
            ORDER BY id DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
    for row in rows:
        row["details"] = json.loads(row.pop("details_json") or "{}")
    return rows


def clear_activity_log() -> None:
    if not settings.activity_log_enabled:
        return
    init_db()
    with sqlite3.connect(_get_db_path()) as conn:
        conn.execute("DELETE FROM activity_log")
        conn.commit()
