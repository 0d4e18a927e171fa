from __future__ import annotations

import json
import os
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator

from roleready.core.config import settings

_conn: sqlite3.Connection | None = None
_conn_lock = threading.RLock()

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        role TEXT NOT NULL DEFAULT 'user',
        mentor_id TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        readiness_outdated INTEGER NOT NULL DEFAULT 0,
        roadmap_outdated INTEGER NOT NULL DEFAULT 0,
        ats_outdated INTEGER NOT NULL DEFAULT 0,
        report_outdated INTEGER NOT NULL DEFAULT 0,
        last_readiness_at TEXT,
        last_roadmap_at TEXT,
        last_ats_at TEXT,
        last_report_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_users_mentor ON users (mentor_id);",
    """
    CREATE TABLE IF NOT EXISTS skills (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        normalized_name TEXT NOT NULL UNIQUE,
        domain TEXT NOT NULL DEFAULT 'technical',
        description TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS roles (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL UNIQUE,
        description TEXT,
        color_class TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_by TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS role_benchmarks (
        role_id TEXT NOT NULL,
        skill_id TEXT NOT NULL,
        importance TEXT NOT NULL DEFAULT 'optional',
        weight REAL NOT NULL,
        required_level TEXT NOT NULL DEFAULT 'beginner',
        is_active INTEGER NOT NULL DEFAULT 1,
        position INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (role_id, skill_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS user_skills (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        skill_id TEXT NOT NULL,
        level TEXT NOT NULL DEFAULT 'beginner',
        source TEXT NOT NULL DEFAULT 'self',
        validation_status TEXT NOT NULL DEFAULT 'none',
        validated_by TEXT,
        validated_at TEXT,
        validation_note TEXT,
        requested_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        UNIQUE (user_id, skill_id)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_user_skills_status ON user_skills (validation_status);",
    """
    CREATE TABLE IF NOT EXISTS target_roles (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        role_id TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        selected_by TEXT NOT NULL DEFAULT 'self',
        selected_by_user_id TEXT,
        readiness_at_change REAL,
        activated_at TEXT NOT NULL,
        deactivated_at TEXT
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_target_roles_user ON target_roles (user_id, is_active);",
    """
    CREATE TABLE IF NOT EXISTS readiness_snapshots (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        role_id TEXT NOT NULL,
        role_name TEXT NOT NULL,
        total_score REAL NOT NULL,
        max_possible_score REAL NOT NULL,
        percentage REAL NOT NULL,
        label TEXT NOT NULL,
        skills_met INTEGER NOT NULL,
        skills_missing INTEGER NOT NULL,
        total_benchmarks INTEGER NOT NULL,
        required_skills_met INTEGER NOT NULL,
        required_skills_count INTEGER NOT NULL,
        has_all_required INTEGER NOT NULL,
        breakdown_json TEXT NOT NULL,
        trigger TEXT NOT NULL,
        trigger_details_json TEXT,
        created_at TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_snapshots_user ON readiness_snapshots (user_id, role_id, created_at);",
    """
    CREATE TABLE IF NOT EXISTS roadmaps (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        role_id TEXT NOT NULL,
        role_name TEXT NOT NULL,
        snapshot_id TEXT,
        title TEXT NOT NULL,
        description TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'active',
        steps_json TEXT NOT NULL,
        summary_json TEXT NOT NULL,
        total_steps INTEGER NOT NULL,
        completed_steps INTEGER NOT NULL DEFAULT 0,
        progress_percentage INTEGER NOT NULL DEFAULT 0,
        total_estimated_hours INTEGER NOT NULL,
        completed_hours INTEGER NOT NULL DEFAULT 0,
        current_readiness REAL NOT NULL,
        projected_readiness REAL NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        completed_at TEXT,
        archived_at TEXT
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_roadmaps_user ON roadmaps (user_id, role_id, status);",
    """
    CREATE TABLE IF NOT EXISTS resumes (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        file_name TEXT NOT NULL,
        source_type TEXT NOT NULL,
        raw_text TEXT NOT NULL,
        sections_json TEXT NOT NULL,
        parsing_warnings_json TEXT NOT NULL,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_resumes_user ON resumes (user_id, is_active);",
    """
    CREATE TABLE IF NOT EXISTS ats_scores (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        role_id TEXT NOT NULL,
        resume_id TEXT NOT NULL,
        total_score INTEGER NOT NULL,
        level TEXT NOT NULL,
        result_json TEXT NOT NULL,
        calculated_at TEXT NOT NULL,
        is_outdated INTEGER NOT NULL DEFAULT 0,
        UNIQUE (user_id, role_id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        type TEXT NOT NULL,
        title TEXT NOT NULL,
        message TEXT NOT NULL,
        action_url TEXT,
        metadata_json TEXT NOT NULL,
        is_read INTEGER NOT NULL DEFAULT 0,
        read_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications (user_id, is_read, type);",
    """
    CREATE TABLE IF NOT EXISTS tickets (
        id TEXT PRIMARY KEY,
        ticket_number TEXT NOT NULL UNIQUE,
        sequence INTEGER NOT NULL UNIQUE,
        user_id TEXT NOT NULL,
        creator_role TEXT NOT NULL,
        subject TEXT NOT NULL,
        description TEXT NOT NULL,
        category TEXT NOT NULL,
        priority TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'open',
        assigned_to TEXT,
        resolved_at TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS ticket_messages (
        id TEXT PRIMARY KEY,
        ticket_id TEXT NOT NULL,
        sender_id TEXT NOT NULL,
        sender_role TEXT NOT NULL,
        body TEXT NOT NULL,
        created_at TEXT NOT NULL
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_ticket_messages_ticket ON ticket_messages (ticket_id, created_at);",
)

_TABLES = (
    "ticket_messages",
    "tickets",
    "notifications",
    "ats_scores",
    "resumes",
    "roadmaps",
    "readiness_snapshots",
    "target_roles",
    "user_skills",
    "role_benchmarks",
    "roles",
    "skills",
    "users",
)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=max(0, days))).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


def to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def from_json(raw: str | None, default: Any = None) -> Any:
    if not raw:
        return default
    return json.loads(raw)


def row_to_dict(cursor: sqlite3.Cursor, row: tuple | None) -> dict[str, Any] | None:
    if row is None:
        return None
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def rows_to_dicts(cursor: sqlite3.Cursor) -> list[dict[str, Any]]:
    columns = [col[0] for col in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def _get_connection() -> sqlite3.Connection:
    global _conn
    with _conn_lock:
        if _conn is not None:
            return _conn

        db_path = settings.database_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        _conn = sqlite3.connect(
            db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        _conn.execute("PRAGMA journal_mode=WAL;")
        _conn.execute("PRAGMA synchronous=NORMAL;")
        _conn.execute("PRAGMA busy_timeout=5000;")
        for statement in _SCHEMA:
            _conn.execute(statement)
        return _conn


def init_db() -> None:
    _get_connection()


def fetch_one(sql: str, params: tuple = ()) -> dict[str, Any] | None:
    conn = _get_connection()
    with _conn_lock:
        cur = conn.execute(sql, params)
        return row_to_dict(cur, cur.fetchone())


def fetch_all(sql: str, params: tuple = ()) -> list[dict[str, Any]]:
    conn = _get_connection()
    with _conn_lock:
        cur = conn.execute(sql, params)
        return rows_to_dicts(cur)


def execute(sql: str, params: tuple = ()) -> int:
    conn = _get_connection()
    with _conn_lock:
        cur = conn.execute(sql, params)
        return cur.rowcount


@contextmanager
def transaction() -> Iterator[sqlite3.Connection]:
    """Hold the connection lock for a multi-statement unit of work."""
    conn = _get_connection()
    with _conn_lock:
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except Exception:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")


def reset_database() -> None:
    conn = _get_connection()
    with _conn_lock:
        for table in _TABLES:
            conn.execute(f"DELETE FROM {table}")


def close_connection() -> None:
    global _conn
    with _conn_lock:
        if _conn is not None:
            _conn.close()
            _conn = None
