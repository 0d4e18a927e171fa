from __future__ import annotations

from typing import Any

from .connection import execute, fetch_all, fetch_one, from_json, new_id, to_json, transaction, utc_now


def _decode_resume(row: dict[str, Any] | None) -> dict[str, Any] | None:
    if row is None:
        return None
    row["is_active"] = bool(row["is_active"])
    row["sections"] = from_json(row.pop("sections_json"), {})
    row["parsing_warnings"] = from_json(row.pop("parsing_warnings_json"), [])
    return row


def insert_resume(
    *,
    user_id: str,
    file_name: str,
    source_type: str,
    raw_text: str,
    sections: dict[str, Any],
    parsing_warnings: list[str],
) -> dict[str, Any]:
    resume_id = new_id()
    with transaction() as conn:
        conn.execute("UPDATE resumes SET is_active = 0 WHERE user_id = ? AND is_active = 1", (user_id,))
        conn.execute(
            """
            INSERT INTO resumes (
                id, user_id, file_name, source_type, raw_text, sections_json,
                parsing_warnings_json, is_active, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, 1, ?)
            """,
            (
                resume_id,
                user_id,
                file_name,
                source_type,
                raw_text,
                to_json(sections),
                to_json(parsing_warnings),
                utc_now(),
            ),
        )
    return get_resume(resume_id)  # type: ignore[return-value]


def get_resume(resume_id: str) -> dict[str, Any] | None:
    return _decode_resume(fetch_one("SELECT * FROM resumes WHERE id = ?", (resume_id,)))


def get_active_resume(user_id: str) -> dict[str, Any] | None:
    return _decode_resume(
        fetch_one(
            "SELECT * FROM resumes WHERE user_id = ? AND is_active = 1 ORDER BY created_at DESC LIMIT 1",
            (user_id,),
        )
    )


def list_resumes(user_id: str, *, limit: int = 20) -> list[dict[str, Any]]:
    rows = fetch_all(
        "SELECT * FROM resumes WHERE user_id = ? ORDER BY created_at DESC, rowid DESC LIMIT ?",
        (user_id, limit),
    )
    return [_decode_resume(row) for row in rows]  # type: ignore[misc]


def upsert_ats_score(
    *,
    user_id: str,
    role_id: str,
    resume_id: str,
    total_score: int,
    level: str,
    result: dict[str, Any],
) -> dict[str, Any]:
    execute(
        """
        INSERT INTO ats_scores (id, user_id, role_id, resume_id, total_score, level, result_json, calculated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT (user_id, role_id) DO UPDATE SET
            resume_id = excluded.resume_id,
            total_score = excluded.total_score,
            level = excluded.level,
            result_json = excluded.result_json,
            calculated_at = excluded.calculated_at,
            is_outdated = 0
        """,
        (new_id(), user_id, role_id, resume_id, total_score, level, to_json(result), utc_now()),
    )
    return get_ats_score(user_id, role_id)  # type: ignore[return-value]


def get_ats_score(user_id: str, role_id: str) -> dict[str, Any] | None:
    row = fetch_one("SELECT * FROM ats_scores WHERE user_id = ? AND role_id = ?", (user_id, role_id))
    if row is None:
        return None
    row["result"] = from_json(row.pop("result_json"), {})
    row["is_outdated"] = bool(row["is_outdated"])
    return row


def mark_ats_scores_outdated(user_id: str) -> None:
    execute("UPDATE ats_scores SET is_outdated = 1 WHERE user_id = ?", (user_id,))
