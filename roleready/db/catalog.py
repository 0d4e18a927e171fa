from __future__ import annotations

from typing import Any

from .connection import execute, fetch_all, fetch_one, new_id, transaction, utc_now

_SKILL_UPDATABLE = {"name", "normalized_name", "domain", "description", "is_active"}
_ROLE_UPDATABLE = {"name", "description", "color_class", "is_active"}
_BENCHMARK_UPDATABLE = {"importance", "weight", "required_level", "is_active"}


def _bool_field(row: dict[str, Any] | None, *names: str) -> dict[str, Any] | None:
    if row is None:
        return None
    for name in names:
        row[name] = bool(row[name])
    return row


def _bool_int(value: Any) -> Any:
    if isinstance(value, bool):
        return 1 if value else 0
    return value


# Skills


def create_skill(*, name: str, normalized_name: str, domain: str, description: str | None) -> dict[str, Any]:
    skill_id = new_id()
    now = utc_now()
    execute(
        """
        INSERT INTO skills (id, name, normalized_name, domain, description, is_active, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, 1, ?, ?)
        """,
        (skill_id, name, normalized_name, domain, description, now, now),
    )
    return get_skill(skill_id)  # type: ignore[return-value]


def get_skill(skill_id: str) -> dict[str, Any] | None:
    return _bool_field(fetch_one("SELECT * FROM skills WHERE id = ?", (skill_id,)), "is_active")


def get_skill_by_normalized_name(normalized_name: str) -> dict[str, Any] | None:
    return _bool_field(
        fetch_one("SELECT * FROM skills WHERE normalized_name = ?", (normalized_name,)),
        "is_active",
    )


def list_skills(
    *,
    search: str | None = None,
    domain: str | None = None,
    include_inactive: bool = False,
    limit: int = 500,
    offset: int = 0,
) -> list[dict[str, Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    if not include_inactive:
        clauses.append("is_active = 1")
    if search:
        clauses.append("(normalized_name LIKE ? OR LOWER(name) LIKE ?)")
        pattern = f"%{search.strip().lower()}%"
        params.extend([pattern, pattern])
    if domain:
        clauses.append("domain = ?")
        params.append(domain)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    rows = fetch_all(
        f"SELECT * FROM skills {where} ORDER BY name COLLATE NOCASE LIMIT ? OFFSET ?",
        (*params, limit, offset),
    )
    return [_bool_field(row, "is_active") for row in rows]  # type: ignore[misc]


def count_skills() -> int:
    row = fetch_one("SELECT COUNT(*) AS total FROM skills")
    return int(row["total"]) if row else 0


def update_skill(skill_id: str, **fields: Any) -> dict[str, Any] | None:
    updates = {key: _bool_int(value) for key, value in fields.items() if key in _SKILL_UPDATABLE}
    if updates:
        assignments = ", ".join(f"{key} = ?" for key in updates)
        execute(
            f"UPDATE skills SET {assignments}, updated_at = ? WHERE id = ?",
            (*updates.values(), utc_now(), skill_id),
        )
    return get_skill(skill_id)


# Roles


def create_role(
    *,
    name: str,
    description: str | None,
    color_class: str | None,
    created_by: str | None,
) -> dict[str, Any]:
    role_id = new_id()
    now = utc_now()
    execute(
        """
        INSERT INTO roles (id, name, description, color_class, is_active, created_by, created_at, updated_at)
        VALUES (?, ?, ?, ?, 1, ?, ?, ?)
        """,
        (role_id, name, description, color_class, created_by, now, now),
    )
    return get_role(role_id)  # type: ignore[return-value]


def get_role(role_id: str) -> dict[str, Any] | None:
    return _bool_field(fetch_one("SELECT * FROM roles WHERE id = ?", (role_id,)), "is_active")


def get_role_by_name(name: str) -> dict[str, Any] | None:
    return _bool_field(
        fetch_one("SELECT * FROM roles WHERE LOWER(name) = ?", (name.strip().lower(),)),
        "is_active",
    )


def list_roles(*, include_inactive: bool = False, search: str | None = None) -> list[dict[str, Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    if not include_inactive:
        clauses.append("is_active = 1")
    if search:
        clauses.append("LOWER(name) LIKE ?")
        params.append(f"%{search.strip().lower()}%")
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    rows = fetch_all(f"SELECT * FROM roles {where} ORDER BY name COLLATE NOCASE", tuple(params))
    return [_bool_field(row, "is_active") for row in rows]  # type: ignore[misc]


def update_role(role_id: str, **fields: Any) -> dict[str, Any] | None:
    updates = {key: _bool_int(value) for key, value in fields.items() if key in _ROLE_UPDATABLE}
    if updates:
        assignments = ", ".join(f"{key} = ?" for key in updates)
        execute(
            f"UPDATE roles SET {assignments}, updated_at = ? WHERE id = ?",
            (*updates.values(), utc_now(), role_id),
        )
    return get_role(role_id)


# Benchmarks


def list_benchmarks(role_id: str, *, active_only: bool = False) -> list[dict[str, Any]]:
    sql = """
        SELECT b.role_id, b.skill_id, b.importance, b.weight, b.required_level, b.is_active,
               s.name AS skill_name, s.domain AS skill_domain, s.is_active AS skill_is_active
        FROM role_benchmarks b
        JOIN skills s ON s.id = b.skill_id
        WHERE b.role_id = ?
    """
    if active_only:
        sql += " AND b.is_active = 1"
    sql += " ORDER BY b.position, s.name COLLATE NOCASE"
    rows = fetch_all(sql, (role_id,))
    return [_bool_field(row, "is_active", "skill_is_active") for row in rows]  # type: ignore[misc]


def get_benchmark(role_id: str, skill_id: str) -> dict[str, Any] | None:
    return _bool_field(
        fetch_one(
            "SELECT * FROM role_benchmarks WHERE role_id = ? AND skill_id = ?",
            (role_id, skill_id),
        ),
        "is_active",
    )


def upsert_benchmark(
    *,
    role_id: str,
    skill_id: str,
    importance: str,
    weight: float,
    required_level: str,
    is_active: bool = True,
) -> None:
    with transaction() as conn:
        row = conn.execute(
            "SELECT COALESCE(MAX(position), -1) + 1 FROM role_benchmarks WHERE role_id = ?",
            (role_id,),
        ).fetchone()
        next_position = int(row[0]) if row else 0
        conn.execute(
            """
            INSERT INTO role_benchmarks (role_id, skill_id, importance, weight, required_level, is_active, position)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (role_id, skill_id) DO UPDATE SET
                importance = excluded.importance,
                weight = excluded.weight,
                required_level = excluded.required_level,
                is_active = excluded.is_active
            """,
            (role_id, skill_id, importance, weight, required_level, 1 if is_active else 0, next_position),
        )
        conn.execute("UPDATE roles SET updated_at = ? WHERE id = ?", (utc_now(), role_id))


def update_benchmark(role_id: str, skill_id: str, **fields: Any) -> dict[str, Any] | None:
    updates = {key: _bool_int(value) for key, value in fields.items() if key in _BENCHMARK_UPDATABLE}
    if updates:
        assignments = ", ".join(f"{key} = ?" for key in updates)
        execute(
            f"UPDATE role_benchmarks SET {assignments} WHERE role_id = ? AND skill_id = ?",
            (*updates.values(), role_id, skill_id),
        )
    return get_benchmark(role_id, skill_id)


def delete_benchmark(role_id: str, skill_id: str) -> bool:
    return execute(
        "DELETE FROM role_benchmarks WHERE role_id = ? AND skill_id = ?",
        (role_id, skill_id),
    ) > 0
