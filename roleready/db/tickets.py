from __future__ import annotations

from typing import Any

from .connection import execute, fetch_all, fetch_one, new_id, transaction, utc_now

TICKET_NUMBER_START = 1000
_UPDATABLE = {"status", "priority", "assigned_to", "resolved_at"}


def create_ticket(
    *,
    user_id: str,
    creator_role: str,
    subject: str,
    description: str,
    category: str,
    priority: str,
) -> dict[str, Any]:
    ticket_id = new_id()
    now = utc_now()
    with transaction() as conn:
        row = conn.execute("SELECT MAX(sequence) FROM tickets").fetchone()
        sequence = int(row[0]) + 1 if row and row[0] is not None else TICKET_NUMBER_START
        conn.execute(
            """
            INSERT INTO tickets (
                id, ticket_number, sequence, user_id, creator_role, subject, description,
                category, priority, status, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 'open', ?, ?)
            """,
            (
                ticket_id,
                f"RR-{sequence}",
                sequence,
                user_id,
                creator_role,
                subject,
                description,
                category,
                priority,
                now,
                now,
            ),
        )
        conn.execute(
            """
            INSERT INTO ticket_messages (id, ticket_id, sender_id, sender_role, body, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (new_id(), ticket_id, user_id, creator_role, description, now),
        )
    return get_ticket(ticket_id)  # type: ignore[return-value]


def get_ticket(ticket_id: str) -> dict[str, Any] | None:
    return fetch_one("SELECT * FROM tickets WHERE id = ?", (ticket_id,))


def list_tickets(
    *,
    user_id: str | None = None,
    status: str | None = None,
    category: str | None = None,
    priority: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> list[dict[str, Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    for column, value in (("user_id", user_id), ("status", status), ("category", category), ("priority", priority)):
        if value:
            clauses.append(f"{column} = ?")
            params.append(value)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return fetch_all(
        f"SELECT * FROM tickets {where} ORDER BY sequence DESC LIMIT ? OFFSET ?",
        (*params, limit, offset),
    )


def update_ticket(ticket_id: str, **fields: Any) -> dict[str, Any] | None:
    updates = {key: value for key, value in fields.items() if key in _UPDATABLE}
    if updates:
        assignments = ", ".join(f"{key} = ?" for key in updates)
        execute(
            f"UPDATE tickets SET {assignments}, updated_at = ? WHERE id = ?",
            (*updates.values(), utc_now(), ticket_id),
        )
    return get_ticket(ticket_id)


def add_message(*, ticket_id: str, sender_id: str, sender_role: str, body: str) -> dict[str, Any]:
    message_id = new_id()
    now = utc_now()
    with transaction() as conn:
        conn.execute(
            """
            INSERT INTO ticket_messages (id, ticket_id, sender_id, sender_role, body, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (message_id, ticket_id, sender_id, sender_role, body, now),
        )
        conn.execute("UPDATE tickets SET updated_at = ? WHERE id = ?", (now, ticket_id))
    return fetch_one("SELECT * FROM ticket_messages WHERE id = ?", (message_id,))  # type: ignore[return-value]


def list_messages(ticket_id: str) -> list[dict[str, Any]]:
    return fetch_all(
        "SELECT * FROM ticket_messages WHERE ticket_id = ? ORDER BY created_at ASC, rowid ASC",
        (ticket_id,),
    )
