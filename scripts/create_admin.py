from __future__ import annotations

import argparse

from roleready.db import users as users_db
from roleready.db.connection import close_connection, init_db


def main() -> None:
    parser = argparse.ArgumentParser(description="Create an admin (or mentor) account.")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument("--email", required=True, help="Login email")
    parser.add_argument("--role", default="admin", choices=["admin", "mentor"], help="Account role")
    args = parser.parse_args()

    email = args.email.strip().lower()
    init_db()
    try:
        existing = users_db.get_user_by_email(email)
        if existing:
            print(f"{email} already exists with id {existing['id']} (role={existing['role']})")
            return
        user = users_db.create_user(name=args.name.strip(), email=email, role=args.role)
    finally:
        close_connection()
    print(f"Created {args.role} {email} with id {user['id']}")


if __name__ == "__main__":
    main()
