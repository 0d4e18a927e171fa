import unittest
from typing import Any

from fastapi.testclient import TestClient

from roleready.activity.db import clear_activity_log
from roleready.db import catalog as catalog_db
from roleready.db import users as users_db
from roleready.db.connection import reset_database
from roleready.main import app


def headers(user: dict[str, Any]) -> dict[str, str]:
    return {"X-User-Id": user["id"]}


class ApiTestCase(unittest.TestCase):
    """Fresh database per test plus helpers for the common catalog fixture."""

    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        reset_database()
        clear_activity_log()
        self.admin = users_db.create_user(name="Ada Admin", email="admin@example.com", role="admin")

    def make_user(self, name: str = "Sam Student", email: str = "sam@example.com", role: str = "user") -> dict[str, Any]:
        return users_db.create_user(name=name, email=email, role=role)

    def make_skill(self, name: str, domain: str = "technical") -> dict[str, Any]:
        return catalog_db.create_skill(name=name, normalized_name=name.lower(), domain=domain, description=None)

    def make_backend_role(self) -> dict[str, Any]:
        """Backend Developer: Python (required, 50), SQL (required, 30), Docker (optional, 20)."""
        self.python = self.make_skill("Python", "languages")
        self.sql = self.make_skill("SQL", "databases")
        self.docker = self.make_skill("Docker", "tools")
        role = catalog_db.create_role(
            name="Backend Developer",
            description="Builds APIs and services",
            color_class="blue",
            created_by=None,
        )
        catalog_db.upsert_benchmark(
            role_id=role["id"], skill_id=self.python["id"], importance="required", weight=50, required_level="advanced"
        )
        catalog_db.upsert_benchmark(
            role_id=role["id"], skill_id=self.sql["id"], importance="required", weight=30, required_level="intermediate"
        )
        catalog_db.upsert_benchmark(
            role_id=role["id"], skill_id=self.docker["id"], importance="optional", weight=20, required_level="beginner"
        )
        self.role = role
        return role

    def add_skill(self, user: dict[str, Any], skill: dict[str, Any], level: str = "beginner") -> dict[str, Any]:
        response = self.client.post(
            f"/v1/users/{user['id']}/skills",
            json={"skill_id": skill["id"], "level": level},
            headers=headers(user),
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def select_role(self, user: dict[str, Any], role: dict[str, Any]) -> dict[str, Any]:
        response = self.client.put(
            f"/v1/users/{user['id']}/target-role",
            json={"role_id": role["id"]},
            headers=headers(user),
        )
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()
