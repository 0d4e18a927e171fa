import unittest

from roleready.db import catalog as catalog_db
from roleready.services import readiness_service
from roleready.services.errors import ServiceError
from support import ApiTestCase, headers


class ReadinessApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user()
        self.make_backend_role()
        self.add_skill(self.user, self.python, "advanced")
        self.add_skill(self.user, self.sql, "intermediate")

    def _calculate(self, json=None):
        return self.client.post(f"/v1/users/{self.user['id']}/readiness", json=json, headers=headers(self.user))

    def test_requires_target_role(self):
        response = self._calculate()
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "No target role selected. Please select a target role first.")

    def test_recalculate_for_active_role(self):
        with self.assertRaises(ServiceError) as ctx:
            readiness_service.recalculate_for_active_role(self.user["id"])
        self.assertEqual(ctx.exception.status_code, 400)

        self.select_role(self.user, self.role)
        result = readiness_service.recalculate_for_active_role(self.user["id"])
        self.assertEqual(result.snapshot.role_id, self.role["id"])
        self.assertEqual(result.snapshot.percentage, 42.0)

    def test_snapshot_for_active_role(self):
        self.select_role(self.user, self.role)
        response = self._calculate()
        self.assertEqual(response.status_code, 201, response.text)

        body = response.json()
        snapshot = body["snapshot"]
        self.assertEqual(snapshot["percentage"], 42.0)
        self.assertEqual(snapshot["label"], "developing")
        self.assertEqual(snapshot["skills_met"], 2)
        self.assertEqual(snapshot["skills_missing"], 1)
        self.assertTrue(snapshot["has_all_required"])
        self.assertEqual(snapshot["trigger"], "manual")
        self.assertEqual([gap["skill_name"] for gap in body["gaps"]], ["Docker"])
        self.assertEqual(body["gaps"][0]["priority"], 30)

        latest = self.client.get(f"/v1/users/{self.user['id']}/readiness/latest", headers=headers(self.user)).json()
        self.assertEqual(latest["id"], snapshot["id"])

        target = self.client.get(f"/v1/users/{self.user['id']}/target-role", headers=headers(self.user)).json()
        self.assertEqual(target["readiness_at_change"], 42.0)

    def test_calculation_clears_outdated_state(self):
        self.select_role(self.user, self.role)
        state_url = f"/v1/users/{self.user['id']}/evaluation-state"
        self.assertTrue(self.client.get(state_url, headers=headers(self.user)).json()["readiness_outdated"])

        self._calculate({"trigger": "skill_update", "trigger_details": {"source": "test"}})
        state = self.client.get(state_url, headers=headers(self.user)).json()
        self.assertFalse(state["readiness_outdated"])
        self.assertIsNotNone(state["last_readiness_at"])

        unread = self.client.get("/v1/notifications", params={"unread_only": True}, headers=headers(self.user)).json()
        self.assertNotIn("readiness_outdated", [item["type"] for item in unread["notifications"]])

    def test_history_is_newest_first(self):
        self.select_role(self.user, self.role)
        self._calculate()
        self.add_skill(self.user, self.docker, "beginner")
        second = self._calculate({"trigger": "skill_update"}).json()
        self.assertEqual(second["snapshot"]["percentage"], 46.0)

        history = self.client.get(f"/v1/users/{self.user['id']}/readiness/history", headers=headers(self.user)).json()
        self.assertEqual(len(history), 2)
        self.assertEqual(history[0]["trigger"], "skill_update")

    def test_role_without_benchmarks(self):
        empty = catalog_db.create_role(name="Empty Role", description=None, color_class=None, created_by=None)
        response = self._calculate({"role_id": empty["id"]})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Role has no active benchmarks configured")

    def test_other_users_cannot_calculate(self):
        other = self.make_user("Other", "other@example.com")
        response = self.client.post(f"/v1/users/{self.user['id']}/readiness", headers=headers(other))
        self.assertEqual(response.status_code, 403)

    def test_preview_does_not_persist(self):
        response = self.client.post(
            "/v1/readiness/preview",
            json={
                "benchmarks": [
                    {"skill_id": "a", "skill_name": "A", "importance": "required", "weight": 100, "required_level": "expert"}
                ],
                "user_skills": [{"skill_id": "a", "level": "expert", "source": "validated", "validation_status": "validated"}],
            },
            headers=headers(self.user),
        )
        self.assertEqual(response.status_code, 200, response.text)
        result = response.json()["result"]
        self.assertEqual(result["percentage"], 100.0)
        self.assertEqual(result["label"], "ready")
        self.assertEqual(result["role_id"], "preview")

        from_profile = self.client.post(
            "/v1/readiness/preview",
            json={"role_id": self.role["id"]},
            headers=headers(self.user),
        ).json()
        self.assertEqual(from_profile["result"]["percentage"], 42.0)

        latest = self.client.get(f"/v1/users/{self.user['id']}/readiness/latest", headers=headers(self.user))
        self.assertIsNone(latest.json())


if __name__ == "__main__":
    unittest.main()
