import unittest

from support import ApiTestCase, headers


class RoadmapApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user()
        self.make_backend_role()
        self.add_skill(self.user, self.python, "advanced")
        self.add_skill(self.user, self.sql, "intermediate")
        self.select_role(self.user, self.role)

    def _generate(self, json=None):
        response = self.client.post(f"/v1/users/{self.user['id']}/roadmap", json=json, headers=headers(self.user))
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def _patch_step(self, roadmap, step_id, status, notes=None):
        payload = {"status": status}
        if notes is not None:
            payload["notes"] = notes
        return self.client.patch(
            f"/v1/roadmaps/{roadmap['id']}/steps/{step_id}",
            json=payload,
            headers=headers(self.user),
        )

    def test_generate_orders_steps_and_projects_readiness(self):
        roadmap = self._generate()

        self.assertEqual(roadmap["status"], "active")
        self.assertEqual([step["skill_name"] for step in roadmap["steps"]], ["Python", "SQL", "Docker"])
        self.assertEqual([step["step_type"] for step in roadmap["steps"]], ["validate", "validate", "learn_new"])
        self.assertEqual(roadmap["total_estimated_hours"], 24)
        self.assertEqual(roadmap["current_readiness"], 42.0)
        self.assertEqual(roadmap["projected_readiness"], 58.0)
        self.assertEqual(roadmap["priority_breakdown"], {"MEDIUM": 2, "LOW": 1})
        self.assertEqual(roadmap["edge_case"]["message_type"], "action")
        self.assertIsNotNone(roadmap["snapshot_id"])

        state = self.client.get(f"/v1/users/{self.user['id']}/evaluation-state", headers=headers(self.user)).json()
        self.assertFalse(state["roadmap_outdated"])
        self.assertFalse(state["readiness_outdated"])

    def test_max_steps(self):
        roadmap = self._generate({"max_steps": 1})
        self.assertEqual(roadmap["total_steps"], 1)
        self.assertEqual(roadmap["steps"][0]["step_id"], "s1")

    def test_step_progress_and_completion(self):
        roadmap = self._generate()

        started = self._patch_step(roadmap, "s1", "in_progress", notes="booked a session").json()
        first = started["steps"][0]
        self.assertEqual(first["status"], "in_progress")
        self.assertIsNotNone(first["started_at"])
        self.assertEqual(first["user_notes"], "booked a session")

        done = self._patch_step(roadmap, "s1", "completed").json()
        self.assertEqual(done["completed_steps"], 1)
        self.assertEqual(done["progress_percentage"], 33)
        self.assertEqual(done["completed_hours"], 2)
        self.assertEqual(done["steps"][0]["started_at"], first["started_at"])

        bulk = self.client.patch(
            f"/v1/roadmaps/{roadmap['id']}/steps",
            json={"updates": [{"step_id": "s2", "status": "completed"}, {"step_id": "s3", "status": "completed"}]},
            headers=headers(self.user),
        ).json()
        self.assertEqual(bulk["status"], "completed")
        self.assertEqual(bulk["progress_percentage"], 100)
        self.assertEqual(bulk["completed_hours"], 24)
        self.assertIsNotNone(bulk["completed_at"])

        reopened = self._patch_step(roadmap, "s3", "in_progress").json()
        self.assertEqual(reopened["status"], "active")
        self.assertIsNone(reopened["completed_at"])
        self.assertIsNone(reopened["steps"][2]["completed_at"])

    def test_unknown_step_and_invalid_status(self):
        roadmap = self._generate()
        self.assertEqual(self._patch_step(roadmap, "s99", "completed").status_code, 404)
        self.assertEqual(self._patch_step(roadmap, "s1", "finished").status_code, 422)

    def test_regenerate_archives_previous(self):
        first = self._generate()
        second = self._generate()

        active = self.client.get(f"/v1/users/{self.user['id']}/roadmap", headers=headers(self.user)).json()
        self.assertEqual(active["id"], second["id"])

        old = self.client.get(f"/v1/roadmaps/{first['id']}", headers=headers(self.user)).json()
        self.assertEqual(old["status"], "archived")
        self.assertEqual(self._patch_step(old, "s1", "completed").status_code, 400)

        history = self.client.get(
            f"/v1/users/{self.user['id']}/roadmap/history",
            params={"include_archived": True},
            headers=headers(self.user),
        ).json()
        self.assertEqual(len(history), 2)

    def test_archive(self):
        roadmap = self._generate()
        archived = self.client.post(f"/v1/roadmaps/{roadmap['id']}/archive", headers=headers(self.user))
        self.assertEqual(archived.json()["status"], "archived")
        again = self.client.post(f"/v1/roadmaps/{roadmap['id']}/archive", headers=headers(self.user))
        self.assertEqual(again.status_code, 400)
        missing = self.client.get(f"/v1/users/{self.user['id']}/roadmap", headers=headers(self.user))
        self.assertEqual(missing.status_code, 404)

    def test_roadmap_is_private(self):
        roadmap = self._generate()
        other = self.make_user("Other", "other@example.com")
        response = self.client.get(f"/v1/roadmaps/{roadmap['id']}", headers=headers(other))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.client.get(f"/v1/roadmaps/{roadmap['id']}", headers=headers(self.admin)).status_code, 200)


if __name__ == "__main__":
    unittest.main()
