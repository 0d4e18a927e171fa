import dataclasses
import unittest
from unittest import mock

from roleready.api.v1 import resume as resume_router
from roleready.core.config import settings
from roleready.db import catalog as catalog_db
from roleready.services import evaluation_service, resume_service
from support import ApiTestCase, headers

RESUME_TEXT = """Jane Doe
jane@example.com

Experience
- Built Python services and optimized SQL queries
- Developed internal tooling in Python

Education
BSc Computer Science

Skills
Python, SQL, Kubernetes
"""


class ResumeApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user()
        self.make_backend_role()

    def _upload_text(self, text=RESUME_TEXT):
        response = self.client.post(
            f"/v1/users/{self.user['id']}/resume/text",
            json={"text": text},
            headers=headers(self.user),
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_text_upload_splits_sections(self):
        resume = self._upload_text()
        self.assertEqual(resume["source_type"], "text")
        self.assertTrue(resume["is_active"])
        self.assertIn("Developed internal tooling in Python", resume["sections"]["experience"])
        self.assertEqual(resume["sections"]["education"], "BSc Computer Science")

    def test_file_upload(self):
        response = self.client.post(
            f"/v1/users/{self.user['id']}/resume",
            files={"file": ("resume.txt", RESUME_TEXT.encode("utf-8"), "text/plain")},
            headers=headers(self.user),
        )
        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(response.json()["source_type"], "txt")

        newer = self._upload_text("Skills: Docker")
        active = self.client.get(f"/v1/users/{self.user['id']}/resume", headers=headers(self.user)).json()
        self.assertEqual(active["id"], newer["id"])

        listed = self.client.get(f"/v1/users/{self.user['id']}/resumes", headers=headers(self.user)).json()
        self.assertEqual([item["is_active"] for item in listed], [True, False])
        self.assertEqual(listed[0]["word_count"], 2)

    def test_rejected_uploads(self):
        url = f"/v1/users/{self.user['id']}/resume"
        unsupported = self.client.post(
            url,
            files={"file": ("resume.exe", b"MZ\x90\x00", "application/octet-stream")},
            headers=headers(self.user),
        )
        self.assertEqual(unsupported.status_code, 415)

        fake_pdf = self.client.post(
            url,
            files={"file": ("resume.pdf", b"hello", "application/pdf")},
            headers=headers(self.user),
        )
        self.assertEqual(fake_pdf.status_code, 415)

        empty = self.client.post(url, files={"file": ("resume.txt", b"", "text/plain")}, headers=headers(self.user))
        self.assertEqual(empty.status_code, 400)

        blank = self.client.post(url, files={"file": ("resume.txt", b"   \n  ", "text/plain")}, headers=headers(self.user))
        self.assertEqual(blank.status_code, 400)

    def test_oversized_upload(self):
        small = dataclasses.replace(settings, max_resume_upload_bytes=16)
        with mock.patch.object(resume_router, "settings", small), mock.patch.object(resume_service, "settings", small):
            response = self.client.post(
                f"/v1/users/{self.user['id']}/resume",
                files={"file": ("resume.txt", RESUME_TEXT.encode("utf-8"), "text/plain")},
                headers=headers(self.user),
            )
        self.assertEqual(response.status_code, 413)

    def test_no_resume_yet(self):
        response = self.client.get(f"/v1/users/{self.user['id']}/resume", headers=headers(self.user))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["detail"], "No active resume found. Please upload a resume first.")

    def test_suggestions_flag_owned_skills(self):
        self.add_skill(self.user, self.python, "beginner")
        self._upload_text()

        body = self.client.get(f"/v1/users/{self.user['id']}/resume/suggestions", headers=headers(self.user)).json()
        by_name = {item["skill_name"]: item for item in body["suggestions"]}
        self.assertEqual(sorted(by_name), ["Python", "SQL"])
        self.assertEqual(body["total_matched"], 2)
        self.assertEqual(body["new_skills"], 1)
        self.assertTrue(by_name["Python"]["already_has"])
        self.assertEqual(by_name["Python"]["current_level"], "beginner")
        self.assertEqual(by_name["SQL"]["confidence"], 80)
        self.assertEqual(by_name["SQL"]["suggested_level"], "advanced")

    def test_sync_adds_new_and_respects_overwrite(self):
        self.add_skill(self.user, self.python, "beginner")
        self._upload_text()
        url = f"/v1/users/{self.user['id']}/resume/sync-skills"

        first = self.client.post(url, json={}, headers=headers(self.user)).json()
        self.assertEqual([item["skill_name"] for item in first["added"]], ["SQL"])
        self.assertEqual(first["added"][0]["source"], "resume")
        self.assertEqual([(item["skill_name"], item["reason"]) for item in first["skipped"]], [("Python", "already_exists")])

        second = self.client.post(url, json={"overwrite": True}, headers=headers(self.user)).json()
        updated = {item["skill_name"]: item for item in second["updated"]}
        self.assertEqual(updated["Python"]["level"], "advanced")
        self.assertEqual(updated["Python"]["source"], "resume")

        strict = self.client.post(url, json={"min_confidence": 90}, headers=headers(self.user)).json()
        self.assertEqual({item["reason"] for item in strict["skipped"]}, {"below_min_confidence"})


class ATSApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.user = self.make_user()
        self.make_backend_role()

    def _upload(self, text=RESUME_TEXT):
        self.client.post(f"/v1/users/{self.user['id']}/resume/text", json={"text": text}, headers=headers(self.user))

    def test_requires_role_and_resume(self):
        url = f"/v1/users/{self.user['id']}/ats-score"
        self.assertEqual(self.client.get(url, headers=headers(self.user)).status_code, 404)
        self.select_role(self.user, self.role)
        missing_resume = self.client.get(url, headers=headers(self.user))
        self.assertEqual(missing_resume.status_code, 404)
        self.assertEqual(missing_resume.json()["detail"], "No active resume found. Please upload a resume first.")

    def test_score_components(self):
        self.select_role(self.user, self.role)
        self._upload()

        response = self.client.get(f"/v1/users/{self.user['id']}/ats-score", headers=headers(self.user))
        self.assertEqual(response.status_code, 200, response.text)
        score = response.json()
        self.assertEqual(
            score["components"],
            {"relevance": 80, "context_depth": 60, "structure": 80, "impact": 100},
        )
        self.assertEqual(score["total_score"], 78)
        self.assertEqual(score["level"], "good")
        self.assertEqual(score["matched_keywords"], ["Python", "SQL"])
        self.assertEqual(score["missing_keywords"], ["Docker"])
        self.assertEqual(score["role_name"], "Backend Developer")
        self.assertFalse(score["is_outdated"])

    def test_new_resume_marks_score_outdated(self):
        self.select_role(self.user, self.role)
        self._upload()
        url = f"/v1/users/{self.user['id']}/ats-score"
        first = self.client.get(url, headers=headers(self.user)).json()

        self._upload(RESUME_TEXT + "\nDocker\n")
        stale = self.client.get(url, headers=headers(self.user)).json()
        self.assertTrue(stale["is_outdated"])
        self.assertEqual(stale["resume_id"], first["resume_id"])

        fresh = self.client.post(url, headers=headers(self.user)).json()
        self.assertFalse(fresh["is_outdated"])
        self.assertNotEqual(fresh["resume_id"], first["resume_id"])
        self.assertEqual(fresh["missing_keywords"], [])

    def test_recalculating_one_role_leaves_other_role_stale(self):
        data_role = catalog_db.create_role(name="Data Analyst", description="", color_class="green", created_by=None)
        catalog_db.upsert_benchmark(
            role_id=data_role["id"], skill_id=self.sql["id"], importance="required", weight=100, required_level="beginner"
        )
        self.select_role(self.user, self.role)
        self._upload()
        url = f"/v1/users/{self.user['id']}/ats-score"
        self.client.post(url, headers=headers(self.user))
        self.client.post(url, json={"role_id": data_role["id"]}, headers=headers(self.user))

        evaluation_service.mark_outdated(self.user["id"], ["ats"])
        self.client.post(url, headers=headers(self.user))

        backend = self.client.get(url, headers=headers(self.user)).json()
        self.assertFalse(backend["is_outdated"])
        data = self.client.get(f"{url}?role_id={data_role['id']}", headers=headers(self.user)).json()
        self.assertTrue(data["is_outdated"])


if __name__ == "__main__":
    unittest.main()
