import tempfile
from pathlib import Path

from roleready.db import catalog as catalog_db
from roleready.services import catalog_service
from roleready.services.errors import ServiceError
from support import ApiTestCase, headers

SEED_PATH = Path(__file__).resolve().parents[1] / "config" / "seed_catalog.yaml"


class HealthTests(ApiTestCase):
    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})


class SkillCatalogApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.student = self.make_user()

    def _create(self, payload):
        return self.client.post("/v1/skills", json=payload, headers=headers(self.admin))

    def test_admin_creates_skill_with_normalized_name(self):
        response = self._create({"name": "  Node.JS  ", "domain": "frameworks"})
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(body["name"], "Node.JS")
        self.assertEqual(body["normalized_name"], "node.js")
        self.assertTrue(body["is_active"])

        duplicate = self._create({"name": "node.js"})
        self.assertEqual(duplicate.status_code, 409)

    def test_create_validation_and_permissions(self):
        self.assertEqual(self._create({"name": "Rust", "domain": "magic"}).status_code, 422)
        self.assertEqual(self._create({"name": "!!!"}).status_code, 400)
        response = self.client.post("/v1/skills", json={"name": "Rust"}, headers=headers(self.student))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.client.post("/v1/skills", json={"name": "Rust"}).status_code, 401)

    def test_list_search_and_filter(self):
        self.make_skill("Python", "languages")
        self.make_skill("PyTorch", "frameworks")
        self.make_skill("SQL", "databases")

        names = [item["name"] for item in self.client.get("/v1/skills").json()]
        self.assertEqual(names, ["Python", "PyTorch", "SQL"])

        search = self.client.get("/v1/skills?search=PY").json()
        self.assertEqual([item["name"] for item in search], ["Python", "PyTorch"])

        domain = self.client.get("/v1/skills?domain=databases").json()
        self.assertEqual([item["name"] for item in domain], ["SQL"])

        page = self.client.get("/v1/skills?limit=1&offset=1").json()
        self.assertEqual([item["name"] for item in page], ["PyTorch"])

    def test_update_and_deactivate(self):
        skill = self.make_skill("Postgres", "databases")
        self.make_skill("MySQL", "databases")

        response = self.client.patch(
            f"/v1/skills/{skill['id']}",
            json={"name": "PostgreSQL", "description": "Relational database"},
            headers=headers(self.admin),
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertEqual(response.json()["normalized_name"], "postgresql")

        clash = self.client.patch(f"/v1/skills/{skill['id']}", json={"name": "mysql"}, headers=headers(self.admin))
        self.assertEqual(clash.status_code, 409)

        deleted = self.client.delete(f"/v1/skills/{skill['id']}", headers=headers(self.admin))
        self.assertFalse(deleted.json()["is_active"])
        self.assertEqual([item["name"] for item in self.client.get("/v1/skills").json()], ["MySQL"])
        everything = self.client.get("/v1/skills?include_inactive=true").json()
        self.assertEqual(len(everything), 2)

        self.assertEqual(self.client.get(f"/v1/skills/{skill['id']}").status_code, 200)
        self.assertEqual(self.client.get("/v1/skills/missing").status_code, 404)
        self.assertEqual(self.client.delete("/v1/skills/missing", headers=headers(self.admin)).status_code, 404)

    def test_skill_lookup_by_alias(self):
        kubernetes = self.make_skill("Kubernetes", "tools")
        self.assertEqual(catalog_service.find_skill_by_name("K8s")["id"], kubernetes["id"])
        self.assertIsNone(catalog_service.find_skill_by_name("Haskell"))

        response = self.client.post(
            f"/v1/users/{self.student['id']}/skills",
            json={"skill_name": "k8s", "level": "beginner"},
            headers=headers(self.student),
        )
        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(response.json()["skill_name"], "Kubernetes")


class RoleCatalogApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.python = self.make_skill("Python", "languages")
        self.sql = self.make_skill("SQL", "databases")
        self.docker = self.make_skill("Docker", "tools")

    def _create_role(self, **overrides):
        payload = {
            "name": "Backend Developer",
            "description": "Builds APIs",
            "benchmarks": [
                {"skill_id": self.python["id"], "importance": "required", "weight": 60, "required_level": "advanced"},
                {"skill_id": self.sql["id"], "importance": "optional", "weight": 40},
            ],
        }
        payload.update(overrides)
        return self.client.post("/v1/roles", json=payload, headers=headers(self.admin))

    def test_create_role_with_benchmarks(self):
        response = self._create_role()
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(body["skill_count"], 2)
        self.assertEqual(body["required_skill_count"], 1)
        self.assertEqual(body["total_weight"], 100)
        self.assertTrue(body["weights_sum_to_100"])
        by_skill = {item["skill_name"]: item for item in body["benchmarks"]}
        self.assertEqual(by_skill["SQL"]["required_level"], "beginner")

        self.assertEqual(self._create_role(benchmarks=[]).status_code, 409)

    def test_create_role_rejects_unknown_or_inactive_skills(self):
        response = self._create_role(benchmarks=[{"skill_id": "missing", "weight": 100}])
        self.assertEqual(response.status_code, 404)

        catalog_db.update_skill(self.docker["id"], is_active=False)
        response = self._create_role(benchmarks=[{"skill_id": self.docker["id"], "weight": 100}])
        self.assertEqual(response.status_code, 400)

        response = self._create_role(benchmarks=[{"skill_id": self.python["id"], "weight": 0}])
        self.assertEqual(response.status_code, 422)

    def test_benchmark_lifecycle(self):
        role = self._create_role().json()
        url = f"/v1/roles/{role['id']}/benchmarks"

        added = self.client.post(
            url,
            json={"skill_id": self.docker["id"], "weight": 20, "importance": "optional"},
            headers=headers(self.admin),
        ).json()
        self.assertEqual(added["skill_count"], 3)
        self.assertEqual(added["total_weight"], 120)
        self.assertFalse(added["weights_sum_to_100"])

        replaced = self.client.post(
            url,
            json={"skill_id": self.docker["id"], "weight": 10},
            headers=headers(self.admin),
        ).json()
        self.assertEqual(replaced["skill_count"], 3)
        self.assertEqual(replaced["total_weight"], 110)

        updated = self.client.patch(
            f"{url}/{self.docker['id']}",
            json={"is_active": False},
            headers=headers(self.admin),
        ).json()
        self.assertEqual(updated["skill_count"], 2)
        self.assertTrue(updated["weights_sum_to_100"])

        removed = self.client.delete(f"{url}/{self.docker['id']}", headers=headers(self.admin))
        self.assertEqual(removed.status_code, 200)
        self.assertEqual(len(removed.json()["benchmarks"]), 2)
        self.assertEqual(self.client.delete(f"{url}/{self.docker['id']}", headers=headers(self.admin)).status_code, 404)
        missing = self.client.patch(f"{url}/{self.docker['id']}", json={"weight": 5}, headers=headers(self.admin))
        self.assertEqual(missing.status_code, 404)

    def test_list_update_and_deactivate_roles(self):
        role = self._create_role().json()
        self._create_role(name="Data Analyst", benchmarks=[]).json()

        roles = self.client.get("/v1/roles").json()
        self.assertEqual([item["name"] for item in roles], ["Backend Developer", "Data Analyst"])
        self.assertEqual([item["name"] for item in self.client.get("/v1/roles?search=data").json()], ["Data Analyst"])

        renamed = self.client.patch(
            f"/v1/roles/{role['id']}",
            json={"name": "Backend Engineer", "color_class": "green"},
            headers=headers(self.admin),
        ).json()
        self.assertEqual(renamed["name"], "Backend Engineer")
        self.assertEqual(renamed["color_class"], "green")

        clash = self.client.patch(f"/v1/roles/{role['id']}", json={"name": "Data Analyst"}, headers=headers(self.admin))
        self.assertEqual(clash.status_code, 409)

        self.client.delete(f"/v1/roles/{role['id']}", headers=headers(self.admin))
        self.assertEqual(self.client.get(f"/v1/roles/{role['id']}").status_code, 404)
        self.assertEqual([item["name"] for item in self.client.get("/v1/roles").json()], ["Data Analyst"])
        self.assertEqual(len(self.client.get("/v1/roles?include_inactive=true").json()), 2)

    def test_role_writes_are_admin_only(self):
        student = self.make_user()
        response = self.client.post("/v1/roles", json={"name": "Hacker"}, headers=headers(student))
        self.assertEqual(response.status_code, 403)


class SeedCatalogTests(ApiTestCase):
    def test_seed_file_is_idempotent(self):
        first = catalog_service.seed_catalog(SEED_PATH)
        self.assertEqual(first.skills_created, 41)
        self.assertEqual(first.roles_created, 7)
        self.assertEqual(first.benchmarks_upserted, 59)
        self.assertEqual(first.warnings, [])
        self.assertFalse(catalog_service.catalog_is_empty())

        second = catalog_service.seed_catalog(SEED_PATH)
        self.assertEqual((second.skills_created, second.roles_created, second.benchmarks_upserted), (0, 0, 0))

        roles = self.client.get("/v1/roles").json()
        self.assertEqual(len(roles), 7)
        self.assertTrue(all(role["weights_sum_to_100"] for role in roles))

    def test_seed_skips_roles_with_bad_weights(self):
        content = """
skills:
  - {name: Python, domain: languages}
  - {name: Go, domain: unknown-domain}
roles:
  - name: Broken Role
    benchmarks:
      - {skill: Python, importance: critical, weight: 50}
  - name: Gopher
    benchmarks:
      - {skill: Go, importance: nice-to-have, weight: 60, required_level: wizard}
      - {skill: Python, importance: important, weight: 40}
      - {skill: Cobol, weight: 10}
"""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "seed.yaml"
            path.write_text(content, encoding="utf-8")
            report = catalog_service.seed_catalog(path)

        self.assertEqual(report.skills_created, 2)
        self.assertEqual(report.roles_created, 1)
        self.assertEqual(report.benchmarks_upserted, 2)
        self.assertEqual(len(report.warnings), 2)
        self.assertIn("Broken Role", report.warnings[0])
        self.assertIn("Cobol", report.warnings[1])

        go = catalog_service.find_skill_by_name("go")
        self.assertEqual(go["domain"], "other")
        gopher = catalog_db.get_role_by_name("Gopher")
        benchmarks = {item["skill_name"]: item for item in catalog_db.list_benchmarks(gopher["id"])}
        self.assertEqual(benchmarks["Go"]["importance"], "optional")
        self.assertEqual(benchmarks["Go"]["required_level"], "beginner")
        self.assertEqual(benchmarks["Python"]["importance"], "required")

    def test_missing_or_invalid_seed_file(self):
        with self.assertRaises(ServiceError) as ctx:
            catalog_service.seed_catalog("/nonexistent/seed.yaml")
        self.assertEqual(ctx.exception.status_code, 500)

        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "seed.yaml"
            path.write_text("- just\n- a list\n", encoding="utf-8")
            with self.assertRaises(ServiceError):
                catalog_service.seed_catalog(path)
