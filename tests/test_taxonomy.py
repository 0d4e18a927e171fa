import unittest

from roleready.services.resume_service import match_skills_in_text
from roleready.taxonomy import get_default_taxonomy_provider
from roleready.taxonomy.local_taxonomy import LocalTaxonomy


class TaxonomyTests(unittest.TestCase):
    def test_canonical_name_for_alias(self):
        taxonomy = LocalTaxonomy()
        self.assertEqual(taxonomy.canonical_name("  K8s "), "Kubernetes")
        self.assertEqual(taxonomy.canonical_name("Amazon   Web Services"), "AWS")
        self.assertIsNone(taxonomy.canonical_name("Haskell"))
        self.assertIsNone(taxonomy.canonical_name(""))

    def test_aliases_are_grouped_by_canonical_name(self):
        taxonomy = get_default_taxonomy_provider()
        self.assertIn("postgres", taxonomy.aliases_for("PostgreSQL"))
        self.assertIn("psql", taxonomy.aliases_for("postgresql"))
        self.assertEqual(taxonomy.aliases_for("Haskell"), [])

    def test_aliases_feed_resume_matching(self):
        skills = [
            {"id": "k8s", "name": "Kubernetes"},
            {"id": "pg", "name": "PostgreSQL"},
            {"id": "java", "name": "Java"},
        ]
        matched = match_skills_in_text("deployed services on k8s backed by postgres", skills)
        self.assertEqual([(skill["id"], variation) for skill, variation in matched], [("k8s", "k8s"), ("pg", "postgres")])


if __name__ == "__main__":
    unittest.main()
