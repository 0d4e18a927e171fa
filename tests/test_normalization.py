import unittest

from roleready.normalize.normalize_resume import normalize_resume_sections
from roleready.normalize.utils import is_section_heading, normalize_match_text, skill_variations
from roleready.services.resume_service import confidence_to_level, match_skills_in_text

RESUME = """JANE DOE
jane@example.com

Summary
Backend engineer focused on data platforms.

Experience
- Built Python ETL pipelines on AWS
• Reduced query latency by 40% with PostgreSQL tuning

Education
BSc Computer Science

Technical Skills:
Python, SQL, Docker, Node.js, C++
"""


class NormalizationTests(unittest.TestCase):
    def test_sections_split_on_headings(self):
        sections = normalize_resume_sections(RESUME)

        self.assertEqual(sections.summary, "Backend engineer focused on data platforms.")
        self.assertEqual(
            sections.experience_lines,
            ["Built Python ETL pipelines on AWS", "Reduced query latency by 40% with PostgreSQL tuning"],
        )
        self.assertEqual(sections.education_lines, ["BSc Computer Science"])
        self.assertEqual(sections.skill_lines, ["Python, SQL, Docker, Node.js, C++"])
        self.assertIn("jane@example.com", sections.other)
        self.assertTrue(sections.has_experience)
        self.assertTrue(sections.has_skills)

    def test_empty_text_has_no_sections(self):
        sections = normalize_resume_sections("")
        self.assertFalse(sections.has_experience)
        self.assertFalse(sections.has_education)
        self.assertEqual(sections.other, "")

    def test_heading_detection(self):
        self.assertTrue(is_section_heading("Work Experience:"))
        self.assertTrue(is_section_heading("PROJECTS"))
        self.assertFalse(is_section_heading("Built a payments service for 2M users"))

    def test_match_text_normalization(self):
        self.assertEqual(normalize_match_text("Node.js, React.JS & C++!"), "nodejs reactjs c++")
        self.assertEqual(skill_variations("Node.js"), ["nodejs", "node"])
        self.assertEqual(skill_variations("Machine Learning"), ["machine learning", "machinelearning"])

    def test_skill_matching_respects_token_boundaries(self):
        skills = [
            {"id": "c++", "name": "C++"},
            {"id": "go", "name": "Go"},
            {"id": "node", "name": "Node.js"},
        ]
        matched = match_skills_in_text(normalize_match_text(RESUME + " javascript google"), skills)
        self.assertEqual(sorted(skill["id"] for skill, _ in matched), ["c++", "node"])

    def test_confidence_levels(self):
        self.assertEqual(confidence_to_level(80), "advanced")
        self.assertEqual(confidence_to_level(95), "expert")
        self.assertEqual(confidence_to_level(10), "none")


if __name__ == "__main__":
    unittest.main()
