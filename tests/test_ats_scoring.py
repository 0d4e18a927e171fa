import unittest

from roleready.schemas.scoring import ATSScoreComponents, BenchmarkInput
from roleready.scoring.ats import (
    ats_score_level,
    calculate_ats_score,
    context_depth,
    count_action_verbs,
    generate_suggestions,
    impact_from_density,
    keyword_relevance,
    structure_score,
)

BENCHMARKS = [
    BenchmarkInput(skill_id="py", skill_name="Python", importance="required", weight=60, required_level="advanced"),
    BenchmarkInput(skill_id="sql", skill_name="SQL", importance="required", weight=20, required_level="intermediate"),
    BenchmarkInput(skill_id="docker", skill_name="Docker", importance="optional", weight=20, required_level="beginner"),
]


class ATSScoringTests(unittest.TestCase):
    def test_keyword_relevance_is_weighted(self):
        score, matched, missing = keyword_relevance("I write python and sql every day", BENCHMARKS)
        self.assertEqual(score, 80)
        self.assertEqual(matched, ["Python", "SQL"])
        self.assertEqual(missing, ["Docker"])

    def test_context_depth_rewards_repetition_and_experience(self):
        single = [BENCHMARKS[0]]
        self.assertEqual(context_depth("python", single), 40)
        self.assertEqual(context_depth("python python", single), 70)
        self.assertEqual(context_depth("python python", single, experience_text="Built python services"), 90)
        self.assertEqual(context_depth("python " * 4, single, experience_text="python"), 100)
        self.assertEqual(context_depth("anything", []), 0)

    def test_structure_score_counts_sections_and_contact(self):
        text = "Skills: Python\nExperience: Acme\nEducation: BSc\njane@example.com"
        self.assertEqual(structure_score(text), 80)
        self.assertEqual(structure_score("nothing here"), 0)
        self.assertEqual(structure_score("nothing here", has_experience_section=True), 25)

    def test_impact_density_curve(self):
        self.assertEqual(impact_from_density(0), 0)
        self.assertEqual(impact_from_density(1), 30)
        self.assertEqual(impact_from_density(2), 60)
        self.assertEqual(impact_from_density(2.5), 73)
        self.assertEqual(impact_from_density(3), 85)
        self.assertEqual(impact_from_density(10), 100)

    def test_action_verbs_match_whole_words(self):
        self.assertEqual(count_action_verbs("Built and led a team; rebuilt nothing"), 2)

    def test_levels(self):
        self.assertEqual(ats_score_level(80), "excellent")
        self.assertEqual(ats_score_level(79), "good")
        self.assertEqual(ats_score_level(40), "fair")
        self.assertEqual(ats_score_level(39), "poor")

    def test_low_components_produce_suggestions(self):
        components = ATSScoreComponents(relevance=0, context_depth=0, structure=0, impact=0)
        suggestions = generate_suggestions(components, ["Docker", "SQL"])
        self.assertEqual(suggestions[0], "Add missing required skills to your resume: Docker, SQL")
        self.assertIn("Review the job requirements and align your resume content accordingly", suggestions)

        strong = ATSScoreComponents(relevance=90, context_depth=90, structure=90, impact=90)
        self.assertEqual(generate_suggestions(strong, []), [])

    def test_full_score_is_weighted_sum(self):
        text = "Skills: Python, SQL\nExperience\nBuilt Python ETL jobs and optimized SQL queries.\njane@example.com"
        result = calculate_ats_score(text, BENCHMARKS, has_experience_section=True)
        expected = round(
            result.components.relevance * 0.40
            + result.components.context_depth * 0.25
            + result.components.structure * 0.20
            + result.components.impact * 0.15
        )
        self.assertAlmostEqual(result.total_score, expected, delta=1)
        self.assertEqual(result.components.relevance, 80)
        self.assertEqual(result.missing_keywords, ["Docker"])
        self.assertEqual(result.action_verb_count, 2)
        self.assertEqual(result.word_count, len(text.split()))

    def test_empty_resume(self):
        result = calculate_ats_score("", BENCHMARKS)
        self.assertEqual(result.components.impact, 0)
        self.assertEqual(result.word_count, 0)
        self.assertEqual(result.level, "poor")


if __name__ == "__main__":
    unittest.main()
