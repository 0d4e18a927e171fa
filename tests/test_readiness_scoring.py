import unittest

from roleready.schemas.scoring import BenchmarkInput, UserSkillInput
from roleready.scoring.readiness import (
    calculate_readiness,
    get_skill_gaps,
    readiness_label,
    validation_multiplier,
)
from roleready.scoring.rounding import round_half_up, round_int


def _benchmarks():
    return [
        BenchmarkInput(skill_id="js", skill_name="JavaScript", importance="required", weight=60, required_level="advanced"),
        BenchmarkInput(skill_id="git", skill_name="Git", importance="optional", weight=40, required_level="beginner"),
    ]


def _calculate(user_skills, benchmarks=None):
    return calculate_readiness(
        user_id="u1",
        role_id="r1",
        role_name="Frontend Developer",
        benchmarks=benchmarks if benchmarks is not None else _benchmarks(),
        user_skills=user_skills,
    )


class RoundingTests(unittest.TestCase):
    def test_halves_round_up(self):
        self.assertEqual(round_half_up(2.5), 3.0)
        self.assertEqual(round_half_up(0.05, 1), 0.1)
        self.assertEqual(round_half_up(36.04, 1), 36.0)
        self.assertEqual(round_int(62.5), 63)
        self.assertEqual(round_int(62.49), 62)


class ReadinessScoringTests(unittest.TestCase):
    def test_self_reported_skill_is_discounted(self):
        result = _calculate([UserSkillInput(skill_id="js", level="advanced", source="self")])

        self.assertEqual(result.total_score, 3600.0)
        self.assertEqual(result.max_possible_score, 10000.0)
        self.assertEqual(result.percentage, 36.0)
        self.assertEqual(result.label, "not_ready")
        self.assertEqual(result.skills_met, 1)
        self.assertEqual(result.skills_missing, 1)
        self.assertEqual(result.required_skills_met, 1)
        self.assertTrue(result.has_all_required)

        js = result.breakdown[0]
        self.assertEqual(js.level_points, 75)
        self.assertAlmostEqual(js.validation_multiplier, 0.8)
        self.assertFalse(js.is_validated)
        self.assertTrue(result.breakdown[1].is_missing)

    def test_held_skill_below_required_level_counts_as_met(self):
        result = _calculate([UserSkillInput(skill_id="js", level="beginner", source="self")])

        self.assertEqual(result.skills_met, 1)
        self.assertEqual(result.skills_missing, 1)
        self.assertEqual(result.skills_met + result.skills_missing, result.total_benchmarks)
        self.assertEqual(result.required_skills_met, 0)
        self.assertFalse(result.has_all_required)

    def test_validated_skill_gets_full_credit(self):
        result = _calculate(
            [UserSkillInput(skill_id="js", level="advanced", source="validated", validation_status="validated")]
        )
        self.assertEqual(result.percentage, 45.0)
        self.assertEqual(result.label, "developing")
        self.assertTrue(result.breakdown[0].is_validated)

    def test_validation_status_overrides_source_multiplier(self):
        skill = UserSkillInput(skill_id="js", level="beginner", source="resume", validation_status="validated")
        self.assertEqual(validation_multiplier(skill), 1.0)
        self.assertAlmostEqual(validation_multiplier(UserSkillInput(skill_id="js", source="resume")), 0.7)
        self.assertEqual(validation_multiplier(None), 0.0)

    def test_inactive_benchmarks_are_ignored(self):
        benchmarks = _benchmarks()
        benchmarks[1] = benchmarks[1].model_copy(update={"is_active": False})
        result = _calculate([], benchmarks)
        self.assertEqual(result.total_benchmarks, 1)
        self.assertEqual(result.max_possible_score, 6000.0)

    def test_no_benchmarks_scores_zero(self):
        result = _calculate([], [])
        self.assertEqual(result.percentage, 0.0)
        self.assertEqual(result.label, "not_ready")
        self.assertEqual(result.total_benchmarks, 0)
        self.assertTrue(result.has_all_required)

    def test_labels_follow_thresholds(self):
        self.assertEqual(readiness_label(80), "ready")
        self.assertEqual(readiness_label(79.9), "almost_ready")
        self.assertEqual(readiness_label(60), "almost_ready")
        self.assertEqual(readiness_label(40), "developing")
        self.assertEqual(readiness_label(39.9), "not_ready")

    def test_gaps_sorted_by_priority(self):
        result = _calculate([UserSkillInput(skill_id="js", level="beginner")])
        gaps = get_skill_gaps(result)

        self.assertEqual([gap.skill_id for gap in gaps], ["js", "git"])
        self.assertEqual(gaps[0].levels_needed, 2)
        self.assertEqual(gaps[0].priority, 180)
        self.assertFalse(gaps[0].is_missing)
        self.assertEqual(gaps[1].priority, 50)
        self.assertTrue(gaps[1].is_missing)


if __name__ == "__main__":
    unittest.main()
