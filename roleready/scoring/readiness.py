from __future__ import annotations

import logging
from typing import Iterable

from roleready.core.config.scoring import get_scoring_value
from roleready.schemas.scoring import (
    BenchmarkInput,
    ReadinessLabel,
    ReadinessResult,
    SkillBreakdownItem,
    SkillGap,
    UserSkillInput,
)

from .rounding import round_half_up

logger = logging.getLogger(__name__)

_DEFAULT_LEVEL_POINTS = {"none": 0, "beginner": 25, "intermediate": 50, "advanced": 75, "expert": 100}
_DEFAULT_LEVEL_RANK = {"none": 0, "beginner": 1, "intermediate": 2, "advanced": 3, "expert": 4}
_DEFAULT_MULTIPLIERS = {"self": 0.8, "resume": 0.7, "validated": 1.0}


def level_points(level: str) -> int:
    table = get_scoring_value("readiness.level_points", _DEFAULT_LEVEL_POINTS)
    return int(table.get(level, 0))


def level_rank(level: str) -> int:
    table = get_scoring_value("readiness.level_rank", _DEFAULT_LEVEL_RANK)
    return int(table.get(level, 0))


def validation_multiplier(user_skill: UserSkillInput | None) -> float:
    if user_skill is None:
        return 0.0
    if user_skill.validation_status == "validated":
        return 1.0
    table = get_scoring_value("readiness.validation_multipliers", _DEFAULT_MULTIPLIERS)
    return float(table.get(user_skill.source, 0.0))


def readiness_label(percentage: float) -> ReadinessLabel:
    if percentage >= float(get_scoring_value("readiness.labels.ready", 80)):
        return "ready"
    if percentage >= float(get_scoring_value("readiness.labels.almost_ready", 60)):
        return "almost_ready"
    if percentage >= float(get_scoring_value("readiness.labels.developing", 40)):
        return "developing"
    return "not_ready"


def _score_benchmark(benchmark: BenchmarkInput, user_skill: UserSkillInput | None) -> SkillBreakdownItem:
    user_level = user_skill.level if user_skill else "none"
    points = level_points(user_level)
    multiplier = validation_multiplier(user_skill)
    raw_score = points * multiplier
    meets = level_rank(user_level) >= level_rank(benchmark.required_level)
    return SkillBreakdownItem(
        skill_id=benchmark.skill_id,
        skill_name=benchmark.skill_name,
        importance=benchmark.importance,
        weight=benchmark.weight,
        required_level=benchmark.required_level,
        user_level=user_level,
        source=user_skill.source if user_skill else None,
        validation_status=user_skill.validation_status if user_skill else None,
        is_validated=bool(user_skill and user_skill.validation_status == "validated"),
        level_points=points,
        validation_multiplier=multiplier,
        raw_score=raw_score,
        weighted_score=raw_score * benchmark.weight,
        max_possible_score=100 * benchmark.weight,
        meets_requirement=meets,
        is_missing=user_skill is None,
    )


def calculate_readiness(
    *,
    user_id: str,
    role_id: str,
    role_name: str,
    benchmarks: Iterable[BenchmarkInput],
    user_skills: Iterable[UserSkillInput],
) -> ReadinessResult:
    """Weighted readiness of a user's skills against a role's active benchmarks.

    Each benchmark contributes ``level points x validation multiplier x weight``
    out of a maximum of ``100 x weight``. A missing skill scores zero and counts
    as level ``none`` for the requirement check.
    """
    skills_by_id = {skill.skill_id: skill for skill in user_skills}
    breakdown: list[SkillBreakdownItem] = []
    total_score = 0.0
    max_score = 0.0
    skills_met = 0
    skills_missing = 0
    required_met = 0
    required_count = 0

    for benchmark in benchmarks:
        if not benchmark.is_active:
            continue
        item = _score_benchmark(benchmark, skills_by_id.get(benchmark.skill_id))
        breakdown.append(item)
        total_score += item.weighted_score
        max_score += item.max_possible_score

        if item.is_missing or item.user_level == "none":
            skills_missing += 1
        else:
            skills_met += 1
        if benchmark.importance == "required":
            required_count += 1
            if item.meets_requirement and not item.is_missing:
                required_met += 1

    percentage = round_half_up(total_score / max_score * 100, 1) if max_score > 0 else 0.0
    logger.debug(
        "readiness_calculated user=%s role=%s percentage=%s benchmarks=%s",
        user_id,
        role_id,
        percentage,
        len(breakdown),
    )
    return ReadinessResult(
        user_id=user_id,
        role_id=role_id,
        role_name=role_name,
        total_score=round_half_up(total_score, 1),
        max_possible_score=max_score,
        percentage=percentage,
        label=readiness_label(percentage),
        skills_met=skills_met,
        skills_missing=skills_missing,
        total_benchmarks=len(breakdown),
        required_skills_met=required_met,
        required_skills_count=required_count,
        has_all_required=required_met == required_count,
        breakdown=breakdown,
    )


def get_skill_gaps(result: ReadinessResult) -> list[SkillGap]:
    required_bonus = float(get_scoring_value("readiness.gap_priority.required_bonus", 100))
    per_level = float(get_scoring_value("readiness.gap_priority.per_level", 10))

    gaps: list[SkillGap] = []
    for item in result.breakdown:
        if item.meets_requirement:
            continue
        levels_needed = level_rank(item.required_level) - level_rank(item.user_level)
        priority = (required_bonus if item.importance == "required" else 0) + levels_needed * per_level + item.weight
        gaps.append(
            SkillGap(
                skill_id=item.skill_id,
                skill_name=item.skill_name,
                importance=item.importance,
                weight=item.weight,
                current_level=item.user_level,
                required_level=item.required_level,
                levels_needed=levels_needed,
                priority=priority,
                is_missing=item.is_missing,
            )
        )
    gaps.sort(key=lambda gap: gap.priority, reverse=True)
    return gaps
