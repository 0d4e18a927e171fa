from __future__ import annotations

import logging
from collections import Counter

from roleready.core.config.scoring import get_scoring_value
from roleready.schemas.scoring import (
    GeneratedRoadmap,
    PriorityBucket,
    PriorityRule,
    ReadinessResult,
    RoadmapEdgeCase,
    RoadmapStep,
    SkillBreakdownItem,
    StepCategory,
    StepType,
)

from .readiness import level_points, level_rank
from .rounding import round_int

logger = logging.getLogger(__name__)

_LEVEL_ORDER = ("none", "beginner", "intermediate", "advanced", "expert")
_BUCKET_ORDER: dict[str, int] = {"CRITICAL": 0, "HIGH": 1, "MEDIUM": 2, "LOW": 3}
_DEFAULT_HOURS = {
    "none_to_beginner": 20,
    "beginner_to_intermediate": 40,
    "intermediate_to_advanced": 80,
    "advanced_to_expert": 160,
}

_ACTION_TEMPLATES: dict[str, str] = {
    "learn_new": "Start learning {skill} fundamentals and build up to {target} level proficiency.",
    "improve": "Deepen your {skill} knowledge through practice and study to reach {target} level.",
    "validate": "Request mentor validation for your {skill} skill to increase your readiness score.",
}


def classify_step(item: SkillBreakdownItem) -> tuple[PriorityRule, PriorityBucket, StepCategory]:
    """Apply the fixed rule table; the first matching rule wins."""
    required = item.importance == "required"
    if required and not item.meets_requirement:
        return "RULE_1_REQUIRED_MISSING", "CRITICAL", "required_gap"
    if item.validation_status == "rejected":
        return "RULE_2_REJECTED", "HIGH", "rejected"
    if required and not item.is_validated:
        return "RULE_3_UNVALIDATED_REQUIRED", "MEDIUM", "strengthen"
    return "RULE_4_OPTIONAL_MISSING", "LOW", "optional_gap"


def _step_type(item: SkillBreakdownItem) -> StepType | None:
    if item.is_missing or item.user_level == "none":
        return "learn_new"
    if not item.meets_requirement:
        return "improve"
    if not item.is_validated:
        return "validate"
    return None


def estimate_hours(current_level: str, target_level: str) -> int:
    table = get_scoring_value("roadmap.hours_per_level", _DEFAULT_HOURS)
    default_hours = int(get_scoring_value("roadmap.default_hours", 40))
    start = _LEVEL_ORDER.index(current_level)
    end = _LEVEL_ORDER.index(target_level)
    hours = 0
    for index in range(start, end):
        key = f"{_LEVEL_ORDER[index]}_to_{_LEVEL_ORDER[index + 1]}"
        hours += int(table.get(key, default_hours))
    return hours


def learning_resources(skill_name: str, step_type: StepType) -> list[str]:
    resources = get_scoring_value("roadmap.resources", {})
    if step_type == "validate":
        return list(resources.get("validate", []))

    lowered = skill_name.lower()
    for group in ("soft_skills", "programming"):
        entry = resources.get(group) or {}
        if any(keyword in lowered for keyword in entry.get("keywords", [])):
            return list(entry.get("items", []))
    return list(resources.get("default", []))


def _build_step(item: SkillBreakdownItem, step_type: StepType) -> RoadmapStep:
    required_bonus = float(get_scoring_value("roadmap.priority.required_bonus", 100))
    per_level = float(get_scoring_value("roadmap.priority.per_level", 10))
    unvalidated_bonus = float(get_scoring_value("roadmap.priority.unvalidated_bonus", 5))
    validate_hours = int(get_scoring_value("roadmap.validate_hours", 2))

    target_level = item.user_level if step_type == "validate" else item.required_level
    levels = max(level_rank(target_level) - level_rank(item.user_level), 0)
    unvalidated = not item.is_missing and not item.is_validated and item.source != "validated"

    priority = item.weight + levels * per_level
    if item.importance == "required":
        priority += required_bonus
    if unvalidated:
        priority += unvalidated_bonus

    rule, bucket, category = classify_step(item)
    hours = validate_hours if step_type == "validate" else estimate_hours(item.user_level, target_level)
    return RoadmapStep(
        step_id="",
        skill_id=item.skill_id,
        skill_name=item.skill_name,
        step_type=step_type,
        current_level=item.user_level,
        target_level=target_level,
        importance=item.importance,
        weight=item.weight,
        priority=priority,
        rule=rule,
        priority_level=bucket,
        category=category,
        validation_status=item.validation_status,
        estimated_hours=hours,
        action_description=_ACTION_TEMPLATES[step_type].format(skill=item.skill_name, target=target_level),
        resources=learning_resources(item.skill_name, step_type),
    )


def _projected_readiness(result: ReadinessResult, steps: list[RoadmapStep]) -> float:
    if not steps:
        return result.percentage
    if result.max_possible_score <= 0:
        return 100.0

    targets = {step.skill_id: step.target_level for step in steps}
    projected_total = 0.0
    for item in result.breakdown:
        if item.skill_id in targets:
            projected_total += level_points(targets[item.skill_id]) * item.weight
        else:
            projected_total += item.weighted_score
    return float(min(round_int(projected_total / result.max_possible_score * 100), 100))


def _edge_case(result: ReadinessResult, steps: list[RoadmapStep]) -> RoadmapEdgeCase:
    pending = sum(1 for item in result.breakdown if item.validation_status == "pending")
    unvalidated_required = sum(1 for step in steps if step.rule == "RULE_3_UNVALIDATED_REQUIRED")
    only_optional = bool(steps) and all(step.importance == "optional" for step in steps)

    if not steps:
        message = f"You meet every benchmark for {result.role_name}. Keep your skills current."
        message_type = "success"
    elif only_optional:
        message = "All required skills are covered. The remaining steps are optional improvements."
        message_type = "info"
    elif pending and unvalidated_required == len(steps):
        message = f"{pending} skill validation(s) are pending mentor review."
        message_type = "info"
    else:
        message = f"Complete {len(steps)} step(s) to close your gaps for {result.role_name}."
        message_type = "action"

    return RoadmapEdgeCase(
        is_fully_ready=not steps,
        only_optional_gaps=only_optional,
        has_pending_validation=pending > 0,
        pending_validation_count=pending,
        has_unvalidated_required=unvalidated_required > 0,
        unvalidated_required_count=unvalidated_required,
        message=message,
        message_type=message_type,
    )


def generate_roadmap(result: ReadinessResult, max_steps: int | None = None) -> GeneratedRoadmap:
    """Turn a readiness breakdown into an ordered list of gap-closing steps.

    Steps are grouped by rule bucket (CRITICAL, HIGH, MEDIUM, LOW) and ordered by
    numeric priority inside each bucket.
    """
    indexed: list[tuple[int, RoadmapStep]] = []
    for index, item in enumerate(result.breakdown):
        step_type = _step_type(item)
        if step_type is None:
            continue
        indexed.append((index, _build_step(item, step_type)))

    indexed.sort(key=lambda pair: (_BUCKET_ORDER[pair[1].priority_level], -pair[1].priority, pair[0]))
    steps = [step for _, step in indexed]
    if max_steps is not None and max_steps > 0:
        steps = steps[:max_steps]
    for position, step in enumerate(steps, start=1):
        step.step_id = f"s{position}"

    projected = _projected_readiness(result, steps)
    total_hours = sum(step.estimated_hours for step in steps)
    current = result.percentage
    logger.info(
        "roadmap_generated user=%s role=%s steps=%s projected=%s",
        result.user_id,
        result.role_id,
        len(steps),
        projected,
    )
    return GeneratedRoadmap(
        user_id=result.user_id,
        role_id=result.role_id,
        role_name=result.role_name,
        title=f"Roadmap to {result.role_name}",
        description=(
            f"Your personalized learning path to become a {result.role_name}. "
            f"Complete these {len(steps)} steps to improve your readiness "
            f"from {_format_percent(current)}% to an estimated {_format_percent(projected)}%."
        ),
        steps=steps,
        total_steps=len(steps),
        total_estimated_hours=total_hours,
        current_readiness=current,
        projected_readiness=projected,
        priority_breakdown=dict(Counter(step.priority_level for step in steps)),
        category_breakdown=dict(Counter(step.category for step in steps)),
        rule_breakdown=dict(Counter(step.rule for step in steps)),
        edge_case=_edge_case(result, steps),
    )


def _format_percent(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
