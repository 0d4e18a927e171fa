from __future__ import annotations

import re
from typing import Iterable

from roleready.core.config.scoring import get_scoring_value
from roleready.schemas.scoring import ATSScoreComponents, ATSScoreLevel, ATSScoreResult, BenchmarkInput

from .rounding import round_int

_SKILLS_SECTION_RE = re.compile(r"skills?[:|\s]|technical\s+skills|core\s+competencies", re.IGNORECASE)
_EXPERIENCE_SECTION_RE = re.compile(r"experience[:|\s]|work\s+history", re.IGNORECASE)
_EDUCATION_SECTION_RE = re.compile(r"education[:|\s]", re.IGNORECASE)
_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

_DEFAULT_WEIGHTS = {"relevance": 0.40, "context_depth": 0.25, "structure": 0.20, "impact": 0.15}


def _active(benchmarks: Iterable[BenchmarkInput]) -> list[BenchmarkInput]:
    return [benchmark for benchmark in benchmarks if benchmark.is_active]


def _word_count(text: str) -> int:
    return len(text.split())


def action_verbs() -> list[str]:
    return [str(verb).lower() for verb in get_scoring_value("ats.action_verbs", [])]


def keyword_relevance(resume_text: str, benchmarks: Iterable[BenchmarkInput]) -> tuple[int, list[str], list[str]]:
    """Weighted share of benchmark skill names present anywhere in the resume."""
    lowered = resume_text.lower()
    matched: list[str] = []
    missing: list[str] = []
    total_weight = 0.0
    matched_weight = 0.0

    for benchmark in _active(benchmarks):
        total_weight += benchmark.weight
        if benchmark.skill_name.lower() in lowered:
            matched.append(benchmark.skill_name)
            matched_weight += benchmark.weight
        else:
            missing.append(benchmark.skill_name)

    score = round_int(matched_weight / total_weight * 100) if total_weight > 0 else 0
    return score, matched, missing


def context_depth(resume_text: str, benchmarks: Iterable[BenchmarkInput], experience_text: str = "") -> int:
    per_skill = int(get_scoring_value("ats.context_depth.points_per_skill", 10))
    single = int(get_scoring_value("ats.context_depth.single_mention", 4))
    few = int(get_scoring_value("ats.context_depth.few_mentions", 7))
    many = int(get_scoring_value("ats.context_depth.many_mentions", 8))
    experience_bonus = int(get_scoring_value("ats.context_depth.experience_bonus", 2))

    lowered = resume_text.lower()
    experience_lowered = (experience_text or "").lower()
    active = _active(benchmarks)
    if not active:
        return 0

    earned = 0
    for benchmark in active:
        name = benchmark.skill_name.lower()
        occurrences = len(re.findall(re.escape(name), lowered)) if name else 0
        if occurrences == 0:
            continue
        if occurrences >= 4:
            points = many
        elif occurrences >= 2:
            points = few
        else:
            points = single
        if name in experience_lowered:
            points += experience_bonus
        earned += min(points, per_skill)

    max_points = len(active) * per_skill
    return min(round_int(earned / max_points * 100), 100)


def structure_score(
    resume_text: str,
    *,
    has_experience_section: bool = False,
    has_education_section: bool = False,
) -> int:
    points = get_scoring_value("ats.structure_points", {})
    min_words = int(get_scoring_value("ats.word_count.min", 300))
    max_words = int(get_scoring_value("ats.word_count.max", 1500))

    score = 0
    if _SKILLS_SECTION_RE.search(resume_text):
        score += int(points.get("skills_section", 20))
    if has_experience_section or _EXPERIENCE_SECTION_RE.search(resume_text):
        score += int(points.get("experience_section", 25))
    if has_education_section or _EDUCATION_SECTION_RE.search(resume_text):
        score += int(points.get("education_section", 15))
    if _EMAIL_RE.search(resume_text):
        score += int(points.get("contact_email", 20))
    words = _word_count(resume_text)
    if min_words <= words <= max_words:
        score += int(points.get("word_count", 20))
    return min(score, 100)


def count_action_verbs(resume_text: str) -> int:
    lowered = resume_text.lower()
    return sum(len(re.findall(rf"\b{re.escape(verb)}\b", lowered)) for verb in action_verbs())


def impact_from_density(density: float) -> int:
    if density >= 3:
        value = 85 + min((density - 3) * 5, 15)
    elif density >= 2:
        value = 60 + (density - 2) * 25
    elif density >= 1:
        value = 30 + (density - 1) * 30
    else:
        value = density * 30
    return min(round_int(value), 100)


def impact_score(resume_text: str) -> tuple[int, int]:
    words = _word_count(resume_text)
    verbs = count_action_verbs(resume_text)
    if words == 0:
        return 0, verbs
    density = verbs / words * 100
    return impact_from_density(density), verbs


def ats_score_level(score: float) -> ATSScoreLevel:
    if score >= float(get_scoring_value("ats.levels.excellent", 80)):
        return "excellent"
    if score >= float(get_scoring_value("ats.levels.good", 60)):
        return "good"
    if score >= float(get_scoring_value("ats.levels.fair", 40)):
        return "fair"
    return "poor"


def generate_suggestions(components: ATSScoreComponents, missing_keywords: list[str]) -> list[str]:
    thresholds = get_scoring_value("ats.suggestion_thresholds", {})
    max_missing = int(get_scoring_value("ats.max_missing_keyword_suggestions", 5))
    suggestions: list[str] = []

    if components.relevance < float(thresholds.get("relevance", 60)):
        if missing_keywords:
            top = ", ".join(missing_keywords[:max_missing])
            suggestions.append(f"Add missing required skills to your resume: {top}")
        suggestions.append("Ensure all key skills from the job description appear in your resume")

    if components.context_depth < float(thresholds.get("context_depth", 60)):
        suggestions.append("Expand project descriptions to provide more context for your skills")
        suggestions.append("Include specific examples of how you used each skill in your experience")

    if components.structure < float(thresholds.get("structure", 60)):
        suggestions.append("Add clear section headers: Skills, Experience, Education")
        suggestions.append("Ensure your resume is between 300-1500 words for optimal length")
        suggestions.append("Include contact information with a professional email address")

    if components.impact < float(thresholds.get("impact", 50)):
        suggestions.append("Use strong action verbs: built, developed, implemented, optimized")
        suggestions.append('Quantify achievements with measurable results (e.g., "Reduced load time by 40%")')
        suggestions.append("Focus on impact and outcomes rather than just responsibilities")

    component_sum = components.relevance + components.context_depth + components.structure + components.impact
    if component_sum < float(thresholds.get("component_sum", 200)):
        suggestions.append("Review the job requirements and align your resume content accordingly")

    return suggestions


def calculate_ats_score(
    resume_text: str,
    benchmarks: Iterable[BenchmarkInput],
    *,
    experience_text: str = "",
    has_experience_section: bool = False,
    has_education_section: bool = False,
) -> ATSScoreResult:
    """Score a resume against a role's benchmark skills on four weighted components."""
    benchmark_list = list(benchmarks)
    text = resume_text or ""
    weights = get_scoring_value("ats.weights", _DEFAULT_WEIGHTS)

    relevance, matched, missing = keyword_relevance(text, benchmark_list)
    depth = context_depth(text, benchmark_list, experience_text)
    structure = structure_score(
        text,
        has_experience_section=has_experience_section,
        has_education_section=has_education_section,
    )
    impact, verb_count = impact_score(text)

    components = ATSScoreComponents(
        relevance=relevance,
        context_depth=depth,
        structure=structure,
        impact=impact,
    )
    total = round_int(
        relevance * float(weights.get("relevance", 0.40))
        + depth * float(weights.get("context_depth", 0.25))
        + structure * float(weights.get("structure", 0.20))
        + impact * float(weights.get("impact", 0.15))
    )
    return ATSScoreResult(
        total_score=total,
        level=ats_score_level(total),
        components=components,
        matched_keywords=matched,
        missing_keywords=missing,
        suggestions=generate_suggestions(components, missing),
        word_count=_word_count(text),
        action_verb_count=verb_count,
    )
