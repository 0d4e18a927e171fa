from __future__ import annotations

from pydantic import BaseModel, Field

from .utils import enumerate_lines, is_bullet_like, is_section_heading, normalize_line, strip_bullet_prefix

_SECTION_KEYS = {
    "summary": "summary",
    "objective": "summary",
    "profile": "summary",
    "professional summary": "summary",
    "experience": "experience",
    "work experience": "experience",
    "professional experience": "experience",
    "employment history": "experience",
    "work history": "experience",
    "projects": "experience",
    "skills": "skills",
    "technical skills": "skills",
    "core competencies": "skills",
    "education": "education",
    "certifications": "education",
}


class ResumeSections(BaseModel):
    summary: str = ""
    experience: str = ""
    education: str = ""
    skills: str = ""
    other: str = ""
    experience_lines: list[str] = Field(default_factory=list)
    education_lines: list[str] = Field(default_factory=list)
    skill_lines: list[str] = Field(default_factory=list)

    @property
    def has_experience(self) -> bool:
        return bool(self.experience_lines)

    @property
    def has_education(self) -> bool:
        return bool(self.education_lines)

    @property
    def has_skills(self) -> bool:
        return bool(self.skill_lines)


def _section_key(line: str) -> str:
    lowered = normalize_line(line).lower().rstrip(":").strip()
    return _SECTION_KEYS.get(lowered, "other")


def normalize_resume_sections(text: str) -> ResumeSections:
    """Split resume text into sections by heading lines.

    Lines before the first heading count as `other`. Bullet markers are stripped.
    """
    buckets: dict[str, list[str]] = {"summary": [], "experience": [], "education": [], "skills": [], "other": []}
    current = "other"
    for _line_no, raw_line in enumerate_lines(text or ""):
        stripped = normalize_line(raw_line)
        if not stripped:
            continue
        if is_section_heading(stripped):
            current = _section_key(stripped)
            continue
        cleaned = strip_bullet_prefix(stripped) if is_bullet_like(stripped) else stripped
        if cleaned:
            buckets[current].append(cleaned)

    return ResumeSections(
        summary="\n".join(buckets["summary"]),
        experience="\n".join(buckets["experience"]),
        education="\n".join(buckets["education"]),
        skills="\n".join(buckets["skills"]),
        other="\n".join(buckets["other"]),
        experience_lines=buckets["experience"],
        education_lines=buckets["education"],
        skill_lines=buckets["skills"],
    )
