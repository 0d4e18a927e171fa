from __future__ import annotations

from typing import Literal

SkillLevel = Literal["none", "beginner", "intermediate", "advanced", "expert"]
SkillSource = Literal["self", "resume", "validated"]
ValidationStatus = Literal["none", "pending", "validated", "rejected"]
Importance = Literal["required", "optional"]
UserRole = Literal["user", "mentor", "admin"]
SkillDomain = Literal[
    "technical",
    "soft-skills",
    "tools",
    "frameworks",
    "languages",
    "databases",
    "cloud",
    "other",
]
SnapshotTrigger = Literal["role_change", "skill_update", "validation", "manual"]
EvaluationType = Literal["readiness", "roadmap", "ats", "report"]
NotificationType = Literal["readiness_outdated", "mentor_validation", "roadmap_updated", "role_changed"]

SKILL_LEVELS: tuple[str, ...] = ("none", "beginner", "intermediate", "advanced", "expert")
EVALUATION_TYPES: tuple[str, ...] = ("readiness", "roadmap", "ats", "report")
