from __future__ import annotations

import logging
import re
import sqlite3
from pathlib import Path
from typing import Any

import yaml

from roleready.activity.db import log_activity
from roleready.db import catalog as catalog_db
from roleready.schemas.catalog import (
    BenchmarkCreateRequest,
    BenchmarkOut,
    BenchmarkUpdateRequest,
    RoleCreateRequest,
    RoleDetail,
    RoleSummary,
    RoleUpdateRequest,
    SeedReport,
    SkillCreateRequest,
    SkillOut,
    SkillUpdateRequest,
)
from roleready.schemas.common import SKILL_LEVELS
from roleready.schemas.scoring import BenchmarkInput
from roleready.taxonomy import TaxonomyProvider, get_default_taxonomy_provider

from .errors import ConflictError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)

_STRIP_RE = re.compile(r"[^a-z0-9\s+#._-]")
_SPACE_RE = re.compile(r"\s+")
_SEED_IMPORTANCE = {
    "critical": "required",
    "important": "required",
    "required": "required",
    "nice-to-have": "optional",
    "optional": "optional",
}
_SKILL_DOMAINS = {"technical", "soft-skills", "tools", "frameworks", "languages", "databases", "cloud", "other"}


class CatalogError(ServiceError):
    pass


def normalize_skill_name(name: str) -> str:
    lowered = (name or "").lower().strip()
    return _SPACE_RE.sub(" ", _STRIP_RE.sub("", lowered)).strip()


# Skills


def create_skill(payload: SkillCreateRequest, *, actor_id: str | None = None) -> SkillOut:
    normalized = normalize_skill_name(payload.name)
    if not normalized:
        raise CatalogError("Skill name must contain letters or digits")
    if catalog_db.get_skill_by_normalized_name(normalized):
        raise ConflictError(f"Skill '{payload.name}' already exists")
    try:
        row = catalog_db.create_skill(
            name=payload.name.strip(),
            normalized_name=normalized,
            domain=payload.domain,
            description=payload.description,
        )
    except sqlite3.IntegrityError as exc:
        raise ConflictError(f"Skill '{payload.name}' already exists") from exc
    log_activity(user_id=actor_id, action="skill_created", entity_type="skill", entity_id=row["id"])
    return SkillOut(**row)


def get_skill(skill_id: str) -> SkillOut:
    row = catalog_db.get_skill(skill_id)
    if not row:
        raise NotFoundError("Skill not found")
    return SkillOut(**row)


def find_skill_by_name(name: str, taxonomy: TaxonomyProvider | None = None) -> dict[str, Any] | None:
    """Catalog skill by name, falling back to a known alias."""
    skill = catalog_db.get_skill_by_normalized_name(normalize_skill_name(name))
    if skill:
        return skill
    canonical = (taxonomy or get_default_taxonomy_provider()).canonical_name(name)
    if canonical:
        return catalog_db.get_skill_by_normalized_name(normalize_skill_name(canonical))
    return None


def list_skills(
    *,
    search: str | None = None,
    domain: str | None = None,
    include_inactive: bool = False,
    limit: int = 500,
    offset: int = 0,
) -> list[SkillOut]:
    rows = catalog_db.list_skills(
        search=normalize_skill_name(search) if search else None,
        domain=domain,
        include_inactive=include_inactive,
        limit=limit,
        offset=offset,
    )
    return [SkillOut(**row) for row in rows]


def update_skill(skill_id: str, payload: SkillUpdateRequest, *, actor_id: str | None = None) -> SkillOut:
    if not catalog_db.get_skill(skill_id):
        raise NotFoundError("Skill not found")
    fields = payload.model_dump(exclude_none=True)
    if "name" in fields:
        normalized = normalize_skill_name(fields["name"])
        existing = catalog_db.get_skill_by_normalized_name(normalized)
        if existing and existing["id"] != skill_id:
            raise ConflictError(f"Skill '{fields['name']}' already exists")
        fields["name"] = fields["name"].strip()
        fields["normalized_name"] = normalized
    row = catalog_db.update_skill(skill_id, **fields)
    log_activity(user_id=actor_id, action="skill_updated", entity_type="skill", entity_id=skill_id, details=fields)
    return SkillOut(**row)  # type: ignore[arg-type]


def deactivate_skill(skill_id: str, *, actor_id: str | None = None) -> SkillOut:
    if not catalog_db.get_skill(skill_id):
        raise NotFoundError("Skill not found")
    row = catalog_db.update_skill(skill_id, is_active=False)
    log_activity(user_id=actor_id, action="skill_deactivated", entity_type="skill", entity_id=skill_id)
    return SkillOut(**row)  # type: ignore[arg-type]


# Roles


def _role_summary_fields(role: dict[str, Any], benchmarks: list[dict[str, Any]]) -> dict[str, Any]:
    active = [item for item in benchmarks if item["is_active"]]
    total_weight = sum(float(item["weight"]) for item in active)
    return {
        **role,
        "skill_count": len(active),
        "required_skill_count": sum(1 for item in active if item["importance"] == "required"),
        "total_weight": total_weight,
        "weights_sum_to_100": abs(total_weight - 100) < 1e-6,
    }


def _role_detail(role: dict[str, Any]) -> RoleDetail:
    benchmarks = catalog_db.list_benchmarks(role["id"])
    return RoleDetail(
        **_role_summary_fields(role, benchmarks),
        benchmarks=[BenchmarkOut(**item) for item in benchmarks],
    )


def _require_role(role_id: str) -> dict[str, Any]:
    role = catalog_db.get_role(role_id)
    if not role:
        raise NotFoundError("Role not found")
    return role


def create_role(payload: RoleCreateRequest, *, actor_id: str | None = None) -> RoleDetail:
    name = payload.name.strip()
    if catalog_db.get_role_by_name(name):
        raise ConflictError(f"Role '{name}' already exists")
    for benchmark in payload.benchmarks:
        _require_active_skill(benchmark.skill_id)
    try:
        role = catalog_db.create_role(
            name=name,
            description=payload.description,
            color_class=payload.color_class,
            created_by=actor_id,
        )
    except sqlite3.IntegrityError as exc:
        raise ConflictError(f"Role '{name}' already exists") from exc
    for benchmark in payload.benchmarks:
        catalog_db.upsert_benchmark(role_id=role["id"], **benchmark.model_dump())
    log_activity(user_id=actor_id, action="role_created", entity_type="role", entity_id=role["id"])
    return _role_detail(role)


def get_role(role_id: str, *, include_inactive: bool = False) -> RoleDetail:
    role = _require_role(role_id)
    if not role["is_active"] and not include_inactive:
        raise NotFoundError("Role not found")
    return _role_detail(role)


def list_roles(*, include_inactive: bool = False, search: str | None = None) -> list[RoleSummary]:
    summaries: list[RoleSummary] = []
    for role in catalog_db.list_roles(include_inactive=include_inactive, search=search):
        benchmarks = catalog_db.list_benchmarks(role["id"])
        summaries.append(RoleSummary(**_role_summary_fields(role, benchmarks)))
    return summaries


def update_role(role_id: str, payload: RoleUpdateRequest, *, actor_id: str | None = None) -> RoleDetail:
    _require_role(role_id)
    fields = payload.model_dump(exclude_none=True)
    if "name" in fields:
        fields["name"] = fields["name"].strip()
        existing = catalog_db.get_role_by_name(fields["name"])
        if existing and existing["id"] != role_id:
            raise ConflictError(f"Role '{fields['name']}' already exists")
    role = catalog_db.update_role(role_id, **fields)
    log_activity(user_id=actor_id, action="role_updated", entity_type="role", entity_id=role_id, details=fields)
    return _role_detail(role)  # type: ignore[arg-type]


def deactivate_role(role_id: str, *, actor_id: str | None = None) -> RoleDetail:
    _require_role(role_id)
    role = catalog_db.update_role(role_id, is_active=False)
    log_activity(user_id=actor_id, action="role_deactivated", entity_type="role", entity_id=role_id)
    return _role_detail(role)  # type: ignore[arg-type]


# Benchmarks


def _require_active_skill(skill_id: str) -> dict[str, Any]:
    skill = catalog_db.get_skill(skill_id)
    if not skill:
        raise NotFoundError("Skill not found")
    if not skill["is_active"]:
        raise CatalogError("Cannot use an inactive skill as a benchmark")
    return skill


def add_benchmark(role_id: str, payload: BenchmarkCreateRequest, *, actor_id: str | None = None) -> RoleDetail:
    """Add a benchmark, or replace the existing one for the same skill."""
    role = _require_role(role_id)
    _require_active_skill(payload.skill_id)
    catalog_db.upsert_benchmark(role_id=role_id, **payload.model_dump())
    log_activity(
        user_id=actor_id,
        action="benchmark_upserted",
        entity_type="role",
        entity_id=role_id,
        details={"skill_id": payload.skill_id, "weight": payload.weight},
    )
    return _role_detail(role)


def update_benchmark(
    role_id: str,
    skill_id: str,
    payload: BenchmarkUpdateRequest,
    *,
    actor_id: str | None = None,
) -> RoleDetail:
    role = _require_role(role_id)
    if not catalog_db.get_benchmark(role_id, skill_id):
        raise NotFoundError("Benchmark not found for this role")
    fields = payload.model_dump(exclude_none=True)
    catalog_db.update_benchmark(role_id, skill_id, **fields)
    log_activity(user_id=actor_id, action="benchmark_updated", entity_type="role", entity_id=role_id, details=fields)
    return _role_detail(role)


def remove_benchmark(role_id: str, skill_id: str, *, actor_id: str | None = None) -> RoleDetail:
    role = _require_role(role_id)
    if not catalog_db.delete_benchmark(role_id, skill_id):
        raise NotFoundError("Benchmark not found for this role")
    log_activity(
        user_id=actor_id,
        action="benchmark_removed",
        entity_type="role",
        entity_id=role_id,
        details={"skill_id": skill_id},
    )
    return _role_detail(role)


def get_benchmark_inputs(role_id: str) -> list[BenchmarkInput]:
    """Active benchmarks whose skill still exists and is active, ready for scoring."""
    inputs: list[BenchmarkInput] = []
    for item in catalog_db.list_benchmarks(role_id, active_only=True):
        if not item["skill_is_active"]:
            continue
        inputs.append(
            BenchmarkInput(
                skill_id=item["skill_id"],
                skill_name=item["skill_name"],
                importance=item["importance"],
                weight=float(item["weight"]),
                required_level=item["required_level"],
                is_active=True,
            )
        )
    return inputs


# Seeding


def _load_seed_file(path: str | Path) -> dict[str, Any]:
    seed_path = Path(path)
    if not seed_path.exists():
        raise CatalogError(f"Seed catalog not found at '{seed_path}'", status_code=500)
    try:
        parsed = yaml.safe_load(seed_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise CatalogError(f"Invalid YAML in seed catalog '{seed_path}': {exc}", status_code=500) from exc
    if not isinstance(parsed, dict):
        raise CatalogError(f"Invalid seed catalog '{seed_path}': expected a top-level mapping.", status_code=500)
    return parsed


def seed_catalog(path: str | Path) -> SeedReport:
    """Create missing skills and roles from a YAML seed file.

    Existing skills and roles are left untouched, so running the seed twice is a no-op.
    Roles whose benchmark weights do not add up to 100 are skipped with a warning.
    """
    data = _load_seed_file(path)
    report = SeedReport()
    skill_ids: dict[str, str] = {}

    for entry in data.get("skills") or []:
        name = str(entry.get("name", "")).strip()
        normalized = normalize_skill_name(name)
        if not normalized:
            report.warnings.append(f"Skipped skill with empty name: {entry!r}")
            continue
        existing = catalog_db.get_skill_by_normalized_name(normalized)
        if existing:
            skill_ids[normalized] = existing["id"]
            continue
        domain = str(entry.get("domain") or "technical")
        if domain not in _SKILL_DOMAINS:
            domain = "other"
        row = catalog_db.create_skill(
            name=name,
            normalized_name=normalized,
            domain=domain,
            description=entry.get("description"),
        )
        skill_ids[normalized] = row["id"]
        report.skills_created += 1

    for entry in data.get("roles") or []:
        name = str(entry.get("name", "")).strip()
        if not name:
            report.warnings.append("Skipped role with empty name")
            continue
        if catalog_db.get_role_by_name(name):
            continue

        benchmarks: list[dict[str, Any]] = []
        for item in entry.get("benchmarks") or []:
            normalized = normalize_skill_name(str(item.get("skill", "")))
            skill_id = skill_ids.get(normalized)
            if skill_id is None:
                existing = catalog_db.get_skill_by_normalized_name(normalized)
                skill_id = existing["id"] if existing else None
            if skill_id is None:
                report.warnings.append(f"{name}: unknown skill '{item.get('skill')}'")
                continue
            level = str(item.get("required_level") or "beginner")
            benchmarks.append(
                {
                    "skill_id": skill_id,
                    "importance": _SEED_IMPORTANCE.get(str(item.get("importance") or "optional"), "optional"),
                    "weight": float(item.get("weight") or 0),
                    "required_level": level if level in SKILL_LEVELS else "beginner",
                }
            )

        total_weight = sum(benchmark["weight"] for benchmark in benchmarks)
        if abs(total_weight - 100) > 1e-6:
            report.warnings.append(f"{name}: benchmark weights sum to {total_weight:g}, expected 100")
            continue

        role = catalog_db.create_role(
            name=name,
            description=entry.get("description"),
            color_class=entry.get("color_class"),
            created_by=None,
        )
        report.roles_created += 1
        for benchmark in benchmarks:
            catalog_db.upsert_benchmark(role_id=role["id"], **benchmark)
            report.benchmarks_upserted += 1

    for warning in report.warnings:
        logger.warning("seed_catalog_warning %s", warning)
    logger.info(
        "seed_catalog_done skills=%s roles=%s benchmarks=%s",
        report.skills_created,
        report.roles_created,
        report.benchmarks_upserted,
    )
    return report


def catalog_is_empty() -> bool:
    return catalog_db.count_skills() == 0
