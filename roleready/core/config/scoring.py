from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

_SCORING_CONFIG_CACHE: dict[str, Any] | None = None
_DEFAULT_SCORING_CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "scoring.yaml"
_REQUIRED_SECTIONS = ("readiness", "ats", "roadmap")
_SKILL_LEVELS = ("none", "beginner", "intermediate", "advanced", "expert")


class ScoringConfigError(RuntimeError):
    pass


def _scoring_config_path() -> Path:
    override = os.getenv("SCORING_CONFIG_PATH")
    return Path(override) if override else _DEFAULT_SCORING_CONFIG_PATH


def _validate(parsed: dict[str, Any], path: Path) -> None:
    missing = [section for section in _REQUIRED_SECTIONS if not isinstance(parsed.get(section), dict)]
    if missing:
        raise ScoringConfigError(f"Scoring config '{path}' is missing section(s): {', '.join(missing)}")

    readiness = parsed["readiness"]
    for table in ("level_points", "level_rank"):
        values = readiness.get(table)
        if values is None:
            continue
        unknown = set(values) - set(_SKILL_LEVELS)
        if unknown:
            raise ScoringConfigError(f"readiness.{table} has unknown level(s): {', '.join(sorted(unknown))}")

    weights = parsed["ats"].get("weights")
    if weights is not None:
        total = sum(float(value) for value in weights.values())
        if abs(total - 1.0) > 1e-6:
            raise ScoringConfigError(f"ats.weights must sum to 1.0, got {total:g}")


def get_scoring_config() -> dict[str, Any]:
    """Load config/scoring.yaml (or $SCORING_CONFIG_PATH) once and cache it."""
    global _SCORING_CONFIG_CACHE

    if _SCORING_CONFIG_CACHE is not None:
        return _SCORING_CONFIG_CACHE

    path = _scoring_config_path()
    if not path.exists():
        raise ScoringConfigError(f"Scoring config not found at '{path}'. Expected file: config/scoring.yaml")

    try:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ScoringConfigError(f"Failed to read scoring config '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise ScoringConfigError(f"Invalid YAML in scoring config '{path}': {exc}") from exc

    if not isinstance(parsed, dict):
        raise ScoringConfigError(f"Invalid scoring config '{path}': expected a top-level mapping.")
    _validate(parsed, path)

    _SCORING_CONFIG_CACHE = parsed
    return _SCORING_CONFIG_CACHE


def get_scoring_value(path: str, default: Any = None) -> Any:
    """Look up a dotted key such as 'ats.weights.relevance'."""
    if not path:
        return default

    current: Any = get_scoring_config()
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return default
        current = current[key]
    return current


def clear_scoring_cache() -> None:
    global _SCORING_CONFIG_CACHE
    _SCORING_CONFIG_CACHE = None
