from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    database_path: str
    activity_log_enabled: bool
    activity_db_path: str
    activity_retention_days: int
    notification_retention_days: int
    seed_catalog_on_startup: bool
    seed_catalog_path: str
    max_resume_upload_bytes: int
    roadmap_max_steps_cap: int
    smtp_host: str | None
    smtp_port: int
    smtp_user: str | None
    smtp_password: str | None
    smtp_from: str | None
    smtp_use_tls: bool
    smtp_fallback_ssl: bool
    admin_notify_email: str | None


def load_settings() -> Settings:
    return Settings(
        api_key=_get_env("API_KEY"),
        rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
        rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
        log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
        sentry_dsn=_get_env("SENTRY_DSN"),
        cors_allowed_origins=_get_env_list(
            "CORS_ALLOWED_ORIGINS",
            [
                "http://localhost:3000",
                "http://127.0.0.1:3000",
                "http://localhost:5173",
            ],
        ),
        cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
        cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
        database_path=_get_env("DATABASE_PATH", "data/roleready.db") or "data/roleready.db",
        activity_log_enabled=_get_env_bool("ACTIVITY_LOG_ENABLED", True),
        activity_db_path=_get_env("ACTIVITY_DB_PATH", "data/activity.db") or "data/activity.db",
        activity_retention_days=_get_env_int("ACTIVITY_RETENTION_DAYS", 180),
        notification_retention_days=_get_env_int("NOTIFICATION_RETENTION_DAYS", 90),
        seed_catalog_on_startup=_get_env_bool("SEED_CATALOG_ON_STARTUP", True),
        seed_catalog_path=_get_env("SEED_CATALOG_PATH", "config/seed_catalog.yaml") or "config/seed_catalog.yaml",
        max_resume_upload_bytes=_get_env_int("MAX_RESUME_UPLOAD_BYTES", 5 * 1024 * 1024),
        roadmap_max_steps_cap=_get_env_int("ROADMAP_MAX_STEPS_CAP", 50),
        smtp_host=_get_env("SMTP_HOST"),
        smtp_port=_get_env_int("SMTP_PORT", 587),
        smtp_user=_get_env("SMTP_USER"),
        smtp_password=_get_env("SMTP_PASSWORD"),
        smtp_from=_get_env("SMTP_FROM"),
        smtp_use_tls=_get_env_bool("SMTP_USE_TLS", True),
        smtp_fallback_ssl=_get_env_bool("SMTP_FALLBACK_SSL", True),
        admin_notify_email=_get_env("ADMIN_NOTIFY_EMAIL"),
    )


settings = load_settings()

if settings.roadmap_max_steps_cap < 1:
    raise RuntimeError("ROADMAP_MAX_STEPS_CAP must be at least 1.")
