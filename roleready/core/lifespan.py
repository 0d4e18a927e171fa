import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from roleready.activity.db import init_db as init_activity_db
from roleready.activity.db import purge_old_records
from roleready.core.config import settings
from roleready.db.connection import close_connection, init_db
from roleready.services.catalog_service import catalog_is_empty, seed_catalog
from roleready.services.notification_service import purge_read_notifications

logger = logging.getLogger(__name__)


def run_retention_purge() -> dict[str, int]:
    deleted = purge_old_records()
    deleted["notifications"] = purge_read_notifications(settings.notification_retention_days)
    return deleted


@asynccontextmanager
async def lifespan(app):
    init_db()
    init_activity_db()
    if settings.seed_catalog_on_startup and catalog_is_empty():
        report = seed_catalog(settings.seed_catalog_path)
        logger.info(
            "catalog_seeded skills=%s roles=%s benchmarks=%s",
            report.skills_created,
            report.roles_created,
            report.benchmarks_upserted,
        )

    stop_event = asyncio.Event()

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                deleted = run_retention_purge()
                if any(deleted.values()):
                    logger.info("retention_purge deleted=%s", deleted)
            except Exception as exc:  # pragma: no cover - keep the purge loop alive
                logger.warning("retention_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=3600)
            except asyncio.TimeoutError:
                continue

    purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
    close_connection()
