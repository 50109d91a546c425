"""Background scheduler — APScheduler jobs run inside the app's event loop.

Jobs:
  - draft_cleanup: daily at DRAFT_CLEANUP_HOUR UTC, deletes drafts idle
    longer than DRAFT_RETENTION_DAYS together with their stored files
  - reset_token_purge: hourly, clears expired password reset tokens

Each job opens its own session via SessionLocal and always closes it.
"""

import logging
from datetime import timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.exc import SQLAlchemyError

log = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone=timezone.utc)


def configure_scheduler() -> None:
    """Register all jobs. Call once before scheduler.start()."""
    from .config import settings

    scheduler.add_job(
        _job_draft_cleanup,
        CronTrigger(hour=settings.draft_cleanup_hour, minute=0, timezone=timezone.utc),
        id="draft_cleanup",
        name="Delete expired draft jobs",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        _job_reset_token_purge,
        IntervalTrigger(hours=1),
        id="reset_token_purge",
        name="Clear expired password reset tokens",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    log.info(
        f"Scheduler configured: draft_cleanup daily at {settings.draft_cleanup_hour:02d}:00 UTC "
        f"(retention {settings.draft_retention_days}d), reset_token_purge hourly"
    )


# ── Jobs ────────────────────────────────────────────────────────────────


async def _job_draft_cleanup():
    from .config import settings
    from .database import SessionLocal
    from .services.draft_service import cleanup_expired_drafts

    db = SessionLocal()
    try:
        summary = cleanup_expired_drafts(db, days=settings.draft_retention_days)
        if summary["deleted_count"]:
            log.info(f"Scheduled draft cleanup removed {summary['deleted_count']} drafts")
    except SQLAlchemyError as e:
        log.error(f"Draft cleanup failed: {e}")
        db.rollback()
    finally:
        db.close()


async def _job_reset_token_purge():
    from .database import SessionLocal
    from .services.auth_service import purge_expired_reset_tokens

    db = SessionLocal()
    try:
        purged = purge_expired_reset_tokens(db)
        if purged:
            log.info(f"Cleared {purged} expired password reset tokens")
    except SQLAlchemyError as e:
        log.error(f"Reset token purge failed: {e}")
        db.rollback()
    finally:
        db.close()
