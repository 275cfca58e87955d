"""
Scheduler setup for background jobs.
Uses APScheduler to run periodic jobs:
- due-soon todo check: every DUE_SOON_CHECK_MINUTES (5) minutes
- expired refresh token sweep: every TOKEN_CLEANUP_MINUTES (60) minutes
- rate limiter eviction: every minute
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Mapping

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

if TYPE_CHECKING:
    from services import Services

logger = logging.getLogger(__name__)


def check_due_todos():
    """Extension point for due-soon reminders. Only logs for now."""
    logger.info("Checking for todos due soon...")


def purge_expired_tokens_job(services: "Services"):
    try:
        services.tokens.purge_expired()
    except Exception:
        logger.exception("Refresh token cleanup failed")
    finally:
        services.storage.close()


def sweep_rate_limiter_job(services: "Services"):
    removed = services.rate_limiter.sweep()
    if removed:
        logger.debug("Evicted %d idle rate limit entries", removed)


def build_scheduler(services: "Services", config: Mapping) -> BackgroundScheduler:
    scheduler = BackgroundScheduler()

    scheduler.add_job(
        check_due_todos,
        trigger=IntervalTrigger(minutes=config.get("DUE_SOON_CHECK_MINUTES", 5)),
        id="due_soon_check",
        name="Check todos due soon",
        replace_existing=True,
    )
    scheduler.add_job(
        purge_expired_tokens_job,
        trigger=IntervalTrigger(minutes=config.get("TOKEN_CLEANUP_MINUTES", 60)),
        args=[services],
        id="refresh_token_cleanup",
        name="Soft-delete expired refresh tokens",
        replace_existing=True,
    )
    scheduler.add_job(
        sweep_rate_limiter_job,
        trigger=IntervalTrigger(seconds=config.get("RATE_LIMIT_WINDOW_SECONDS", 60)),
        args=[services],
        id="rate_limit_sweep",
        name="Evict idle rate limit entries",
        replace_existing=True,
    )
    return scheduler
