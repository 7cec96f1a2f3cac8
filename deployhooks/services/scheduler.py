"""
Scheduled builds using APScheduler.
Keeps at most one cron job, driven by the schedule options.
"""
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.jobstores.base import JobLookupError
from sqlalchemy.orm import Session as DBSession
from typing import Dict, Optional

from deployhooks.config import settings
from deployhooks.logging_config import get_logger
from deployhooks.services.options import get_flag, get_option
from deployhooks.services.triggers import scheduled_build

logger = get_logger(__name__)

SCHEDULED_BUILD_JOB = "scheduled_vercel_build"

_scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the singleton scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = AsyncIOScheduler(timezone=settings.scheduler_timezone)
    return _scheduler


def start_scheduler():
    scheduler = get_scheduler()
    if not scheduler.running:
        scheduler.start()
        logger.info("[Scheduler] Started")


def shutdown_scheduler():
    scheduler = get_scheduler()
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("[Scheduler] Shutdown")


def build_trigger(schedule: str, build_time: str, timezone: str = "UTC") -> CronTrigger:
    """
    Turn the schedule options into a cron trigger.

    Args:
        schedule: "daily", "weekly" (Mondays) or "monthly" (first of the month)
        build_time: "HH:MM"; falls back to midnight when unparseable
        timezone: Timezone for the schedule
    """
    try:
        hour, minute = (int(part) for part in build_time.split(":", 1))
        if not (0 <= hour < 24 and 0 <= minute < 60):
            raise ValueError(build_time)
    except ValueError:
        logger.warning(f"[Scheduler] Invalid build time {build_time!r}, using 00:00")
        hour, minute = 0, 0

    if schedule == "daily":
        return CronTrigger(hour=hour, minute=minute, timezone=timezone)
    if schedule == "monthly":
        return CronTrigger(day=1, hour=hour, minute=minute, timezone=timezone)
    return CronTrigger(day_of_week="mon", hour=hour, minute=minute, timezone=timezone)


def remove_build_job() -> bool:
    scheduler = get_scheduler()
    try:
        scheduler.remove_job(SCHEDULED_BUILD_JOB)
        logger.info(f"[Scheduler] Removed job: {SCHEDULED_BUILD_JOB}")
        return True
    except JobLookupError:
        return False


def sync_build_schedule(db: DBSession) -> Optional[Dict]:
    """Register, replace or remove the build job to match the stored options."""
    remove_build_job()
    if not get_flag(db, "enable_scheduled_builds"):
        return None

    schedule = get_option(db, "select_schedule_builds")
    build_time = get_option(db, "select_time_build")
    trigger = build_trigger(schedule, build_time, settings.scheduler_timezone)

    get_scheduler().add_job(
        scheduled_build,
        trigger=trigger,
        id=SCHEDULED_BUILD_JOB,
        replace_existing=True,
    )
    logger.info(f"[Scheduler] Registered {schedule} build at {build_time}")
    return get_job_info()


def get_job_info() -> Optional[Dict]:
    job = get_scheduler().get_job(SCHEDULED_BUILD_JOB)
    if job:
        # next_run_time only exists once the scheduler has started
        next_run_time = getattr(job, "next_run_time", None)
        return {
            "id": job.id,
            "next_run_time": next_run_time.isoformat() if next_run_time else None,
            "trigger": str(job.trigger),
        }
    return None
