"""Unattended build triggers: the cron schedule and content publish events.

Both call the same `start_build` as the manual button. Failures are logged and
dropped here, since there is no one to report them to. A successful trigger is
followed by a background poll so the cached status reaches its final state even
when no admin page is open.
"""

import asyncio
from typing import Optional

from deployhooks.config import settings
from deployhooks.database import SessionLocal
from deployhooks.logging_config import get_logger
from deployhooks.services.exceptions import DeployHooksError
from deployhooks.services.options import get_flag
from deployhooks.services.poller import DeploymentPoller
from deployhooks.services.status_tracker import DeploymentTracker
from deployhooks.utils.tracker import build_tracker

logger = get_logger(__name__)

PUBLISH = "publish"

_poll_task: Optional[asyncio.Task] = None


async def fire_build(source: str) -> Optional[dict]:
    """Start a build on behalf of `source`. Returns the job response, or None."""
    tracker = build_tracker()
    try:
        response = await tracker.start_build()
    except DeployHooksError as e:
        logger.warning("[Triggers] Build not started", source=source, error=str(e))
        return None

    logger.info("[Triggers] Build started", source=source, job_id=response["job"].get("id"))
    created_at = response["job"].get("createdAt")
    if created_at:
        track_in_background(tracker, created_at)
    return response


def track_in_background(tracker: DeploymentTracker, correlation_timestamp) -> bool:
    """Poll the new build in a background task; at most one such task runs."""
    global _poll_task
    if _poll_task is not None and not _poll_task.done():
        logger.debug("[Triggers] Background poll already running")
        return False

    poller = DeploymentPoller(
        tracker,
        interval=settings.poll_interval,
        not_found_grace=settings.poll_not_found_grace,
        max_ticks=settings.poll_max_ticks,
    )
    _poll_task = asyncio.create_task(poller.poll(correlation_timestamp))
    _poll_task.add_done_callback(_log_poll_outcome)
    return True


def _log_poll_outcome(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.info("[Triggers] Background poll cancelled")
        return
    error = task.exception()
    if error is not None:
        logger.error("[Triggers] Background poll failed", error=repr(error), exc_info=error)
        return
    result = task.result()
    logger.info("[Triggers] Background poll finished", state=result.state, ticks=result.ticks, error=result.error)


def _hooks_enabled() -> bool:
    db = SessionLocal()
    try:
        return get_flag(db, "enable_on_post_update")
    finally:
        db.close()


async def on_post_transition(new_status: str, old_status: str, rest_request: bool = False) -> bool:
    """Build when a post moves into or out of the published state.

    Saves coming from the block editor arrive twice, once as a REST request; only
    the non-REST one triggers.
    """
    if not _hooks_enabled() or rest_request:
        return False
    if new_status != PUBLISH and old_status != PUBLISH:
        return False
    return await fire_build("post_transition") is not None


async def on_future_post_published(post_id) -> bool:
    if not _hooks_enabled():
        return False
    logger.debug("[Triggers] Scheduled post published", post_id=post_id)
    return await fire_build("future_post") is not None


async def scheduled_build() -> None:
    await fire_build("schedule")
