"""Poll a deployment until it reaches a terminal state.

The loop is completion-chained: the next check is scheduled only after the
previous one returned, so slow responses never pile up.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from deployhooks.logging_config import get_logger
from deployhooks.services.exceptions import DeployHooksError, ErrorKind, TrackerError
from deployhooks.services.status_tracker import DeploymentTracker

logger = get_logger(__name__)

# Only these keep the loop going; any other state is written back as final
NON_TERMINAL_STATES = frozenset({"BUILDING", "PENDING"})


@dataclass
class PollResult:
    state: str
    details: dict = field(default_factory=dict)
    error: Optional[str] = None
    ticks: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class DeploymentPoller:
    def __init__(
        self,
        tracker: DeploymentTracker,
        interval: float = 10.0,
        not_found_grace: int = 3,
        max_ticks: int = 360,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.tracker = tracker
        self.interval = interval
        self.not_found_grace = not_found_grace
        self.max_ticks = max_ticks
        self._sleep = sleep
        self._stopped = False

    def stop(self) -> None:
        """End the running `poll` after its current check. A later `poll` starts fresh."""
        self._stopped = True

    async def poll(self, correlation_timestamp: str | int) -> PollResult:
        """Check status every `interval` seconds until the build finishes.

        The terminal state is written back through `update_status` exactly once.
        A missing deployment is tolerated for the first `not_found_grace` ticks,
        since a freshly triggered build takes a moment to show up in the API.
        Any other failure ends polling.
        """
        self._stopped = False
        ticks = 0
        while not self._stopped and ticks < self.max_ticks:
            await self._sleep(self.interval)
            if self._stopped:
                break
            ticks += 1

            try:
                details = await self.tracker.check_status(correlation_timestamp)
            except TrackerError as e:
                if e.kind == ErrorKind.NOT_FOUND and ticks <= self.not_found_grace:
                    logger.info("[Poller] Deployment not visible yet", tick=ticks, since=correlation_timestamp)
                    continue
                logger.warning("[Poller] Status check failed", tick=ticks, error=str(e))
                return PollResult(state="ERROR", error=str(e), ticks=ticks)
            except DeployHooksError as e:
                logger.warning("[Poller] Status check failed", tick=ticks, error=str(e))
                return PollResult(state="ERROR", error=str(e), ticks=ticks)

            state = details["state"]
            if state in NON_TERMINAL_STATES:
                logger.debug("[Poller] Still running", tick=ticks, state=state)
                continue

            self.tracker.update_status(state)
            logger.info("[Poller] Deployment finished", state=state, ticks=ticks)
            return PollResult(state=state, details=details, ticks=ticks)

        reason = "stopped" if self._stopped else f"gave up after {ticks} checks"
        logger.warning("[Poller] Polling ended without a terminal state", reason=reason)
        return PollResult(state="UNKNOWN", error=reason, ticks=ticks)
