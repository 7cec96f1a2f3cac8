"""Deployment status tracking.

The tracker owns the transitions of the single cached deployment record:

    (none) -> PENDING -> BUILDING -> READY | ERROR | ...

`check_status` resolves which deployment to ask Vercel about and records the
answer, `update_status` records the terminal state reported by a poller, and
`start_build` fires the deploy hook and seeds the record from the returned job.
While the cached record is BUILDING its id is reused, so a second poller (another
tab, the admin bar button) follows the same build instead of discovering a new one.
"""

from deployhooks.logging_config import get_logger
from deployhooks.models.deployment import DeploymentRecord
from deployhooks.services.config_resolver import ConfigResolver
from deployhooks.services.deployment_cache import DeploymentCache
from deployhooks.services.exceptions import ErrorKind, TrackerError
from deployhooks.services.vercel_client import VercelClient

logger = get_logger(__name__)

BUILDING = "BUILDING"
PENDING = "PENDING"


class DeploymentTracker:
    def __init__(self, cache: DeploymentCache, client: VercelClient, resolver: ConfigResolver):
        self.cache = cache
        self.client = client
        self.resolver = resolver

    async def check_status(self, from_timestamp: str | int | None) -> dict:
        """Fetch the current deployment's details from Vercel and cache its state."""
        if from_timestamp is None or str(from_timestamp).strip() == "":
            raise TrackerError(ErrorKind.INVALID_INPUT, '"From" param value is required')

        team_id = self.resolver.team_id()
        project_id = self.resolver.project_id()

        current = self.cache.get()
        if current is not None and current.is_building:
            deployment_id = current.id
            logger.debug("[Tracker] Reusing building deployment", deployment_id=deployment_id)
        else:
            deployments = await self.client.list_deployments(
                team_id, project_id, from_=from_timestamp, limit=1
            )
            if not deployments:
                raise TrackerError(ErrorKind.NOT_FOUND, "No deployments found")

            deployment_id = deployments[0].get("uid") if isinstance(deployments[0], dict) else None
            if not deployment_id:
                raise TrackerError(ErrorKind.MALFORMED_UPSTREAM, "Deployment list entry has no uid")

            self.cache.put(DeploymentRecord(id=deployment_id, status=PENDING, created=from_timestamp))
            logger.info("[Tracker] Discovered deployment", deployment_id=deployment_id, since=from_timestamp)

        details = await self.client.get_deployment(deployment_id, team_id, project_id)
        state = details.get("state")
        if not isinstance(state, str) or not state:
            raise TrackerError(ErrorKind.MALFORMED_UPSTREAM, "Invalid deployment details format")

        self.cache.put(DeploymentRecord(id=deployment_id, status=state, created=details.get("created")))
        return details

    def update_status(self, new_status: str | None) -> str:
        """Record a status reported by the client. A no-op when nothing is tracked."""
        if not new_status or not new_status.strip():
            raise TrackerError(ErrorKind.INVALID_INPUT, "Status param value is required")

        current = self.cache.get()
        if current is None:
            logger.debug("[Tracker] No deployment to update", status=new_status)
            return new_status

        # put() moves the outgoing status to the previous slot when it changes
        self.cache.put(current.model_copy(update={"status": new_status}))
        logger.info(
            "[Tracker] Deployment status updated",
            deployment_id=current.id,
            previous_status=current.status,
            status=new_status,
        )
        return new_status

    async def start_build(self) -> dict:
        """Fire the deploy hook and seed the cache with the returned job."""
        webhook_url = self.resolver.webhook_address()
        if not webhook_url:
            raise TrackerError(ErrorKind.NOT_CONFIGURED, "No deploy hook URL is configured")

        current = self.cache.get()
        if current is not None and current.is_building:
            raise TrackerError(
                ErrorKind.BUILD_IN_PROGRESS,
                f"Deployment {current.id} is still building",
            )

        # Errors propagate before anything is cached
        response = await self.client.trigger_build(webhook_url)
        job = response["job"]

        job_id = job.get("id")
        if job_id:
            self.cache.put(DeploymentRecord(
                id=str(job_id),
                status=job.get("state") or PENDING,
                created=job.get("createdAt"),
            ))
        logger.info("[Tracker] Build triggered", job_id=job_id, state=job.get("state"))
        return response
