from typing import Optional

from deployhooks.logging_config import get_logger
from deployhooks.models.deployment import DeploymentRecord
from deployhooks.services.store import KeyValueStore

logger = get_logger(__name__)

CURRENT_DEPLOYMENT_KEY = "current_deployment"
PREVIOUS_STATUS_KEY = "previous_deployment_status"
DEFAULT_TTL = 12 * 60 * 60


class DeploymentCache:
    """Single-slot cache for the currently tracked deployment."""

    def __init__(self, store: KeyValueStore, ttl: int = DEFAULT_TTL):
        self.store = store
        self.ttl = ttl

    def get(self) -> Optional[DeploymentRecord]:
        data = self.store.get(CURRENT_DEPLOYMENT_KEY)
        if not data:
            return None
        return DeploymentRecord.model_validate(data)

    def put(self, record: DeploymentRecord, ttl: Optional[int] = None) -> None:
        """Replace the current record.

        When the status changes, the outgoing status becomes the previous one.
        Rewriting the same status leaves the previous status alone, so a poller
        confirming a state that a status check already cached keeps e.g. BUILDING
        as the previous status of READY.
        """
        ttl = ttl or self.ttl
        outgoing = self.get()
        if outgoing is not None and outgoing.status != record.status:
            self.store.set(PREVIOUS_STATUS_KEY, outgoing.status, ttl)
        self.store.set(CURRENT_DEPLOYMENT_KEY, record.model_dump(), ttl)
        logger.debug(
            "[Cache] Stored deployment",
            deployment_id=record.id,
            status=record.status,
            previous_status=outgoing.status if outgoing else None,
        )

    def get_previous(self) -> Optional[str]:
        return self.store.get(PREVIOUS_STATUS_KEY)
