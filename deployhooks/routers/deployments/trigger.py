from fastapi import APIRouter, Depends

from deployhooks.logging_config import get_logger
from deployhooks.models.user import User
from deployhooks.services.status_tracker import DeploymentTracker
from deployhooks.utils.auth import require_nonce
from deployhooks.utils.nonce import TRIGGER_BUILD_ACTION
from deployhooks.utils.tracker import get_tracker

logger = get_logger(__name__)

router = APIRouter()


@router.post("/deployments/trigger")
async def trigger_deployment(
    user: User = Depends(require_nonce(TRIGGER_BUILD_ACTION)),
    tracker: DeploymentTracker = Depends(get_tracker),
):
    """Fire the deploy hook. The client polls status with `job.createdAt`."""
    response = await tracker.start_build()
    logger.info("[Deploy] Manual build triggered", user_id=user.id, job_id=response["job"].get("id"))
    return response
