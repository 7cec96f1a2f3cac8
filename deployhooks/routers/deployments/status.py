from fastapi import APIRouter, Depends, Query

from deployhooks.models.user import DEPLOY_CAPABILITY, User
from deployhooks.services.deployment_cache import DeploymentCache
from deployhooks.services.status_tracker import DeploymentTracker
from deployhooks.utils.auth import require_capability, require_nonce
from deployhooks.utils.nonce import CHECK_STATUS_ACTION, UPDATE_STATUS_ACTION
from deployhooks.utils.tracker import get_cache, get_tracker

router = APIRouter()


@router.get("/deployments/status")
async def get_deployment_status(
    timestamp: str | None = Query(None),
    user: User = Depends(require_nonce(CHECK_STATUS_ACTION)),
    tracker: DeploymentTracker = Depends(get_tracker),
):
    # The raw Vercel deployment details are passed through unchanged
    return await tracker.check_status(timestamp.strip() if timestamp else timestamp)


@router.post("/deployments/status")
async def update_deployment_status(
    status: str | None = Query(None),
    user: User = Depends(require_nonce(UPDATE_STATUS_ACTION)),
    tracker: DeploymentTracker = Depends(get_tracker),
):
    applied = tracker.update_status(status.strip() if status else status)
    return {"success": True, "status": applied}


@router.get("/deployments/current")
async def current_deployment(
    user: User = Depends(require_capability(DEPLOY_CAPABILITY)),
    cache: DeploymentCache = Depends(get_cache),
):
    record = cache.get()
    return {
        "deployment": record.model_dump() if record else None,
        "previous_status": cache.get_previous(),
        "building": bool(record and record.is_building),
    }
