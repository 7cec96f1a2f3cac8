from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session as DBSession

from deployhooks.database import get_db
from deployhooks.logging_config import get_logger
from deployhooks.models.user import ADJUST_SETTINGS_CAPABILITY, User
from deployhooks.services.options import (
    DEVELOPER_OPTIONS,
    HOOK_OPTIONS,
    SCHEDULE_OPTIONS,
    get_flag,
    get_option,
    set_option,
)
from deployhooks.services.scheduler import get_job_info, sync_build_schedule
from deployhooks.utils.auth import require_capability
from deployhooks.utils.tracker import get_resolver

logger = get_logger(__name__)

router = APIRouter()


class SettingsUpdate(BaseModel):
    webhook_address: str | None = None
    bearer_token: str | None = None
    team_id: str | None = None
    project_id: str | None = None
    enable_on_post_update: bool | None = None
    enable_scheduled_builds: bool | None = None
    select_schedule_builds: Literal["daily", "weekly", "monthly"] | None = None
    select_time_build: Annotated[str, Field(pattern=r"^\d{2}:\d{2}$")] | None = None


def _settings_view(db: DBSession) -> dict:
    resolver = get_resolver()
    token = resolver.bearer_token()
    return {
        "using_override": resolver.is_using_override(),
        "webhook_address": resolver.webhook_address(),
        "bearer_token": f"...{token[-4:]}" if len(token) > 4 else ("set" if token else ""),
        "team_id": resolver.team_id(),
        "project_id": resolver.project_id(),
        "enable_on_post_update": get_flag(db, "enable_on_post_update"),
        "enable_scheduled_builds": get_flag(db, "enable_scheduled_builds"),
        "select_schedule_builds": get_option(db, "select_schedule_builds"),
        "select_time_build": get_option(db, "select_time_build"),
        "scheduled_job": get_job_info(),
    }


@router.get("/settings")
async def read_settings(
    user: User = Depends(require_capability(ADJUST_SETTINGS_CAPABILITY)),
    db: DBSession = Depends(get_db),
):
    return _settings_view(db)


@router.put("/settings")
async def update_settings(
    body: SettingsUpdate,
    user: User = Depends(require_capability(ADJUST_SETTINGS_CAPABILITY)),
    db: DBSession = Depends(get_db),
):
    changes = body.model_dump(exclude_unset=True)

    if get_resolver().is_using_override() and any(name in DEVELOPER_OPTIONS for name in changes):
        raise HTTPException(
            status_code=409,
            detail="Deploy hook settings are set by the deployment environment",
        )

    for name, value in changes.items():
        set_option(db, name, value)
    db.commit()

    if any(name in SCHEDULE_OPTIONS for name in changes):
        sync_build_schedule(db)

    logger.info(
        "[Settings] Updated",
        user_id=user.id,
        fields=sorted(changes),
        hooks_changed=any(name in HOOK_OPTIONS for name in changes),
    )
    return _settings_view(db)
