"""Mutable site options stored in the `options` table."""

from sqlalchemy.orm import Session as DBSession

from deployhooks.models.option import Option

DEVELOPER_OPTIONS = ("webhook_address", "bearer_token", "team_id", "project_id")
SCHEDULE_OPTIONS = ("enable_scheduled_builds", "select_schedule_builds", "select_time_build")
HOOK_OPTIONS = ("enable_on_post_update",)

BOOLEAN_OPTIONS = {"enable_scheduled_builds", "enable_on_post_update"}

DEFAULTS = {
    "select_schedule_builds": "weekly",
    "select_time_build": "00:00",
}


def get_option(db: DBSession, name: str, default: str = "") -> str:
    option = db.get(Option, name)
    if option is None or option.value is None or option.value == "":
        return DEFAULTS.get(name, default)
    return option.value


def get_flag(db: DBSession, name: str) -> bool:
    return get_option(db, name) == "1"


def set_option(db: DBSession, name: str, value) -> None:
    if name in BOOLEAN_OPTIONS:
        value = "1" if value else ""
    db.merge(Option(name=name, value="" if value is None else str(value)))
