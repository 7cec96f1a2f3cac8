import pytest
from apscheduler.triggers.cron import CronTrigger
from fastapi.testclient import TestClient

from deployhooks.main import app
from deployhooks.services import scheduler
from deployhooks.services.config_resolver import ConfigResolver
from deployhooks.services.options import set_option
from deployhooks.utils import tracker as tracker_deps

from conftest import HOOK_URL


@pytest.fixture
def client():
    return TestClient(app)


@pytest.mark.parametrize(
    "schedule, expected",
    [
        ("daily", {"hour": "6", "minute": "30", "day": "*", "day_of_week": "*"}),
        ("weekly", {"hour": "6", "minute": "30", "day": "*", "day_of_week": "mon"}),
        ("monthly", {"hour": "6", "minute": "30", "day": "1", "day_of_week": "*"}),
    ],
)
def test_build_trigger(schedule, expected):
    trigger = scheduler.build_trigger(schedule, "06:30")
    fields = {field.name: str(field) for field in trigger.fields}

    assert isinstance(trigger, CronTrigger)
    assert {name: fields[name] for name in expected} == expected


def test_build_trigger_with_bad_time_uses_midnight():
    trigger = scheduler.build_trigger("daily", "25:99")
    fields = {field.name: str(field) for field in trigger.fields}
    assert (fields["hour"], fields["minute"]) == ("0", "0")


def test_sync_build_schedule(db):
    assert scheduler.sync_build_schedule(db) is None

    set_option(db, "enable_scheduled_builds", True)
    set_option(db, "select_schedule_builds", "daily")
    db.commit()

    info = scheduler.sync_build_schedule(db)
    assert info["id"] == scheduler.SCHEDULED_BUILD_JOB
    assert "hour='0'" in info["trigger"]

    set_option(db, "enable_scheduled_builds", False)
    db.commit()
    assert scheduler.sync_build_schedule(db) is None
    assert scheduler.get_job_info() is None


def test_read_settings_masks_token(client, auth_headers, configure):
    configure()

    body = client.get("/api/settings", headers=auth_headers).json()

    assert body["webhook_address"] == HOOK_URL
    assert body["bearer_token"] == "...cret"
    assert body["using_override"] is False
    assert body["select_schedule_builds"] == "weekly"
    assert body["select_time_build"] == "00:00"
    assert body["scheduled_job"] is None


def test_update_settings_registers_schedule(client, auth_headers):
    response = client.put(
        "/api/settings",
        json={
            "webhook_address": HOOK_URL,
            "enable_scheduled_builds": True,
            "select_schedule_builds": "monthly",
            "select_time_build": "03:15",
        },
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["webhook_address"] == HOOK_URL
    assert body["enable_scheduled_builds"] is True
    assert body["scheduled_job"]["id"] == scheduler.SCHEDULED_BUILD_JOB


def test_update_settings_rejects_bad_schedule(client, auth_headers):
    response = client.put("/api/settings", json={"select_time_build": "3pm"}, headers=auth_headers)
    assert response.status_code == 422


def test_update_settings_refused_under_override(client, auth_headers, override_settings, monkeypatch):
    monkeypatch.setattr(
        tracker_deps,
        "get_resolver",
        lambda: ConfigResolver(override_settings, tracker_deps.SessionLocal),
    )
    monkeypatch.setattr(
        "deployhooks.routers.settings.get_resolver",
        lambda: ConfigResolver(override_settings, tracker_deps.SessionLocal),
    )

    response = client.put("/api/settings", json={"bearer_token": "tok_new"}, headers=auth_headers)
    assert response.status_code == 409

    response = client.put("/api/settings", json={"enable_on_post_update": True}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["using_override"] is True


def test_settings_require_capability(client, db, user, auth_headers):
    user.capabilities = ["deploy"]
    db.commit()

    assert client.get("/api/settings", headers=auth_headers).status_code == 401
