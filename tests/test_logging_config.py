import structlog

from deployhooks.config import Settings
from deployhooks.logging_config import configure_logging


def test_console_renderer_pads_event():
    configure_logging(Settings(log_format="console"))
    renderer = structlog.get_config()["processors"][-1]

    line = renderer(None, "info", {"event": "[Poller] Deployment finished", "state": "READY"})

    assert isinstance(renderer, structlog.dev.ConsoleRenderer)
    assert "[Poller] Deployment finished".ljust(35) in line
    assert "state=READY" in line


def test_json_renderer():
    configure_logging(Settings(log_format="json"))
    try:
        renderer = structlog.get_config()["processors"][-1]
        assert isinstance(renderer, structlog.processors.JSONRenderer)
    finally:
        configure_logging(Settings(log_format="console"))
