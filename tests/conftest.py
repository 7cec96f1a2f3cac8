import os
import tempfile

_db_dir = tempfile.mkdtemp(prefix="deployhooks-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_db_dir}/test.db"
os.environ["SESSION_SECRET"] = "test-secret"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["CONTENT_WEBHOOK_SECRET"] = ""
for _name in ("VERCEL_WEBHOOK_ADDRESS", "VERCEL_BEARER_TOKEN", "VERCEL_TEAM_ID", "VERCEL_PROJECT_ID"):
    os.environ[_name] = ""
    os.environ[f"WP_{_name}"] = ""

import httpx  # noqa: E402
import pytest  # noqa: E402

from deployhooks.config import Settings  # noqa: E402
from deployhooks.database import Base, SessionLocal, engine  # noqa: E402
from deployhooks.models import CacheEntry, Option, Session, User  # noqa: E402,F401
from deployhooks.services import scheduler, triggers  # noqa: E402
from deployhooks.services.config_resolver import ConfigResolver  # noqa: E402
from deployhooks.services.deployment_cache import DeploymentCache  # noqa: E402
from deployhooks.services.options import set_option  # noqa: E402
from deployhooks.services.status_tracker import DeploymentTracker  # noqa: E402
from deployhooks.services.store import MemoryStore  # noqa: E402
from deployhooks.services.vercel_client import VercelClient  # noqa: E402
from deployhooks.utils import tracker as tracker_deps  # noqa: E402

HOOK_URL = "https://api.vercel.com/v1/integrations/deploy/prj_abc/hook123"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeVercel:
    """Stand-in for the Vercel API and deploy hook, served through httpx.MockTransport."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.deployments = [{"uid": "dpl_1", "state": "BUILDING", "created": 1704067200000}]
        # Successive responses for each deployment id; the last one repeats
        self.details = {"dpl_1": [{"id": "dpl_1", "state": "BUILDING", "created": 1704067200000}]}
        self.job = {"id": "dpl_1", "state": "BUILDING", "createdAt": "2024-01-01T00:00:00Z"}
        self.failures: dict[str, object] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        failure = self.failures.get(path)
        if isinstance(failure, Exception):
            raise failure
        if failure is not None:
            return failure

        if request.method == "POST":
            return httpx.Response(201, json={"job": self.job})
        if path == "/v3/deployments":
            return httpx.Response(200, json={"deployments": self.deployments})
        if path.startswith("/v3/deployments/"):
            responses = self.details.get(path.rsplit("/", 1)[1])
            if not responses:
                return httpx.Response(404, json={"error": {"code": "not_found"}})
            return httpx.Response(200, json=responses.pop(0) if len(responses) > 1 else responses[0])
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    @property
    def discovery_calls(self) -> list[httpx.Request]:
        return self.calls("/v3/deployments")


@pytest.fixture(autouse=True)
def database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_singletons():
    tracker_deps._memory_store = None
    scheduler._scheduler = None
    triggers._poll_task = None
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def configure(db):
    """Store deploy hook options the way the settings page would."""

    def _configure(**options):
        values = {
            "webhook_address": HOOK_URL,
            "bearer_token": "tok_secret",
            "team_id": "team_1",
            "project_id": "prj_1",
        }
        values.update(options)
        for name, value in values.items():
            set_option(db, name, value)
        db.commit()

    return _configure


@pytest.fixture
def vercel():
    return FakeVercel()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return DeploymentCache(MemoryStore(clock=clock))


@pytest.fixture
def override_settings():
    return Settings(
        vercel_webhook_address=HOOK_URL,
        vercel_bearer_token="tok_env",
        vercel_team_id="team_env",
        vercel_project_id="",
    )


@pytest.fixture
def tracker(cache, vercel, override_settings):
    resolver = ConfigResolver(override_settings, SessionLocal)
    client = VercelClient(resolver.bearer_token(), transport=vercel.transport)
    return DeploymentTracker(cache, client, resolver)


@pytest.fixture
def unconfigured_tracker(cache, vercel):
    resolver = ConfigResolver(Settings(), SessionLocal)
    client = VercelClient("", transport=vercel.transport)
    return DeploymentTracker(cache, client, resolver)


@pytest.fixture
def user(db):
    user = User(username="editor", capabilities=["deploy", "adjust_settings"])
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def session(db, user):
    session = Session(user_id=user.id)
    db.add(session)
    db.commit()
    db.refresh(session)
    return session


@pytest.fixture
def auth_headers(session):
    return {"Authorization": f"Bearer {session.session_token}"}
