from sqlalchemy.orm import sessionmaker

from deployhooks.config import Settings
from deployhooks.services.options import DEVELOPER_OPTIONS, get_option


class ConfigResolver:
    """Resolves Vercel credentials from deployment settings or stored options.

    The deployment settings act as one atomic override: once a webhook address is
    set there, the bearer token, team id and project id are also read from settings,
    even when empty. Otherwise every key comes from the options table.
    """

    def __init__(self, settings: Settings, session_factory: sessionmaker):
        self.settings = settings
        self.session_factory = session_factory

    def is_using_override(self) -> bool:
        return bool(self.settings.vercel_webhook_address)

    def resolve(self, key: str) -> str:
        if key not in DEVELOPER_OPTIONS:
            return ""

        if self.is_using_override():
            return getattr(self.settings, f"vercel_{key}") or ""

        db = self.session_factory()
        try:
            return get_option(db, key)
        finally:
            db.close()

    def webhook_address(self) -> str:
        return self.resolve("webhook_address")

    def bearer_token(self) -> str:
        return self.resolve("bearer_token")

    def team_id(self) -> str:
        return self.resolve("team_id")

    def project_id(self) -> str:
        return self.resolve("project_id")
