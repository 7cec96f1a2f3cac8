from pathlib import Path
from typing import Literal

from pydantic import AliasChoices
from pydantic_settings import BaseSettings
from pydantic import Field

ENV_FILE = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./deployhooks.db"
    session_secret: str = Field(
        default="",
        validation_alias=AliasChoices("session_secret", "nonce_secret"),
    )
    frontend_url: str = "*"

    # Deployment-time overrides; when the webhook address is set, all four are used together
    vercel_api_url: str = "https://api.vercel.com"
    vercel_webhook_address: str = Field(
        default="",
        validation_alias=AliasChoices("vercel_webhook_address", "wp_vercel_webhook_address"),
    )
    vercel_bearer_token: str = Field(
        default="",
        validation_alias=AliasChoices("vercel_bearer_token", "wp_vercel_bearer_token"),
    )
    vercel_team_id: str = Field(
        default="",
        validation_alias=AliasChoices("vercel_team_id", "wp_vercel_team_id"),
    )
    vercel_project_id: str = Field(
        default="",
        validation_alias=AliasChoices("vercel_project_id", "wp_vercel_project_id"),
    )
    vercel_request_timeout: float = Field(default=15.0, gt=0, le=120)

    cache_backend: Literal["database", "memory"] = "database"
    deployment_ttl: int = Field(default=12 * 60 * 60, ge=60)

    poll_interval: float = Field(default=10.0, gt=0)
    poll_not_found_grace: int = Field(default=3, ge=0)
    poll_max_ticks: int = Field(default=360, ge=1)

    nonce_lifetime: int = Field(default=24 * 60 * 60, ge=60)
    content_webhook_secret: str = ""
    scheduler_timezone: str = "UTC"

    log_level: str = "INFO"
    log_format: Literal["console", "json"] = "console"

    model_config = {"env_file": str(ENV_FILE), "extra": "ignore"}


settings = Settings()
