"""Application configuration loaded from environment variables."""

import os
from typing import Literal, Optional
from pydantic import BaseModel, Field
from src.utils.errors import ConfigurationError


DEFAULT_SEARCH_RIGHTS = "(cc_publicdomain|cc_attribute|cc_sharealike|cc_nonderived)"


def _env(name: str, default: str = "") -> str:
    # strip to remove any trailing newlines from env vars
    return os.environ.get(name, default).strip()


class AppConfig(BaseModel):
    """Credentials and tunables, built once per invocation and passed explicitly."""
    model_config = {"frozen": True}

    slack_bot_token: str = Field("", description="Bot token used for posting and lookups")
    slack_user_token: str = Field("", description="User token allowed to create public file links")
    slack_signing_secret: str = Field("", description="Slack request signing secret")

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""

    google_api_key: str = ""
    custom_search_engine_id: str = ""
    search_rights: Optional[str] = DEFAULT_SEARCH_RIGHTS

    supabase_url: str = ""
    supabase_service_role_key: str = ""
    queue_backend: Literal["supabase", "memory"] = "supabase"

    dedup_ttl_seconds: int = Field(3600, gt=0, description="Retention window for seen event ids")
    job_batch_size: int = Field(5, gt=0, description="Jobs run per processor invocation")
    http_timeout_seconds: Optional[float] = Field(None, description="None means no timeout")

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build configuration from the process environment."""
        timeout = _env("HTTP_TIMEOUT_SECONDS")
        return cls(
            slack_bot_token=_env("SLACK_BOT_TOKEN"),
            slack_user_token=_env("SLACK_USER_TOKEN"),
            slack_signing_secret=_env("SLACK_SIGNING_SECRET"),
            cloudinary_cloud_name=_env("CLOUDINARY_CLOUD_NAME"),
            cloudinary_api_key=_env("CLOUDINARY_API_KEY"),
            cloudinary_api_secret=_env("CLOUDINARY_API_SECRET"),
            google_api_key=_env("GOOGLE_API_KEY"),
            custom_search_engine_id=_env("CUSTOM_SEARCH_ENGINE_ID"),
            search_rights=_env("SEARCH_RIGHTS") or DEFAULT_SEARCH_RIGHTS,
            supabase_url=_env("SUPABASE_URL"),
            supabase_service_role_key=_env("SUPABASE_SERVICE_ROLE_KEY"),
            queue_backend=_env("QUEUE_BACKEND", "supabase").lower() or "supabase",
            dedup_ttl_seconds=int(_env("DEDUP_TTL_SECONDS", "3600")),
            job_batch_size=int(_env("JOB_BATCH_SIZE", "5")),
            http_timeout_seconds=float(timeout) if timeout else None,
        )

    def require(self, *names: str) -> None:
        """Raise ConfigurationError if any named setting is empty."""
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(n.upper() for n in missing)}"
            )
