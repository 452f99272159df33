"""Slash command model."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class SlashCommand(BaseModel):
    """Slash command as parsed from the webhook form body. Immutable once parsed."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    text: str = Field("", description="Text typed after the command")
    user_id: str = Field(..., description="Invoking Slack user ID")
    channel_id: str = Field(..., description="Slack channel ID the command was issued in")
    channel_name: str = Field("", description="Slack channel name")
    command: str = Field("/lgtm", description="Command name, e.g. /lgtm")
    response_url: str = Field(..., description="Webhook for delayed responses")
    team_id: Optional[str] = None
    trigger_id: Optional[str] = None

    @classmethod
    def from_form(cls, form: dict) -> "SlashCommand":
        """Build from a parsed x-www-form-urlencoded body (values may be lists)."""
        flat = {
            key: value[0] if isinstance(value, list) and value else value
            for key, value in form.items()
        }
        flat["text"] = (flat.get("text") or "").strip()
        return cls.model_validate(flat)
