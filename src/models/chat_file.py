"""Slack file model."""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class ChatFileRecord(BaseModel):
    """Slack file object as returned by files.info."""
    model_config = ConfigDict(extra="allow")

    id: str
    name: Optional[str] = None
    title: Optional[str] = None
    mimetype: Optional[str] = None
    url_private: str = Field(..., description="URL reachable only with a Slack token")
    permalink: Optional[str] = None
    permalink_public: Optional[str] = None
    shares: dict[str, dict[str, list[dict[str, Any]]]] = Field(
        default_factory=dict,
        description="'public'/'private' -> channel id -> share events"
    )

    def share_ts(self, channel_id: str) -> Optional[str]:
        """Timestamp of the first share of this file in the channel."""
        for visibility in ("public", "private"):
            events = self.shares.get(visibility, {}).get(channel_id)
            if events:
                return events[0].get("ts")
        return None
