"""Delayed replies through a slash command's response_url."""

import asyncio
from typing import Callable, Optional
from slack_sdk.webhook import WebhookClient
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class ResponseNotifier:
    """Send ephemeral messages back to where a command was issued."""

    def __init__(self, client_factory: Optional[Callable[[str], WebhookClient]] = None):
        self.client_factory = client_factory or WebhookClient

    async def notify(self, response_url: str, text: str, response_type: str = "ephemeral") -> bool:
        """Post `text` to `response_url`. Returns False when Slack rejected it."""
        webhook = self.client_factory(response_url)
        response = await asyncio.to_thread(webhook.send, text=text, response_type=response_type)
        if response.status_code != 200:
            logger.warning(
                "response_url notification rejected",
                status=response.status_code,
                body=response.body,
            )
            return False
        return True
