"""Test helper functions."""

import hashlib
import json
import hmac
import time
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode
import httpx


def generate_slack_signature(secret: str, timestamp: str, body: str) -> str:
    """Generate a valid Slack signature for testing."""
    sig_basestring = f"v0:{timestamp}:{body}"
    signature = hmac.new(
        secret.encode('utf-8'),
        sig_basestring.encode('utf-8'),
        hashlib.sha256
    ).hexdigest()
    return f"v0={signature}"


def create_command_body(
    text: str = "https://example.com/cat.png",
    channel_id: str = "C1",
    user_id: str = "U123456",
    trigger_id: Optional[str] = None,
) -> str:
    """Create an x-www-form-urlencoded slash command body."""
    return urlencode({
        "team_id": "T123456",
        "channel_id": channel_id,
        "channel_name": "general",
        "user_id": user_id,
        "command": "/lgtm",
        "text": text,
        "response_url": "https://hooks.slack.com/commands/T123456/1/abc",
        "trigger_id": trigger_id or f"{int(time.time())}.1.abc",
    })


def create_signed_headers(secret: str, body: str) -> Dict[str, str]:
    """Slack request headers with a valid signature for `body`."""
    timestamp = str(int(time.time()))
    return {
        "Content-Type": "application/x-www-form-urlencoded",
        "X-Slack-Request-Timestamp": timestamp,
        "X-Slack-Signature": generate_slack_signature(secret, timestamp, body),
    }


def recording_client(
    respond: Callable[[httpx.Request], httpx.Response],
) -> tuple[httpx.AsyncClient, list]:
    """httpx client that records requests and answers with `respond`."""
    requests: list = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return respond(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler)), requests


def json_reply(body: Any, status: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    return lambda request: httpx.Response(status, content=json.dumps(body).encode(), headers={"content-type": "application/json"})
