"""Slack slash command webhook endpoint for Vercel."""

from http.server import BaseHTTPRequestHandler
from urllib.parse import parse_qs
import asyncio
import json

from src.services.slack_verifier import verify_slack_request
from src.services.slash_commands import handle_slash_command, json_response
from src.services.wiring import build_chat_client, build_dispatcher, build_event_guard
from src.utils.config import AppConfig
from src.utils.logging import correlation_context, get_structured_logger, setup_logging

setup_logging()
logger = get_structured_logger(__name__)


def process_request(raw_body: str, headers: dict) -> dict:
    """Verify, parse and hand a slash command to the ingress service."""
    with correlation_context():
        try:
            config = AppConfig.from_env()

            if not verify_slack_request(config.slack_signing_secret, headers, raw_body):
                return json_response(401, {"error": "invalid signature"})

            form = parse_qs(raw_body, keep_blank_values=True)
            return asyncio.run(handle_slash_command(
                form,
                guard=build_event_guard(config),
                dispatcher=build_dispatcher(config),
                chat_client=build_chat_client(config),
            ))
        except Exception as e:
            logger.error("Error processing slash command", error=str(e), exc_info=True)
            return json_response(500, {"error": "internal server error"})


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for Slack slash commands."""

    def _write(self, response: dict) -> None:
        self.send_response(response["statusCode"])
        for name, value in response["headers"].items():
            self.send_header(name, value)
        self.end_headers()
        if response["body"]:
            self.wfile.write(response["body"].encode('utf-8'))

    def do_POST(self):
        """Handle POST request from Slack."""
        content_length = int(self.headers.get('Content-Length', 0))
        raw_body = self.rfile.read(content_length).decode('utf-8') if content_length > 0 else ""
        self._write(process_request(raw_body, dict(self.headers)))

    def do_GET(self):
        """Handle GET request (health check)."""
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps({"status": "ok", "endpoint": "slack/commands"}).encode('utf-8'))
