"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json

from src.utils.config import AppConfig


def health_status(config: AppConfig) -> dict:
    """Service status plus which integrations have credentials configured."""
    return {
        "status": "ok",
        "service": "lgtm-backend",
        "queue_backend": config.queue_backend,
        "configured": {
            "slack": bool(config.slack_bot_token and config.slack_signing_secret),
            "slack_public_links": bool(config.slack_user_token),
            "cloudinary": bool(
                config.cloudinary_cloud_name and config.cloudinary_api_key and config.cloudinary_api_secret
            ),
            "image_search": bool(config.google_api_key and config.custom_search_engine_id),
            "supabase": bool(config.supabase_url and config.supabase_service_role_key),
        },
    }


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        """Handle GET request."""
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        response = json.dumps(health_status(AppConfig.from_env()))
        self.wfile.write(response.encode('utf-8'))

    def do_POST(self):
        """Handle POST request (same as GET for health check)."""
        self.do_GET()
