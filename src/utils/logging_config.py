"""Logging setup for the Vercel functions, driven by LOG_* environment variables."""

import os
import logging
import sys
from pythonjsonlogger.json import JsonFormatter

SERVICE_NAME = "lgtm-backend"

# Client libraries that log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "urllib3", "supabase", "slack_sdk")


class LoggingConfig:
    """LOG_* settings read once at import."""

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    LOG_MASK_SENSITIVE = os.environ.get("LOG_MASK_SENSITIVE", "true").lower() == "true"
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "3000"))

    @classmethod
    def level(cls) -> int:
        return getattr(logging, cls.LOG_LEVEL, logging.INFO)

    @classmethod
    def build_formatter(cls) -> logging.Formatter:
        """One JSON object per line, or plain text when LOG_FORMAT=text."""
        if cls.LOG_FORMAT != "json":
            return logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        return JsonFormatter(
            "%(timestamp)s %(levelname)s %(name)s %(message)s",
            timestamp=True,
            rename_fields={"levelname": "level", "name": "logger"},
            static_fields={"service": SERVICE_NAME},
        )

    @classmethod
    def setup_logging(cls) -> None:
        """Route all records to stdout, where Vercel collects them."""
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(cls.build_formatter())

        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.addHandler(handler)
        root_logger.setLevel(cls.level())

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
