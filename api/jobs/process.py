"""Deferred job processor endpoint (called via Vercel cron)."""

import json
import asyncio

from src.services.wiring import build_consumer
from src.utils.config import AppConfig
from src.utils.logging import correlation_context, get_structured_logger, setup_logging

setup_logging()
logger = get_structured_logger(__name__)


def handler(request):
    """
    Run pending slash command jobs.

    Can be called manually or via Vercel cron job.
    """
    with correlation_context():
        try:
            config = AppConfig.from_env()
            query_params = request.get("query", {}) or {}
            max_jobs = int(query_params.get("max_jobs", config.job_batch_size))

            processed = asyncio.run(build_consumer(config).run_pending(max_jobs))

            return {
                "statusCode": 200,
                "headers": {"Content-Type": "application/json"},
                "body": json.dumps({
                    "ok": True,
                    "processed": processed,
                    "max_jobs": max_jobs
                })
            }

        except Exception as e:
            logger.error("Error processing job queue", error=str(e), exc_info=True)
            return {
                "statusCode": 500,
                "headers": {"Content-Type": "application/json"},
                "body": json.dumps({"error": str(e)})
            }
