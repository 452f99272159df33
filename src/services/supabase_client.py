"""Supabase client wrapper with async context manager support."""

from datetime import datetime, timezone
from typing import Any, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.utils.errors import SupabaseError
import logging

logger = logging.getLogger(__name__)

JOB_QUEUE_TABLE = "job_queue"
SEEN_EVENTS_TABLE = "seen_events"

# One client per (url, key), reused across warm serverless invocations
_clients: dict[tuple[str, str], Client] = {}


def get_supabase_client(url: str, key: str) -> Client:
    """Get or create the Supabase client for these credentials."""
    if not url or not key:
        raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    client = _clients.get((url, key))
    if client is None:
        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )
        client = create_client(url, key, options)
        _clients[(url, key)] = client
        logger.info("Supabase client initialized", extra={"url": url})

    return client


def is_duplicate_key_error(error: Exception) -> bool:
    text = str(error).lower()
    return "duplicate key" in text or "23505" in text


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self, url: str, key: str):
        self.url = url
        self.key = key
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client(self.url, self.key)
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


# Job queue operations
async def insert_job(db: SupabaseClient, job_name: str, data: dict) -> str:
    """Insert a job row and return its id."""
    async with db as client:
        try:
            result = client.table(JOB_QUEUE_TABLE).insert({
                "job_name": job_name,
                "data": data,
            }).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to enqueue job: {e}") from e
        if result.data and len(result.data) > 0:
            return str(result.data[0]["id"])
        raise SupabaseError("Failed to enqueue job: no ID returned")


async def claim_job_batch(db: SupabaseClient, job_names: list[str], batch_size: int) -> list[dict[str, Any]]:
    """
    Claim up to `batch_size` of the oldest unclaimed jobs with one of the given names.

    Each row is claimed with a conditional update on `claimed_at IS NULL`, so
    of two overlapping processors only one gets a given job.
    """
    async with db as client:
        try:
            candidates = (
                client.table(JOB_QUEUE_TABLE)
                .select("id")
                .in_("job_name", job_names)
                .is_("processed_at", "null")
                .is_("claimed_at", "null")
                .order("created_at")
                .limit(batch_size)
                .execute()
            )
            claimed = []
            for row in candidates.data or []:
                result = (
                    client.table(JOB_QUEUE_TABLE)
                    .update({"claimed_at": datetime.now(timezone.utc).isoformat()})
                    .eq("id", row["id"])
                    .is_("claimed_at", "null")
                    .execute()
                )
                if result.data:
                    claimed.append(result.data[0])
            return claimed
        except Exception as e:
            raise SupabaseError(f"Failed to claim job batch: {e}") from e


async def mark_job_processed(db: SupabaseClient, job_id: str, error_message: Optional[str] = None) -> None:
    """Mark a job as processed, recording the handler error if any."""
    async with db as client:
        try:
            client.table(JOB_QUEUE_TABLE).update({
                "processed_at": "now()",
                "error_message": error_message,
            }).eq("id", job_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to mark job processed: {e}") from e


# Seen event operations
async def delete_expired_seen_event(db: SupabaseClient, event_id: str, now_iso: str) -> None:
    """Remove the record for `event_id` if its retention window has passed."""
    async with db as client:
        try:
            client.table(SEEN_EVENTS_TABLE).delete().eq("event_id", event_id).lt("expires_at", now_iso).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to purge seen event: {e}") from e


async def insert_seen_event(db: SupabaseClient, event_id: str, expires_at_iso: str) -> bool:
    """
    Record `event_id` as seen.

    Returns False if the row already exists. The primary key makes this an
    atomic check-and-insert across concurrent deliveries.
    """
    async with db as client:
        try:
            client.table(SEEN_EVENTS_TABLE).insert({
                "event_id": event_id,
                "expires_at": expires_at_iso,
            }).execute()
            return True
        except Exception as e:
            if is_duplicate_key_error(e):
                return False
            raise SupabaseError(f"Failed to insert seen event: {e}") from e


async def delete_seen_event(db: SupabaseClient, event_id: str) -> None:
    """Forget `event_id` so a redelivery is accepted again."""
    async with db as client:
        try:
            client.table(SEEN_EVENTS_TABLE).delete().eq("event_id", event_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete seen event: {e}") from e
