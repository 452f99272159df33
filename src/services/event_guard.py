"""Duplicate webhook delivery suppression."""

import hashlib
import json
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol
from src.services.supabase_client import (
    SupabaseClient,
    delete_expired_seen_event,
    delete_seen_event,
    insert_seen_event,
)
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

DEFAULT_TTL_SECONDS = 3600


def generate_event_id(body: dict, headers: Optional[dict] = None) -> str:
    """
    Derive a deterministic id for a webhook delivery.

    Prefers the envelope's event_id, then a slash command's trigger_id, and
    falls back to a hash of the body.
    """
    if isinstance(body, dict):
        event_id = body.get("event_id")
        if event_id:
            return str(event_id)

        trigger_id = body.get("trigger_id")
        if isinstance(trigger_id, list):
            trigger_id = trigger_id[0] if trigger_id else None
        if trigger_id:
            return f"slash_{trigger_id}"

        body_str = json.dumps(body, sort_keys=True)
        return hashlib.sha1(body_str.encode()).hexdigest()

    return hashlib.sha1(str(body).encode()).hexdigest()


class SeenEventStore(Protocol):
    async def add_if_absent(self, event_id: str, ttl_seconds: int) -> bool: ...

    async def discard(self, event_id: str) -> None: ...


class InMemorySeenEventStore:
    """Lock-protected seen-id set with expiry."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._expires: dict[str, float] = {}

    async def add_if_absent(self, event_id: str, ttl_seconds: int) -> bool:
        now = self._clock()
        with self._lock:
            expired = [k for k, expires in self._expires.items() if expires <= now]
            for k in expired:
                del self._expires[k]
            if event_id in self._expires:
                return False
            self._expires[event_id] = now + ttl_seconds
            return True

    async def discard(self, event_id: str) -> None:
        with self._lock:
            self._expires.pop(event_id, None)


class SupabaseSeenEventStore:
    """Seen-id set in the `seen_events` table (event_id primary key)."""

    def __init__(self, url: str, key: str):
        self.db = SupabaseClient(url, key)

    async def add_if_absent(self, event_id: str, ttl_seconds: int) -> bool:
        now = datetime.now(timezone.utc)
        await delete_expired_seen_event(self.db, event_id, now.isoformat())
        expires_at = now + timedelta(seconds=ttl_seconds)
        return await insert_seen_event(self.db, event_id, expires_at.isoformat())

    async def discard(self, event_id: str) -> None:
        await delete_seen_event(self.db, event_id)


class DuplicateEventGuard:
    """Accept each event id once per retention window."""

    def __init__(self, store: SeenEventStore, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def accept(self, event_id: str) -> bool:
        """
        True the first time `event_id` is seen within the window, False after.

        A store failure fails open: the delivery is accepted and the error logged.
        """
        try:
            accepted = await self.store.add_if_absent(event_id, self.ttl_seconds)
        except Exception as e:
            logger.error("Error checking duplicate event", event_id=event_id, error=str(e), exc_info=True)
            return True

        if not accepted:
            logger.info("Duplicate event detected", event_id=event_id)
        return accepted

    async def release(self, event_id: str) -> None:
        """Forget `event_id` after its delivery could not be handed off, so a retry is accepted."""
        try:
            await self.store.discard(event_id)
        except Exception as e:
            logger.error("Error releasing event id", event_id=event_id, error=str(e), exc_info=True)
