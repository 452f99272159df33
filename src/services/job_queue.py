"""Deferred job dispatch - enqueue now, execute later from a separate invocation."""

import itertools
import threading
import traceback
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Protocol
from src.models.job import Job
from src.services.supabase_client import (
    SupabaseClient,
    claim_job_batch,
    insert_job,
    mark_job_processed,
)
from src.utils.logging import (
    correlation_context,
    get_correlation_id,
    get_structured_logger,
    log_timing,
)

logger = get_structured_logger(__name__)

JobHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class JobStore(Protocol):
    """Durable storage behind the dispatcher."""

    async def insert(self, job_name: str, data: dict[str, Any]) -> str: ...

    async def claim_batch(self, job_names: list[str], batch_size: int) -> list[Job]: ...

    async def mark_processed(self, job_id: str, error_message: Optional[str] = None) -> None: ...


class SupabaseJobStore:
    """Job store backed by the `job_queue` table."""

    def __init__(self, url: str, key: str):
        self.db = SupabaseClient(url, key)

    async def insert(self, job_name: str, data: dict[str, Any]) -> str:
        return await insert_job(self.db, job_name, data)

    async def claim_batch(self, job_names: list[str], batch_size: int) -> list[Job]:
        rows = await claim_job_batch(self.db, job_names, batch_size)
        return [
            Job(
                id=str(row["id"]),
                job_name=row["job_name"],
                data=row.get("data") or {},
                created_at=row.get("created_at"),
            )
            for row in rows
        ]

    async def mark_processed(self, job_id: str, error_message: Optional[str] = None) -> None:
        await mark_job_processed(self.db, job_id, error_message)


class InMemoryJobStore:
    """Process-local job store for local development and tests."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.jobs: dict[str, dict[str, Any]] = {}

    async def insert(self, job_name: str, data: dict[str, Any]) -> str:
        with self._lock:
            job_id = str(next(self._ids))
            self.jobs[job_id] = {
                "job": Job(
                    id=job_id,
                    job_name=job_name,
                    data=data,
                    created_at=datetime.now(timezone.utc).isoformat(),
                ),
                "claimed": False,
                "processed": False,
                "error_message": None,
            }
        return job_id

    async def claim_batch(self, job_names: list[str], batch_size: int) -> list[Job]:
        with self._lock:
            pending = [
                entry for entry in self.jobs.values()
                if not entry["claimed"] and entry["job"].job_name in job_names
            ][:batch_size]
            for entry in pending:
                entry["claimed"] = True
        return [entry["job"] for entry in pending]

    async def mark_processed(self, job_id: str, error_message: Optional[str] = None) -> None:
        with self._lock:
            entry = self.jobs[job_id]
            entry["processed"] = True
            entry["error_message"] = error_message


class JobDispatcher:
    """
    Named, at-least-once job dispatch.

    `enqueue` only persists the job. `run_pending` is the consumer entry point:
    it claims stored jobs and delivers them to the handlers registered with
    `consume`. A claimed job is never handed to another `run_pending` call. A
    handler exception is logged and the job is dropped; nothing is retried.
    """

    def __init__(self, store: JobStore):
        self.store = store
        self.handlers: dict[str, JobHandler] = {}

    async def enqueue(self, job_name: str, data: dict[str, Any]) -> str:
        job_id = await self.store.insert(job_name, data)
        logger.info(
            "Job enqueued",
            correlation_id=get_correlation_id(),
            job_name=job_name,
            job_id=job_id,
        )
        return job_id

    def consume(self, job_name: str, handler: JobHandler) -> None:
        self.handlers[job_name] = handler

    async def run_job(self, job: Job) -> bool:
        """Run one job to completion. Returns False if its handler raised."""
        handler = self.handlers.get(job.job_name)
        if handler is None:
            logger.warning("No handler registered for job", job_name=job.job_name, job_id=job.id)
            return False

        error_message = None
        with correlation_context(f"job_{job.id}"):
            try:
                with log_timing("run_job", logger=logger, job_name=job.job_name, job_id=job.id):
                    await handler(job.data)
            except Exception as e:
                error_message = f"{type(e).__name__}: {e}"
                logger.error(
                    "Job handler failed",
                    job_name=job.job_name,
                    job_id=job.id,
                    error=str(e),
                    stack=traceback.format_exc(),
                    exc_info=True,
                )
            await self.store.mark_processed(job.id, error_message)
        return error_message is None

    async def run_pending(self, max_jobs: int = 5) -> int:
        """Deliver up to `max_jobs` stored jobs, one after another. Returns the number run."""
        if not self.handlers:
            return 0

        batch = await self.store.claim_batch(list(self.handlers), max_jobs)
        if not batch:
            logger.debug("No pending jobs")
            return 0

        logger.info("Retrieved job batch", batch_size=len(batch), max_jobs=max_jobs)

        succeeded = 0
        for job in batch:
            if await self.run_job(job):
                succeeded += 1

        logger.info(
            "Job batch completed",
            batch_size=len(batch),
            processed_successfully=succeeded,
            processed_failed=len(batch) - succeeded,
        )
        return len(batch)
