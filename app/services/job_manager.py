"""
In-memory singleton that tracks named background jobs (e.g. the bulk
knowledge-base embedding run).

Usage
-----
    from app.services.job_manager import job_manager, JobStatus

    status = JobStatus(name="embed-all")
    job_manager.start("embed-all", run_embedding_job(status), status)
    # ... later ...
    current = job_manager.get_status("embed-all")
"""
from __future__ import annotations

import asyncio
import dataclasses
import enum
import logging
import time
from typing import Any, Coroutine, Dict, List, Optional

logger = logging.getLogger(__name__)


class JobPhase(str, enum.Enum):
    IDLE = "idle"
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclasses.dataclass
class JobStatus:
    name: str
    phase: JobPhase = JobPhase.QUEUED
    total_items: int = 0
    items_done: int = 0
    items_failed: int = 0
    current_item: Optional[str] = None
    errors: List[str] = dataclasses.field(default_factory=list)
    started_at: float = dataclasses.field(default_factory=time.monotonic)
    completed_at: Optional[float] = None

    @property
    def elapsed_seconds(self) -> float:
        end = self.completed_at if self.completed_at else time.monotonic()
        return round(end - self.started_at, 2)


class JobManager:
    """Manages background asyncio.Tasks keyed by job name."""

    _tasks: Dict[str, asyncio.Task] = {}
    _status: Dict[str, JobStatus] = {}

    @classmethod
    def is_running(cls, name: str) -> bool:
        task = cls._tasks.get(name)
        return task is not None and not task.done()

    @classmethod
    def get_status(cls, name: str) -> Optional[JobStatus]:
        return cls._status.get(name)

    @classmethod
    def start(
        cls,
        name: str,
        coro: Coroutine[Any, Any, Any],
        status: Optional[JobStatus] = None,
    ) -> JobStatus:
        """
        Launch *coro* as the background job *name*.

        The returned JobStatus is shared with the running task so fields
        update in real time.  Raises RuntimeError if the job is already running.
        """
        if cls.is_running(name):
            coro.close()
            raise RuntimeError(f"Job '{name}' is already running")

        if status is None:
            status = JobStatus(name=name)
        cls._status[name] = status

        async def _wrapper() -> None:
            try:
                await coro
            except Exception as exc:
                logger.error("Background job %s failed: %s", name, exc, exc_info=True)
                status.phase = JobPhase.FAILED
                status.errors.append(f"job crash: {str(exc)[:200]}")
            finally:
                status.completed_at = time.monotonic()
                if status.phase not in (JobPhase.COMPLETED, JobPhase.FAILED):
                    status.phase = JobPhase.FAILED

        task = asyncio.create_task(_wrapper())
        cls._tasks[name] = task
        task.add_done_callback(lambda _t: cls._cleanup(name))

        logger.info("Background job %s started", name)
        return status

    @classmethod
    def _cleanup(cls, name: str) -> None:
        """Remove the task reference (status is kept for polling)."""
        cls._tasks.pop(name, None)


# Module-level singleton instance
job_manager = JobManager
