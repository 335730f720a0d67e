"""
In-process periodic job runner.

One daemon thread wakes up every ``tick_seconds`` and runs whichever jobs
are due. A job that raises is logged and rescheduled; it never stops the loop.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import structlog
from sqlalchemy.engine import Engine

from bookastay.config import (
    CLEANUP_INTERVAL_SECONDS,
    DRY_RUN,
    OUTBOX_POLL_SECONDS,
    SYNC_INTERVAL_SECONDS,
)
from bookastay.services.collaborators import Collaborators
from bookastay.services.outbox import process_outbox
from bookastay.services.sync import cleanup_past_external_bookings, sync_all_feeds

logger = structlog.get_logger(__name__)


@dataclass
class PeriodicJob:
    name: str
    interval_seconds: float
    func: Callable[[], object]
    next_run_at: float = field(default=0.0)

    def is_due(self, now: float) -> bool:
        return now >= self.next_run_at


class Scheduler:
    def __init__(self, jobs: list[PeriodicJob], tick_seconds: float = 5.0) -> None:
        self.jobs = jobs
        self.tick_seconds = tick_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def run_pending(self, now: Optional[float] = None) -> list[str]:
        """
        Run every due job once.

        Args:
            now: Monotonic timestamp (defaults to time.monotonic())

        Returns:
            list[str]: Names of the jobs that ran
        """
        now = time.monotonic() if now is None else now
        ran = []
        for job in self.jobs:
            if not job.is_due(now):
                continue
            job.next_run_at = now + job.interval_seconds
            ran.append(job.name)
            try:
                job.func()
            except Exception as e:
                logger.exception("scheduled_job_failed", job=job.name, error=str(e))
        return ran

    def _loop(self) -> None:
        logger.info("scheduler_started", jobs=[job.name for job in self.jobs])
        while not self._stop.is_set():
            self.run_pending()
            self._stop.wait(self.tick_seconds)
        logger.info("scheduler_stopped")

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="bookastay-scheduler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 10.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)


def build_scheduler(engine: Engine, collaborators: Collaborators) -> Scheduler:
    """Calendar sync, past-booking cleanup and outbox processing, each on its own interval."""
    return Scheduler(
        [
            PeriodicJob(
                "calendar_sync",
                SYNC_INTERVAL_SECONDS,
                lambda: sync_all_feeds(engine, dry_run=DRY_RUN),
            ),
            PeriodicJob(
                "external_cleanup",
                CLEANUP_INTERVAL_SECONDS,
                lambda: cleanup_past_external_bookings(engine, dry_run=DRY_RUN),
            ),
            PeriodicJob(
                "outbox",
                OUTBOX_POLL_SECONDS,
                lambda: process_outbox(engine, collaborators),
            ),
        ]
    )
