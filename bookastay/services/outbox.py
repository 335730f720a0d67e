"""
Outbox processing for side effects of confirmed bookings.

Tasks are queued in the transaction that confirms a booking and run here,
after the commit, from a FastAPI background task or the scheduler. A failing
task is retried with exponential backoff and marked ``failed`` once it has
used up its attempts; the booking itself is never touched by a failure.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Callable, Optional
from uuid import UUID

import structlog
from sqlalchemy.engine import Connection, Engine

from bookastay.config import OUTBOX_MAX_ATTEMPTS, OUTBOX_RETRY_BASE_SECONDS
from bookastay.db.readers.bookings import get_booking
from bookastay.db.readers.outbox import get_due_tasks, list_tasks_for_booking
from bookastay.db.writers.outbox import (
    insert_task,
    lease_tasks,
    mark_task_done,
    mark_task_failed,
    mark_task_retry,
)
from bookastay.exceptions import BookingNotFoundError
from bookastay.metrics import outbox_tasks
from bookastay.models.outbox import OutboxTaskKind
from bookastay.services.collaborators import Collaborators
from bookastay.services.notifications import send_booking_notifications
from bookastay.services.verification import start_booking_verification
from bookastay.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

TaskHandler = Callable[[Engine, Collaborators, dict[str, Any]], None]

TASK_LEASE = timedelta(minutes=5)


def enqueue_task(
    conn: Connection,
    booking_id: UUID,
    kind: OutboxTaskKind,
    payload: Optional[dict[str, Any]] = None,
) -> UUID:
    return insert_task(conn, booking_id, kind.value, payload, max_attempts=OUTBOX_MAX_ATTEMPTS)


def retry_delay(attempts: int, base_seconds: int = OUTBOX_RETRY_BASE_SECONDS) -> timedelta:
    """
    Backoff before the next attempt: ``base * 2 ** (attempts - 1)``.

    Example:
        >>> retry_delay(3, base_seconds=60)
        datetime.timedelta(seconds=240)
    """
    return timedelta(seconds=base_seconds * 2 ** max(attempts - 1, 0))


def _start_identity_verification(
    engine: Engine, collaborators: Collaborators, task: dict[str, Any]
) -> None:
    start_booking_verification(engine, collaborators.identity, task["booking_id"])


def _send_booking_notifications(
    engine: Engine, collaborators: Collaborators, task: dict[str, Any]
) -> None:
    with engine.connect() as conn:
        booking = get_booking(conn, task["booking_id"])
    if booking is None:
        logger.info("notification_skipped", booking_id=str(task["booking_id"]), reason="missing")
        return
    send_booking_notifications(collaborators.mailer, booking)


HANDLERS: dict[str, TaskHandler] = {
    OutboxTaskKind.START_IDENTITY_VERIFICATION.value: _start_identity_verification,
    OutboxTaskKind.SEND_BOOKING_NOTIFICATIONS.value: _send_booking_notifications,
}


def process_outbox(engine: Engine, collaborators: Collaborators, limit: int = 20) -> dict[str, int]:
    """
    Run due outbox tasks once.

    Due tasks are claimed by pushing their next attempt past a short lease;
    each task's outcome is then recorded in its own transaction.

    Args:
        engine: Booking store engine
        collaborators: Gateway clients the handlers use
        limit: Maximum number of tasks to run

    Returns:
        dict: Counts of ``done``, ``retry`` and ``failed`` tasks
    """
    with engine.begin() as conn:
        tasks = get_due_tasks(conn, utc_now(), limit=limit)
        lease_tasks(conn, [task["id"] for task in tasks], utc_now() + TASK_LEASE)

    summary = {"done": 0, "retry": 0, "failed": 0}
    for task in tasks:
        attempts = task["attempts"] + 1
        handler = HANDLERS.get(task["kind"])
        try:
            if handler is None:
                raise ValueError(f"No handler for outbox task kind {task['kind']}")
            handler(engine, collaborators, task)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            with engine.begin() as conn:
                if attempts >= task["max_attempts"]:
                    mark_task_failed(conn, task["id"], attempts, error)
                    outcome = "failed"
                else:
                    next_attempt_at = utc_now() + retry_delay(attempts)
                    mark_task_retry(conn, task["id"], attempts, error, next_attempt_at)
                    outcome = "retry"
            summary[outcome] += 1
            outbox_tasks.labels(kind=task["kind"], outcome=outcome).inc()
            logger.warning(
                "outbox_task_failed",
                task_id=str(task["id"]),
                kind=task["kind"],
                booking_id=str(task["booking_id"]),
                attempts=attempts,
                outcome=outcome,
                error=error,
            )
            continue

        with engine.begin() as conn:
            mark_task_done(conn, task["id"], attempts)
        summary["done"] += 1
        outbox_tasks.labels(kind=task["kind"], outcome="done").inc()
        logger.info(
            "outbox_task_done",
            task_id=str(task["id"]),
            kind=task["kind"],
            booking_id=str(task["booking_id"]),
            attempts=attempts,
        )

    if tasks:
        logger.info("outbox_processed", **summary)
    return summary


def list_booking_tasks(engine: Engine, booking_id: UUID) -> list[dict[str, Any]]:
    """
    Side-effect tasks queued for a booking, oldest first, for admin inspection.

    Raises:
        BookingNotFoundError: Unknown booking
    """
    with engine.connect() as conn:
        if get_booking(conn, booking_id) is None:
            raise BookingNotFoundError("Booking not found")
        tasks = list_tasks_for_booking(conn, booking_id)
    return [
        {
            "kind": task["kind"],
            "status": task["status"],
            "attempts": task["attempts"],
            "max_attempts": task["max_attempts"],
            "last_error": task["last_error"],
            "next_attempt_at": task["next_attempt_at"],
        }
        for task in tasks
    ]
