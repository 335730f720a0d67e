import uuid
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from bookastay.metrics import db_operations
from bookastay.models.outbox import OutboxTask, OutboxTaskStatus
from bookastay.utils.datetime import utc_now


def insert_task(
    conn: Connection,
    booking_id: UUID,
    kind: str,
    payload: Optional[dict[str, Any]] = None,
    max_attempts: int = 5,
) -> UUID:
    """
    Queue an outbox task, due immediately.

    Args:
        conn: Connection inside the transaction that owns the booking change
        booking_id: Booking the task acts on
        kind: Task kind (see OutboxTaskKind)
        payload: JSON-serializable task arguments
        max_attempts: Attempts before the task is marked failed

    Returns:
        UUID: ID of the new task
    """
    now = utc_now()
    task_id = uuid.uuid4()
    conn.execute(
        insert(OutboxTask).values(
            id=task_id,
            booking_id=booking_id,
            kind=kind,
            payload=payload or {},
            status=OutboxTaskStatus.PENDING.value,
            attempts=0,
            max_attempts=max_attempts,
            next_attempt_at=now,
            created_at=now,
            updated_at=now,
        )
    )
    db_operations.labels(operation="insert", table="outbox_tasks").inc()
    return task_id


def mark_task_done(conn: Connection, task_id: UUID, attempts: int) -> None:
    conn.execute(
        update(OutboxTask)
        .where(OutboxTask.id == task_id)
        .values(
            status=OutboxTaskStatus.DONE.value,
            attempts=attempts,
            last_error=None,
            updated_at=utc_now(),
        )
    )
    db_operations.labels(operation="update", table="outbox_tasks").inc()


def mark_task_retry(
    conn: Connection, task_id: UUID, attempts: int, error: str, next_attempt_at: datetime
) -> None:
    conn.execute(
        update(OutboxTask)
        .where(OutboxTask.id == task_id)
        .values(
            attempts=attempts,
            last_error=error,
            next_attempt_at=next_attempt_at,
            updated_at=utc_now(),
        )
    )
    db_operations.labels(operation="update", table="outbox_tasks").inc()


def mark_task_failed(conn: Connection, task_id: UUID, attempts: int, error: str) -> None:
    conn.execute(
        update(OutboxTask)
        .where(OutboxTask.id == task_id)
        .values(
            status=OutboxTaskStatus.FAILED.value,
            attempts=attempts,
            last_error=error,
            updated_at=utc_now(),
        )
    )
    db_operations.labels(operation="update", table="outbox_tasks").inc()


def lease_tasks(conn: Connection, task_ids: list[UUID], until: datetime) -> None:
    """Push ``next_attempt_at`` of claimed tasks forward so no other processor picks them up."""
    if not task_ids:
        return
    conn.execute(
        update(OutboxTask)
        .where(OutboxTask.id.in_(task_ids))
        .values(next_attempt_at=until, updated_at=utc_now())
    )
    db_operations.labels(operation="update", table="outbox_tasks").inc()
