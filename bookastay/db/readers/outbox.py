from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.engine import Connection

from bookastay.models.outbox import OutboxTask, OutboxTaskStatus


def get_due_tasks(conn: Connection, now: datetime, limit: int = 20) -> list[dict[str, Any]]:
    """
    Pending outbox tasks whose next attempt time has passed, oldest first.

    On PostgreSQL the rows are locked with ``FOR UPDATE SKIP LOCKED`` so two
    processors never claim the same task; other dialects ignore the hint.

    Args:
        conn (Connection): Connection inside the transaction that will process the tasks.
        now (datetime): Current time.
        limit (int): Maximum number of tasks to return.

    Returns:
        list[dict]: Outbox task columns.
    """
    stmt = (
        select(OutboxTask.__table__)
        .where(
            OutboxTask.status == OutboxTaskStatus.PENDING.value,
            OutboxTask.next_attempt_at <= now,
        )
        .order_by(OutboxTask.next_attempt_at)
        .limit(limit)
        .with_for_update(skip_locked=True)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]


def list_tasks_for_booking(conn: Connection, booking_id: Any) -> list[dict[str, Any]]:
    stmt = (
        select(OutboxTask.__table__)
        .where(OutboxTask.booking_id == booking_id)
        .order_by(OutboxTask.created_at)
    )
    return [dict(row) for row in conn.execute(stmt).mappings()]
