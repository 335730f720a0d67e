"""
Unit tests for outbox processing of confirmed-booking side effects.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Callable
from unittest.mock import patch

import pytest
from sqlalchemy import update
from sqlalchemy.engine import Engine

from bookastay.db.readers.bookings import get_booking
from bookastay.db.readers.outbox import list_tasks_for_booking
from bookastay.db.writers.outbox import insert_task
from bookastay.models.outbox import OutboxTask, OutboxTaskKind
from bookastay.services.collaborators import Collaborators
from bookastay.services.outbox import enqueue_task, process_outbox, retry_delay

BookingFactory = Callable[..., dict[str, Any]]


def _queue(engine: Engine, booking_id: Any, *kinds: OutboxTaskKind) -> None:
    with engine.begin() as conn:
        for kind in kinds:
            enqueue_task(conn, booking_id, kind)


def _tasks(engine: Engine, booking_id: Any) -> dict[str, dict[str, Any]]:
    with engine.connect() as conn:
        return {task["kind"]: task for task in list_tasks_for_booking(conn, booking_id)}


@pytest.mark.unit
def test_retry_delay_doubles() -> None:
    assert retry_delay(1, base_seconds=60) == timedelta(seconds=60)
    assert retry_delay(2, base_seconds=60) == timedelta(seconds=120)
    assert retry_delay(4, base_seconds=60) == timedelta(seconds=480)


@pytest.mark.unit
def test_due_tasks_run_once_and_are_marked_done(
    sqlite_engine: Engine, make_booking: BookingFactory, collaborators: Collaborators
) -> None:
    booking = make_booking(id_file_url="https://files.example.com/bookings/id.jpg")
    _queue(
        sqlite_engine,
        booking["id"],
        OutboxTaskKind.START_IDENTITY_VERIFICATION,
        OutboxTaskKind.SEND_BOOKING_NOTIFICATIONS,
    )

    summary = process_outbox(sqlite_engine, collaborators)
    second = process_outbox(sqlite_engine, collaborators)

    assert summary == {"done": 2, "retry": 0, "failed": 0}
    assert second == {"done": 0, "retry": 0, "failed": 0}
    assert {task["status"] for task in _tasks(sqlite_engine, booking["id"]).values()} == {"done"}
    collaborators.identity.create_verification.assert_called_once()
    assert collaborators.mailer.send.call_count == 2

    with sqlite_engine.connect() as conn:
        stored = get_booking(conn, booking["id"])
    assert stored["verification_reference"].startswith("booking_")
    assert stored["verification_status"] == "pending"


@pytest.mark.unit
def test_failing_task_is_retried_later_without_touching_the_booking(
    sqlite_engine: Engine, make_booking: BookingFactory, collaborators: Collaborators
) -> None:
    booking = make_booking()
    _queue(sqlite_engine, booking["id"], OutboxTaskKind.SEND_BOOKING_NOTIFICATIONS)
    collaborators.mailer.send.side_effect = ConnectionRefusedError("smtp down")

    summary = process_outbox(sqlite_engine, collaborators)

    task = _tasks(sqlite_engine, booking["id"])["send_booking_notifications"]
    assert summary == {"done": 0, "retry": 1, "failed": 0}
    assert task["status"] == "pending"
    assert task["attempts"] == 1
    assert "smtp down" in task["last_error"]
    with sqlite_engine.connect() as conn:
        assert get_booking(conn, booking["id"])["status"] == "confirmed"

    # Not due again until the backoff has passed.
    assert process_outbox(sqlite_engine, collaborators)["retry"] == 0


@pytest.mark.unit
def test_task_fails_permanently_after_max_attempts(
    sqlite_engine: Engine, make_booking: BookingFactory, collaborators: Collaborators
) -> None:
    booking = make_booking()
    _queue(sqlite_engine, booking["id"], OutboxTaskKind.SEND_BOOKING_NOTIFICATIONS)
    with sqlite_engine.begin() as conn:
        conn.execute(update(OutboxTask).values(attempts=4, max_attempts=5))
    collaborators.mailer.send.side_effect = ConnectionRefusedError("smtp down")

    summary = process_outbox(sqlite_engine, collaborators)

    task = _tasks(sqlite_engine, booking["id"])["send_booking_notifications"]
    assert summary["failed"] == 1
    assert task["status"] == "failed"
    assert task["attempts"] == 5


@pytest.mark.unit
def test_unknown_task_kind_is_retried(
    sqlite_engine: Engine, make_booking: BookingFactory, collaborators: Collaborators
) -> None:
    booking = make_booking()
    with sqlite_engine.begin() as conn:
        insert_task(conn, booking["id"], "send_fax")

    with patch("bookastay.services.outbox.logger") as mock_logger:
        summary = process_outbox(sqlite_engine, collaborators)

    assert summary["retry"] == 1
    assert "No handler" in mock_logger.warning.call_args.kwargs["error"]


@pytest.mark.unit
def test_verification_skipped_for_booking_without_document(
    sqlite_engine: Engine, make_booking: BookingFactory, collaborators: Collaborators
) -> None:
    booking = make_booking(id_file_url=None)
    _queue(sqlite_engine, booking["id"], OutboxTaskKind.START_IDENTITY_VERIFICATION)

    summary = process_outbox(sqlite_engine, collaborators)

    assert summary["done"] == 1
    collaborators.identity.create_verification.assert_not_called()
