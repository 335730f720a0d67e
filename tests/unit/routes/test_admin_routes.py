"""
Unit tests for the admin API and its key check.
"""

from __future__ import annotations

import uuid
from typing import Any, Callable, Generator
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from bookastay.models.outbox import OutboxTaskKind
from bookastay.services.outbox import enqueue_task

BookingFactory = Callable[..., dict[str, Any]]

ADMIN_KEY = "test-admin-key"
HEADERS = {"X-Admin-Key": ADMIN_KEY}


@pytest.fixture(autouse=True)
def admin_key() -> Generator[None, None, None]:
    with patch("bookastay.dependencies.ADMIN_API_KEY", ADMIN_KEY):
        yield


@pytest.mark.unit
def test_missing_or_wrong_key_is_401(api_client: TestClient) -> None:
    assert api_client.get("/api/admin/bookings").status_code == 401
    assert api_client.get("/api/admin/bookings", headers={"X-Admin-Key": "nope"}).status_code == 401


@pytest.mark.unit
def test_unconfigured_admin_api_is_503(api_client: TestClient) -> None:
    with patch("bookastay.dependencies.ADMIN_API_KEY", None):
        response = api_client.get("/api/admin/bookings", headers=HEADERS)

    assert response.status_code == 503


@pytest.mark.unit
def test_block_list_and_lift(api_client: TestClient, make_booking: BookingFactory) -> None:
    guest = make_booking(room_type="room1")

    created = api_client.post(
        "/api/admin/blocks",
        json={"room_type": "room2", "check_in": "2030-07-01", "check_out": "2030-07-03", "reason": "Painting"},
        headers=HEADERS,
    )
    block_id = created.json()["booking"]["id"]
    listing = api_client.get("/api/admin/bookings", headers=HEADERS).json()
    lifted = api_client.delete(f"/api/admin/bookings/{block_id}", headers=HEADERS)

    assert created.status_code == 201
    assert created.json()["booking"]["block_reason"] == "Painting"
    assert [b["id"] for b in listing["bookings"]] == [str(guest["id"])]
    assert [b["id"] for b in listing["blocks"]] == [block_id]
    assert lifted.status_code == 200


@pytest.mark.unit
def test_block_over_confirmed_booking_is_409(api_client: TestClient, make_booking: BookingFactory) -> None:
    make_booking(room_type="room1")

    response = api_client.post(
        "/api/admin/blocks",
        json={"room_type": "entire", "check_in": "2030-06-02", "check_out": "2030-06-03"},
        headers=HEADERS,
    )

    assert response.status_code == 409


@pytest.mark.unit
def test_paid_guest_booking_cannot_be_deleted(api_client: TestClient, make_booking: BookingFactory) -> None:
    booking = make_booking()

    response = api_client.delete(f"/api/admin/bookings/{booking['id']}", headers=HEADERS)

    assert response.status_code == 409
    assert response.json()["error"] == "deletion_refused"


@pytest.mark.unit
def test_cancel_pending_booking(api_client: TestClient, make_booking: BookingFactory) -> None:
    pending = make_booking(status="booked", payment_status="pending")

    response = api_client.post(f"/api/admin/bookings/{pending['id']}/cancel", headers=HEADERS)
    missing = api_client.post(f"/api/admin/bookings/{uuid.uuid4()}/cancel", headers=HEADERS)

    assert response.json()["booking"]["status"] == "cancelled"
    assert missing.status_code == 404


@pytest.mark.unit
@patch("bookastay.routes.admin.sync_all_feeds")
def test_trigger_sync_runs_in_background(mock_sync: MagicMock, api_client: TestClient) -> None:
    response = api_client.post("/api/admin/sync", params={"dry_run": "true"}, headers=HEADERS)

    assert response.status_code == 202
    assert response.json() == {"message": "Calendar sync scheduled (dry_run=True)"}
    assert mock_sync.call_args.kwargs == {"dry_run": True}


@pytest.mark.unit
@patch("bookastay.routes.admin.cleanup_past_external_bookings")
def test_cleanup(mock_cleanup: MagicMock, api_client: TestClient) -> None:
    mock_cleanup.return_value = 3

    response = api_client.post("/api/admin/cleanup", params={"dry_run": "false"}, headers=HEADERS)

    assert response.json() == {"success": True, "deleted": 3}
    assert mock_cleanup.call_args.kwargs == {"dry_run": False}


@pytest.mark.unit
def test_booked_dates(api_client: TestClient, make_booking: BookingFactory) -> None:
    make_booking(room_type="entire")

    response = api_client.get("/api/admin/booked-dates", headers=HEADERS)

    assert response.json()["dates"][0]["room_type"] == "entire"


@pytest.mark.unit
def test_booking_tasks(
    api_client: TestClient, sqlite_engine: Engine, make_booking: BookingFactory
) -> None:
    booking = make_booking()
    with sqlite_engine.begin() as conn:
        enqueue_task(conn, booking["id"], OutboxTaskKind.SEND_BOOKING_NOTIFICATIONS)

    response = api_client.get(f"/api/admin/bookings/{booking['id']}/tasks", headers=HEADERS)
    missing = api_client.get(f"/api/admin/bookings/{uuid.uuid4()}/tasks", headers=HEADERS)

    tasks = response.json()["tasks"]
    assert [(t["kind"], t["status"], t["attempts"]) for t in tasks] == [
        ("send_booking_notifications", "pending", 0)
    ]
    assert missing.status_code == 404
