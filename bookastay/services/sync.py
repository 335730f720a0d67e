"""Calendar sync orchestrator: merges external iCal feeds into the booking table."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Optional

import structlog
from sqlalchemy.engine import Connection, Engine

from bookastay.config import CALENDAR_FEEDS, DRY_RUN, SYNC_HORIZON_DAYS
from bookastay.db.readers.bookings import find_covering_booking, get_booking_by_external_uid
from bookastay.db.writers.bookings import (
    delete_past_bookings_from_source,
    insert_booking,
    record_booking_event,
    update_booking,
)
from bookastay.metrics import sync_duration, sync_events, sync_runs
from bookastay.models.bookings import BookingSource, BookingStatus, PaymentStatus
from bookastay.normalizers.calendar_events import ExternalEvent, normalize_event
from bookastay.pollers.calendars import poll_calendar
from bookastay.services.reconcile import Decision, SyncAction, decide
from bookastay.topology import RoomTopology, default_topology
from bookastay.utils.datetime import utc_today

logger = structlog.get_logger(__name__)

EXTERNAL_SOURCE = BookingSource.AIRBNB.value


@dataclass
class SyncCounters:
    new: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0
    processed: int = 0

    def add(self, other: "SyncCounters") -> None:
        self.new += other.new
        self.updated += other.updated
        self.skipped += other.skipped
        self.errors += other.errors
        self.processed += other.processed

    def as_dict(self) -> dict[str, int]:
        return asdict(self)

    def run_status(self) -> str:
        """Outcome label for sync_runs: success, partial or failure (every event errored)."""
        if not self.errors:
            return "success"
        if self.errors >= self.processed:
            return "failure"
        return "partial"


def _decide_for_event(conn: Connection, event: ExternalEvent, room_type: str) -> Decision:
    existing = get_booking_by_external_uid(conn, event.uid)
    covering = None
    if existing is None:
        covering = find_covering_booking(
            conn, room_type, event.check_in, event.check_out, exclude_source=EXTERNAL_SOURCE
        )
    return decide(event, room_type, existing, covering)


def _apply_decision(
    conn: Connection,
    decision: Decision,
    event: ExternalEvent,
    feed: dict[str, str],
    room_type: str,
    topology: RoomTopology,
) -> None:
    unit_lo, unit_hi = topology.unit_span(room_type)

    if decision.action == SyncAction.INSERT:
        booking = insert_booking(
            conn,
            {
                "transaction_ref": event.uid,
                "external_uid": event.uid,
                "room_type": room_type,
                "unit_lo": unit_lo,
                "unit_hi": unit_hi,
                "check_in": event.check_in,
                "check_out": event.check_out,
                "status": BookingStatus.CONFIRMED.value,
                "payment_status": PaymentStatus.PAID.value,
                "source": EXTERNAL_SOURCE,
                "name": f"Airbnb Guest ({feed.get('name') or room_type})",
                "email": "airbnb@sync.bookastay.local",
                "guests": 1,
                "price": 0,
                "paid_amount": 0,
                "provider": EXTERNAL_SOURCE,
            },
        )
        record_booking_event(
            conn,
            booking["id"],
            "synced",
            to_status=BookingStatus.CONFIRMED.value,
            details={"uid": event.uid, "feed": feed.get("name")},
        )

    elif decision.action == SyncAction.UPDATE:
        update_booking(
            conn,
            decision.booking_id,
            {
                "room_type": room_type,
                "unit_lo": unit_lo,
                "unit_hi": unit_hi,
                "check_in": event.check_in,
                "check_out": event.check_out,
            },
        )
        record_booking_event(
            conn,
            decision.booking_id,
            "sync_updated",
            details={
                "uid": event.uid,
                "check_in": event.check_in.isoformat(),
                "check_out": event.check_out.isoformat(),
                "room_type": room_type,
            },
        )


def sync_feed(
    engine: Engine,
    feed: dict[str, str],
    today: Optional[date] = None,
    dry_run: bool = DRY_RUN,
    topology: RoomTopology = default_topology,
) -> SyncCounters:
    """
    Reconcile one external calendar feed into the booking table.

    Each event is read and written in its own transaction, so a failing event
    (bad data, store error, exclusion-constraint violation) is counted and
    skipped without affecting the others. A feed that cannot be fetched or
    parsed counts as one error.

    Args:
        engine: Booking store engine
        feed: ``{"url", "room_type", "name"}``
        today: Reference date for the look-ahead horizon
        dry_run: Decide and count without writing
        topology: Room topology

    Returns:
        SyncCounters: Outcome counts for this feed
    """
    counters = SyncCounters()
    name = feed.get("name") or feed.get("room_type", "unknown")
    today = today or utc_today()
    horizon = today + timedelta(days=SYNC_HORIZON_DAYS)
    start_time = time.time()

    try:
        room_type = topology.normalize(feed.get("room_type"))
        components = poll_calendar(feed)
    except Exception as e:
        counters.errors += 1
        sync_events.labels(feed=name, action="error").inc()
        logger.exception("calendar_feed_failed", feed=name, error=str(e))
        return counters

    for component in components:
        try:
            event = normalize_event(component)
        except ValueError as e:
            counters.processed += 1
            counters.errors += 1
            sync_events.labels(feed=name, action="error").inc()
            logger.warning("calendar_event_invalid", feed=name, error=str(e))
            continue

        if event.check_in > horizon:
            continue

        counters.processed += 1
        try:
            if dry_run:
                with engine.connect() as conn:
                    decision = _decide_for_event(conn, event, room_type)
            else:
                with engine.begin() as conn:
                    decision = _decide_for_event(conn, event, room_type)
                    _apply_decision(conn, decision, event, feed, room_type, topology)
        except Exception as e:
            counters.errors += 1
            sync_events.labels(feed=name, action="error").inc()
            logger.exception("calendar_event_failed", feed=name, uid=event.uid, error=str(e))
            continue

        if decision.action == SyncAction.INSERT:
            counters.new += 1
        elif decision.action == SyncAction.UPDATE:
            counters.updated += 1
        else:
            counters.skipped += 1
        sync_events.labels(feed=name, action=decision.action.value).inc()

        logger.debug(
            "calendar_event_reconciled",
            feed=name,
            uid=event.uid,
            action=decision.action.value,
            reason=decision.reason,
            check_in=event.check_in.isoformat(),
            check_out=event.check_out.isoformat(),
            dry_run=dry_run,
        )

    sync_duration.labels(feed=name).observe(time.time() - start_time)
    sync_runs.labels(feed=name, status=counters.run_status()).inc()
    logger.info(
        "calendar_feed_synced", feed=name, room_type=room_type, dry_run=dry_run, **counters.as_dict()
    )
    return counters


def sync_all_feeds(
    engine: Engine,
    feeds: Optional[Iterable[dict[str, str]]] = None,
    today: Optional[date] = None,
    dry_run: bool = DRY_RUN,
    topology: RoomTopology = default_topology,
) -> SyncCounters:
    """
    Run sync_feed() for every configured feed. Never raises.

    Args:
        engine: Booking store engine
        feeds: Feed configs (defaults to CALENDAR_FEEDS)
        today: Reference date for the look-ahead horizon
        dry_run: Decide and count without writing
        topology: Room topology

    Returns:
        SyncCounters: Totals across all feeds
    """
    feed_list = list(CALENDAR_FEEDS if feeds is None else feeds)
    logger.info("calendar_sync_started", feeds=len(feed_list), dry_run=dry_run)

    totals = SyncCounters()
    for feed in feed_list:
        try:
            totals.add(sync_feed(engine, feed, today=today, dry_run=dry_run, topology=topology))
        except Exception as e:
            totals.errors += 1
            logger.exception("calendar_feed_sync_crashed", feed=feed.get("name"), error=str(e))

    logger.info("calendar_sync_completed", feeds=len(feed_list), dry_run=dry_run, **totals.as_dict())
    return totals


def cleanup_past_external_bookings(
    engine: Engine,
    today: Optional[date] = None,
    dry_run: bool = DRY_RUN,
) -> int:
    """
    Delete synced bookings whose checkout day has passed.

    Args:
        engine: Booking store engine
        today: Rows with check_out before this date are deleted
        dry_run: Log only

    Returns:
        int: Number of bookings deleted
    """
    today = today or utc_today()
    if dry_run:
        logger.info("external_cleanup_skipped", reason="dry_run", before=today.isoformat())
        return 0

    with engine.begin() as conn:
        deleted_ids = delete_past_bookings_from_source(conn, EXTERNAL_SOURCE, today)
        for booking_id in deleted_ids:
            record_booking_event(
                conn, booking_id, "deleted", details={"reason": "past_checkout"}
            )

    logger.info("external_bookings_cleaned_up", deleted=len(deleted_ids), before=today.isoformat())
    return len(deleted_ids)


def run_sync_and_cleanup(engine: Engine, dry_run: bool = DRY_RUN) -> dict[str, Any]:
    """One-shot sync of every feed followed by cleanup."""
    totals = sync_all_feeds(engine, dry_run=dry_run)
    deleted = cleanup_past_external_bookings(engine, dry_run=dry_run)
    return {**totals.as_dict(), "cleaned_up": deleted}
