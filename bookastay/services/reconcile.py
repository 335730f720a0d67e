"""
Pure reconciliation of one external calendar event against local state.

``decide()`` performs no I/O; the sync service loads the two snapshots it
needs (the row carrying the event's UID and any covering booking from another
source) and applies the returned decision.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional

from bookastay.normalizers.calendar_events import ExternalEvent


class SyncAction(str, enum.Enum):
    INSERT = "insert"
    UPDATE = "update"
    SKIP = "skip"


@dataclass(frozen=True)
class Decision:
    action: SyncAction
    reason: str
    booking_id: Optional[Any] = None


def decide(
    event: ExternalEvent,
    room_type: str,
    existing_by_uid: Optional[dict[str, Any]],
    covering: Optional[dict[str, Any]],
) -> Decision:
    """
    Decide what to do with an external event.

    Args:
        event: Normalized event
        room_type: Room type of the feed the event came from
        existing_by_uid: Local booking already carrying ``event.uid``, if any
        covering: Confirmed booking from another source with identical dates and room, if any

    Returns:
        Decision: SKIP ("unchanged" or "covered"), UPDATE ("changed") or INSERT ("new")
    """
    if existing_by_uid is not None:
        unchanged = (
            existing_by_uid["check_in"] == event.check_in
            and existing_by_uid["check_out"] == event.check_out
            and existing_by_uid["room_type"] == room_type
        )
        if unchanged:
            return Decision(SyncAction.SKIP, "unchanged", existing_by_uid["id"])
        return Decision(SyncAction.UPDATE, "changed", existing_by_uid["id"])

    if covering is not None:
        return Decision(SyncAction.SKIP, "covered", covering["id"])

    return Decision(SyncAction.INSERT, "new")
