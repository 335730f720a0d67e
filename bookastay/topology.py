"""
Room topology: one entire-apartment scope containing N sub-rooms.

Booking ``entire`` excludes every sub-room and any sub-room booking excludes
``entire``; sub-rooms never exclude each other.

Each scope maps to a half-open span of physical units. Sub-room ``i`` (in
configuration order, 1-based) covers ``[i, i + 1)`` and ``entire`` covers
``[1, N + 1)``, so two scopes conflict exactly when their spans intersect.
The store's exclusion constraint relies on this encoding.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from bookastay.config import ENTIRE_ROOM_TYPE, SUB_ROOM_TYPES
from bookastay.exceptions import UnknownRoomTypeError


@dataclass(frozen=True)
class RoomTopology:
    entire: str = "entire"
    rooms: tuple[str, ...] = field(default=("room1", "room2"))

    def normalize(self, room_type: str | None) -> str:
        """
        Canonicalize a room type, raising for anything outside the topology.

        Args:
            room_type: Raw value from a request or feed configuration

        Returns:
            str: Lower-cased room type

        Raises:
            UnknownRoomTypeError: If the value is empty or not a known scope
        """
        value = (room_type or "").strip().lower()
        if value == self.entire or value in self.rooms:
            return value
        raise UnknownRoomTypeError(room_type or "")

    def is_entire(self, room_type: str) -> bool:
        return self.normalize(room_type) == self.entire

    @property
    def room_types(self) -> tuple[str, ...]:
        return (self.entire, *self.rooms)

    def conflicting_scopes(self, room_type: str) -> list[str]:
        """
        Scopes whose active bookings block ``room_type``, entire first.

        For ``entire`` every scope conflicts.
        """
        value = self.normalize(room_type)
        return [scope for scope in self.room_types if self.scopes_intersect(value, scope)]

    def unit_span(self, room_type: str) -> tuple[int, int]:
        value = self.normalize(room_type)
        if value == self.entire:
            return 1, len(self.rooms) + 1
        index = self.rooms.index(value) + 1
        return index, index + 1

    def scopes_intersect(self, first: str, second: str) -> bool:
        lo_a, hi_a = self.unit_span(first)
        lo_b, hi_b = self.unit_span(second)
        return lo_a < hi_b and lo_b < hi_a


default_topology = RoomTopology(entire=ENTIRE_ROOM_TYPE, rooms=tuple(SUB_ROOM_TYPES))
