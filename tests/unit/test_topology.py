"""
Unit tests for the room topology.
"""

from __future__ import annotations

import pytest

from bookastay.exceptions import UnknownRoomTypeError
from bookastay.topology import RoomTopology


@pytest.mark.unit
def test_normalize_lowercases_and_strips(topology: RoomTopology) -> None:
    assert topology.normalize("  Room1 ") == "room1"
    assert topology.normalize("ENTIRE") == "entire"


@pytest.mark.unit
@pytest.mark.parametrize("value", ["", None, "room3", "penthouse"])
def test_normalize_rejects_unknown_room_types(topology: RoomTopology, value: str) -> None:
    with pytest.raises(UnknownRoomTypeError):
        topology.normalize(value)


@pytest.mark.unit
def test_conflicting_scopes_lists_entire_first(topology: RoomTopology) -> None:
    """A sub-room is blocked by the whole apartment and by itself, never by a sibling."""
    assert topology.conflicting_scopes("room2") == ["entire", "room2"]
    assert topology.conflicting_scopes("entire") == ["entire", "room1", "room2"]


@pytest.mark.unit
def test_unit_spans_encode_containment(topology: RoomTopology) -> None:
    assert topology.unit_span("entire") == (1, 3)
    assert topology.unit_span("room1") == (1, 2)
    assert topology.unit_span("room2") == (2, 3)


@pytest.mark.unit
def test_scopes_intersect_matches_conflicting_scopes(topology: RoomTopology) -> None:
    for first in topology.room_types:
        for second in topology.room_types:
            expected = second in topology.conflicting_scopes(first)
            assert topology.scopes_intersect(first, second) is expected


@pytest.mark.unit
def test_three_room_topology() -> None:
    layout = RoomTopology(entire="whole", rooms=("a", "b", "c"))

    assert layout.unit_span("whole") == (1, 4)
    assert layout.unit_span("c") == (3, 4)
    assert not layout.scopes_intersect("a", "c")
    assert layout.scopes_intersect("whole", "b")
