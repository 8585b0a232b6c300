"""
Event Topology Tests
====================

Parent, children and row indexes built once per snapshot.
"""

from datetime import datetime, timedelta, timezone

from branchlane import TimelineEvent
from branchlane.core import EventTopology, has_relationships


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def create_event(event_id, minute, *parents):
    return TimelineEvent(
        event_id=event_id,
        timestamp=BASE_TIME + timedelta(minutes=minute),
        parent_ids=tuple(parents) if parents else None
    )


class TestEventTopology:

    def test_children_in_chronological_order(self):
        events = [
            create_event("A", 0),
            create_event("C", 1, "A"),
            create_event("B", 2, "A"),
            create_event("D", 3, "A", "B"),
        ]

        topology = EventTopology(events)

        assert topology.children_of("A") == ["C", "B", "D"]
        assert topology.child_count("A") == 3
        assert topology.children_of("D") == []

    def test_unknown_parents_have_no_row(self):
        topology = EventTopology([create_event("B", 0, "ghost")])

        assert topology.children_of("ghost") == ["B"]
        assert topology.row_of("ghost") is None
        assert not topology.is_known("ghost")
        assert topology.event_count == 1

    def test_unknown_lookups(self):
        topology = EventTopology([])

        assert topology.children_of("x") == []
        assert topology.child_count("x") == 0
        assert topology.parents_of("x") == ()

    def test_rows_and_parents(self):
        events = [create_event("A", 0), create_event("B", 1, "A")]

        topology = EventTopology(events)

        assert topology.row_of("B") == 1
        assert topology.parents_of("B") == ("A",)
        assert topology.parent_map == {"B": ("A",)}

    def test_parent_map_is_a_copy(self):
        topology = EventTopology([create_event("A", 0), create_event("B", 1, "A")])

        topology.parent_map["C"] = ("B",)

        assert "C" not in topology.parent_map


class TestHasRelationships:

    def test_flat(self):
        assert not has_relationships([create_event("A", 0), create_event("B", 1)])

    def test_empty_parent_list_is_flat(self):
        assert not has_relationships([TimelineEvent("A", BASE_TIME, parent_ids=[])])

    def test_any_parent(self):
        assert has_relationships([create_event("A", 0), create_event("B", 1, "zzz")])
