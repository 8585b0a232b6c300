"""
Branch Analyzer Tests
=====================

Lane assignment and branch point recording.

VERIFIED:
=========
1. Flat timelines stay on a single lane (fast path)
2. First child keeps the parent's lane, later siblings diverge
3. Merges land on the lowest parent lane, one record per other parent
4. Lanes are allocated monotonically and never reused
5. Bad parent references degrade to the trunk and surface as diagnostics
"""

import uuid
import pytest
from datetime import datetime, timedelta, timezone

from branchlane import (
    analyze, BranchAnalyzer, TimelineEvent, BranchPoint, BranchPointKind,
    ErrorCode, LayoutObserver, build_parent_index
)


BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def create_event(event_id, minute, *parents):
    return TimelineEvent(
        event_id=event_id,
        timestamp=BASE_TIME + timedelta(minutes=minute),
        parent_ids=tuple(parents) if parents else None
    )


class TestEndToEndScenarios:

    def test_no_relationships(self):
        """Events without parents all sit on the trunk."""
        events = [create_event("A", 0), create_event("B", 1), create_event("C", 2)]

        layout = analyze(events)

        assert layout.lane_count == 1
        assert dict(layout.item_lanes) == {"A": 0, "B": 0, "C": 0}
        assert layout.branch_points == ()
        assert dict(layout.parent_map) == {}

    def test_linear_chain(self):
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "B"),
        ]

        layout = analyze(events)

        assert layout.lane_count == 1
        assert dict(layout.item_lanes) == {"A": 0, "B": 0, "C": 0}
        assert layout.branch_points == ()

    def test_simple_fork(self):
        """Second child of a parent opens a new lane."""
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "A"),
        ]

        layout = analyze(events)

        assert layout.lane_count == 2
        assert layout.lane_of("B") == 0
        assert layout.lane_of("C") == 1
        assert layout.branch_points == (
            BranchPoint(item_id="C", kind=BranchPointKind.CREATE, from_lane=0, to_lane=1),
        )

    def test_simple_merge(self):
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "A"),
            create_event("D", 3, "B", "C"),
        ]

        layout = analyze(events)

        assert layout.lane_of("D") == 0
        assert layout.lane_count == 2
        merges = [bp for bp in layout.branch_points if bp.kind == BranchPointKind.MERGE]
        assert merges == [
            BranchPoint(item_id="D", kind=BranchPointKind.MERGE, from_lane=1, to_lane=0)
        ]

    def test_three_way_fan_out(self):
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "A"),
            create_event("E", 3, "A"),
        ]

        layout = analyze(events)

        assert layout.lane_count == 3
        assert [layout.lane_of(x) for x in "ABCE"] == [0, 0, 1, 2]
        assert layout.branch_points == (
            BranchPoint("C", BranchPointKind.CREATE, 0, 1),
            BranchPoint("E", BranchPointKind.CREATE, 0, 2),
        )


class TestLaneAllocation:

    def test_empty_input(self):
        layout = analyze([])

        assert layout.lane_count == 0
        assert dict(layout.item_lanes) == {}
        assert layout.branch_points == ()
        assert layout.diagnostics == ()

    def test_fork_from_non_trunk_lane(self):
        """Divergence records the parent's lane, not the trunk."""
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "A"),
            create_event("D", 3, "C"),
            create_event("E", 4, "C"),
        ]

        layout = analyze(events)

        assert layout.lane_of("D") == 1
        assert layout.lane_of("E") == 2
        assert layout.branch_points[-1] == BranchPoint("E", BranchPointKind.CREATE, 1, 2)

    def test_lanes_are_not_reused_after_merge(self):
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "A"),
            create_event("D", 3, "B", "C"),
            create_event("E", 4, "D"),
            create_event("F", 5, "D"),
        ]

        layout = analyze(events)

        # Lane 1 is free again after the merge, but allocation only grows
        assert layout.lane_of("F") == 2
        assert layout.lane_count == 3

    def test_merge_records_follow_parent_order(self):
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "A"),
            create_event("E", 3, "A"),
            create_event("F", 4, "E", "C", "B"),
        ]

        layout = analyze(events)

        assert layout.lane_of("F") == 0
        assert layout.branch_points_for("F") == (
            BranchPoint("F", BranchPointKind.MERGE, 2, 0),
            BranchPoint("F", BranchPointKind.MERGE, 1, 0),
        )

    def test_merge_records_one_per_parent_on_same_lane(self):
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "A"),
            create_event("D", 3, "C"),
            create_event("E", 4, "B", "C", "D"),
        ]

        layout = analyze(events)

        assert layout.lane_of("D") == 1
        assert layout.branch_points_for("E") == (
            BranchPoint("E", BranchPointKind.MERGE, 1, 0),
            BranchPoint("E", BranchPointKind.MERGE, 1, 0),
        )

    def test_merge_of_parents_on_same_lane_records_nothing(self):
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "A", "B"),
        ]

        layout = analyze(events)

        assert layout.lane_of("C") == 0
        assert layout.branch_points == ()

    def test_heterogeneous_identifiers(self):
        """Any hashable value works as an identifier."""
        root = uuid.uuid4()
        events = [
            create_event(root, 0),
            create_event(7, 1, root),
            create_event(("tuple", 1), 2, root),
        ]

        layout = analyze(events)

        assert layout.lane_of(root) == 0
        assert layout.lane_of(7) == 0
        assert layout.lane_of(("tuple", 1)) == 1


class TestParentIndex:

    def test_omits_events_without_parents(self):
        events = [
            create_event("A", 0),
            TimelineEvent("B", BASE_TIME, parent_ids=[]),
            create_event("C", 2, "A"),
        ]

        index = build_parent_index(events)

        assert index == {"C": ("A",)}

    def test_layout_carries_parent_index(self):
        events = [create_event("A", 0), create_event("B", 1, "A")]

        layout = analyze(events)

        assert layout.parents_of("B") == ("A",)
        assert layout.parents_of("A") == ()


class TestDiagnostics:

    def test_forward_reference_falls_back_to_trunk(self):
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "A"),
            create_event("X", 3, "Z"),
            create_event("Z", 4, "C"),
        ]

        layout = analyze(events)

        assert layout.lane_of("X") == 0
        assert layout.branch_points_for("X") == ()
        assert len(layout.diagnostics) == 1
        error = layout.diagnostics[0]
        assert error.code == ErrorCode.UNRESOLVED_PARENT_REFERENCE
        assert error.context_value("event_id") == "X"
        assert error.timestamp == events[3].timestamp

    def test_partial_parents_use_resolved_subset(self):
        events = [
            create_event("A", 0),
            create_event("B", 1, "A", "ghost"),
        ]

        layout = analyze(events)

        assert layout.lane_of("B") == 0
        assert layout.branch_points == ()
        assert [e.code for e in layout.diagnostics] == [ErrorCode.PARTIAL_PARENT_REFERENCE]
        assert layout.diagnostics[0].context_value("missing_parent_ids") == "ghost"

    def test_analysis_never_raises_on_self_reference(self):
        events = [create_event("A", 0, "A")]

        layout = analyze(events)

        assert layout.lane_of("A") == 0


class TestDeterminism:

    def test_repeated_analysis_is_equal(self):
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "A"),
            create_event("D", 3, "missing"),
            create_event("E", 4, "B", "C"),
        ]

        assert analyze(events) == analyze(events)

    def test_input_is_not_mutated(self):
        events = [create_event("A", 0), create_event("B", 1, "A")]
        snapshot = list(events)

        analyze(events)

        assert events == snapshot

    def test_result_mappings_are_read_only(self):
        layout = analyze([create_event("A", 0)])

        with pytest.raises(TypeError):
            layout.item_lanes["A"] = 3


class TestObserver:

    def test_observer_does_not_change_result(self):
        events = [
            create_event("A", 0),
            create_event("B", 1, "A"),
            create_event("C", 2, "A"),
        ]

        assert analyze(events, LayoutObserver()) == analyze(events)

    def test_observer_records_analysis_and_diagnostics(self):
        observer = LayoutObserver()
        events = [create_event("A", 0), create_event("B", 1, "nope")]

        BranchAnalyzer(observer).analyze(events)

        report = observer.get_report()
        assert report['analyses'] == 1
        assert report['diagnostics'] == 1
        assert observer.metrics.get_latest("layout_lane_count").value == 1.0
        assert observer.metrics.get_latest("layout_events_total").value == 2.0
