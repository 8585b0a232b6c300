"""
Branch Analyzer
===============

Lane assignment and branch point recording for chronological event graphs.

RESPONSIBILITY: Event snapshot -> LayoutResult
ALLOWED INPUTS: TimelineEvent sequences sorted ascending by timestamp
OUTPUTS: LayoutResult (immutable)

WHAT THIS MODULE MUST NOT DO:
=============================
- Sort or reorder events (callers sort; see mapper.sort_chronologically)
- Detect cycles or validate ordering
- Cache results between calls (see visualization.cache)
- Raise on malformed relationships; every path degrades to the trunk lane

LANE RULES:
===========
1. No parents -> trunk (lane 0)
2. Parents present, none assigned yet -> trunk, diagnostic recorded
3. One assigned parent -> first child claims the parent's lane,
   every later sibling opens lane max_lane + 1 (CREATE)
4. Several assigned parents -> lowest parent lane (MERGE per other lane)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import time

from ..contracts.base import EventId, Error, ErrorCode
from ..contracts.events import (
    TimelineEvent, BranchPoint, BranchPointKind, LayoutResult
)
from ..observability import LayoutObserver
from .topology import EventTopology, has_relationships


TRUNK_LANE = 0


@dataclass
class _AssignmentState:
    """Mutable scratch state for a single analysis pass."""
    item_lanes: Dict[EventId, int] = field(default_factory=dict)
    branch_points: List[BranchPoint] = field(default_factory=list)
    diagnostics: List[Error] = field(default_factory=list)
    max_lane: int = 0


class BranchAnalyzer:
    """
    Assigns lanes to events and records branch points.

    Deterministic: same snapshot always produces an equal LayoutResult.
    The optional observer only receives copies of what was computed.
    """

    def __init__(self, observer: Optional[LayoutObserver] = None):
        self._observer = observer

    def analyze(self, events: Sequence[TimelineEvent]) -> LayoutResult:
        """
        Analyze a chronologically sorted snapshot.

        Never raises for any event sequence.
        """
        snapshot = tuple(events)
        started = time.perf_counter()

        if self._observer:
            self._observer.analysis_started(len(snapshot))

        result = self._compute(snapshot)

        if self._observer:
            for error in result.diagnostics:
                self._observer.diagnostic(error)
            duration_ms = (time.perf_counter() - started) * 1000
            self._observer.analysis_completed(result, duration_ms)

        return result

    # =========================================================================
    # ANALYSIS PASS
    # =========================================================================

    def _compute(self, events: Tuple[TimelineEvent, ...]) -> LayoutResult:
        if not events:
            return LayoutResult.empty()

        # Flat timelines skip the index build entirely
        if not has_relationships(events):
            return LayoutResult.single_lane([e.event_id for e in events])

        topology = EventTopology(events)
        state = _AssignmentState()

        for event in events:
            lane = self._assign_lane(event, topology, state)
            state.item_lanes[event.event_id] = lane
            state.max_lane = max(state.max_lane, lane)

        return LayoutResult(
            lane_count=state.max_lane + 1,
            item_lanes=state.item_lanes,
            branch_points=tuple(state.branch_points),
            parent_map=topology.parent_map,
            diagnostics=tuple(state.diagnostics)
        )

    def _assign_lane(
        self,
        event: TimelineEvent,
        topology: EventTopology,
        state: _AssignmentState
    ) -> int:
        if not event.parent_ids:
            return TRUNK_LANE

        # Parents not processed yet (or unknown) are dropped
        resolved: List[Tuple[EventId, int]] = [
            (parent_id, state.item_lanes[parent_id])
            for parent_id in event.parent_ids
            if parent_id in state.item_lanes
        ]

        if not resolved:
            state.diagnostics.append(self._unresolved_error(event))
            return TRUNK_LANE

        if len(resolved) < len(event.parent_ids):
            state.diagnostics.append(self._partial_error(event, resolved))

        if len(resolved) == 1:
            parent_id, parent_lane = resolved[0]
            if not self._should_create_new_branch(
                parent_id, event.event_id, parent_lane, topology, state.item_lanes
            ):
                return parent_lane

            new_lane = state.max_lane + 1
            state.branch_points.append(BranchPoint(
                item_id=event.event_id,
                kind=BranchPointKind.CREATE,
                from_lane=parent_lane,
                to_lane=new_lane
            ))
            return new_lane

        # Merge: lowest lane wins, one record per parent arriving from elsewhere
        target_lane = min(lane for _, lane in resolved)
        for _, lane in resolved:
            if lane != target_lane:
                state.branch_points.append(BranchPoint(
                    item_id=event.event_id,
                    kind=BranchPointKind.MERGE,
                    from_lane=lane,
                    to_lane=target_lane
                ))
        return target_lane

    @staticmethod
    def _should_create_new_branch(
        parent_id: EventId,
        child_id: EventId,
        parent_lane: int,
        topology: EventTopology,
        item_lanes: Dict[EventId, int]
    ) -> bool:
        """
        First child to reach the parent's lane keeps it; later siblings diverge.
        """
        children = topology.children_of(parent_id)
        if len(children) <= 1:
            return False

        children_in_lane = [
            child for child in children
            if item_lanes.get(child) == parent_lane
        ]
        if not children_in_lane:
            return False

        return child_id not in children_in_lane

    # =========================================================================
    # DIAGNOSTICS
    # =========================================================================

    @staticmethod
    def _unresolved_error(event: TimelineEvent) -> Error:
        return Error(
            code=ErrorCode.UNRESOLVED_PARENT_REFERENCE,
            message="No parent was assigned before this event; placed on trunk",
            timestamp=event.timestamp,
            context=(
                ("event_id", str(event.event_id)),
                ("parent_ids", ",".join(str(p) for p in event.parent_ids or ())),
            )
        )

    @staticmethod
    def _partial_error(
        event: TimelineEvent,
        resolved: List[Tuple[EventId, int]]
    ) -> Error:
        resolved_ids = {parent_id for parent_id, _ in resolved}
        missing = [p for p in event.parent_ids or () if p not in resolved_ids]
        return Error(
            code=ErrorCode.PARTIAL_PARENT_REFERENCE,
            message="Some parents were not assigned before this event; ignored",
            timestamp=event.timestamp,
            context=(
                ("event_id", str(event.event_id)),
                ("missing_parent_ids", ",".join(str(p) for p in missing)),
            )
        )


def analyze(
    events: Sequence[TimelineEvent],
    observer: Optional[LayoutObserver] = None
) -> LayoutResult:
    """Compute the branch layout of a chronologically sorted snapshot."""
    return BranchAnalyzer(observer).analyze(events)
