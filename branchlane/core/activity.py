"""
Row-Activity Resolver
=====================

Query layer over a finished LayoutResult, asked once per (row, lane) cell
by the rendering layer.

QUERIES:
========
- reach(row, event_id, lane): last row of an event's own outgoing line
- is_active(row, lane): does the lane carry a connector at this row
- cell(row, lane): everything needed to pick the glyph for one cell
- activity_matrix(): is_active for every cell of a render pass at once

All lookups go through precomputed indexes: children by parent, per-lane
row lists with a running maximum of reach, and a reach memo table.
"""

from __future__ import annotations
from bisect import bisect_right
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np

from ..contracts.base import EventId
from ..contracts.events import TimelineEvent, LayoutResult, ConnectorGeometry
from .topology import EventTopology


@dataclass(frozen=True)
class LaneCell:
    """
    Render facts for one (row, lane) cell.

    is_item_lane: the row's event sits on this lane
    branch_origin: the row's event sits here and a parent arrives from another lane
    merge_endpoint: another lane's line feeds the row's event and stops here
    """
    row: int
    lane: int
    is_active: bool
    is_item_lane: bool
    branch_origin: bool
    merge_endpoint: bool
    geometry: Optional[ConnectorGeometry] = None

    @property
    def draws_pass_through(self) -> bool:
        # Merge endpoints draw their own terminating segment
        return self.is_active and not self.merge_endpoint


class RowActivityResolver:
    """
    Answers per-cell connector questions for one (events, layout) pair.

    `events` must be the same snapshot, in the same order, that produced
    `layout`; row indexes are positions in that sequence.
    """

    def __init__(self, events: Sequence[TimelineEvent], layout: LayoutResult):
        self._events: Tuple[TimelineEvent, ...] = tuple(events)
        self._layout = layout
        self._topology = EventTopology(self._events)
        self._reach_memo: Dict[EventId, int] = {}
        self._lane_rows: Optional[Dict[int, List[int]]] = None
        self._lane_reach_max: Dict[int, List[int]] = {}

    @property
    def row_count(self) -> int:
        return len(self._events)

    @property
    def lane_count(self) -> int:
        return self._layout.lane_count

    # =========================================================================
    # REACH
    # =========================================================================

    def reach(self, event_index: int, event_id: EventId, lane: int) -> int:
        """
        Row where the event's own lane line stops.

        Minimum of the first later same-lane child and the first later
        child on a different lane (a merge fed by this event). Falls back
        to event_index when the event has no later children.
        """
        own_row = self._topology.row_of(event_id)
        own_lane = self._layout.lane_of(event_id)
        if own_row == event_index and own_lane == lane:
            return self.reach_of(event_id)
        return self._compute_reach(event_index, event_id, lane)

    def reach_of(self, event_id: EventId) -> int:
        """Memoized reach at the event's own row and lane."""
        cached = self._reach_memo.get(event_id)
        if cached is not None:
            return cached

        row = self._topology.row_of(event_id)
        lane = self._layout.lane_of(event_id)
        if row is None or lane is None:
            return -1

        value = self._compute_reach(row, event_id, lane)
        self._reach_memo[event_id] = value
        return value

    def _compute_reach(self, event_index: int, event_id: EventId, lane: int) -> int:
        same_lane: Optional[int] = None
        other_lane: Optional[int] = None

        for child_id in self._topology.children_of(event_id):
            child_row = self._topology.row_of(child_id)
            child_lane = self._layout.lane_of(child_id)
            if child_row is None or child_lane is None or child_row <= event_index:
                continue
            if child_lane == lane:
                if same_lane is None or child_row < same_lane:
                    same_lane = child_row
            elif other_lane is None or child_row < other_lane:
                other_lane = child_row

        candidates = [r for r in (same_lane, other_lane) if r is not None]
        return min(candidates) if candidates else event_index

    # =========================================================================
    # ACTIVITY
    # =========================================================================

    def is_active(self, row_index: int, lane: int) -> bool:
        """
        True if some event on `lane` at or before `row_index` reaches it.
        """
        if not self._in_bounds(row_index, lane):
            return False

        lane_rows = self._lane_index().get(lane)
        if not lane_rows:
            return False

        position = bisect_right(lane_rows, row_index) - 1
        if position < 0:
            return False
        return self._lane_reach_max[lane][position] >= row_index

    def _lane_index(self) -> Dict[int, List[int]]:
        if self._lane_rows is not None:
            return self._lane_rows

        lane_rows: Dict[int, List[int]] = {}
        for row, event in enumerate(self._events):
            lane = self._layout.lane_of(event.event_id)
            if lane is None:
                continue
            lane_rows.setdefault(lane, []).append(row)

        # Running max of reach per lane, aligned with lane_rows
        for lane, rows in lane_rows.items():
            running: List[int] = []
            best = -1
            for row in rows:
                best = max(best, self.reach(row, self._events[row].event_id, lane))
                running.append(best)
            self._lane_reach_max[lane] = running

        self._lane_rows = lane_rows
        return lane_rows

    def activity_matrix(self) -> np.ndarray:
        """
        Boolean grid of shape (row_count, lane_count).

        matrix[r, l] == is_active(r, l) for every cell.
        """
        matrix = np.zeros((self.row_count, self.lane_count), dtype=bool)
        for row, event in enumerate(self._events):
            lane = self._layout.lane_of(event.event_id)
            if lane is None or lane >= self.lane_count:
                continue
            end = self.reach(row, event.event_id, lane)
            matrix[row:end + 1, lane] = True
        return matrix

    # =========================================================================
    # CELLS
    # =========================================================================

    def cell(self, row_index: int, lane: int) -> LaneCell:
        """Render facts for one cell; out-of-range cells come back inactive."""
        if not self._in_bounds(row_index, lane):
            return LaneCell(row_index, lane, False, False, False, False)

        event = self._events[row_index]
        event_lane = self._layout.lane_of(event.event_id)
        is_item_lane = event_lane == lane

        parent_lanes: List[Tuple[EventId, int]] = []
        for parent_id in event.parent_ids or ():
            parent_lane = self._layout.lane_of(parent_id)
            if parent_lane is not None:
                parent_lanes.append((parent_id, parent_lane))

        off_lane = [pl for _, pl in parent_lanes if pl != event_lane]

        branch_origin = is_item_lane and bool(off_lane)
        merge_endpoint = not is_item_lane and any(
            pl == lane and self.reach_of(pid) == row_index
            for pid, pl in parent_lanes
        )

        geometry = None
        if is_item_lane and parent_lanes:
            geometry = self._incoming_geometry(lane, off_lane)

        return LaneCell(
            row=row_index,
            lane=lane,
            is_active=self.is_active(row_index, lane),
            is_item_lane=is_item_lane,
            branch_origin=branch_origin,
            merge_endpoint=merge_endpoint,
            geometry=geometry
        )

    def row_cells(self, row_index: int) -> Tuple[LaneCell, ...]:
        return tuple(self.cell(row_index, lane) for lane in range(self.lane_count))

    @staticmethod
    def _incoming_geometry(lane: int, off_lane: List[int]) -> ConnectorGeometry:
        if len(off_lane) >= 2:
            return ConnectorGeometry.MULTI_MERGE
        if not off_lane:
            return ConnectorGeometry.STRAIGHT
        if off_lane[0] < lane:
            return ConnectorGeometry.CURVE_RIGHT
        return ConnectorGeometry.CURVE_LEFT

    def _in_bounds(self, row_index: int, lane: int) -> bool:
        return 0 <= row_index < self.row_count and 0 <= lane < self.lane_count
