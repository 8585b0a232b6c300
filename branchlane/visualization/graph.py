"""
Branch Graph Visualization Contracts

Responsibility:
Deterministic transformation of a LayoutResult into a renderable graph view.
Input: events + LayoutResult + LayoutConfig -> Output: BranchGraphView

No layout decisions are made here; lanes and branch points come from the
engine unchanged. This module only turns them into coordinates and
connector shapes.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..contracts.base import EventId
from ..contracts.events import (
    TimelineEvent, LayoutResult, BranchPointKind, ConnectorGeometry
)
from .config import LayoutConfig


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class GraphNode:
    """Renderable event node, centred in its lane."""
    node_id: EventId
    row: int
    lane: int
    position: Point
    label: Optional[str]
    is_branch_point: bool


@dataclass(frozen=True)
class GraphEdge:
    """Renderable parent -> child connector."""
    source_id: EventId
    target_id: EventId
    start: Point
    end: Point
    geometry: ConnectorGeometry
    control_points: Optional[Tuple[Point, Point]] = None  # None for straight lines


@dataclass(frozen=True)
class BranchIndicator:
    """Dot drawn just above a branch creation or merge."""
    item_id: EventId
    kind: BranchPointKind
    position: Point


@dataclass(frozen=True)
class BranchGraphView:
    """
    Fully positioned branch graph.

    DETERMINISTIC:
    Same events + same layout + same config = identical view.
    """
    nodes: Tuple[GraphNode, ...]
    edges: Tuple[GraphEdge, ...]
    indicators: Tuple[BranchIndicator, ...]
    lane_count: int
    width: float
    height: float


# =============================================================================
# GEOMETRY
# =============================================================================

def graph_size(
    layout: LayoutResult,
    event_count: int,
    config: LayoutConfig
) -> Tuple[float, float]:
    """Total (width, height) of the graph area."""
    return (
        layout.lane_count * config.lane_width,
        event_count * config.row_height
    )


def node_position(row: int, lane: int, config: LayoutConfig) -> Point:
    return Point(
        x=lane * config.lane_width + config.lane_width / 2,
        y=row * config.row_height + config.row_height / 2
    )


def classify_connector(start: Point, end: Point) -> ConnectorGeometry:
    """Straight within a lane, curve right when branching out, left when merging back."""
    if abs(start.x - end.x) < 1:
        return ConnectorGeometry.STRAIGHT
    if start.x < end.x:
        return ConnectorGeometry.CURVE_RIGHT
    return ConnectorGeometry.CURVE_LEFT


def curve_control_points(
    start: Point,
    end: Point,
    curve_radius: float
) -> Tuple[Point, Point]:
    """
    Cubic bezier control points for a lane-changing connector.

    The radius shrinks to fit short hops: at most half the horizontal
    distance and a third of the vertical distance.
    """
    horizontal = abs(end.x - start.x)
    vertical = end.y - start.y
    radius = max(0.0, min(curve_radius, horizontal / 2, vertical / 3))
    return (
        Point(start.x, start.y + radius),
        Point(end.x, end.y - radius)
    )


# =============================================================================
# BUILDER
# =============================================================================

class BranchGraphBuilder:
    """Turns a finished layout into a BranchGraphView."""

    def __init__(self, config: Optional[LayoutConfig] = None):
        self._config = config or LayoutConfig()

    @property
    def config(self) -> LayoutConfig:
        return self._config

    def build(
        self,
        events: Sequence[TimelineEvent],
        layout: LayoutResult
    ) -> BranchGraphView:
        positions = self._positions(events, layout)
        branch_ids = {bp.item_id for bp in layout.branch_points}

        nodes: List[GraphNode] = []
        for row, event in enumerate(events):
            lane = layout.lane_of(event.event_id)
            if lane is None:
                continue
            nodes.append(GraphNode(
                node_id=event.event_id,
                row=row,
                lane=lane,
                position=positions[event.event_id],
                label=event.title,
                is_branch_point=event.event_id in branch_ids
            ))

        width, height = graph_size(layout, len(events), self._config)

        return BranchGraphView(
            nodes=tuple(nodes),
            edges=tuple(self._edges(events, layout, positions)),
            indicators=tuple(self._indicators(layout, positions)),
            lane_count=layout.lane_count,
            width=width,
            height=height
        )

    def _positions(
        self,
        events: Sequence[TimelineEvent],
        layout: LayoutResult
    ) -> Dict[EventId, Point]:
        positions: Dict[EventId, Point] = {}
        for row, event in enumerate(events):
            lane = layout.lane_of(event.event_id)
            if lane is not None:
                positions[event.event_id] = node_position(row, lane, self._config)
        return positions

    def _edges(
        self,
        events: Sequence[TimelineEvent],
        layout: LayoutResult,
        positions: Dict[EventId, Point]
    ) -> List[GraphEdge]:
        edges: List[GraphEdge] = []
        for event in events:
            end = positions.get(event.event_id)
            if end is None:
                continue

            parents = [p for p in layout.parents_of(event.event_id) if p in positions]
            off_lane = [
                p for p in parents
                if layout.lane_of(p) != layout.lane_of(event.event_id)
            ]
            is_multi_merge = len(off_lane) >= 2

            for parent_id in parents:
                start = positions[parent_id]
                geometry = classify_connector(start, end)
                if is_multi_merge and geometry is not ConnectorGeometry.STRAIGHT:
                    geometry = ConnectorGeometry.MULTI_MERGE

                control_points = None
                if geometry is not ConnectorGeometry.STRAIGHT:
                    control_points = curve_control_points(
                        start, end, self._config.curve_radius
                    )

                edges.append(GraphEdge(
                    source_id=parent_id,
                    target_id=event.event_id,
                    start=start,
                    end=end,
                    geometry=geometry,
                    control_points=control_points
                ))
        return edges

    def _indicators(
        self,
        layout: LayoutResult,
        positions: Dict[EventId, Point]
    ) -> List[BranchIndicator]:
        if not self._config.branch_indicators_enabled:
            return []

        indicators: List[BranchIndicator] = []
        for bp in layout.branch_points:
            anchor = positions.get(bp.item_id)
            if anchor is None:
                continue
            indicators.append(BranchIndicator(
                item_id=bp.item_id,
                kind=bp.kind,
                position=Point(anchor.x, anchor.y - self._config.indicator_offset)
            ))
        return indicators
