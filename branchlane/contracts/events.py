"""
Layout Contracts

These contracts define the values flowing in and out of the layout engine.
The engine consumes TimelineEvent sequences and produces LayoutResult;
rendering collaborators consume only LayoutResult.

DESIGN:
=======
1. Every type is immutable (frozen dataclass, tuples, read-only mappings)
2. A LayoutResult is recomputed wholesale, never updated in place
3. Branch point and audit kinds are explicit Enum tags
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence, Tuple
from enum import Enum

from .base import EventId, Error, ensure_utc


def _require_hashable(value: object, name: str):
    try:
        hash(value)
    except TypeError:
        raise ValueError(f"{name} must be hashable: {value!r}") from None


# =============================================================================
# INPUT CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class TimelineEvent:
    """
    IMMUTABLE timeline entry.

    `parent_ids` references events expected earlier in the sequence.
    None and an empty tuple both mean "no parents".
    """
    event_id: EventId
    timestamp: datetime
    parent_ids: Optional[Tuple[EventId, ...]] = None
    title: Optional[str] = None

    def __post_init__(self):
        if self.event_id is None:
            raise ValueError("event_id must not be None")
        _require_hashable(self.event_id, "event_id")
        if not isinstance(self.timestamp, datetime):
            raise ValueError("timestamp must be a datetime")
        object.__setattr__(self, 'timestamp', ensure_utc(self.timestamp))
        if self.parent_ids is not None:
            parents = self.parent_ids
            # A bare string is one parent, not a sequence of characters
            if isinstance(parents, (str, bytes)):
                parents = (parents,)
            parents = tuple(parents)
            for parent_id in parents:
                _require_hashable(parent_id, "parent id")
            object.__setattr__(self, 'parent_ids', parents)

    @property
    def has_parents(self) -> bool:
        return bool(self.parent_ids)

    def with_parent(self, parent_id: EventId) -> TimelineEvent:
        """Return a copy chained to a single parent."""
        return replace(self, parent_ids=(parent_id,))

    def with_parents(self, parent_ids: Iterable[EventId]) -> TimelineEvent:
        """Return a copy with several parents (a merge point)."""
        return replace(self, parent_ids=tuple(parent_ids))


# =============================================================================
# OUTPUT CONTRACTS
# =============================================================================

class BranchPointKind(Enum):
    """Branch operation occurring at an event."""
    CREATE = "create"
    MERGE = "merge"


class ConnectorGeometry(Enum):
    """Shape of the line arriving at an event."""
    STRAIGHT = "straight"
    CURVE_LEFT = "curve_left"
    CURVE_RIGHT = "curve_right"
    MULTI_MERGE = "multi_merge"


@dataclass(frozen=True)
class BranchPoint:
    """
    One branch creation or merge.

    item_id is always the child / merge-target event.
    CREATE: from_lane is the parent's lane, to_lane the newly allocated lane.
    MERGE: from_lane is a non-primary parent's lane, to_lane the primary lane.
    """
    item_id: EventId
    kind: BranchPointKind
    from_lane: int
    to_lane: int


@dataclass(frozen=True)
class LayoutResult:
    """
    Complete branch layout for one event snapshot.

    lane_count == 1 + max(assigned lane) for non-empty input, 0 when empty.
    """
    lane_count: int
    item_lanes: Mapping[EventId, int]
    branch_points: Tuple[BranchPoint, ...]
    parent_map: Mapping[EventId, Tuple[EventId, ...]]
    diagnostics: Tuple[Error, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.lane_count < 0:
            raise ValueError("lane_count must be non-negative")
        object.__setattr__(self, 'item_lanes', MappingProxyType(dict(self.item_lanes)))
        object.__setattr__(self, 'parent_map', MappingProxyType(dict(self.parent_map)))
        object.__setattr__(self, 'branch_points', tuple(self.branch_points))
        object.__setattr__(self, 'diagnostics', tuple(self.diagnostics))

    def __hash__(self) -> int:
        # Mapping order does not take part in equality, so it must not here either
        return hash((
            self.lane_count,
            frozenset(self.item_lanes.items()),
            self.branch_points,
            frozenset(self.parent_map.items()),
            self.diagnostics,
        ))

    @staticmethod
    def empty() -> LayoutResult:
        return LayoutResult(lane_count=0, item_lanes={}, branch_points=(), parent_map={})

    @staticmethod
    def single_lane(event_ids: Sequence[EventId]) -> LayoutResult:
        """Flat timeline: every event on the trunk."""
        return LayoutResult(
            lane_count=1,
            item_lanes={event_id: 0 for event_id in event_ids},
            branch_points=(),
            parent_map={}
        )

    def lane_of(self, event_id: EventId) -> Optional[int]:
        return self.item_lanes.get(event_id)

    def parents_of(self, event_id: EventId) -> Tuple[EventId, ...]:
        return self.parent_map.get(event_id, ())

    def branch_points_for(self, event_id: EventId) -> Tuple[BranchPoint, ...]:
        return tuple(bp for bp in self.branch_points if bp.item_id == event_id)

    @property
    def is_branching(self) -> bool:
        return self.lane_count > 1


# =============================================================================
# OBSERVABILITY CONTRACTS
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    ANALYSIS = "analysis"
    DIAGNOSTIC = "diagnostic"
    CACHE = "cache"
    SYSTEM = "system"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry."""
    entry_id: str
    event_type: AuditEventType
    timestamp: datetime
    layer: str
    action: str
    entity_id: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MetricPoint:
    """Immutable metric data point."""
    metric_name: str
    value: float
    timestamp: datetime
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
