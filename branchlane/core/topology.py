"""
Event Topology
==============

Parent and children indexes over a chronological event snapshot.

Built once per analysis so the lane assignor and the row-activity
resolver never rescan the whole event list for a single lookup.

ALLOWED:
- Parent lookup (event -> parent ids, as given)
- Children lookup (parent -> child ids, in chronological order)
- Row lookup (event -> position in the snapshot)

NOT DONE HERE:
- Cycle detection (input is assumed acyclic)
- Ordering validation (input is assumed sorted)
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple
import networkx as nx

from ..contracts.base import EventId
from ..contracts.events import TimelineEvent


def build_parent_index(
    events: Sequence[TimelineEvent]
) -> Dict[EventId, Tuple[EventId, ...]]:
    """
    Map event id to its parent ids.

    Events with no parents (None or empty) are omitted.
    """
    parent_map: Dict[EventId, Tuple[EventId, ...]] = {}
    for event in events:
        if event.parent_ids:
            parent_map[event.event_id] = event.parent_ids
    return parent_map


def has_relationships(events: Sequence[TimelineEvent]) -> bool:
    """Cheap pre-check: does any event reference a parent at all?"""
    return any(event.has_parents for event in events)


class EventTopology:
    """
    Directed parent -> child graph of a snapshot.

    Wraps a NetworkX DiGraph. Edge insertion follows the snapshot order,
    so successors come back in chronological order of the children.
    """

    def __init__(self, events: Sequence[TimelineEvent]):
        self._graph = nx.DiGraph()
        self._rows: Dict[EventId, int] = {}
        self._parent_map = build_parent_index(events)

        for row, event in enumerate(events):
            self._graph.add_node(event.event_id)
            self._rows[event.event_id] = row

        # Unknown parent ids become bare nodes; they never get a row
        for event in events:
            for parent_id in event.parent_ids or ():
                self._graph.add_edge(parent_id, event.event_id)

    @property
    def parent_map(self) -> Dict[EventId, Tuple[EventId, ...]]:
        return dict(self._parent_map)

    @property
    def event_count(self) -> int:
        return len(self._rows)

    def parents_of(self, event_id: EventId) -> Tuple[EventId, ...]:
        return self._parent_map.get(event_id, ())

    def children_of(self, parent_id: EventId) -> List[EventId]:
        """Every event whose parent list contains parent_id."""
        if parent_id not in self._graph:
            return []
        return list(self._graph.successors(parent_id))

    def child_count(self, parent_id: EventId) -> int:
        if parent_id not in self._graph:
            return 0
        return self._graph.out_degree(parent_id)

    def row_of(self, event_id: EventId) -> Optional[int]:
        return self._rows.get(event_id)

    def is_known(self, event_id: EventId) -> bool:
        return event_id in self._rows
