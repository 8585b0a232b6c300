"""
Record to Event Mapper

Converts raw records (mappings such as decoded JSON commit logs) into
TimelineEvent values ready for analysis.

MAPPING RULES:
==============
1. Malformed records become Error values, never exceptions
2. Only the first occurrence of an id is kept
3. Output is sorted chronologically (stable for equal timestamps)
4. Parent references are passed through untouched; the engine decides
   what to do with unknown ones
"""

from __future__ import annotations
from typing import Any, Iterable, List, Mapping, Sequence, Set, Tuple

from .contracts.base import EventId, Error, ErrorCode, Result, parse_timestamp
from .contracts.events import TimelineEvent


def sort_chronologically(events: Iterable[TimelineEvent]) -> List[TimelineEvent]:
    """Ascending by timestamp; ties keep their input order."""
    return sorted(events, key=lambda e: e.timestamp)


class EventMapper:
    """
    Maps raw records to TimelineEvent.

    Field names are configurable so differently shaped feeds can be mapped
    without reshaping them first.
    """

    def __init__(
        self,
        id_fields: Tuple[str, ...] = ("id", "event_id"),
        timestamp_fields: Tuple[str, ...] = ("timestamp", "date"),
        parent_fields: Tuple[str, ...] = ("parent_ids", "parents"),
        title_fields: Tuple[str, ...] = ("title",)
    ):
        self._id_fields = id_fields
        self._timestamp_fields = timestamp_fields
        self._parent_fields = parent_fields
        self._title_fields = title_fields

    # =========================================================================
    # SINGLE RECORD
    # =========================================================================

    def map_record(self, record: Mapping[str, Any]) -> Result:
        """Map one record; Result holds a TimelineEvent or an Error."""
        if not isinstance(record, Mapping):
            return Result.failure(Error(
                code=ErrorCode.MALFORMED_RECORD,
                message=f"Record is not a mapping: {type(record).__name__}"
            ))

        event_id = self._first(record, self._id_fields)
        if event_id is None:
            return Result.failure(Error(
                code=ErrorCode.MALFORMED_RECORD,
                message="Record has no identifier",
                context=(("fields", ",".join(self._id_fields)),)
            ))
        try:
            hash(event_id)
        except TypeError:
            return Result.failure(Error(
                code=ErrorCode.MALFORMED_RECORD,
                message=f"Unhashable identifier: {event_id!r}"
            ))

        raw_timestamp = self._first(record, self._timestamp_fields)
        try:
            timestamp = parse_timestamp(raw_timestamp)
        except (ValueError, OverflowError, OSError):
            return Result.failure(Error(
                code=ErrorCode.INVALID_TIMESTAMP,
                message=f"Unparseable timestamp: {raw_timestamp!r}",
                context=(("event_id", str(event_id)),)
            ))

        raw_parents = self._first(record, self._parent_fields)
        parents, parent_error = self._map_parents(event_id, raw_parents)
        if parent_error is not None:
            return Result.failure(parent_error)

        title = self._first(record, self._title_fields)

        try:
            event = TimelineEvent(
                event_id=event_id,
                timestamp=timestamp,
                parent_ids=parents,
                title=str(title) if title is not None else None
            )
        except (TypeError, ValueError) as exc:
            return Result.failure(Error(
                code=ErrorCode.MALFORMED_RECORD,
                message=str(exc),
                timestamp=timestamp,
                context=(("event_id", str(event_id)),)
            ))

        return Result.success(event)

    # =========================================================================
    # BATCH
    # =========================================================================

    def map_records(
        self,
        records: Sequence[Mapping[str, Any]]
    ) -> Tuple[List[TimelineEvent], List[Error]]:
        """
        Map a batch of records.

        Returns (events sorted chronologically, errors in input order).
        """
        events: List[TimelineEvent] = []
        errors: List[Error] = []
        seen: Set[EventId] = set()

        for position, record in enumerate(records):
            result = self.map_record(record)
            if result.is_failure:
                errors.append(result.error.with_context("position", str(position)))
                continue

            event = result.value
            if event.event_id in seen:
                errors.append(Error(
                    code=ErrorCode.DUPLICATE_EVENT_ID,
                    message="Identifier already used by an earlier record",
                    timestamp=event.timestamp,
                    context=(
                        ("event_id", str(event.event_id)),
                        ("position", str(position)),
                    )
                ))
                continue

            seen.add(event.event_id)
            events.append(event)

        return sort_chronologically(events), errors

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _first(record: Mapping[str, Any], fields: Tuple[str, ...]) -> Any:
        for name in fields:
            value = record.get(name)
            if value is not None:
                return value
        return None

    @staticmethod
    def _map_parents(event_id: Any, raw: Any):
        if raw is None:
            return None, None
        # A bare string is one parent, not a sequence of characters
        if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
            raw = (raw,)

        parents = tuple(raw)
        for parent_id in parents:
            try:
                hash(parent_id)
            except TypeError:
                return None, Error(
                    code=ErrorCode.MALFORMED_RECORD,
                    message=f"Unhashable parent reference: {parent_id!r}",
                    context=(("event_id", str(event_id)),)
                )
        return parents, None
