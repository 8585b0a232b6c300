"""
Contracts Module

Immutable values exchanged between the layout engine, its observability
layer and the rendering collaborators. No module may pass anything else
across these boundaries.
"""

from .base import (
    EventId, ErrorCode, Error, Result, ensure_utc, parse_timestamp
)
from .events import (
    TimelineEvent, BranchPointKind, ConnectorGeometry, BranchPoint, LayoutResult,
    AuditEventType, AuditLogEntry, MetricPoint
)

__all__ = [
    'EventId', 'ErrorCode', 'Error', 'Result', 'ensure_utc', 'parse_timestamp',
    'TimelineEvent', 'BranchPointKind', 'ConnectorGeometry', 'BranchPoint',
    'LayoutResult',
    'AuditEventType', 'AuditLogEntry', 'MetricPoint',
]
