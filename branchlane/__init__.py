"""
branchlane - chronological DAG branch-lane layout engine.

Given time-ordered events linked by parent references, computes a lane per
event, the branch creation / merge points, and per-cell connector activity
for rendering a commit-graph style timeline.

PACKAGE STRUCTURE:
==================
- contracts/      Immutable values shared by every layer
- core/           Lane assignment, branch points, row activity
- observability/  Audit log and metrics side channel
- visualization/  Coordinates, connector geometry, layout cache
- mapper          Raw records -> TimelineEvent

CONSTRAINTS ENFORCED:
=====================
- analyze() is a pure function of its input
- No shared mutable state
- Bad relationships degrade to the trunk lane and surface as diagnostics
"""

from .contracts import (
    EventId, ErrorCode, Error, Result,
    TimelineEvent, BranchPointKind, ConnectorGeometry, BranchPoint, LayoutResult
)
from .core import (
    BranchAnalyzer, analyze, build_parent_index, RowActivityResolver, LaneCell
)
from .observability import LayoutObserver
from .mapper import EventMapper, sort_chronologically

__version__ = "0.1.0"

__all__ = [
    'EventId', 'ErrorCode', 'Error', 'Result',
    'TimelineEvent', 'BranchPointKind', 'ConnectorGeometry', 'BranchPoint',
    'LayoutResult',
    'BranchAnalyzer', 'analyze', 'build_parent_index',
    'RowActivityResolver', 'LaneCell',
    'LayoutObserver',
    'EventMapper', 'sort_chronologically',
]
