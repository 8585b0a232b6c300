"""
Core Layout Engine

RESPONSIBILITY: Lane assignment, branch point recording, row activity
ALLOWED INPUTS: TimelineEvent snapshots sorted chronologically
OUTPUTS: LayoutResult (immutable), LaneCell answers

WHAT THIS LAYER MUST NOT DO:
============================
- Render anything or know about pixel sizes
- Persist or cache layouts
- Detect cycles or re-sort input
"""

from .topology import EventTopology, build_parent_index, has_relationships
from .analyzer import BranchAnalyzer, analyze, TRUNK_LANE
from .activity import RowActivityResolver, LaneCell

__all__ = [
    'EventTopology', 'build_parent_index', 'has_relationships',
    'BranchAnalyzer', 'analyze', 'TRUNK_LANE',
    'RowActivityResolver', 'LaneCell',
]
