"""
Visualization Layer

Responsibility:
Rendering collaborators that consume LayoutResult: coordinates, connector
geometry, overall size and layout memoization.

PRINCIPLES:
1. Immutable (Frozen) outputs
2. No lane assignment logic
3. Configuration is passed explicitly, never looked up globally
"""

from .config import LayoutConfig, CacheConfig
from .graph import (
    Point, GraphNode, GraphEdge, BranchIndicator, BranchGraphView,
    BranchGraphBuilder, graph_size, node_position, classify_connector,
    curve_control_points
)
from .cache import LayoutCache, CacheStats, fingerprint

__all__ = [
    'LayoutConfig', 'CacheConfig',
    'Point', 'GraphNode', 'GraphEdge', 'BranchIndicator', 'BranchGraphView',
    'BranchGraphBuilder', 'graph_size', 'node_position', 'classify_connector',
    'curve_control_points',
    'LayoutCache', 'CacheStats', 'fingerprint',
]
