"""Presentation configuration for the branch graph collaborators."""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class LayoutConfig:
    """Sizes for the rendered branch graph, in points."""
    lane_width: float = 60.0
    row_height: float = 80.0
    curve_radius: float = 20.0
    connector_width: float = 2.0
    branch_indicators_enabled: bool = True
    indicator_offset: float = 20.0  # Indicator sits this far above its item

    def __post_init__(self):
        if self.lane_width <= 0:
            raise ValueError("lane_width must be positive")
        if self.row_height <= 0:
            raise ValueError("row_height must be positive")
        if self.curve_radius < 0:
            raise ValueError("curve_radius must be non-negative")
        if self.connector_width <= 0:
            raise ValueError("connector_width must be positive")


@dataclass
class CacheConfig:
    """Configuration for layout memoization."""
    max_entries: int = 32

    def __post_init__(self):
        if self.max_entries < 1:
            raise ValueError("max_entries must be at least 1")
