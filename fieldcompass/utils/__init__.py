"""
Utility functions for heading arithmetic.

This module provides the degree-based angle helpers shared by every stage of
the orientation engine.
"""

from .angles import (
    heading_from_yaw,
    normalize_heading,
    shortest_angle_diff,
    smooth_angle,
)

__all__ = [
    'heading_from_yaw',
    'normalize_heading',
    'shortest_angle_diff',
    'smooth_angle',
]
