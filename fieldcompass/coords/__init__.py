"""Attitude representations and geographic helpers.

This module provides functions and classes for the two geometric concerns of
the navigation aid:
- Quaternion attitude (device Euler angles <-> unit quaternion, slerp)
- Great-circle distance and bearing to geofenced targets
"""

from fieldcompass.coords.geodesy import bearing_deg, distance_m, relative_bearing
from fieldcompass.coords.rotations import (
    Quaternion,
    euler_to_quat,
    quat_to_euler,
    slerp,
)

__all__ = [
    # Rotations
    "Quaternion",
    "euler_to_quat",
    "quat_to_euler",
    "slerp",
    # Geodesy
    "distance_m",
    "bearing_deg",
    "relative_bearing",
]
