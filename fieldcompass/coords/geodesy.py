"""Great-circle distance and bearing between geographic points.

These helpers are used by presentation surfaces (dial, radar, camera
overlay) to place targets relative to the fused heading. The orientation
engine itself never calls them.

Spherical Earth model:
- Mean radius (R): 6371000.0 m
- Distance: haversine formula
- Bearing: initial forward azimuth, clockwise from true north
"""

import numpy as np

EARTH_RADIUS_M = 6371e3  # Mean Earth radius (m)


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points.

    Args:
        lat1: Latitude of the start point in degrees.
        lon1: Longitude of the start point in degrees.
        lat2: Latitude of the end point in degrees.
        lon2: Longitude of the end point in degrees.

    Returns:
        Distance in meters.

    Example:
        >>> round(distance_m(0.0, 0.0, 0.0, 1.0))  # one degree on the equator
        111195
    """
    phi1 = np.deg2rad(lat1)
    phi2 = np.deg2rad(lat2)
    d_phi = np.deg2rad(lat2 - lat1)
    d_lambda = np.deg2rad(lon2 - lon1)

    a = (
        np.sin(d_phi / 2.0) ** 2
        + np.cos(phi1) * np.cos(phi2) * np.sin(d_lambda / 2.0) ** 2
    )
    c = 2.0 * np.arctan2(np.sqrt(a), np.sqrt(1.0 - a))

    return float(EARTH_RADIUS_M * c)


def bearing_deg(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial bearing (forward azimuth) from the start point to the end point.

    Args:
        lat1: Latitude of the start point in degrees.
        lon1: Longitude of the start point in degrees.
        lat2: Latitude of the end point in degrees.
        lon2: Longitude of the end point in degrees.

    Returns:
        Bearing in degrees within [0, 360), 0 = north, 90 = east.

    Example:
        >>> bearing_deg(0.0, 0.0, 1.0, 0.0)  # due north
        0.0
    """
    phi1 = np.deg2rad(lat1)
    phi2 = np.deg2rad(lat2)
    d_lambda = np.deg2rad(lon2 - lon1)

    y = np.sin(d_lambda) * np.cos(phi2)
    x = np.cos(phi1) * np.sin(phi2) - np.sin(phi1) * np.cos(phi2) * np.cos(d_lambda)

    theta = np.rad2deg(np.arctan2(y, x))
    return float(np.mod(theta + 360.0, 360.0))


def relative_bearing(target_bearing: float, heading: float) -> float:
    """Bearing of a target relative to the direction the user is facing.

    Args:
        target_bearing: Absolute bearing of the target in degrees.
        heading: Current fused heading in degrees.

    Returns:
        Relative bearing in degrees within [-180, 180); negative is to the
        left, positive to the right.
    """
    return float(np.mod(target_bearing - heading + 540.0, 360.0) - 180.0)
