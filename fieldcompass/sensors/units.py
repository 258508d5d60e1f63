"""
Unit handling for the angular-rate stream.

The angular-rate stream is declared in one unit by the host. Orientation
angles and headings are always degrees; rates are converted to deg/s before
integration. All function names state both the input and output units.

Supported declarations:
    - deg/s: browser-style rotation rates (the device motion convention)
    - rad/s: native IMU drivers
    - auto: LEGACY HEURISTIC. A magnitude above 10 is assumed to be deg/s,
            anything smaller rad/s. Misreads slow deg/s turns (< 10 deg/s)
            as rad/s, so it exists only to reproduce hosts that relied on it.

Key insight: Always be explicit about units in variable names and conversions!
"""

from enum import Enum
from typing import Union

import numpy as np

# Type alias for numeric types
Numeric = Union[float, np.ndarray]

# Magnitude above which the legacy heuristic assumes deg/s
AUTO_DEGREES_THRESHOLD = 10.0


class RateUnit(Enum):
    """Declared unit of the angular-rate stream.

    Attributes:
        DEG_PER_SEC: Rates arrive in degrees per second.
        RAD_PER_SEC: Rates arrive in radians per second.
        AUTO: Legacy magnitude heuristic (see module docstring).
    """

    DEG_PER_SEC = "deg/s"
    RAD_PER_SEC = "rad/s"
    AUTO = "auto"


def rad_per_sec_to_deg_per_sec(rad_per_s: Numeric) -> Numeric:
    """
    Convert angular velocity from rad/s to deg/s.

    Args:
        rad_per_s: Angular velocity in radians per second.

    Returns:
        Angular velocity in degrees per second.
    """
    return np.rad2deg(rad_per_s)


def deg_per_sec_to_rad_per_sec(deg_per_s: Numeric) -> Numeric:
    """
    Convert angular velocity from deg/s to rad/s.

    Args:
        deg_per_s: Angular velocity in degrees per second.

    Returns:
        Angular velocity in radians per second.
    """
    return np.deg2rad(deg_per_s)


def rate_to_deg_per_sec(rate: float, unit: RateUnit) -> float:
    """
    Convert a yaw rate in the declared unit to deg/s.

    Args:
        rate: Yaw rate as delivered by the host.
        unit: Declared unit of the stream.

    Returns:
        Yaw rate in degrees per second.

    Example:
        >>> rate_to_deg_per_sec(np.pi, RateUnit.RAD_PER_SEC)
        180.0
        >>> rate_to_deg_per_sec(45.0, RateUnit.AUTO)  # > 10: taken as deg/s
        45.0
        >>> round(rate_to_deg_per_sec(0.5, RateUnit.AUTO), 3)  # <= 10: rad/s
        28.648
    """
    if unit is RateUnit.DEG_PER_SEC:
        return float(rate)
    if unit is RateUnit.RAD_PER_SEC:
        return float(rad_per_sec_to_deg_per_sec(rate))
    if unit is RateUnit.AUTO:
        if abs(rate) > AUTO_DEGREES_THRESHOLD:
            return float(rate)
        return float(rad_per_sec_to_deg_per_sec(rate))
    raise ValueError(f"Unknown rate unit: {unit!r}")
