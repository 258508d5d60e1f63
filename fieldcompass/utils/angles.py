"""
Heading arithmetic in degrees.

Provides functions for keeping compass headings inside [0, 360) and for
comparing them along the shortest arc.

Critical for:
- Exponential heading smoothing across the 0°/360° seam
- Angular velocity between consecutive orientation samples
- Gyro drift correction towards an absolute compass reference
"""

from typing import Union

import numpy as np

Numeric = Union[float, np.ndarray]


def normalize_heading(angle: Numeric) -> Numeric:
    """
    Normalize a heading to the [0, 360) range.

    Args:
        angle: Heading in degrees (any value, scalar or array).

    Returns:
        Heading in degrees within [0, 360).

    Example:
        >>> normalize_heading(-10.0)
        350.0
        >>> normalize_heading(725.0)
        5.0
    """
    wrapped = np.mod(angle, 360.0)
    # np.mod(-1e-15, 360.0) rounds up to exactly 360.0
    wrapped = np.where(wrapped >= 360.0, 0.0, wrapped)
    if np.ndim(wrapped) == 0:
        return float(wrapped)
    return wrapped


def shortest_angle_diff(target: Numeric, current: Numeric) -> Numeric:
    """
    Compute the signed shortest rotation from ``current`` to ``target``.

    Returns target - current wrapped to (-180, 180]. Adding the result to
    ``current`` always moves along the short arc, never "the long way
    around".

    Args:
        target: Heading to rotate towards, in degrees.
        current: Heading to rotate from, in degrees.

    Returns:
        Signed difference in degrees within (-180, 180].

    Example:
        >>> shortest_angle_diff(350.0, 10.0)  # 20° counter-clockwise
        -20.0
        >>> shortest_angle_diff(10.0, 350.0)
        20.0

    Notes:
        Without wrapping, 350° vs 10° would give 340° and a smoothed
        heading would swing through 180° instead of crossing north.
    """
    diff = np.mod(np.asarray(target, dtype=np.float64) - current, 360.0)
    diff = np.where(diff > 180.0, diff - 360.0, diff)
    if np.ndim(diff) == 0:
        return float(diff)
    return diff


def smooth_angle(current: float, target: float, factor: float) -> float:
    """
    Exponentially smooth a heading towards a target along the short arc.

    Implements h_k = h_{k-1} + f * diff(target, h_{k-1}), normalized to
    [0, 360). After n applications on a constant target the remaining error
    is (1 - f)^n times the initial error.

    Args:
        current: Current smoothed heading in degrees.
        target: New raw heading in degrees.
        factor: Smoothing factor f in [0, 1]. 0 holds, 1 snaps.

    Returns:
        Updated heading in degrees within [0, 360).

    Raises:
        ValueError: If factor is outside [0, 1].

    Example:
        >>> smooth_angle(10.0, 350.0, 0.5)  # crosses north
        0.0
    """
    if not 0.0 <= factor <= 1.0:
        raise ValueError(f"factor must be in [0, 1], got {factor}")

    return normalize_heading(current + shortest_angle_diff(target, current) * factor)


def heading_from_yaw(alpha: float) -> float:
    """Convert a counter-clockwise device yaw to a clockwise compass heading."""
    return normalize_heading(360.0 - alpha)
