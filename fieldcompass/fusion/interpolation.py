"""Quaternion low-pass filter used while the device is tilted.

While the engine is in the quaternion submode each orientation sample is
converted to a target quaternion and the running attitude is pulled towards
it by a fixed-gain slerp:

    target = from_euler(alpha, beta, gamma)
    current = slerp(current, target, gain)

The yaw extracted from ``current`` then goes through the platform's heading
convention exactly like an Euler-mode sample.
"""

import logging
from typing import Optional, Tuple

from fieldcompass.coords.rotations import Quaternion, euler_to_quat, quat_to_euler, slerp

logger = logging.getLogger(__name__)


class QuaternionInterpolator:
    """Owns the ``current`` and ``last_stable`` attitude quaternions.

    Attributes:
        gain: Slerp parameter applied per step, in (0, 1].
        current: Continuously updated attitude.
        last_stable: Attitude snapshot taken while the tilt is in the
            stable band.
    """

    def __init__(self, gain: float = 0.1):
        if not 0.0 < gain <= 1.0:
            raise ValueError(f"gain must be in (0, 1], got {gain}")
        self.gain = gain
        self.current = Quaternion.identity()
        self.last_stable = Quaternion.identity()
        self.steps = 0

    # Conversions are exposed on the interpolator so callers need one object.
    from_euler = staticmethod(euler_to_quat)
    to_euler = staticmethod(quat_to_euler)
    slerp = staticmethod(slerp)

    def seed(self, alpha: float, beta: float, gamma: float) -> Quaternion:
        """Reset ``current`` to the attitude given by Euler angles."""
        self.current = euler_to_quat(alpha, beta, gamma)
        logger.debug("Quaternion seeded from (%.1f, %.1f, %.1f)", alpha, beta, gamma)
        return self.current

    def step(self, alpha: float, beta: float, gamma: float) -> Quaternion:
        """Pull ``current`` towards the sample attitude by one slerp step.

        Args:
            alpha: Yaw-like angle in degrees.
            beta: Pitch-like angle in degrees.
            gamma: Roll-like angle in degrees.

        Returns:
            The updated, normalized ``current`` quaternion.
        """
        target = euler_to_quat(alpha, beta, gamma)
        self.current = slerp(self.current, target, self.gain).normalized()
        self.steps += 1
        return self.current

    def current_euler(self, yaw_reference: Optional[float] = None) -> Tuple[float, float, float]:
        """Return ``current`` as (alpha, beta, gamma) in degrees.

        ``yaw_reference`` picks the Euler triple whose alpha lies nearest to
        it, so the yaw does not flip by 180° once the tilt passes vertical.
        """
        return quat_to_euler(self.current, yaw_reference)

    def current_yaw(self, yaw_reference: Optional[float] = None) -> float:
        return self.current_euler(yaw_reference)[0]

    def mark_stable(self, attitude: Optional[Quaternion] = None) -> None:
        """Snapshot an attitude (``current`` by default) as the last stable one."""
        self.last_stable = self.current if attitude is None else attitude

    def reset(self) -> None:
        self.current = Quaternion.identity()
        self.last_stable = Quaternion.identity()
        self.steps = 0
