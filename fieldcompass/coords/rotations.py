"""Quaternion representation of device attitude.

This module provides the quaternion type and the conversions used by the
orientation engine while it is in the quaternion submode:
- Device Euler angles -> unit quaternion
- Unit quaternion -> device Euler angles
- Spherical linear interpolation (slerp)

Conventions:
- Quaternions: (w, x, y, z) where w is the scalar part
- Euler angles: (alpha, beta, gamma) in degrees, device orientation order
  - alpha: rotation about the z-axis (yaw-like), [0, 360)
  - beta: rotation about the rotated x-axis (pitch-like), [-90, 90] on output
    unless a yaw reference selects the tilted-past-vertical triple
  - gamma: rotation about the twice-rotated y-axis (roll-like)
- Composition: R = Rz(alpha) @ Rx(beta) @ Ry(gamma) (intrinsic Z-X'-Y'')
- Every attitude has two triples: (alpha, beta, gamma) and
  (alpha + 180, ±180 - beta, gamma + 180)

Pitch extraction clamps the arcsine argument to [-1, 1] so that samples at
the poles (beta = ±90°) never produce NaN.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from fieldcompass.utils.angles import normalize_heading

# Above this dot product slerp falls back to normalized linear interpolation
SLERP_LINEAR_THRESHOLD = 0.9995


@dataclass(frozen=True)
class Quaternion:
    """Unit quaternion q = w + xi + yj + zk.

    Attributes:
        w: Scalar part.
        x: i component.
        y: j component.
        z: k component.

    Example:
        >>> q = Quaternion.identity()
        >>> q.norm()
        1.0
    """

    w: float
    x: float
    y: float
    z: float

    @classmethod
    def identity(cls) -> "Quaternion":
        """Return the identity rotation."""
        return cls(1.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_array(cls, q: NDArray[np.float64]) -> "Quaternion":
        """Build a quaternion from a [w, x, y, z] array.

        Raises:
            ValueError: If q is not a 4-element array.
        """
        q = np.asarray(q, dtype=np.float64)
        if q.shape != (4,):
            raise ValueError(f"Expected 4-element quaternion, got shape {q.shape}")
        return cls(float(q[0]), float(q[1]), float(q[2]), float(q[3]))

    def as_array(self) -> NDArray[np.float64]:
        """Return the components as a [w, x, y, z] array."""
        return np.array([self.w, self.x, self.y, self.z], dtype=np.float64)

    def norm(self) -> float:
        return float(np.linalg.norm(self.as_array()))

    def normalized(self) -> "Quaternion":
        """Return the unit quaternion pointing the same way.

        Raises:
            ValueError: If the quaternion has zero length.
        """
        n = self.norm()
        if n == 0.0:
            raise ValueError("Cannot normalize a zero quaternion")
        return Quaternion.from_array(self.as_array() / n)

    def negated(self) -> "Quaternion":
        """Return -q (the same rotation on the opposite hemisphere)."""
        return Quaternion(-self.w, -self.x, -self.y, -self.z)

    def dot(self, other: "Quaternion") -> float:
        return float(np.dot(self.as_array(), other.as_array()))


def euler_to_quat(alpha: float, beta: float, gamma: float) -> Quaternion:
    """Convert device Euler angles to a unit quaternion.

    Applies yaw (alpha, about z), then tilt (beta, about the new x), then
    roll (gamma, about the new y): q = qz(alpha) * qx(beta) * qy(gamma).

    Args:
        alpha: Yaw-like angle in degrees.
        beta: Pitch-like angle in degrees.
        gamma: Roll-like angle in degrees.

    Returns:
        Unit quaternion.

    Example:
        >>> q = euler_to_quat(90.0, 0.0, 0.0)  # quarter turn about z
        >>> round(q.w, 6), round(q.z, 6)
        (0.707107, 0.707107)
    """
    half_z = np.deg2rad(alpha) / 2.0
    half_x = np.deg2rad(beta) / 2.0
    half_y = np.deg2rad(gamma) / 2.0

    cz, sz = np.cos(half_z), np.sin(half_z)
    cx, sx = np.cos(half_x), np.sin(half_x)
    cy, sy = np.cos(half_y), np.sin(half_y)

    w = cz * cx * cy - sz * sx * sy
    x = cz * sx * cy - sz * cx * sy
    y = cz * cx * sy + sz * sx * cy
    z = sz * cx * cy + cz * sx * sy

    return Quaternion(float(w), float(x), float(y), float(z)).normalized()


def quat_to_euler(
    q: Quaternion, yaw_reference: Optional[float] = None
) -> Tuple[float, float, float]:
    """Convert a unit quaternion back to device Euler angles.

    Inverse of :func:`euler_to_quat` using the arctangent/arcsine
    extraction for the Z-X'-Y'' order.

    The arcsine only yields beta in [-90, 90], so a device tilted past
    vertical comes back as the equivalent triple with alpha rotated by 180°.
    Passing ``yaw_reference`` returns whichever of the two triples has its
    alpha closer to the reference, which keeps the yaw continuous through
    vertical.

    Args:
        q: Unit quaternion.
        yaw_reference: Optional alpha (degrees) the result should stay near.

    Returns:
        Tuple (alpha, beta, gamma) in degrees with alpha in [0, 360),
        beta in [-180, 180] and gamma in (-180, 180]. Without a reference
        beta is in [-90, 90].

    Example:
        >>> alpha, beta, gamma = quat_to_euler(euler_to_quat(30.0, 20.0, -10.0))
        >>> round(alpha, 6), round(beta, 6), round(gamma, 6)
        (30.0, 20.0, -10.0)
        >>> alpha, beta, _ = quat_to_euler(euler_to_quat(0.0, 100.0, 0.0), yaw_reference=0.0)
        >>> round(alpha, 6) % 360, round(beta, 6)
        (0.0, 100.0)
    """
    w, x, y, z = q.w, q.x, q.y, q.z

    # R[2, 1] = sin(beta)
    sin_beta = 2.0 * (w * x + y * z)
    # Clamp to avoid numerical issues with arcsin at the poles
    sin_beta = np.clip(sin_beta, -1.0, 1.0)
    beta = np.arcsin(sin_beta)

    # -R[2, 0] / R[2, 2] = tan(gamma)
    gamma = np.arctan2(2.0 * (w * y - x * z), 1.0 - 2.0 * (x * x + y * y))

    # -R[0, 1] / R[1, 1] = tan(alpha)
    alpha = np.arctan2(2.0 * (w * z - x * y), 1.0 - 2.0 * (x * x + z * z))

    alpha_deg = normalize_heading(float(np.rad2deg(alpha)))
    beta_deg = float(np.rad2deg(beta))
    gamma_deg = float(np.rad2deg(gamma))

    if yaw_reference is not None:
        # |diff| > 90 means the reference sits on the other triple
        diff = np.mod(alpha_deg - yaw_reference, 360.0)
        if 90.0 < diff < 270.0:
            alpha_deg = normalize_heading(alpha_deg + 180.0)
            beta_deg = float(np.copysign(180.0, beta_deg)) - beta_deg
            gamma_deg = gamma_deg - 180.0 if gamma_deg > 0.0 else gamma_deg + 180.0

    return alpha_deg, beta_deg, gamma_deg


def slerp(q1: Quaternion, q2: Quaternion, t: float) -> Quaternion:
    """Spherical linear interpolation between two unit quaternions.

    Moves from q1 (t = 0) to q2 (t = 1) at constant angular velocity along
    the shortest arc.

    Args:
        q1: Start rotation.
        q2: End rotation.
        t: Interpolation parameter in [0, 1].

    Returns:
        Interpolated unit quaternion.

    Raises:
        ValueError: If t is outside [0, 1].

    Notes:
        - If q1 · q2 < 0, q2 is negated first so the shorter of the two
          equivalent arcs is taken.
        - If q1 · q2 > 0.9995 the quaternions are nearly identical and
          sin(theta) approaches zero; linear interpolation followed by
          renormalization is used instead.
    """
    if not 0.0 <= t <= 1.0:
        raise ValueError(f"t must be in [0, 1], got {t}")

    a = q1.as_array()
    b = q2.as_array()

    dot = float(np.dot(a, b))
    if dot < 0.0:
        b = -b
        dot = -dot

    if dot > SLERP_LINEAR_THRESHOLD:
        result = a + t * (b - a)
        return Quaternion.from_array(result / np.linalg.norm(result))

    theta_0 = np.arccos(np.clip(dot, -1.0, 1.0))
    sin_theta_0 = np.sin(theta_0)
    theta = theta_0 * t

    s1 = np.sin(theta_0 - theta) / sin_theta_0
    s2 = np.sin(theta) / sin_theta_0

    result = s1 * a + s2 * b
    return Quaternion.from_array(result / np.linalg.norm(result))
