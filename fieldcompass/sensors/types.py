"""
Data structures for the orientation and angular-rate streams.

This module defines the shared data types used across the orientation
engine:
    - Operating mode and interpolation submode enumerations
    - Sensor sample packets (orientation, angular rate)
    - Per-tick stability assessment
    - Engine state (heading state, gyro state)
    - Published heading snapshot

Time Base Convention:
    All timestamps are float milliseconds (monotonic), as delivered by the
    host's sensor callbacks. Durations are converted to seconds at the point
    of use (dt = Δt / 1000).

Angle Conventions:
    - alpha/beta/gamma: device Euler angles in degrees (yaw, pitch, roll)
    - headings: degrees clockwise from north, held in [0, 360)

Design principles:
    - Sample packets are frozen (immutable) once captured
    - Sample packets never raise on missing data: a packet with a None or
      NaN component reports ``is_valid() == False`` and is dropped by the
      engine without touching any state
    - Engine states are mutable for in-place updates
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np


class OperatingMode(Enum):
    """Primary use case selected by the caller.

    Attributes:
        COMPASS: Dial / radar presentation, device held roughly flat.
        AR: Camera overlay, device held upright; enables gyro dead reckoning.
    """

    COMPASS = "compass"
    AR = "ar"


class InterpolationSubmode(Enum):
    """Attitude representation driving the heading update.

    Attributes:
        EULER: Exponential smoothing of the Euler-derived heading.
        QUATERNION: Slerp low-pass filter in rotation space (tilted device).
    """

    EULER = "euler"
    QUATERNION = "quaternion"


def _is_finite(value: Optional[float]) -> bool:
    if value is None:
        return False
    try:
        return bool(np.isfinite(value))
    except TypeError:
        return False


@dataclass(frozen=True)
class SensorSample:
    """
    One orientation reading from the platform.

    Attributes:
        alpha: Yaw-like angle about z, degrees. Counter-clockwise on the
               device orientation convention.
        beta: Pitch-like angle about x, degrees. ±90 when held upright.
        gamma: Roll-like angle about y, degrees.
        timestamp: Capture time, milliseconds.
        compass_heading: Vendor-supplied absolute heading in degrees,
                         clockwise from north, when the platform has one.
        compass_accuracy: Vendor-reported heading accuracy in degrees
                          (negative or None when unknown).

    Example:
        >>> sample = SensorSample(alpha=30.0, beta=10.0, gamma=0.0, timestamp=0.0)
        >>> sample.is_valid()
        True
        >>> SensorSample(alpha=None, beta=0.0, gamma=0.0, timestamp=0.0).is_valid()
        False
    """

    alpha: Optional[float]
    beta: Optional[float]
    gamma: Optional[float]
    timestamp: Optional[float]
    compass_heading: Optional[float] = None
    compass_accuracy: Optional[float] = None

    def is_valid(self) -> bool:
        """True if every required component is present and finite."""
        return all(
            _is_finite(v) for v in (self.alpha, self.beta, self.gamma, self.timestamp)
        )

    @property
    def pitch_magnitude(self) -> float:
        return abs(float(self.beta))


@dataclass(frozen=True)
class RateSample:
    """
    One angular-rate reading from the platform.

    Attributes:
        yaw_rate: Rotation rate about z (alpha axis). Units per the
                  configured RateUnit.
        pitch_rate: Rotation rate about x (beta axis).
        roll_rate: Rotation rate about y (gamma axis).
        timestamp: Capture time, milliseconds.

    Notes:
        Only ``yaw_rate`` and ``timestamp`` are required for integration;
        pitch and roll rates are carried for diagnostics and may be None.
    """

    yaw_rate: Optional[float]
    pitch_rate: Optional[float]
    roll_rate: Optional[float]
    timestamp: Optional[float]

    def is_valid(self) -> bool:
        """True if the yaw rate and timestamp are present and finite."""
        return _is_finite(self.yaw_rate) and _is_finite(self.timestamp)


@dataclass(frozen=True)
class StabilityAssessment:
    """
    Confidence/smoothing tier chosen for the current tick.

    Attributes:
        can_update: Whether the heading may move this tick (False = freeze).
        can_correct: Whether the compass may correct gyro drift this tick.
        confidence: Confidence score in [0, 1].
        smoothing_factor: Exponential smoothing factor in [0, 1].
        status: Tier name ('stable', 'semi-stable', 'unstable', 'frozen',
                'vertical', 'overhead').
    """

    can_update: bool
    can_correct: bool
    confidence: float
    smoothing_factor: float
    status: str

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")
        if not 0.0 <= self.smoothing_factor <= 1.0:
            raise ValueError(
                f"smoothing_factor must be in [0, 1], got {self.smoothing_factor}"
            )


@dataclass
class HeadingState:
    """
    Primary mutable state of the engine, owned by the ModeController.

    Attributes:
        smoothed_heading: Published heading, degrees [0, 360).
        last_stable_heading: Heading held while the tier forbids updates.
        raw_heading: Latest platform-derived heading before smoothing.
        confidence: Confidence of the published heading, [0, 1].
        mode: Current operating mode.
        interpolation_submode: Current attitude representation.
    """

    smoothed_heading: float = 0.0
    last_stable_heading: float = 0.0
    raw_heading: float = 0.0
    confidence: float = 1.0
    mode: OperatingMode = OperatingMode.COMPASS
    interpolation_submode: InterpolationSubmode = InterpolationSubmode.EULER


@dataclass
class GyroState:
    """
    Dead-reckoning state, owned by the GyroIntegrator.

    Attributes:
        gyro_heading: Integrated heading, degrees [0, 360).
        calibrated: True once seeded from a compass-derived heading.
        last_timestamp: Timestamp of the last integrated rate sample (ms).
    """

    gyro_heading: float = 0.0
    calibrated: bool = False
    last_timestamp: Optional[float] = None


@dataclass(frozen=True)
class HeadingSnapshot:
    """
    Immutable view of the fused result, emitted once per processed sample.

    Attributes:
        heading: Fused heading, degrees [0, 360).
        raw_heading: Platform-derived heading before smoothing.
        confidence: Confidence of ``heading`` in [0, 1].
        status: Stability tier name of this tick.
        operating_mode: Current operating mode.
        interpolation_submode: Current attitude representation.
        platform_name: Name of the resolved platform profile.
        gyro_available: True when AR dead reckoning is driving the heading.
        pitch: Latest pitch-like angle, degrees.
        instability_level: Consecutive unstable sample count.
        quaternion_active: True in the quaternion submode.
        timestamp: Timestamp of the sample that produced this snapshot (ms).
        compass_accuracy: Vendor heading accuracy in degrees, if reported.
    """

    heading: float
    raw_heading: float
    confidence: float
    status: str
    operating_mode: OperatingMode
    interpolation_submode: InterpolationSubmode
    platform_name: str
    gyro_available: bool
    pitch: float
    instability_level: int
    quaternion_active: bool
    timestamp: Optional[float] = None
    compass_accuracy: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dictionary (enums as their values)."""
        return {
            'heading': self.heading,
            'raw_heading': self.raw_heading,
            'confidence': self.confidence,
            'status': self.status,
            'operating_mode': self.operating_mode.value,
            'interpolation_submode': self.interpolation_submode.value,
            'platform_name': self.platform_name,
            'gyro_available': self.gyro_available,
            'pitch': self.pitch,
            'instability_level': self.instability_level,
            'quaternion_active': self.quaternion_active,
            'timestamp': self.timestamp,
            'compass_accuracy': self.compass_accuracy,
        }


@dataclass(frozen=True)
class CalibrationResult:
    """
    Outcome of a manual calibration request.

    Attributes:
        success: True if a new reference was recorded.
        reason: Why calibration was not applied ('absolute-mode',
                'no-sample'), or None on success.
        offset: Recorded raw-heading offset in degrees, on success.
    """

    success: bool
    reason: Optional[str] = None
    offset: Optional[float] = None


@dataclass(frozen=True)
class DebugSnapshot:
    """
    Read-only diagnostic view of every internal tier and counter.

    Attributes:
        heading: Current fused heading.
        raw_heading: Latest platform-derived heading.
        last_stable_heading: Heading held during freezes.
        confidence: Current confidence.
        status: Latest stability tier name.
        operating_mode: Current operating mode.
        interpolation_submode: Current attitude representation.
        platform_name: Resolved platform profile name.
        pitch: Latest pitch-like angle.
        angular_velocity: Latest yaw angular velocity, deg/s.
        instability_level: Consecutive unstable sample count.
        window_size: Samples currently held in the instability window.
        quaternion: Current quaternion as (w, x, y, z).
        last_stable_quaternion: Snapshot taken in the stable tier.
        gyro_heading: Integrated gyro heading.
        gyro_calibrated: Whether the gyro heading is seeded.
        gyro_available: Whether AR dead reckoning drives the heading.
        calibration_offset: Relative-platform calibration offset, if any.
        permission_granted: Whether the capability gate has passed.
        update_count: Number of snapshots published so far.
        extras: Free-form counters (dropped samples, etc).
    """

    heading: float
    raw_heading: float
    last_stable_heading: float
    confidence: float
    status: str
    operating_mode: OperatingMode
    interpolation_submode: InterpolationSubmode
    platform_name: str
    pitch: float
    angular_velocity: float
    instability_level: int
    window_size: int
    quaternion: tuple
    last_stable_quaternion: tuple
    gyro_heading: float
    gyro_calibrated: bool
    gyro_available: bool
    calibration_offset: Optional[float]
    permission_granted: bool
    update_count: int
    extras: Dict[str, Any] = field(default_factory=dict)
