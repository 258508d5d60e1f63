"""
Sensor streams, platform conventions, and engine data types.

Modules:
    types: Sample packets, assessments, engine states, published snapshots
    units: Declared unit of the angular-rate stream and conversions
    platform: Capability descriptors and resolved platform profiles

Primary data structures (from types module):
    SensorSample: One orientation reading (alpha, beta, gamma, timestamp)
    RateSample: One angular-rate reading (yaw/pitch/roll rate, timestamp)
    StabilityAssessment: Confidence/smoothing tier of a tick
    HeadingState: Mutable heading state owned by the mode controller
    GyroState: Mutable dead-reckoning state owned by the gyro integrator
    HeadingSnapshot: Immutable published result

Design principles:
    - Sample packets are frozen and never raise on missing components
    - Timestamps are milliseconds; dt is computed in seconds at use
    - Headings are degrees clockwise from north in [0, 360)

Example:
    >>> from fieldcompass.sensors import (
    ...     SensorSample, PlatformCapabilities, resolve_platform_profile
    ... )
    >>> profile = resolve_platform_profile(PlatformCapabilities.absolute_yaw())
    >>> profile.raw_heading(SensorSample(alpha=90.0, beta=0.0, gamma=0.0, timestamp=0.0))
    270.0
"""

from fieldcompass.sensors.types import (
    CalibrationResult,
    DebugSnapshot,
    GyroState,
    HeadingSnapshot,
    HeadingState,
    InterpolationSubmode,
    OperatingMode,
    RateSample,
    SensorSample,
    StabilityAssessment,
)

from fieldcompass.sensors.units import (
    RateUnit,
    rate_to_deg_per_sec,
)

from fieldcompass.sensors.platform import (
    HeadingSource,
    PlatformCapabilities,
    PlatformProfile,
    resolve_platform_profile,
)

__all__ = [
    # Data types
    "CalibrationResult",
    "DebugSnapshot",
    "GyroState",
    "HeadingSnapshot",
    "HeadingState",
    "InterpolationSubmode",
    "OperatingMode",
    "RateSample",
    "SensorSample",
    "StabilityAssessment",
    # Units
    "RateUnit",
    "rate_to_deg_per_sec",
    # Platform
    "HeadingSource",
    "PlatformCapabilities",
    "PlatformProfile",
    "resolve_platform_profile",
]
