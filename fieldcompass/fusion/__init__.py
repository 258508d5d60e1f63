"""Orientation fusion and stability components.

This package turns orientation and angular-rate samples into one
confidence-scored compass heading:
- Instability detection over a sliding sample window
- Table-driven stability tiers per operating mode
- Quaternion slerp low-pass filter for tilted devices
- Gyro dead reckoning with compass drift correction (AR mode)
- Mode controller dispatching between Euler and quaternion submodes
- Synchronous snapshot publisher and one-shot permission gate
"""

from fieldcompass.fusion.gyro import GyroIntegrator, integrate_gyro_heading
from fieldcompass.fusion.instability import InstabilityDetector
from fieldcompass.fusion.interpolation import QuaternionInterpolator
from fieldcompass.fusion.mode import ModeController
from fieldcompass.fusion.permission import (
    CapabilityGate,
    CapabilityResult,
    StaticCapabilityGate,
)
from fieldcompass.fusion.publisher import HeadingPublisher
from fieldcompass.fusion.stability import (
    AR_TIERS,
    COMPASS_TIERS,
    DEFAULT_TIERS,
    StabilityEvaluator,
    StabilityTier,
    evaluate_stability,
    quaternion_floor,
    validate_tier_table,
)

__all__ = [
    # Instability
    "InstabilityDetector",
    # Stability tiers
    "StabilityTier",
    "StabilityEvaluator",
    "COMPASS_TIERS",
    "AR_TIERS",
    "DEFAULT_TIERS",
    "evaluate_stability",
    "quaternion_floor",
    "validate_tier_table",
    # Interpolation
    "QuaternionInterpolator",
    # Gyro
    "GyroIntegrator",
    "integrate_gyro_heading",
    # Mode
    "ModeController",
    # Delivery
    "HeadingPublisher",
    "CapabilityGate",
    "CapabilityResult",
    "StaticCapabilityGate",
]
