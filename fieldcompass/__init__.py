"""Orientation fusion and stability engine for field navigation aids.

This package turns noisy orientation and angular-rate sensor streams into
one continuously updated, confidence-scored compass heading:
- coords: Quaternion attitude helpers and great-circle geodesy
- sensors: Sample packets, rate units, and platform profiles
- fusion: Instability detection, stability tiers, interpolation, gyro
- engine: OrientationEngine, the host-facing control surface
- config: EngineConfig tunables, presets, and JSON loading
"""

from fieldcompass.config import PRESETS, EngineConfig, load_config
from fieldcompass.engine import OrientationEngine
from fieldcompass.errors import ConfigurationError, FieldCompassError, PermissionDeniedError
from fieldcompass.fusion.permission import CapabilityGate, CapabilityResult, StaticCapabilityGate
from fieldcompass.sensors.platform import PlatformCapabilities
from fieldcompass.sensors.types import (
    CalibrationResult,
    HeadingSnapshot,
    OperatingMode,
    RateSample,
    SensorSample,
)
from fieldcompass.sensors.units import RateUnit

__version__ = "0.1.0"

__all__ = [
    "OrientationEngine",
    "EngineConfig",
    "PRESETS",
    "load_config",
    "FieldCompassError",
    "PermissionDeniedError",
    "ConfigurationError",
    "CapabilityGate",
    "CapabilityResult",
    "StaticCapabilityGate",
    "PlatformCapabilities",
    "CalibrationResult",
    "HeadingSnapshot",
    "OperatingMode",
    "RateSample",
    "SensorSample",
    "RateUnit",
]
