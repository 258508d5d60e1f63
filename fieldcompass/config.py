"""
Engine configuration.

Every tunable of the orientation engine lives in one frozen dataclass with
explicit units in the field names' documentation. Configurations can be
built directly, from a named preset, or from a JSON file:

    >>> from fieldcompass.config import EngineConfig, load_config
    >>> config = EngineConfig()                       # defaults
    >>> config = EngineConfig.from_preset('steady')   # named preset
    >>> config = load_config('engine.json')           # JSON file

JSON files may contain any subset of the fields; missing fields keep their
defaults. ``"preset"`` selects a base preset that the other keys override.
Tier tables are given per operating mode as lists of rows:

    {
        "preset": "baseline",
        "rate_unit": "rad/s",
        "tiers": {
            "compass": [
                {"max_pitch": 45, "can_update": true, "can_correct": true,
                 "confidence": 1.0, "smoothing_factor": 0.08, "status": "stable"},
                ...
                {"max_pitch": null, "can_update": false, "can_correct": false,
                 "confidence": 0.1, "smoothing_factor": 0.0, "status": "frozen"}
            ]
        }
    }
"""

import json
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

from fieldcompass.errors import ConfigurationError
from fieldcompass.fusion.stability import (
    DEFAULT_TIERS,
    StabilityTier,
    TierTable,
    validate_tier_table,
)
from fieldcompass.sensors.types import OperatingMode, StabilityAssessment
from fieldcompass.sensors.units import RateUnit


# ============================================================================
# PRESET CONFIGURATIONS
# ============================================================================

PRESETS: Dict[str, Dict[str, Any]] = {
    'baseline': {
        'description': 'Nominal parameters for a handheld phone',
    },
    'responsive': {
        'description': 'Tolerates faster turns before switching representation',
        'velocity_threshold': 45.0,
        'unstable_count_threshold': 4,
        'slerp_gain': 0.2,
    },
    'steady': {
        'description': 'Heavier filtering for slow, deliberate use',
        'slerp_gain': 0.05,
        'drift_correction_rate': 0.002,
    },
}


@dataclass(frozen=True)
class EngineConfig:
    """
    Tunables of the orientation engine.

    Attributes:
        window_size: Capacity of the instability window (samples).
        velocity_threshold: Yaw angular velocity above which a sample is
                            unstable (deg/s).
        vertical_band: Inclusive |beta| range treated as unstable (deg).
        unstable_count_threshold: Consecutive unstable samples that switch
                                  the engine to the quaternion submode.
        quaternion_band: Exclusive |beta| range that switches to the
                         quaternion submode immediately (deg).
        slerp_gain: Slerp parameter per quaternion step, (0, 1].
        quaternion_confidence_cap: Confidence ceiling in the quaternion
                                   submode, [0, 1].
        last_stable_confidence: Confidence above which the last stable
                                heading is refreshed, [0, 1].
        gyro_max_dt: Upper bound on one gyro integration step (s).
        drift_correction_rate: Fraction of the compass/gyro difference
                               applied per correction, [0, 1].
        rate_unit: Declared unit of the angular-rate stream.
        accuracy_confidence_floor: Lowest confidence the vendor compass
                                   accuracy cap can impose, [0, 1].
        tiers: Stability tier tables per operating mode.
    """

    window_size: int = 10
    velocity_threshold: float = 30.0
    vertical_band: Tuple[float, float] = (75.0, 105.0)
    unstable_count_threshold: int = 3
    quaternion_band: Tuple[float, float] = (70.0, 110.0)
    slerp_gain: float = 0.1
    quaternion_confidence_cap: float = 0.8
    last_stable_confidence: float = 0.7
    gyro_max_dt: float = 0.1
    drift_correction_rate: float = 0.005
    rate_unit: RateUnit = RateUnit.DEG_PER_SEC
    accuracy_confidence_floor: float = 0.3
    tiers: Mapping[OperatingMode, TierTable] = field(
        default_factory=lambda: dict(DEFAULT_TIERS)
    )

    def __post_init__(self) -> None:
        """Validate value ranges."""
        if self.window_size < 2:
            raise ConfigurationError(f"window_size must be >= 2, got {self.window_size}")
        if self.velocity_threshold <= 0:
            raise ConfigurationError(
                f"velocity_threshold must be positive, got {self.velocity_threshold}"
            )
        if self.unstable_count_threshold < 1:
            raise ConfigurationError(
                f"unstable_count_threshold must be >= 1, got {self.unstable_count_threshold}"
            )
        for name in ('vertical_band', 'quaternion_band'):
            low, high = getattr(self, name)
            if not 0.0 <= low < high:
                raise ConfigurationError(f"{name} must satisfy 0 <= low < high, got {(low, high)}")
        if not 0.0 < self.slerp_gain <= 1.0:
            raise ConfigurationError(f"slerp_gain must be in (0, 1], got {self.slerp_gain}")
        for name in (
            'quaternion_confidence_cap',
            'last_stable_confidence',
            'drift_correction_rate',
            'accuracy_confidence_floor',
        ):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} must be in [0, 1], got {value}")
        if self.gyro_max_dt <= 0:
            raise ConfigurationError(f"gyro_max_dt must be positive, got {self.gyro_max_dt}")
        if not isinstance(self.rate_unit, RateUnit):
            raise ConfigurationError(f"rate_unit must be a RateUnit, got {self.rate_unit!r}")

        for mode in OperatingMode:
            if mode not in self.tiers:
                raise ConfigurationError(f"Missing tier table for {mode.value} mode")
            try:
                validate_tier_table(self.tiers[mode])
            except ValueError as exc:
                raise ConfigurationError(f"Invalid {mode.value} tier table: {exc}") from exc

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EngineConfig":
        """
        Build a configuration from a plain dictionary (e.g. parsed JSON).

        Args:
            data: Field values; unknown keys raise. ``preset`` and
                  ``description`` are accepted.

        Returns:
            Validated EngineConfig.

        Raises:
            ConfigurationError: On unknown keys or invalid values.
        """
        data = dict(data)
        data.pop('description', None)
        preset = data.pop('preset', None)
        base = cls.from_preset(preset) if preset is not None else cls()

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {unknown}")

        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key == 'rate_unit':
                kwargs[key] = _parse_rate_unit(value)
            elif key in ('vertical_band', 'quaternion_band'):
                kwargs[key] = _parse_band(key, value)
            elif key == 'tiers':
                tiers = dict(base.tiers)
                tiers.update(_parse_tiers(value))
                kwargs[key] = tiers
            else:
                kwargs[key] = value

        return replace(base, **kwargs)

    @classmethod
    def from_preset(cls, name: str) -> "EngineConfig":
        """
        Create a configuration from a named preset.

        Raises:
            ConfigurationError: If the preset does not exist.
        """
        if name not in PRESETS:
            raise ConfigurationError(
                f"Unknown preset '{name}'. Available: {sorted(PRESETS)}"
            )
        values = {k: v for k, v in PRESETS[name].items() if k != 'description'}
        return cls.from_dict(values)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable dictionary that round-trips via from_dict."""
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != 'tiers'}
        data['rate_unit'] = self.rate_unit.value
        data['vertical_band'] = list(self.vertical_band)
        data['quaternion_band'] = list(self.quaternion_band)
        data['tiers'] = {
            mode.value: [
                {'max_pitch': tier.max_pitch, **asdict(tier.assessment)}
                for tier in table
            ]
            for mode, table in self.tiers.items()
        }
        return data


def _parse_rate_unit(value: Union[str, RateUnit]) -> RateUnit:
    if isinstance(value, RateUnit):
        return value
    try:
        return RateUnit(value)
    except ValueError as exc:
        raise ConfigurationError(
            f"rate_unit must be one of {[u.value for u in RateUnit]}, got {value!r}"
        ) from exc


def _parse_band(name: str, value: Any) -> Tuple[float, float]:
    try:
        low, high = value
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a [low, high] pair, got {value!r}") from exc
    return (float(low), float(high))


def _parse_tiers(value: Mapping[str, Any]) -> Dict[OperatingMode, TierTable]:
    tiers: Dict[OperatingMode, TierTable] = {}
    for mode_name, rows in value.items():
        try:
            mode = OperatingMode(mode_name)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown operating mode '{mode_name}'") from exc

        table = []
        for row in rows:
            row = dict(row)
            max_pitch = row.pop('max_pitch', None)
            try:
                assessment = StabilityAssessment(**row)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"Invalid {mode_name} tier row {row}: {exc}") from exc
            table.append(
                StabilityTier(None if max_pitch is None else float(max_pitch), assessment)
            )
        tiers[mode] = tuple(table)
    return tiers


def load_config(path: Union[str, Path]) -> EngineConfig:
    """
    Load an EngineConfig from a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        Validated EngineConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the content is invalid.
    """
    path = Path(path)
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")
    return EngineConfig.from_dict(data)
