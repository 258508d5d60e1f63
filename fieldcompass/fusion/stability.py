"""Table-driven stability tiers.

Maps the current tilt and operating mode to a discrete confidence and
smoothing tier. The tables are plain data; ``EngineConfig`` may replace them.

Default tables (pitch magnitude |beta| in degrees, upper bound exclusive):

    Compass mode
        < 45   update  correct  1.0  0.08  stable
        < 60   update  correct  0.7  0.05  semi-stable
        < 75   update  -        0.3  0.02  unstable
        else   -       -        0.1  0.00  frozen

    AR mode
        < 60   update  correct  1.0  0.05  stable
        < 110  update  -        0.7  0.01  vertical
        else   update  -        0.5  0.01  overhead
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Tuple

from fieldcompass.sensors.types import OperatingMode, StabilityAssessment


@dataclass(frozen=True)
class StabilityTier:
    """One row of a stability table.

    Attributes:
        max_pitch: Exclusive upper bound on |beta| (deg). None marks the
                   catch-all last row.
        assessment: Assessment returned for pitches below ``max_pitch``.
    """

    max_pitch: Optional[float]
    assessment: StabilityAssessment

    def matches(self, pitch_magnitude: float) -> bool:
        return self.max_pitch is None or pitch_magnitude < self.max_pitch


TierTable = Tuple[StabilityTier, ...]


def _tier(max_pitch, can_update, can_correct, confidence, smoothing, status) -> StabilityTier:
    return StabilityTier(
        max_pitch,
        StabilityAssessment(can_update, can_correct, confidence, smoothing, status),
    )


COMPASS_TIERS: TierTable = (
    _tier(45.0, True, True, 1.0, 0.08, 'stable'),
    _tier(60.0, True, True, 0.7, 0.05, 'semi-stable'),
    _tier(75.0, True, False, 0.3, 0.02, 'unstable'),
    _tier(None, False, False, 0.1, 0.0, 'frozen'),
)

AR_TIERS: TierTable = (
    _tier(60.0, True, True, 1.0, 0.05, 'stable'),
    _tier(110.0, True, False, 0.7, 0.01, 'vertical'),
    _tier(None, True, False, 0.5, 0.01, 'overhead'),
)

DEFAULT_TIERS: Dict[OperatingMode, TierTable] = {
    OperatingMode.COMPASS: COMPASS_TIERS,
    OperatingMode.AR: AR_TIERS,
}


def validate_tier_table(tiers: Sequence[StabilityTier]) -> None:
    """Check that a table is non-empty, ascending, and ends with a catch-all.

    Raises:
        ValueError: If the table is malformed.
    """
    if not tiers:
        raise ValueError("Tier table must not be empty")
    if tiers[-1].max_pitch is not None:
        raise ValueError("Last tier must be a catch-all (max_pitch=None)")

    bounds = [t.max_pitch for t in tiers[:-1]]
    if any(b is None for b in bounds):
        raise ValueError("Only the last tier may be a catch-all")
    if any(b2 <= b1 for b1, b2 in zip(bounds, bounds[1:])):
        raise ValueError(f"Tier bounds must be strictly ascending, got {bounds}")


def evaluate_stability(
    pitch_magnitude: float,
    operating_mode: OperatingMode,
    tiers: Optional[Mapping[OperatingMode, TierTable]] = None,
) -> StabilityAssessment:
    """Pick the stability tier for a tilt and operating mode.

    Args:
        pitch_magnitude: |beta| in degrees.
        operating_mode: Current operating mode.
        tiers: Tables to use. Defaults to DEFAULT_TIERS.

    Returns:
        The assessment of the first tier whose bound exceeds the pitch.

    Example:
        >>> evaluate_stability(50.0, OperatingMode.COMPASS).status
        'semi-stable'
        >>> evaluate_stability(80.0, OperatingMode.AR).status
        'vertical'
    """
    table = (tiers or DEFAULT_TIERS)[operating_mode]
    pitch_magnitude = abs(pitch_magnitude)
    for tier in table:
        if tier.matches(pitch_magnitude):
            return tier.assessment
    # Unreachable for validated tables
    return table[-1].assessment


def quaternion_floor(
    assessment: StabilityAssessment,
    operating_mode: OperatingMode,
    tiers: Optional[Mapping[OperatingMode, TierTable]] = None,
) -> StabilityAssessment:
    """Lift a freezing assessment to the lowest tier that still updates.

    Quaternion interpolation does not suffer from gimbal lock, so while it is
    active a tier that would freeze the heading is replaced by the
    highest-pitch tier of the same table that allows updates.

    Args:
        assessment: Assessment from :func:`evaluate_stability`.
        operating_mode: Current operating mode.
        tiers: Tables to use. Defaults to DEFAULT_TIERS.

    Returns:
        ``assessment`` unchanged if it allows updates, otherwise the floor.
    """
    if assessment.can_update:
        return assessment

    table = (tiers or DEFAULT_TIERS)[operating_mode]
    for tier in reversed(table):
        if tier.assessment.can_update:
            return tier.assessment
    return assessment


class StabilityEvaluator:
    """Evaluates stability against a fixed set of tier tables."""

    def __init__(self, tiers: Optional[Mapping[OperatingMode, TierTable]] = None):
        self.tiers = dict(tiers or DEFAULT_TIERS)
        for mode in OperatingMode:
            if mode not in self.tiers:
                raise ValueError(f"Missing tier table for {mode}")
            validate_tier_table(self.tiers[mode])

    def evaluate(self, pitch_magnitude: float, operating_mode: OperatingMode) -> StabilityAssessment:
        return evaluate_stability(pitch_magnitude, operating_mode, self.tiers)

    def floor(self, assessment: StabilityAssessment, operating_mode: OperatingMode) -> StabilityAssessment:
        return quaternion_floor(assessment, operating_mode, self.tiers)
