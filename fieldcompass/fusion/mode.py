"""Operating mode and interpolation submode state machine.

The ModeController owns the heading state and drives one tick of the fusion
pipeline per orientation sample:

    1. InstabilityDetector.observe(sample)      -> instability level
    2. submode transition                       (EULER <-> QUATERNION)
    3. StabilityEvaluator.evaluate(|beta|, mode) -> tier
    4. submode update                           -> smoothed heading, confidence
    5. compass accuracy cap, last-stable bookkeeping
    6. AR mode: gyro seeding and drift correction

Steps 2 and 4 are dispatched through tables keyed by the current
InterpolationSubmode, so each representation owns its own transition and
update rule.

Transition rule (asymmetric hysteresis):
    EULER -> QUATERNION  if level >= unstable_count_threshold
                         or |beta| in the open quaternion band
    QUATERNION -> EULER  if neither holds (a single clean sample)
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from fieldcompass.coords.rotations import euler_to_quat
from fieldcompass.fusion.gyro import GyroIntegrator
from fieldcompass.fusion.instability import InstabilityDetector
from fieldcompass.fusion.interpolation import QuaternionInterpolator
from fieldcompass.fusion.stability import StabilityEvaluator
from fieldcompass.sensors.platform import PlatformProfile, resolve_platform_profile
from fieldcompass.sensors.types import (
    HeadingState,
    InterpolationSubmode,
    OperatingMode,
    RateSample,
    SensorSample,
    StabilityAssessment,
)
from fieldcompass.utils.angles import heading_from_yaw, normalize_heading, smooth_angle

logger = logging.getLogger(__name__)

SubmodeUpdate = Callable[[SensorSample, float, StabilityAssessment], StabilityAssessment]


class ModeController:
    """Heading state machine over the two interpolation submodes.

    Attributes:
        profile: Platform heading and sign conventions.
        detector: Sliding-window instability detector.
        evaluator: Tier table lookup.
        interpolator: Quaternion low-pass filter.
        gyro: AR mode dead reckoning.
        state: Published heading state.
        calibration_offset: Raw heading recorded as north on relative
            platforms, or None.
        last_sample: Most recent valid orientation sample.
        last_assessment: Effective assessment of the most recent tick.

    Example:
        >>> controller = ModeController()
        >>> controller.process_orientation(SensorSample(0.0, 10.0, 0.0, 0.0)).status
        'stable'
        >>> controller.heading
        0.0
    """

    def __init__(
        self,
        profile: Optional[PlatformProfile] = None,
        detector: Optional[InstabilityDetector] = None,
        evaluator: Optional[StabilityEvaluator] = None,
        interpolator: Optional[QuaternionInterpolator] = None,
        gyro: Optional[GyroIntegrator] = None,
        unstable_count_threshold: int = 3,
        quaternion_band: Tuple[float, float] = (70.0, 110.0),
        quaternion_confidence_cap: float = 0.8,
        last_stable_confidence: float = 0.7,
        accuracy_confidence_floor: float = 0.3,
    ):
        self.profile = profile or resolve_platform_profile()
        self.detector = detector or InstabilityDetector()
        self.evaluator = evaluator or StabilityEvaluator()
        self.interpolator = interpolator or QuaternionInterpolator()
        self.gyro = gyro or GyroIntegrator(sign=self.profile.gyro_sign)

        self.unstable_count_threshold = unstable_count_threshold
        self.quaternion_band = (float(quaternion_band[0]), float(quaternion_band[1]))
        self.quaternion_confidence_cap = quaternion_confidence_cap
        self.last_stable_confidence = last_stable_confidence
        self.accuracy_confidence_floor = accuracy_confidence_floor

        self.state = HeadingState()
        self.calibration_offset: Optional[float] = None
        self.last_sample: Optional[SensorSample] = None
        self.last_platform_heading: Optional[float] = None
        self.last_assessment: Optional[StabilityAssessment] = None
        self.transitions = 0

        self._transitions: Dict[InterpolationSubmode, Callable[[SensorSample, int], None]] = {
            InterpolationSubmode.EULER: self._maybe_enter_quaternion,
            InterpolationSubmode.QUATERNION: self._maybe_exit_quaternion,
        }
        self._updates: Dict[InterpolationSubmode, SubmodeUpdate] = {
            InterpolationSubmode.EULER: self._update_euler,
            InterpolationSubmode.QUATERNION: self._update_quaternion,
        }

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def operating_mode(self) -> OperatingMode:
        return self.state.mode

    @property
    def submode(self) -> InterpolationSubmode:
        return self.state.interpolation_submode

    @property
    def quaternion_active(self) -> bool:
        return self.state.interpolation_submode is InterpolationSubmode.QUATERNION

    @property
    def gyro_available(self) -> bool:
        """True when AR dead reckoning drives the published heading."""
        return self.state.mode is OperatingMode.AR and self.gyro.available

    @property
    def heading(self) -> float:
        """Published heading: gyro heading when available, else smoothed."""
        if self.gyro_available:
            return self.gyro.heading
        return self.state.smoothed_heading

    # ------------------------------------------------------------------
    # Heading extraction
    # ------------------------------------------------------------------

    def raw_heading(self, sample: SensorSample) -> float:
        """Platform heading of a sample with the calibration offset removed."""
        heading = self.profile.raw_heading(sample)
        if self.calibration_offset is not None:
            heading = normalize_heading(heading - self.calibration_offset)
        return heading

    def in_quaternion_band(self, beta: float) -> bool:
        low, high = self.quaternion_band
        return low < abs(beta) < high

    # ------------------------------------------------------------------
    # Sample processing
    # ------------------------------------------------------------------

    def process_orientation(self, sample: SensorSample) -> StabilityAssessment:
        """Run one fusion tick for a valid orientation sample.

        Args:
            sample: Orientation sample with finite alpha, beta, gamma and
                timestamp.

        Returns:
            Effective stability assessment of this tick.
        """
        level = self.detector.observe(sample)

        self.last_platform_heading = self.profile.raw_heading(sample)
        raw = self.raw_heading(sample)
        self.state.raw_heading = raw

        if self.last_sample is None:
            # First sample: start from the measured heading instead of north
            self.state.smoothed_heading = raw
            self.state.last_stable_heading = raw
        self.last_sample = sample

        self._transitions[self.state.interpolation_submode](sample, level)

        tier = self.evaluator.evaluate(abs(sample.beta), self.state.mode)
        assessment = self._updates[self.state.interpolation_submode](sample, raw, tier)

        confidence = self._cap_by_accuracy(assessment.confidence, sample.compass_accuracy)
        if confidence != assessment.confidence:
            assessment = replace(assessment, confidence=confidence)
        self.state.confidence = assessment.confidence

        if tier.confidence > self.last_stable_confidence:
            self.state.last_stable_heading = self.state.smoothed_heading

        if assessment.status == 'stable':
            if self.quaternion_active:
                self.interpolator.mark_stable()
            else:
                self.interpolator.mark_stable(
                    euler_to_quat(sample.alpha, sample.beta, sample.gamma)
                )

        if self.state.mode is OperatingMode.AR:
            self.gyro.seed(raw)
            self.gyro.correct(raw, assessment.can_correct)

        self.last_assessment = assessment
        return assessment

    def process_rate(self, sample: RateSample) -> bool:
        """Feed an angular-rate sample to the gyro (AR mode only).

        Returns:
            True if the sample was consumed.
        """
        if self.state.mode is not OperatingMode.AR:
            return False
        return self.gyro.integrate(sample)

    # ------------------------------------------------------------------
    # Submode transitions
    # ------------------------------------------------------------------

    def _wants_quaternion(self, sample: SensorSample, level: int) -> bool:
        return level >= self.unstable_count_threshold or self.in_quaternion_band(sample.beta)

    def _maybe_enter_quaternion(self, sample: SensorSample, level: int) -> None:
        if not self._wants_quaternion(sample, level):
            return
        # Tilt from the sample, yaw from the published heading so the
        # visible heading does not jump on entry
        yaw = self.profile.yaw_for_heading(self.state.smoothed_heading)
        self.interpolator.seed(yaw, sample.beta, sample.gamma)
        self.state.interpolation_submode = InterpolationSubmode.QUATERNION
        self.transitions += 1
        logger.debug(
            "Entering quaternion submode (level=%d, beta=%.1f)", level, sample.beta
        )

    def _maybe_exit_quaternion(self, sample: SensorSample, level: int) -> None:
        if self._wants_quaternion(sample, level):
            return
        self.state.interpolation_submode = InterpolationSubmode.EULER
        self.transitions += 1
        logger.debug("Leaving quaternion submode at %.1f°", self.state.smoothed_heading)

    # ------------------------------------------------------------------
    # Submode updates
    # ------------------------------------------------------------------

    def _update_euler(
        self, sample: SensorSample, raw: float, tier: StabilityAssessment
    ) -> StabilityAssessment:
        if not tier.can_update:
            self.state.smoothed_heading = self.state.last_stable_heading
            return tier

        self.state.smoothed_heading = smooth_angle(
            self.state.smoothed_heading, raw, tier.smoothing_factor
        )
        return tier

    def _update_quaternion(
        self, sample: SensorSample, raw: float, tier: StabilityAssessment
    ) -> StabilityAssessment:
        assessment = self.evaluator.floor(tier, self.state.mode)
        if not assessment.can_update:
            self.state.smoothed_heading = self.state.last_stable_heading
            return assessment

        yaw = self.profile.yaw_for_heading(raw)
        self.interpolator.step(yaw, sample.beta, sample.gamma)
        # Previous heading selects the Euler triple, continuous through vertical
        reference = self.profile.yaw_for_heading(self.state.smoothed_heading)
        self.state.smoothed_heading = heading_from_yaw(self.interpolator.current_yaw(reference))

        if assessment.confidence > self.quaternion_confidence_cap:
            assessment = replace(assessment, confidence=self.quaternion_confidence_cap)
        return assessment

    def _cap_by_accuracy(self, confidence: float, accuracy: Optional[float]) -> float:
        if accuracy is None or not np.isfinite(accuracy) or accuracy < 0:
            return confidence
        cap = max(self.accuracy_confidence_floor, 1.0 - accuracy / 180.0)
        return min(confidence, cap)

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def set_operating_mode(self, mode: OperatingMode) -> bool:
        """Switch operating mode; the gyro restarts from scratch on change.

        Returns:
            False if ``mode`` is already active (no-op).
        """
        if mode is self.state.mode:
            return False
        previous = self.state.mode
        self.state.mode = mode
        self.gyro.reset()
        logger.info("Operating mode %s -> %s", previous.value, mode.value)
        return True

    def calibrate(self) -> Optional[float]:
        """Record the latest platform heading as north.

        Returns:
            The recorded offset, or None before the first sample.
        """
        if self.last_platform_heading is None:
            return None

        self.calibration_offset = self.last_platform_heading
        self.state.raw_heading = 0.0
        self.state.smoothed_heading = 0.0
        self.state.last_stable_heading = 0.0
        if self.quaternion_active and self.last_sample is not None:
            self.interpolator.seed(
                self.profile.yaw_for_heading(0.0), self.last_sample.beta, self.last_sample.gamma
            )
        self.gyro.reset()
        return self.calibration_offset

    def clear_calibration(self) -> None:
        self.calibration_offset = None

    def reset(self) -> None:
        """Return to the initial state, keeping the operating mode."""
        mode = self.state.mode
        self.state = HeadingState(mode=mode)
        self.detector.reset()
        self.interpolator.reset()
        self.gyro.reset()
        self.last_sample = None
        self.last_platform_heading = None
        self.last_assessment = None
        self.transitions = 0
