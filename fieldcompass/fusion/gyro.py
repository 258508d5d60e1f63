"""Gyro dead reckoning of the heading in AR mode.

Simple heading update per angular-rate sample:
    ψ_k = ψ_{k-1} + s · ω_z · Δt

where:
    ψ: gyro heading [degrees, clockwise from north]
    s: platform sign (+1 / -1)
    ω_z: yaw rate converted to deg/s per the declared RateUnit
    Δt: min(time since the previous rate sample, max_dt) [s]

Drift correction towards the compass (slow proportional pull):
    ψ_k ← ψ_k + k_c · diff(ψ_compass, ψ_k)

Notes:
    - Gyro-based heading drifts over time due to bias and noise, hence the
      compass pull whenever the stability tier allows corrections.
    - Clamping Δt bounds the jump caused by gaps in the rate stream.
"""

import logging
from typing import Optional

from fieldcompass.sensors.types import GyroState, RateSample
from fieldcompass.sensors.units import RateUnit, rate_to_deg_per_sec
from fieldcompass.utils.angles import normalize_heading, shortest_angle_diff

logger = logging.getLogger(__name__)


def integrate_gyro_heading(heading_prev: float, rate_deg_s: float, dt: float) -> float:
    """
    Integrate a yaw rate to update a heading.

    Args:
        heading_prev: Previous heading in degrees.
        rate_deg_s: Yaw rate in deg/s, already sign-corrected so that
                    positive turns clockwise.
        dt: Time step in seconds.

    Returns:
        Updated heading in degrees within [0, 360).

    Raises:
        ValueError: If dt is not positive.

    Example:
        >>> integrate_gyro_heading(350.0, 20.0, 1.0)  # crosses north
        10.0
    """
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")

    return normalize_heading(heading_prev + rate_deg_s * dt)


class GyroIntegrator:
    """Dead-reckoning heading driven by the angular-rate stream.

    The integrator is seeded from the first compass-derived heading after
    entering AR mode; rate samples received before that only advance the
    timestamp.

    Attributes:
        sign: Platform sign applied to the yaw rate.
        rate_unit: Declared unit of the rate stream.
        max_dt: Upper bound on a single integration step (s).
        correction_rate: Fraction of the compass/gyro difference applied
            per correction.
        state: Heading, calibration flag, and last timestamp.
    """

    def __init__(
        self,
        sign: int = -1,
        rate_unit: RateUnit = RateUnit.DEG_PER_SEC,
        max_dt: float = 0.1,
        correction_rate: float = 0.005,
    ):
        if max_dt <= 0:
            raise ValueError(f"max_dt must be positive, got {max_dt}")
        if not 0.0 <= correction_rate <= 1.0:
            raise ValueError(f"correction_rate must be in [0, 1], got {correction_rate}")

        self.sign = sign
        self.rate_unit = rate_unit
        self.max_dt = max_dt
        self.correction_rate = correction_rate

        self.state = GyroState()
        self.rate_samples = 0
        self.total_skipped = 0

    @property
    def heading(self) -> float:
        return self.state.gyro_heading

    @property
    def available(self) -> bool:
        """True once seeded and fed by at least one rate sample."""
        return self.state.calibrated and self.rate_samples > 0

    def seed(self, compass_heading: float) -> bool:
        """Seed the gyro heading if not yet calibrated.

        Args:
            compass_heading: Compass-derived heading in degrees.

        Returns:
            True if this call seeded the integrator.
        """
        if self.state.calibrated:
            return False
        self.state.gyro_heading = normalize_heading(compass_heading)
        self.state.calibrated = True
        logger.info("Gyro heading seeded at %.1f°", self.state.gyro_heading)
        return True

    def integrate(self, sample: RateSample) -> bool:
        """Advance the gyro heading by one angular-rate sample.

        Args:
            sample: A valid rate sample.

        Returns:
            True if the sample was consumed; False if its timestamp was not
            later than the previous one (step skipped, state untouched).
        """
        last = self.state.last_timestamp
        if last is None:
            self.state.last_timestamp = sample.timestamp
            self.rate_samples += 1
            return True

        dt = (sample.timestamp - last) / 1000.0
        if dt <= 0:
            self.total_skipped += 1
            logger.debug("Skipping rate sample with non-positive dt (%.4f s)", dt)
            return False

        dt = min(dt, self.max_dt)
        self.state.last_timestamp = sample.timestamp
        self.rate_samples += 1

        if self.state.calibrated:
            rate_deg_s = rate_to_deg_per_sec(self.sign * sample.yaw_rate, self.rate_unit)
            self.state.gyro_heading = integrate_gyro_heading(
                self.state.gyro_heading, rate_deg_s, dt
            )
        return True

    def correct(self, compass_heading: Optional[float], can_correct: bool) -> float:
        """Pull the gyro heading towards the compass heading.

        Args:
            compass_heading: Concurrent compass-derived heading, or None.
            can_correct: Whether the current stability tier allows it.

        Returns:
            Applied correction in degrees (0.0 if none).
        """
        if not (self.state.calibrated and can_correct) or compass_heading is None:
            return 0.0

        drift = shortest_angle_diff(compass_heading, self.state.gyro_heading)
        correction = drift * self.correction_rate
        self.state.gyro_heading = normalize_heading(self.state.gyro_heading + correction)
        return correction

    def reset(self) -> None:
        """Clear calibration and timestamp (on operating-mode change)."""
        self.state = GyroState()
        self.rate_samples = 0
        self.total_skipped = 0
