"""Instability detection over a sliding window of orientation samples.

Flags samples taken while the device spins quickly or is held near
vertical, and counts how many such samples arrived in a row. The mode
controller uses the count to debounce its switch into the quaternion
submode.

Key features:
- Bounded FIFO window (oldest sample evicted on overflow)
- Shortest-arc yaw angular velocity between consecutive samples
- Consecutive-unstable counter with hard reset on any stable sample
"""

from collections import deque
from typing import Deque, Optional

from fieldcompass.sensors.types import SensorSample
from fieldcompass.utils.angles import shortest_angle_diff


class InstabilityDetector:
    """Tracks yaw angular velocity and near-vertical tilt sample by sample.

    A sample is unstable if:

    1. **Fast rotation**: |Δalpha| / Δt between it and the previous sample
       exceeds ``velocity_threshold`` (deg/s), or
    2. **Near vertical**: |beta| lies inside ``vertical_band`` (degrees).

    The consecutive-unstable counter increments on every unstable sample and
    drops straight back to 0 on a stable one (no decay).

    Samples whose timestamp is not strictly later than the newest sample in
    the window are stale or duplicated. They stay out of the window and keep
    the previous angular velocity, so no velocity is ever computed from a
    non-positive dt, but their tilt still counts towards the counter.

    Usage:
        >>> detector = InstabilityDetector()
        >>> detector.observe(SensorSample(0.0, 0.0, 0.0, 0.0))
        0
        >>> detector.observe(SensorSample(10.0, 0.0, 0.0, 100.0))  # 100 deg/s
        1
    """

    def __init__(
        self,
        window_size: int = 10,
        velocity_threshold: float = 30.0,
        vertical_band: tuple = (75.0, 105.0),
    ):
        """Initialize instability detector.

        Args:
            window_size: Capacity of the sample window.
            velocity_threshold: Yaw angular velocity (deg/s) above which a
                sample is unstable.
            vertical_band: Inclusive |beta| range (deg) treated as unstable.
        """
        if window_size < 2:
            raise ValueError(f"window_size must be at least 2, got {window_size}")

        self.window_size = window_size
        self.velocity_threshold = velocity_threshold
        self.vertical_band = (float(vertical_band[0]), float(vertical_band[1]))

        # State tracking
        self.window: Deque[SensorSample] = deque(maxlen=window_size)
        self.consecutive_unstable = 0
        self.angular_velocity = 0.0
        self.last_unstable = False
        self.total_observed = 0
        self.total_unstable = 0
        self.total_skipped = 0

    @property
    def latest(self) -> Optional[SensorSample]:
        return self.window[-1] if self.window else None

    def is_near_vertical(self, beta: float) -> bool:
        low, high = self.vertical_band
        return low <= abs(beta) <= high

    def observe(self, sample: SensorSample) -> int:
        """Push a sample and update the instability level.

        Args:
            sample: A valid orientation sample.

        Returns:
            Consecutive unstable sample count after this sample.
        """
        previous = self.latest
        stale = False
        if previous is not None:
            dt = (sample.timestamp - previous.timestamp) / 1000.0
            if dt <= 0:
                # Velocity holds; the tilt check below still applies
                stale = True
                self.total_skipped += 1
            else:
                self.angular_velocity = abs(shortest_angle_diff(sample.alpha, previous.alpha)) / dt
        else:
            self.angular_velocity = 0.0

        if not stale:
            self.window.append(sample)
        self.total_observed += 1

        unstable = (
            self.angular_velocity > self.velocity_threshold
            or self.is_near_vertical(sample.beta)
        )
        self.last_unstable = unstable

        if unstable:
            self.consecutive_unstable += 1
            self.total_unstable += 1
        else:
            self.consecutive_unstable = 0

        return self.consecutive_unstable

    def get_stats(self) -> dict:
        """Get diagnostic statistics for logging.

        Returns:
            Dictionary with counters and the latest angular velocity.
        """
        return {
            'consecutive_unstable': self.consecutive_unstable,
            'angular_velocity': self.angular_velocity,
            'window_size': len(self.window),
            'total_observed': self.total_observed,
            'total_unstable': self.total_unstable,
            'total_skipped': self.total_skipped,
        }

    def reset(self):
        """Reset all tracking state."""
        self.window.clear()
        self.consecutive_unstable = 0
        self.angular_velocity = 0.0
        self.last_unstable = False
        self.total_observed = 0
        self.total_unstable = 0
        self.total_skipped = 0
