"""
Orientation fusion engine.

OrientationEngine is the single entry point for hosts. It wires the
platform profile, mode controller, and publisher together from an
EngineConfig and exposes the control surface:

    >>> import asyncio
    >>> from fieldcompass import OrientationEngine, SensorSample
    >>> engine = OrientationEngine()
    >>> asyncio.run(engine.start())
    <CapabilityResult.UNSUPPORTED: 'unsupported'>
    >>> unsubscribe = engine.subscribe(lambda snap: print(round(snap.heading)))
    >>> snapshot = engine.handle_orientation(SensorSample(90.0, 5.0, 0.0, 0.0))
    270

Both input streams may arrive on different host threads; every public
method serializes on one reentrant lock, so subscribers may query the
engine from inside their callback.
"""

import logging
import threading
from typing import Callable, Optional, Union

from fieldcompass.config import EngineConfig
from fieldcompass.errors import PermissionDeniedError
from fieldcompass.fusion.gyro import GyroIntegrator
from fieldcompass.fusion.instability import InstabilityDetector
from fieldcompass.fusion.interpolation import QuaternionInterpolator
from fieldcompass.fusion.mode import ModeController
from fieldcompass.fusion.permission import CapabilityGate, CapabilityResult
from fieldcompass.fusion.publisher import HeadingCallback, HeadingPublisher
from fieldcompass.fusion.stability import StabilityEvaluator
from fieldcompass.sensors.platform import PlatformCapabilities, resolve_platform_profile
from fieldcompass.sensors.types import (
    CalibrationResult,
    DebugSnapshot,
    HeadingSnapshot,
    OperatingMode,
    RateSample,
    SensorSample,
)

logger = logging.getLogger(__name__)


class OrientationEngine:
    """
    Fuses orientation and angular-rate streams into one compass heading.

    Args:
        config: Tunables. Defaults to ``EngineConfig()``.
        capabilities: Host capability descriptor used to resolve the
                      platform profile. Defaults to an absolute-yaw device.

    Attributes:
        config: Active configuration.
        profile: Resolved platform profile.
        controller: Mode controller holding all fusion state.
        publisher: Snapshot observer registry.
        permission: Result of the last permission request, or None.
        dropped_orientation: Orientation samples dropped (malformed or
                             before permission).
        dropped_rate: Rate samples dropped (malformed or before permission).
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        capabilities: Optional[PlatformCapabilities] = None,
    ):
        self.config = config or EngineConfig()
        self.profile = resolve_platform_profile(capabilities)

        cfg = self.config
        self.controller = ModeController(
            profile=self.profile,
            detector=InstabilityDetector(
                window_size=cfg.window_size,
                velocity_threshold=cfg.velocity_threshold,
                vertical_band=cfg.vertical_band,
            ),
            evaluator=StabilityEvaluator(cfg.tiers),
            interpolator=QuaternionInterpolator(gain=cfg.slerp_gain),
            gyro=GyroIntegrator(
                sign=self.profile.gyro_sign,
                rate_unit=cfg.rate_unit,
                max_dt=cfg.gyro_max_dt,
                correction_rate=cfg.drift_correction_rate,
            ),
            unstable_count_threshold=cfg.unstable_count_threshold,
            quaternion_band=cfg.quaternion_band,
            quaternion_confidence_cap=cfg.quaternion_confidence_cap,
            last_stable_confidence=cfg.last_stable_confidence,
            accuracy_confidence_floor=cfg.accuracy_confidence_floor,
        )
        self.publisher = HeadingPublisher()

        self.permission: Optional[CapabilityResult] = None
        self.dropped_orientation = 0
        self.dropped_rate = 0

        self._lock = threading.RLock()
        logger.info("Orientation engine using platform profile '%s'", self.profile.name)

    # ------------------------------------------------------------------
    # Permission
    # ------------------------------------------------------------------

    async def start(self, gate: Optional[CapabilityGate] = None) -> CapabilityResult:
        """
        Run the one-shot permission gate.

        Without a gate the platform is assumed to have no permission
        concept. The gate is awaited without a timeout and is not retried;
        calling ``start`` again re-prompts.

        Args:
            gate: Host permission prompt.

        Returns:
            GRANTED or UNSUPPORTED.

        Raises:
            PermissionDeniedError: If the gate answered DENIED. The engine
                                   keeps dropping samples.
        """
        if gate is None:
            result = CapabilityResult.UNSUPPORTED
        else:
            result = await gate.request_capability()

        with self._lock:
            self.permission = result

        if not result.allows_sensors:
            logger.warning("Sensor permission denied; engine stays uninitialized")
            raise PermissionDeniedError("Sensor permission denied by the user")

        logger.info("Sensor permission: %s", result.value)
        return result

    def needs_permission(self) -> bool:
        """True while the platform requires a grant that has not been given."""
        with self._lock:
            granted = self.permission is not None and self.permission.allows_sensors
            return self.profile.requires_permission and not granted

    def _accepting(self) -> bool:
        if self.permission is CapabilityResult.DENIED:
            return False
        return not self.needs_permission()

    # ------------------------------------------------------------------
    # Input streams
    # ------------------------------------------------------------------

    def handle_orientation(self, sample: SensorSample) -> Optional[HeadingSnapshot]:
        """
        Process one orientation sample and publish a snapshot.

        Returns:
            The published snapshot, or None if the sample was dropped.
        """
        with self._lock:
            if not self._accepting():
                self.dropped_orientation += 1
                logger.debug("Dropping orientation sample: permission not granted")
                return None
            if not sample.is_valid():
                self.dropped_orientation += 1
                logger.debug("Dropping malformed orientation sample %s", sample)
                return None

            self.controller.process_orientation(sample)
            snapshot = self._snapshot(sample.timestamp)
            self.publisher.publish(snapshot)
            return snapshot

    def handle_rate(self, sample: RateSample) -> Optional[HeadingSnapshot]:
        """
        Process one angular-rate sample (AR mode only).

        Returns:
            The published snapshot, or None if the sample was dropped,
            ignored outside AR mode, or skipped for a non-positive dt.
        """
        with self._lock:
            if not self._accepting():
                self.dropped_rate += 1
                logger.debug("Dropping rate sample: permission not granted")
                return None
            if not sample.is_valid():
                self.dropped_rate += 1
                logger.debug("Dropping malformed rate sample %s", sample)
                return None

            if not self.controller.process_rate(sample):
                return None
            snapshot = self._snapshot(sample.timestamp)
            self.publisher.publish(snapshot)
            return snapshot

    def _snapshot(self, timestamp: Optional[float]) -> HeadingSnapshot:
        controller = self.controller
        state = controller.state
        sample = controller.last_sample
        assessment = controller.last_assessment

        return HeadingSnapshot(
            heading=controller.heading,
            raw_heading=state.raw_heading,
            confidence=state.confidence,
            status=assessment.status if assessment is not None else 'stable',
            operating_mode=state.mode,
            interpolation_submode=state.interpolation_submode,
            platform_name=self.profile.name,
            gyro_available=controller.gyro_available,
            pitch=float(sample.beta) if sample is not None else 0.0,
            instability_level=controller.detector.consecutive_unstable,
            quaternion_active=controller.quaternion_active,
            timestamp=timestamp,
            compass_accuracy=sample.compass_accuracy if sample is not None else None,
        )

    # ------------------------------------------------------------------
    # Control surface
    # ------------------------------------------------------------------

    @property
    def operating_mode(self) -> OperatingMode:
        return self.controller.operating_mode

    def set_operating_mode(self, mode: Union[OperatingMode, str]) -> bool:
        """
        Select compass or AR mode.

        Args:
            mode: OperatingMode or its value ('compass', 'ar').

        Returns:
            False if the mode was already active.
        """
        mode = OperatingMode(mode)
        with self._lock:
            return self.controller.set_operating_mode(mode)

    def calibrate(self) -> CalibrationResult:
        """
        Define the current facing direction as north (relative platforms).

        Returns:
            CalibrationResult; unsuccessful with reason 'absolute-mode' on
            platforms that already deliver absolute headings, or
            'no-sample' before the first orientation sample.
        """
        with self._lock:
            if self.profile.absolute:
                return CalibrationResult(success=False, reason='absolute-mode')
            offset = self.controller.calibrate()
            if offset is None:
                return CalibrationResult(success=False, reason='no-sample')
            logger.info("Heading calibrated, offset %.1f°", offset)
            return CalibrationResult(success=True, offset=offset)

    def clear_calibration(self) -> None:
        with self._lock:
            if self.controller.calibration_offset is not None:
                logger.info("Heading calibration cleared")
            self.controller.clear_calibration()

    def needs_calibration(self) -> bool:
        with self._lock:
            return not self.profile.absolute and self.controller.calibration_offset is None

    def get_heading(self) -> float:
        with self._lock:
            return self.controller.heading

    def get_debug_snapshot(self) -> DebugSnapshot:
        """Read-only view of every internal tier and counter."""
        with self._lock:
            controller = self.controller
            state = controller.state
            detector = controller.detector
            interpolator = controller.interpolator
            gyro = controller.gyro
            assessment = controller.last_assessment
            sample = controller.last_sample

            extras = dict(detector.get_stats())
            extras.update({
                'dropped_orientation': self.dropped_orientation,
                'dropped_rate': self.dropped_rate,
                'submode_transitions': controller.transitions,
                'quaternion_steps': interpolator.steps,
                'gyro_rate_samples': gyro.rate_samples,
                'gyro_skipped': gyro.total_skipped,
                'permission': self.permission.value if self.permission else None,
            })

            return DebugSnapshot(
                heading=controller.heading,
                raw_heading=state.raw_heading,
                last_stable_heading=state.last_stable_heading,
                confidence=state.confidence,
                status=assessment.status if assessment is not None else 'stable',
                operating_mode=state.mode,
                interpolation_submode=state.interpolation_submode,
                platform_name=self.profile.name,
                pitch=float(sample.beta) if sample is not None else 0.0,
                angular_velocity=detector.angular_velocity,
                instability_level=detector.consecutive_unstable,
                window_size=len(detector.window),
                quaternion=tuple(interpolator.current.as_array().tolist()),
                last_stable_quaternion=tuple(interpolator.last_stable.as_array().tolist()),
                gyro_heading=gyro.heading,
                gyro_calibrated=gyro.state.calibrated,
                gyro_available=controller.gyro_available,
                calibration_offset=controller.calibration_offset,
                permission_granted=not self.needs_permission()
                and self.permission is not CapabilityResult.DENIED,
                update_count=self.publisher.published,
                extras=extras,
            )

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, callback: HeadingCallback) -> Callable[[], None]:
        """Register a snapshot callback; returns its unsubscribe function."""
        with self._lock:
            return self.publisher.subscribe(callback)

    def unsubscribe(self, callback: HeadingCallback) -> bool:
        with self._lock:
            return self.publisher.unsubscribe(callback)
