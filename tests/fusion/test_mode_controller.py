"""Unit tests for the operating mode / interpolation submode state machine.

Test cases include:
- Asymmetric hysteresis between the Euler and quaternion submodes
- Tier application: smoothing, freezing, last-stable bookkeeping
- Quaternion submode floor and confidence cap
- Compass accuracy cap
- AR mode gyro seeding, integration, and drift correction
- Relative-platform calibration offset
"""

import unittest

from fieldcompass.fusion.mode import ModeController
from fieldcompass.sensors.platform import PlatformCapabilities, resolve_platform_profile
from fieldcompass.sensors.types import (
    InterpolationSubmode,
    OperatingMode,
    RateSample,
    SensorSample,
)
from fieldcompass.utils.angles import shortest_angle_diff


EULER = InterpolationSubmode.EULER
QUATERNION = InterpolationSubmode.QUATERNION


def orientation(alpha: float, t_ms: float, beta: float = 0.0, **kwargs) -> SensorSample:
    return SensorSample(alpha=alpha, beta=beta, gamma=0.0, timestamp=t_ms, **kwargs)


def rate(yaw_rate: float, t_ms: float) -> RateSample:
    return RateSample(yaw_rate=yaw_rate, pitch_rate=0.0, roll_rate=0.0, timestamp=t_ms)


class TestSubmodeTransitions(unittest.TestCase):
    """Test cases for Euler <-> quaternion hysteresis."""

    def setUp(self):
        self.controller = ModeController()

    def test_switch_on_third_fast_sample(self):
        """Test three >30 °/s samples at pitch 0 switch exactly on the 3rd."""
        self.controller.process_orientation(orientation(0.0, 0.0))
        self.assertIs(self.controller.submode, EULER)

        # 10° per 100 ms = 100 °/s
        self.controller.process_orientation(orientation(10.0, 100.0))
        self.assertIs(self.controller.submode, EULER)
        self.controller.process_orientation(orientation(20.0, 200.0))
        self.assertIs(self.controller.submode, EULER)
        self.controller.process_orientation(orientation(30.0, 300.0))
        self.assertIs(self.controller.submode, QUATERNION)
        self.assertTrue(self.controller.quaternion_active)

    def test_single_stable_sample_exits(self):
        """Test one stable sample at pitch 0 returns to Euler."""
        for i in range(4):
            self.controller.process_orientation(orientation(10.0 * i, 100.0 * i))
        self.assertIs(self.controller.submode, QUATERNION)

        self.controller.process_orientation(orientation(30.0, 400.0))

        self.assertIs(self.controller.submode, EULER)
        self.assertEqual(self.controller.transitions, 2)

    def test_steep_tilt_enters_immediately(self):
        """Test |beta| inside (70, 110) enters without debouncing."""
        self.controller.process_orientation(orientation(0.0, 0.0, beta=71.0))
        self.assertIs(self.controller.submode, QUATERNION)

    def test_band_is_open(self):
        """Test that exactly 70° does not force the quaternion submode."""
        self.controller.process_orientation(orientation(0.0, 0.0, beta=70.0))
        self.assertIs(self.controller.submode, EULER)

    def test_entry_does_not_jump(self):
        """Test that entering the quaternion submode keeps the heading."""
        self.controller.process_orientation(orientation(90.0, 0.0, beta=10.0))
        self.assertAlmostEqual(self.controller.heading, 270.0)

        self.controller.process_orientation(orientation(90.0, 100.0, beta=80.0))

        self.assertIs(self.controller.submode, QUATERNION)
        self.assertLess(abs(shortest_angle_diff(self.controller.heading, 270.0)), 1e-6)


class TestTierApplication(unittest.TestCase):
    """Test cases for tier-driven heading updates."""

    def setUp(self):
        self.controller = ModeController()

    def test_first_sample_initializes_heading(self):
        """Test that the first sample sets the heading directly."""
        self.controller.process_orientation(orientation(90.0, 0.0))
        self.assertAlmostEqual(self.controller.heading, 270.0)
        self.assertAlmostEqual(self.controller.state.last_stable_heading, 270.0)

    def test_stable_tier_smoothing(self):
        """Test a flat device (pitch 40) in compass mode is stable at 0.08."""
        self.controller.process_orientation(orientation(0.0, 0.0, beta=40.0))
        assessment = self.controller.process_orientation(orientation(350.0, 1000.0, beta=40.0))

        self.assertEqual(assessment.status, 'stable')
        self.assertEqual(assessment.confidence, 1.0)
        self.assertEqual(assessment.smoothing_factor, 0.08)
        # raw heading 10°, smoothed 0 + 0.08 * 10
        self.assertAlmostEqual(self.controller.heading, 0.8)

    def test_steep_compass_pitch_is_unstable_not_frozen(self):
        """Test pitch 80 in compass mode: updating, no correction, conf 0.3."""
        self.controller.process_orientation(orientation(0.0, 0.0, beta=10.0))
        assessment = self.controller.process_orientation(orientation(0.0, 100.0, beta=80.0))

        self.assertEqual(assessment.status, 'unstable')
        self.assertTrue(assessment.can_update)
        self.assertFalse(assessment.can_correct)
        self.assertEqual(assessment.confidence, 0.3)
        self.assertEqual(self.controller.state.confidence, 0.3)

    def test_crossing_north(self):
        """Test 10° -> 350° moves through 0°, not through 180°."""
        self.controller.process_orientation(orientation(350.0, 0.0))  # heading 10
        self.assertAlmostEqual(self.controller.heading, 10.0)

        headings = []
        for i in range(1, 30):
            # heading 350; 20° once, then no rotation
            self.controller.process_orientation(orientation(10.0, 1000.0 * i))
            headings.append(self.controller.heading)

        self.assertAlmostEqual(headings[0], 8.4)
        for h in headings:
            self.assertTrue(h <= 10.0 or h >= 350.0, msg=f"heading {h} took the long way")
        self.assertGreater(headings[-1], 350.0)

    def test_freeze_holds_last_stable(self):
        """Test the frozen tier holds the last stable heading."""
        self.controller.process_orientation(orientation(0.0, 0.0))
        assessment = self.controller.process_orientation(orientation(90.0, 1000.0, beta=120.0))

        self.assertIs(self.controller.submode, EULER)
        self.assertEqual(assessment.status, 'frozen')
        self.assertEqual(self.controller.heading, 0.0)
        self.assertAlmostEqual(self.controller.state.raw_heading, 270.0)
        self.assertEqual(self.controller.state.confidence, 0.1)

    def test_last_stable_refreshed_above_threshold_only(self):
        """Test last-stable refresh needs confidence strictly above 0.7."""
        self.controller.process_orientation(orientation(0.0, 0.0))

        # Semi-stable (0.7): heading moves, last stable stays
        self.controller.process_orientation(orientation(340.0, 1000.0, beta=50.0))
        self.assertAlmostEqual(self.controller.heading, 1.0)
        self.assertEqual(self.controller.state.last_stable_heading, 0.0)

        # Stable (1.0): refreshed
        self.controller.process_orientation(orientation(340.0, 2000.0, beta=0.0))
        self.assertAlmostEqual(self.controller.heading, 2.52)
        self.assertAlmostEqual(self.controller.state.last_stable_heading, 2.52)

    def test_last_stable_uses_tier_confidence(self):
        """Test a low compass accuracy does not block the last-stable refresh."""
        self.controller.process_orientation(orientation(0.0, 0.0, compass_accuracy=90.0))
        assessment = self.controller.process_orientation(
            orientation(340.0, 1000.0, compass_accuracy=90.0)
        )

        self.assertEqual(assessment.status, 'stable')
        # Capped at max(0.3, 1 - 90 / 180)
        self.assertAlmostEqual(self.controller.state.confidence, 0.5)
        self.assertAlmostEqual(self.controller.heading, 1.6)
        self.assertAlmostEqual(self.controller.state.last_stable_heading, 1.6)

    def test_stale_timestamp_still_updates_heading(self):
        """Test duplicate timestamps skip velocity but not smoothing."""
        self.controller.process_orientation(orientation(0.0, 100.0))
        self.controller.process_orientation(orientation(350.0, 100.0))

        self.assertEqual(self.controller.detector.total_skipped, 1)
        self.assertAlmostEqual(self.controller.heading, 0.8)


class TestQuaternionSubmode(unittest.TestCase):
    """Test cases for the quaternion submode update."""

    def test_confidence_capped(self):
        """Test confidence is capped at 0.8 while quaternion is active."""
        controller = ModeController()
        controller.set_operating_mode(OperatingMode.AR)

        for i in range(4):
            assessment = controller.process_orientation(orientation(10.0 * i, 100.0 * i, beta=50.0))

        self.assertIs(controller.submode, QUATERNION)
        self.assertEqual(assessment.status, 'stable')
        self.assertEqual(assessment.confidence, 0.8)
        self.assertEqual(controller.state.confidence, 0.8)
        # Stable tier snapshots the running attitude
        self.assertEqual(controller.interpolator.last_stable, controller.interpolator.current)

    def test_heading_follows_target(self):
        """Test the slerp filter pulls the heading towards the samples."""
        controller = ModeController()
        controller.process_orientation(orientation(0.0, 0.0, beta=80.0))

        for i in range(1, 80):
            controller.process_orientation(orientation(330.0, 1000.0 * i, beta=80.0))

        # raw heading 30°
        self.assertLess(abs(shortest_angle_diff(controller.heading, 30.0)), 0.1)
        self.assertIs(controller.submode, QUATERNION)

    def test_tilt_past_vertical_keeps_heading(self):
        """Test pitch beyond 90° does not flip the heading by 180°."""
        for mode in (OperatingMode.COMPASS, OperatingMode.AR):
            for beta in (95.0, 100.0):
                controller = ModeController()
                controller.set_operating_mode(mode)
                # alpha 300 -> raw heading 60
                controller.process_orientation(orientation(300.0, 0.0, beta=10.0))

                for i in range(1, 40):
                    controller.process_orientation(orientation(300.0, 50.0 * i, beta=beta))
                    self.assertIs(controller.submode, QUATERNION)
                    self.assertAlmostEqual(controller.state.raw_heading, 60.0)
                    self.assertLess(
                        abs(shortest_angle_diff(controller.heading, 60.0)), 1e-6,
                        msg=f"{mode.value} beta={beta} sample {i}",
                    )

    def test_turn_while_past_vertical(self):
        """Test the filtered heading tracks a turn with the device past vertical."""
        controller = ModeController()
        controller.process_orientation(orientation(0.0, 0.0, beta=100.0))

        for i in range(1, 80):
            controller.process_orientation(orientation(270.0, 1000.0 * i, beta=100.0))

        # raw heading 90°
        self.assertLess(abs(shortest_angle_diff(controller.heading, 90.0)), 0.1)


class TestAccuracyCap(unittest.TestCase):
    """Test cases for the vendor compass accuracy cap."""

    def test_cap(self):
        """Test confidence <= max(0.3, 1 - accuracy / 180)."""
        cases = [(90.0, 0.5), (170.0, 0.3), (0.0, 1.0), (-1.0, 1.0), (None, 1.0)]
        for accuracy, expected in cases:
            controller = ModeController()
            controller.process_orientation(orientation(0.0, 0.0, compass_accuracy=accuracy))
            self.assertAlmostEqual(controller.state.confidence, expected, msg=accuracy)


class TestOperatingModeAndGyro(unittest.TestCase):
    """Test cases for operating mode changes and AR dead reckoning."""

    def setUp(self):
        self.controller = ModeController()

    def test_set_mode_idempotent(self):
        """Test same-mode set is a no-op and changes reset the gyro."""
        self.assertFalse(self.controller.set_operating_mode(OperatingMode.COMPASS))
        self.assertTrue(self.controller.set_operating_mode(OperatingMode.AR))

        self.controller.process_orientation(orientation(0.0, 0.0))
        self.controller.process_rate(rate(0.0, 0.0))
        self.assertTrue(self.controller.gyro.state.calibrated)

        self.assertFalse(self.controller.set_operating_mode(OperatingMode.AR))
        self.assertTrue(self.controller.gyro.state.calibrated)

        self.assertTrue(self.controller.set_operating_mode(OperatingMode.COMPASS))
        self.assertFalse(self.controller.gyro.state.calibrated)
        self.assertIsNone(self.controller.gyro.state.last_timestamp)

    def test_rate_ignored_in_compass_mode(self):
        """Test rate samples are not consumed outside AR mode."""
        self.assertFalse(self.controller.process_rate(rate(10.0, 0.0)))
        self.assertIsNone(self.controller.gyro.state.last_timestamp)

    def test_ar_gyro_drives_heading(self):
        """Test seeding, integration, and drift correction in AR mode."""
        self.controller.set_operating_mode(OperatingMode.AR)
        self.controller.process_orientation(orientation(0.0, 0.0, beta=10.0))
        self.assertTrue(self.controller.gyro.state.calibrated)
        self.assertFalse(self.controller.gyro_available)

        self.assertTrue(self.controller.process_rate(rate(-10.0, 0.0)))
        self.assertTrue(self.controller.gyro_available)

        # Counter-clockwise platform sign: -10 -> +10 °/s clockwise
        self.controller.process_rate(rate(-10.0, 100.0))
        self.assertAlmostEqual(self.controller.heading, 1.0)
        self.assertAlmostEqual(self.controller.state.smoothed_heading, 0.0)

        # Stable AR tier corrects: 1.0 + 0.005 * (0 - 1.0)
        self.controller.process_orientation(orientation(0.0, 200.0, beta=10.0))
        self.assertAlmostEqual(self.controller.heading, 0.995)

    def test_no_correction_in_vertical_tier(self):
        """Test the AR vertical tier does not correct gyro drift."""
        self.controller.set_operating_mode(OperatingMode.AR)
        self.controller.process_orientation(orientation(0.0, 0.0, beta=10.0))
        self.controller.process_rate(rate(-10.0, 0.0))
        self.controller.process_rate(rate(-10.0, 100.0))

        self.controller.process_orientation(orientation(0.0, 200.0, beta=90.0))

        self.assertAlmostEqual(self.controller.heading, 1.0)


class TestCalibration(unittest.TestCase):
    """Test cases for the relative-platform calibration offset."""

    def setUp(self):
        profile = resolve_platform_profile(PlatformCapabilities.relative_yaw())
        self.controller = ModeController(profile=profile)

    def test_no_sample(self):
        """Test calibrating before any sample."""
        self.assertIsNone(self.controller.calibrate())

    def test_offset_applied(self):
        """Test that the calibrated direction becomes north."""
        self.controller.process_orientation(orientation(90.0, 0.0))  # platform 270°
        self.assertAlmostEqual(self.controller.calibrate(), 270.0)
        self.assertEqual(self.controller.heading, 0.0)

        self.controller.process_orientation(orientation(90.0, 100.0))
        self.assertAlmostEqual(self.controller.heading, 0.0)

        self.controller.process_orientation(orientation(0.0, 1100.0))  # platform 0°
        self.assertAlmostEqual(self.controller.state.raw_heading, 90.0)
        self.assertAlmostEqual(self.controller.heading, 7.2)

    def test_clear(self):
        """Test that clearing removes the offset."""
        self.controller.process_orientation(orientation(90.0, 0.0))
        self.controller.calibrate()
        self.controller.clear_calibration()

        self.assertIsNone(self.controller.calibration_offset)
        self.controller.process_orientation(orientation(90.0, 100.0))
        self.assertAlmostEqual(self.controller.state.raw_heading, 270.0)


class TestReset(unittest.TestCase):
    """Test cases for ModeController.reset."""

    def test_reset_keeps_mode(self):
        """Test reset clears state but keeps the operating mode."""
        controller = ModeController()
        controller.set_operating_mode(OperatingMode.AR)
        controller.process_orientation(orientation(0.0, 0.0, beta=80.0))
        controller.reset()

        self.assertIs(controller.operating_mode, OperatingMode.AR)
        self.assertIs(controller.submode, EULER)
        self.assertIsNone(controller.last_sample)
        self.assertEqual(len(controller.detector.window), 0)


if __name__ == "__main__":
    unittest.main()
