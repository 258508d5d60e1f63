"""Unit tests for platform capability resolution."""

import unittest

import pytest

from fieldcompass.errors import ConfigurationError
from fieldcompass.sensors.platform import (
    HeadingSource,
    PlatformCapabilities,
    PlatformProfile,
    resolve_platform_profile,
)
from fieldcompass.sensors.types import SensorSample


class TestResolvePlatformProfile(unittest.TestCase):
    """Test cases for the static capability lookup."""

    def test_default_is_absolute_yaw(self):
        """Test the default profile."""
        profile = resolve_platform_profile()
        self.assertEqual(profile.name, 'absolute-yaw')
        self.assertIs(profile.heading_source, HeadingSource.YAW)
        self.assertTrue(profile.absolute)
        self.assertFalse(profile.requires_permission)

    def test_vendor_compass(self):
        """Test that a vendor compass field wins and requires permission."""
        profile = resolve_platform_profile(PlatformCapabilities.vendor_compass())
        self.assertEqual(profile.name, 'vendor-compass')
        self.assertIs(profile.heading_source, HeadingSource.VENDOR_COMPASS)
        self.assertTrue(profile.requires_permission)

    def test_relative_yaw(self):
        """Test that a relative stream is not absolute."""
        profile = resolve_platform_profile(PlatformCapabilities.relative_yaw())
        self.assertEqual(profile.name, 'relative-yaw')
        self.assertFalse(profile.absolute)

    def test_gyro_sign(self):
        """Test the sign flip for counter-clockwise gyro conventions."""
        ccw = resolve_platform_profile(PlatformCapabilities(gyro_counter_clockwise=True))
        cw = resolve_platform_profile(PlatformCapabilities(gyro_counter_clockwise=False))
        self.assertEqual(ccw.gyro_sign, -1)
        self.assertEqual(cw.gyro_sign, 1)


class TestPlatformProfile(unittest.TestCase):
    """Test cases for heading extraction."""

    def test_yaw_conversion(self):
        """Test heading = (360 - alpha) mod 360."""
        profile = resolve_platform_profile()
        self.assertAlmostEqual(profile.raw_heading(SensorSample(90.0, 0.0, 0.0, 0.0)), 270.0)
        self.assertEqual(profile.raw_heading(SensorSample(0.0, 0.0, 0.0, 0.0)), 0.0)

    def test_vendor_field_used_when_present(self):
        """Test that the vendor compass field replaces the yaw conversion."""
        profile = resolve_platform_profile(PlatformCapabilities.vendor_compass())
        sample = SensorSample(90.0, 0.0, 0.0, 0.0, compass_heading=123.0)
        self.assertAlmostEqual(profile.raw_heading(sample), 123.0)

    def test_vendor_field_fallback(self):
        """Test fallback to alpha when the vendor field is missing or NaN."""
        profile = resolve_platform_profile(PlatformCapabilities.vendor_compass())
        for compass in (None, float('nan')):
            sample = SensorSample(90.0, 0.0, 0.0, 0.0, compass_heading=compass)
            self.assertAlmostEqual(profile.raw_heading(sample), 270.0)

    def test_yaw_for_heading_inverts_conversion(self):
        """Test that yaw_for_heading undoes the yaw conversion."""
        profile = resolve_platform_profile()
        for alpha in (0.0, 15.0, 200.0, 359.0):
            heading = profile.raw_heading(SensorSample(alpha, 0.0, 0.0, 0.0))
            self.assertAlmostEqual(profile.yaw_for_heading(heading), alpha)

    def test_invalid_sign(self):
        """Test that gyro signs other than +-1 are rejected."""
        with pytest.raises(ConfigurationError, match="gyro_sign"):
            PlatformProfile('custom', HeadingSource.YAW, True, 2, False)


if __name__ == "__main__":
    unittest.main()
