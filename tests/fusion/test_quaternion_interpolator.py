"""Unit tests for the quaternion slerp low-pass filter."""

import unittest

import numpy as np
import pytest

from fieldcompass.coords.rotations import Quaternion, euler_to_quat
from fieldcompass.fusion.interpolation import QuaternionInterpolator
from fieldcompass.utils.angles import shortest_angle_diff


class TestQuaternionInterpolator(unittest.TestCase):
    """Test cases for QuaternionInterpolator."""

    def test_gain_range(self):
        """Test that gains outside (0, 1] are rejected."""
        for gain in (0.0, -0.1, 1.5):
            with pytest.raises(ValueError, match="gain"):
                QuaternionInterpolator(gain=gain)

    def test_starts_at_identity(self):
        """Test initial attitudes."""
        interp = QuaternionInterpolator()
        self.assertEqual(interp.current, Quaternion.identity())
        self.assertEqual(interp.last_stable, Quaternion.identity())

    def test_seed(self):
        """Test seeding from Euler angles."""
        interp = QuaternionInterpolator()
        interp.seed(30.0, 75.0, -10.0)

        alpha, beta, gamma = interp.current_euler()
        self.assertAlmostEqual(alpha, 30.0, places=9)
        self.assertAlmostEqual(beta, 75.0, places=9)
        self.assertAlmostEqual(gamma, -10.0, places=9)

    def test_single_step_fraction(self):
        """Test one step at gain 0.1 covers a tenth of a flat yaw turn."""
        interp = QuaternionInterpolator(gain=0.1)
        interp.step(90.0, 0.0, 0.0)

        self.assertAlmostEqual(interp.current_yaw(), 9.0, places=9)
        self.assertEqual(interp.steps, 1)

    def test_unit_gain_snaps(self):
        """Test that gain 1 reaches the target in one step."""
        interp = QuaternionInterpolator(gain=1.0)
        interp.step(120.0, 20.0, 5.0)

        target = euler_to_quat(120.0, 20.0, 5.0)
        self.assertAlmostEqual(abs(interp.current.dot(target)), 1.0, places=12)

    def test_converges_to_constant_target(self):
        """Test repeated steps converge with a shrinking error."""
        interp = QuaternionInterpolator(gain=0.1)
        interp.seed(0.0, 80.0, 0.0)

        errors = []
        for _ in range(60):
            interp.step(40.0, 80.0, 0.0)
            errors.append(abs(shortest_angle_diff(40.0, interp.current_yaw())))

        self.assertTrue(all(e2 <= e1 + 1e-9 for e1, e2 in zip(errors, errors[1:])))
        self.assertLess(errors[-1], 0.1)

    def test_current_stays_unit(self):
        """Test normalization after every step."""
        interp = QuaternionInterpolator(gain=0.3)
        rng = np.random.default_rng(1)
        for a, b, g in rng.uniform(-90.0, 90.0, size=(30, 3)):
            interp.step(a, b, g)
            self.assertAlmostEqual(interp.current.norm(), 1.0, places=12)

    def test_mark_stable(self):
        """Test snapshotting the current or a given attitude."""
        interp = QuaternionInterpolator()
        interp.seed(10.0, 0.0, 0.0)
        interp.mark_stable()
        self.assertEqual(interp.last_stable, interp.current)

        other = euler_to_quat(50.0, 0.0, 0.0)
        interp.mark_stable(other)
        self.assertEqual(interp.last_stable, other)

    def test_reset(self):
        """Test that reset restores identity attitudes."""
        interp = QuaternionInterpolator()
        interp.step(90.0, 0.0, 0.0)
        interp.mark_stable()
        interp.reset()

        self.assertEqual(interp.current, Quaternion.identity())
        self.assertEqual(interp.last_stable, Quaternion.identity())
        self.assertEqual(interp.steps, 0)

    def test_static_conversions(self):
        """Test the conversion aliases on the class."""
        q = QuaternionInterpolator.from_euler(30.0, 0.0, 0.0)
        alpha, _, _ = QuaternionInterpolator.to_euler(q)
        self.assertAlmostEqual(alpha, 30.0, places=9)
        np.testing.assert_allclose(
            QuaternionInterpolator.slerp(q, q, 0.5).as_array(), q.as_array(), atol=1e-12
        )


if __name__ == "__main__":
    unittest.main()
