import math
import unittest

import numpy as np

from lfsim.core.solar import SolarPosition
from lfsim.physics.kinematics import MirrorAngleSolver, sun_vector, target_vector, reflect

def sun_at(alt, az):
    return SolarPosition(altitude_deg=alt, azimuth_deg=az, intensity_wm2=900.0)

class TestMirrorAngleSolver(unittest.TestCase):
    def setUp(self):
        self.solver = MirrorAngleSolver()
        self.focal_offset = 100.0

    def test_centre_mirror_sun_overhead(self):
        angle = self.solver.compute_rotation(0.0, self.focal_offset, sun_at(90.0, 180.0))
        self.assertAlmostEqual(angle, 0.0, places=9)

    def test_sun_overhead_halves_target_angle(self):
        """Normal sits halfway between vertical and the receiver direction."""
        angle = self.solver.compute_rotation(-45.0, self.focal_offset, sun_at(90.0, 0.0))
        expected = math.degrees(math.atan2(45.0, 100.0)) / 2.0
        self.assertAlmostEqual(angle, expected, places=6)

        mirrored = self.solver.compute_rotation(45.0, self.focal_offset, sun_at(90.0, 0.0))
        self.assertAlmostEqual(mirrored, -expected, places=6)

    def test_sun_on_eastern_horizon(self):
        # East is -X in the array frame: normal leans 45 deg towards it
        angle = self.solver.compute_rotation(0.0, self.focal_offset, sun_at(0.0, 90.0))
        self.assertAlmostEqual(angle, -45.0, places=6)

    def test_law_of_reflection(self):
        """Reflecting the sun ray about the mirror normal hits the receiver."""
        for x in (-75.0, -15.0, 15.0, 60.0):
            for alt, az in ((20.0, 100.0), (55.0, 180.0), (70.0, 250.0)):
                sun = sun_at(alt, az)
                normal = self.solver.mirror_normal(x, self.focal_offset, sun)
                reflected = reflect(sun_vector(alt, az), normal)
                np.testing.assert_allclose(reflected, target_vector(x, self.focal_offset), atol=1e-9)

    def test_rotation_bounded(self):
        rng = np.random.default_rng(42)
        for _ in range(200):
            sun = sun_at(rng.uniform(-90.0, 90.0), rng.uniform(0.0, 360.0))
            focal_offset = rng.uniform(1.0, 500.0)
            offsets = rng.uniform(-500.0, 500.0, size=8)
            angles = self.solver.rotations(offsets, focal_offset, sun)
            self.assertTrue(np.all(np.isfinite(angles)))
            self.assertTrue(np.all(angles > -180.0))
            self.assertTrue(np.all(angles <= 180.0))

    def test_antiparallel_rays_keep_rest_pose(self):
        # Sun straight below a mirror that looks straight up at the receiver
        angle = self.solver.compute_rotation(0.0, self.focal_offset, sun_at(-90.0, 0.0))
        self.assertTrue(math.isfinite(angle))
        self.assertAlmostEqual(angle, 0.0, places=6)

    def test_vectorised_matches_scalar(self):
        sun = sun_at(35.0, 120.0)
        offsets = np.array([-45.0, -15.0, 15.0, 45.0])
        angles = self.solver.rotations(offsets, self.focal_offset, sun)
        for x, a in zip(offsets, angles):
            self.assertAlmostEqual(self.solver.compute_rotation(float(x), self.focal_offset, sun), float(a), places=12)

if __name__ == '__main__':
    unittest.main()
