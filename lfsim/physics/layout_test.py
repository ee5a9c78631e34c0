import unittest
from collections import Counter

import numpy as np

from lfsim.core.geometry import MirrorArraySpec, ReceiverGeometry, MIRROR_CLEARANCE
from lfsim.core.solar import SolarPosition
from lfsim.physics.kinematics import sun_vector, reflect
from lfsim.physics.layout import mirror_offsets, layout, sun_point, ray_segments

class TestMirrorArrayLayout(unittest.TestCase):
    def setUp(self):
        self.receiver = ReceiverGeometry()
        self.sun = SolarPosition(altitude_deg=90.0, azimuth_deg=180.0, intensity_wm2=950.0)

    def test_default_offsets(self):
        np.testing.assert_allclose(mirror_offsets(MirrorArraySpec()), [-15.0, -45.0, 15.0, 45.0])

    def test_odd_count_offsets(self):
        np.testing.assert_allclose(mirror_offsets(MirrorArraySpec(count=3)), [-15.0, 15.0, 45.0])
        np.testing.assert_allclose(mirror_offsets(MirrorArraySpec(count=1)), [15.0])

    def test_even_counts_symmetric(self):
        for count in range(2, 22, 2):
            offsets = mirror_offsets(MirrorArraySpec(count=count, spacing_cm=27.5))
            values = Counter(np.round(offsets, 9))
            negated = Counter(np.round(-offsets, 9))
            self.assertEqual(values, negated)
            self.assertEqual(len(values), count)

    def test_layout_states(self):
        spec = MirrorArraySpec(count=6, support_height_cm=25.0)
        states = layout(spec, self.receiver, self.sun)

        self.assertIsInstance(states, tuple)
        self.assertEqual([s.index for s in states], list(range(6)))
        for s in states:
            self.assertEqual(s.height_cm, 25.0 + MIRROR_CLEARANCE)

        # Overhead sun: mirrors either side tilt towards the receiver by equal amounts
        by_offset = {round(s.x_offset_cm, 9): s.rotation_deg for s in states}
        for x, angle in by_offset.items():
            self.assertAlmostEqual(angle, -by_offset[-x], places=9)
            if x < 0:
                self.assertGreater(angle, 0.0)

    def test_count_change_rebuilds(self):
        four = layout(MirrorArraySpec(count=4), self.receiver, self.sun)
        two = layout(MirrorArraySpec(count=2), self.receiver, self.sun)
        self.assertEqual(len(four), 4)
        self.assertEqual(len(two), 2)

    def test_ray_segments(self):
        states = layout(MirrorArraySpec(), self.receiver, self.sun)
        segments = ray_segments(states, self.receiver, self.sun)

        self.assertEqual(len(segments), len(states))
        sx, sy, sz = sun_point(self.sun)
        self.assertAlmostEqual(sz, 1000.0, places=6)
        self.assertAlmostEqual(sx, 0.0, places=6)
        for seg, m in zip(segments, states):
            self.assertEqual(seg.pivot, (m.x_offset_cm, 0.0, m.height_cm))
            self.assertAlmostEqual(seg.focal_point[2], self.receiver.height_cm)

    def test_raised_supports_still_aim_at_receiver(self):
        spec = MirrorArraySpec(support_height_cm=50.0)
        # Sun due east and due west: the rays stay in the plane the mirrors rotate in
        for alt, az in ((40.0, 90.0), (65.0, 270.0)):
            sun = SolarPosition(altitude_deg=alt, azimuth_deg=az, intensity_wm2=800.0)
            states = layout(spec, self.receiver, sun)
            segments = ray_segments(states, self.receiver, sun)
            for seg, m in zip(segments, states):
                self.assertEqual(seg.pivot[2], 52.0)
                self.assertAlmostEqual(seg.focal_point[2], 130.0)

                theta = np.radians(m.rotation_deg)
                normal = np.array([np.sin(theta), 0.0, np.cos(theta)])
                reflected = reflect(sun_vector(alt, az), normal)
                to_receiver = np.subtract(seg.focal_point, seg.pivot)
                np.testing.assert_allclose(reflected, to_receiver / np.linalg.norm(to_receiver), atol=1e-9)

if __name__ == '__main__':
    unittest.main()
