import unittest

import numpy as np

from nanodet_kit.dfl import decode_distance, decode_distances, softmax


class TestSoftmax(unittest.TestCase):
    def test_sums_to_one(self) -> None:
        rng = np.random.default_rng(0)
        for scale in (0.1, 1.0, 10.0, 100.0):
            x = rng.normal(0.0, scale, size=(50, 8)).astype(np.float32)
            sums = softmax(x, axis=-1).sum(axis=-1)
            np.testing.assert_allclose(sums, np.ones(50), atol=1e-5)

    def test_large_logits_do_not_overflow(self) -> None:
        p = softmax([1000.0, 1000.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0])
        self.assertTrue(np.all(np.isfinite(p)))
        self.assertAlmostEqual(float(p[0]), 0.5, places=6)


class TestDecodeDistance(unittest.TestCase):
    def test_uniform_is_midpoint(self) -> None:
        for x in (0.0, 1.0, -3.25, 42.0):
            self.assertEqual(decode_distance([x] * 8), 3.5)

    def test_peaked_distribution(self) -> None:
        d = np.full(8, -50.0, dtype=np.float32)
        d[5] = 50.0
        self.assertAlmostEqual(decode_distance(d), 5.0, places=5)

    def test_wrong_width(self) -> None:
        with self.assertRaises(ValueError):
            decode_distance([0.0] * 7)


class TestDecodeDistances(unittest.TestCase):
    def test_edges_decoded_independently(self) -> None:
        disp = np.zeros((2, 32), dtype=np.float32)
        # Anchor 1: left edge peaked on bin 0, bottom edge peaked on bin 7
        disp[1, 0:8] = [50, -50, -50, -50, -50, -50, -50, -50]
        disp[1, 24:32] = [-50, -50, -50, -50, -50, -50, -50, 50]
        out = decode_distances(disp)
        self.assertEqual(out.shape, (2, 4))
        np.testing.assert_allclose(out[0], [3.5, 3.5, 3.5, 3.5], atol=1e-6)
        np.testing.assert_allclose(out[1], [0.0, 3.5, 3.5, 7.0], atol=1e-4)

    def test_matches_scalar_decode(self) -> None:
        rng = np.random.default_rng(1)
        disp = rng.normal(size=(5, 32)).astype(np.float32)
        out = decode_distances(disp)
        for i in range(5):
            for e in range(4):
                self.assertAlmostEqual(out[i, e], decode_distance(disp[i, 8 * e : 8 * e + 8]), places=5)

    def test_empty(self) -> None:
        self.assertEqual(decode_distances(np.zeros((0, 32), dtype=np.float32)).shape, (0, 4))


if __name__ == "__main__":
    unittest.main()
