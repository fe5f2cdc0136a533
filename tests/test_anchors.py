import unittest

import numpy as np

from nanodet_kit.anchors import AnchorGrid, generate_anchors


class TestGenerateAnchors(unittest.TestCase):
    def test_count_is_floor_product(self) -> None:
        for w, h, s in [(416, 416, 8), (416, 416, 32), (320, 240, 16), (100, 37, 8), (33, 65, 32)]:
            self.assertEqual(len(generate_anchors(w, h, s)), (w // s) * (h // s))

    def test_row_major_centers(self) -> None:
        a = generate_anchors(32, 16, 8)
        self.assertEqual(a.shape, (8, 2))
        # First row varies x, y fixed
        np.testing.assert_allclose(a[:4, 0], [3.5, 11.5, 19.5, 27.5])
        np.testing.assert_allclose(a[:4, 1], [3.5] * 4)
        np.testing.assert_allclose(a[4], [3.5, 11.5])

    def test_resolution_smaller_than_stride_is_empty(self) -> None:
        a = generate_anchors(16, 16, 32)
        self.assertEqual(a.shape, (0, 2))

    def test_anchors_are_read_only(self) -> None:
        a = generate_anchors(64, 64, 16)
        with self.assertRaises(ValueError):
            a[0, 0] = 1.0


class TestAnchorGrid(unittest.TestCase):
    def test_416_counts(self) -> None:
        grid = AnchorGrid(416, 416)
        self.assertEqual(grid.strides, (8, 16, 32))
        self.assertEqual(grid.count(8), 2704)
        self.assertEqual(grid.count(16), 676)
        self.assertEqual(grid.count(32), 169)
        self.assertEqual(grid.total, 3549)

    def test_cached_per_stride(self) -> None:
        grid = AnchorGrid(128, 128)
        self.assertIs(grid.anchors(16), grid.anchors(16))

    def test_unknown_stride(self) -> None:
        grid = AnchorGrid(128, 128, strides=(8,))
        with self.assertRaises(KeyError):
            grid.anchors(64)


if __name__ == "__main__":
    unittest.main()
