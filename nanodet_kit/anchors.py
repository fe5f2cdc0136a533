from __future__ import annotations

import logging
from typing import Dict, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_STRIDES: Tuple[int, ...] = (8, 16, 32)


def generate_anchors(width: int, height: int, stride: int) -> np.ndarray:
    """
    Anchor centers for one stride level, shape (N, 2) as (x, y) in input pixels.

    Enumerated row-major (rows outer, columns inner) so row `k` lines up with the
    flattened anchor axis of the network outputs.
    """

    if stride <= 0:
        raise ValueError(f"stride must be > 0, got {stride}")

    grid_w = int(width) // int(stride)
    grid_h = int(height) // int(stride)
    offset = 0.5 * (stride - 1)

    xs = np.arange(grid_w, dtype=np.float32) * stride + offset
    ys = np.arange(grid_h, dtype=np.float32) * stride + offset
    # meshgrid "xy" indexing: varying x fastest within each row
    gx, gy = np.meshgrid(xs, ys, indexing="xy")
    anchors = np.stack([gx.ravel(), gy.ravel()], axis=1).astype(np.float32, copy=False)
    anchors.setflags(write=False)
    return anchors


class AnchorGrid:
    """
    Per-stride anchor cache for a fixed input resolution.

    Grids are built once at construction and shared read-only across predictions.
    """

    def __init__(self, width: int, height: int, strides: Sequence[int] = DEFAULT_STRIDES):
        self.width = int(width)
        self.height = int(height)
        self._grids: Dict[int, np.ndarray] = {}
        for stride in strides:
            self._grids[int(stride)] = generate_anchors(self.width, self.height, int(stride))
        logger.debug(
            "Anchor grid %dx%d: %s",
            self.width,
            self.height,
            {s: len(a) for s, a in self._grids.items()},
        )

    @property
    def strides(self) -> Tuple[int, ...]:
        return tuple(self._grids.keys())

    def anchors(self, stride: int) -> np.ndarray:
        try:
            return self._grids[int(stride)]
        except KeyError:
            raise KeyError(f"No anchors for stride {stride}; available: {self.strides}") from None

    def count(self, stride: int) -> int:
        return int(self.anchors(stride).shape[0])

    @property
    def total(self) -> int:
        return sum(int(a.shape[0]) for a in self._grids.values())
