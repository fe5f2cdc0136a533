from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from .types import AnchorPoint, Rect

# Maps a normalized rect in model-input space to normalized original-image space.
RectTransform = Callable[[Rect], Rect]


def assemble_boxes(
    anchors: np.ndarray,
    stride: int,
    distances: np.ndarray,
    feature_width: int,
    feature_height: int,
) -> np.ndarray:
    """
    Build normalized boxes from anchor centers and decoded edge distances.

    Args:
        anchors: (N, 2) anchor centers in input pixels
        distances: (N, 4) decoded (left, top, right, bottom) distances in grid cells
        feature_width/feature_height: model input resolution

    Returns:
        (N, 4) as [x_min, y_min, x_max, y_max], normalized with a bottom-left origin.
    """

    a = np.asarray(anchors, dtype=np.float32).reshape(-1, 2)
    d = np.asarray(distances, dtype=np.float32).reshape(-1, 4) * float(stride)

    x1 = a[:, 0] - d[:, 0]
    y1 = a[:, 1] - d[:, 1]
    x2 = a[:, 0] + d[:, 2]
    y2 = a[:, 1] + d[:, 3]

    w_inv = 1.0 / float(feature_width)
    h_inv = 1.0 / float(feature_height)
    # Network origin is top-left; flip y so the rect origin is bottom-left.
    return np.stack(
        [
            x1 * w_inv,
            1.0 - y2 * h_inv,
            x2 * w_inv,
            1.0 - y1 * h_inv,
        ],
        axis=1,
    )


def assemble_box(
    anchor: AnchorPoint,
    stride: int,
    distances: Sequence[float],
    feature_width: int,
    feature_height: int,
    transform: Optional[RectTransform] = None,
) -> Rect:
    box = assemble_boxes(np.asarray([anchor]), stride, np.asarray([distances]), feature_width, feature_height)[0]
    rect = Rect.from_min_max(*box)
    return transform(rect) if transform is not None else rect


@dataclass(frozen=True)
class LetterboxTransform:
    """
    Undo a letterbox/stretch resize applied before inference.

    `ratio` and `pad` are exactly what `letterbox()` returns: the resize scale per
    axis and the left/top padding in input pixels. Stretched inputs use a per-axis
    ratio with zero padding.
    """

    orig_size: Tuple[int, int]
    input_size: Tuple[int, int]
    ratio: Tuple[float, float] = (1.0, 1.0)
    pad: Tuple[float, float] = (0.0, 0.0)

    @classmethod
    def identity(cls, size: Tuple[int, int]) -> "LetterboxTransform":
        return cls(orig_size=size, input_size=size)

    def __call__(self, rect: Rect) -> Rect:
        in_w, in_h = self.input_size
        orig_w, orig_h = self.orig_size
        rw, rh = self.ratio
        dw, dh = self.pad

        # Normalized bottom-left -> input pixels, top-left origin
        x1 = rect.x_min * in_w
        x2 = rect.x_max * in_w
        y1 = (1.0 - rect.y_max) * in_h
        y2 = (1.0 - rect.y_min) * in_h

        x1 = float(np.clip((x1 - dw) / rw, 0, orig_w))
        x2 = float(np.clip((x2 - dw) / rw, 0, orig_w))
        y1 = float(np.clip((y1 - dh) / rh, 0, orig_h))
        y2 = float(np.clip((y2 - dh) / rh, 0, orig_h))

        return Rect.from_min_max(x1 / orig_w, 1.0 - y2 / orig_h, x2 / orig_w, 1.0 - y1 / orig_h)


def iou(a: Rect, b: Rect) -> float:
    """
    Intersection over union of two rects; 0.0 when either rect has no area.
    """

    area_a = a.area
    area_b = b.area
    if area_a <= 0.0 or area_b <= 0.0:
        return 0.0

    inter_w = max(0.0, min(a.x_max, b.x_max) - max(a.x_min, b.x_min))
    inter_h = max(0.0, min(a.y_max, b.y_max) - max(a.y_min, b.y_min))
    inter = inter_w * inter_h
    union = area_a + area_b - inter
    if union <= 0.0:
        return 0.0
    return inter / union
