from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np

from .types import Rect


@dataclass
class NMSConfig:
    iou_threshold: float = 0.5
    max_detections: Optional[int] = None


def _as_xyxy(boxes: Union[np.ndarray, Sequence[Rect]]) -> np.ndarray:
    if isinstance(boxes, np.ndarray):
        return boxes.reshape(-1, 4).astype(np.float32, copy=False)
    return np.array([r.as_xyxy() for r in boxes], dtype=np.float32).reshape(-1, 4)


def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices of boxes to keep, highest score first.

    Equal scores keep insertion order (stable sort), so the lower index wins.
    A box is dropped only when its IoU with a kept box is strictly above the threshold.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 2]
    y2 = boxes[:, 3]
    areas = np.maximum(0.0, x2 - x1) * np.maximum(0.0, y2 - y1)

    order = np.argsort(-np.asarray(scores, dtype=np.float64), kind="stable")
    keep = []
    limit = cfg.max_detections

    while order.size > 0 and (limit is None or len(keep) < limit):
        i = order[0]
        keep.append(i)
        rest = order[1:]

        xx1 = np.maximum(x1[i], x1[rest])
        yy1 = np.maximum(y1[i], y1[rest])
        xx2 = np.minimum(x2[i], x2[rest])
        yy2 = np.minimum(y2[i], y2[rest])

        w = np.maximum(0.0, xx2 - xx1)
        h = np.maximum(0.0, yy2 - yy1)
        inter = w * h
        union = areas[i] + areas[rest] - inter
        iou = np.where(
            (areas[i] > 0.0) & (areas[rest] > 0.0),
            inter / np.maximum(union, 1e-12),
            0.0,
        )

        inds = np.where(iou <= cfg.iou_threshold)[0]
        order = rest[inds]

    return np.array(keep, dtype=np.int64)


def suppress(
    boxes: Union[np.ndarray, Sequence[Rect]],
    scores: Union[np.ndarray, Sequence[float]],
    iou_threshold: float,
    max_detections: Optional[int] = None,
) -> np.ndarray:
    """
    Indices of `boxes` surviving greedy NMS, in keep order (descending score).
    """

    xyxy = _as_xyxy(boxes)
    s = np.asarray(scores, dtype=np.float64).reshape(-1)
    if xyxy.shape[0] != s.shape[0]:
        raise ValueError(f"boxes and scores differ in length: {xyxy.shape[0]} vs {s.shape[0]}")
    return nms(xyxy, s, NMSConfig(iou_threshold=float(iou_threshold), max_detections=max_detections))
