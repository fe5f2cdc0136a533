from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Tuple

import numpy as np


@dataclass(frozen=True)
class Rect:
    """
    Axis-aligned rectangle in normalized [0, 1] image space.

    The origin is the bottom-left corner of the image, so `y` is the bottom edge.
    """

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_min_max(cls, x_min: float, y_min: float, x_max: float, y_max: float) -> "Rect":
        return cls(float(x_min), float(y_min), float(x_max - x_min), float(y_max - y_min))

    @property
    def x_min(self) -> float:
        return self.x

    @property
    def y_min(self) -> float:
        return self.y

    @property
    def x_max(self) -> float:
        return self.x + self.width

    @property
    def y_max(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return max(self.width, 0.0) * max(self.height, 0.0)

    @property
    def center(self) -> Tuple[float, float]:
        return self.x + 0.5 * self.width, self.y + 0.5 * self.height

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x_min, self.y_min, self.x_max, self.y_max


class AnchorPoint(NamedTuple):
    x: float
    y: float


@dataclass
class Candidate:
    rect: Rect
    label: str
    score: float


@dataclass
class Detection:
    """
    Final detection returned by the predictor.

    `rect` is normalized with a bottom-left origin; use `to_pixels` for drawing.
    """

    rect: Rect
    label: str
    score: float

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.rect.as_xyxy()

    def to_pixels(self, width: int, height: int) -> Tuple[float, float, float, float]:
        """
        Top-left-origin pixel box (x1, y1, x2, y2) for an image of the given size.
        """

        x1 = self.rect.x_min * width
        x2 = self.rect.x_max * width
        y1 = (1.0 - self.rect.y_max) * height
        y2 = (1.0 - self.rect.y_min) * height
        return x1, y1, x2, y2


@dataclass(frozen=True)
class StrideConfig:
    """
    One detection head: class scores (N, C) and DFL displacements (N, 32) for a stride.
    """

    stride: int
    logits: np.ndarray
    displacements: np.ndarray
