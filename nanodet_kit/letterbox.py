from __future__ import annotations

from typing import Tuple

import numpy as np


def letterbox(
    image: np.ndarray,
    new_shape: Tuple[int, int] = (416, 416),
    color: Tuple[int, int, int] = (114, 114, 114),
    aspect_mode: str = "fit",
):
    """
    Resize an image to the model's fixed input size.

    aspect_mode:
        "fit"  keep aspect ratio, pad the remainder evenly (letterbox)
        "fill" stretch to `new_shape`, no padding

    Returns:
        padded: resized (+ padded) image of size `new_shape` (w, h)
        ratio: (w_ratio, h_ratio) scale from original to resized
        pad: (dw, dh) left/top padding in pixels
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox(). Install with `pip install opencv-python`.") from e

    if isinstance(new_shape, int):
        new_shape = (new_shape, new_shape)

    h, w = image.shape[:2]
    new_w, new_h = new_shape

    if aspect_mode == "fill":
        if (w, h) != (new_w, new_h):
            image = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_LINEAR)
        return image, (new_w / w, new_h / h), (0.0, 0.0)
    if aspect_mode != "fit":
        raise ValueError(f"aspect_mode must be 'fit' or 'fill', got {aspect_mode!r}")

    r = min(new_w / w, new_h / h)
    resized_w, resized_h = int(round(w * r)), int(round(h * r))
    dw = (new_w - resized_w) / 2
    dh = (new_h - resized_h) / 2

    if (w, h) != (resized_w, resized_h):
        image = cv2.resize(image, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)

    top, bottom = int(round(dh - 0.1)), int(round(dh + 0.1))
    left, right = int(round(dw - 0.1)), int(round(dw + 0.1))
    padded = cv2.copyMakeBorder(image, top, bottom, left, right, cv2.BORDER_CONSTANT, value=color)

    return padded, (r, r), (dw, dh)
