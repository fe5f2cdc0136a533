"""
Distribution Focal Loss (DFL) edge decoding.

Each box edge is predicted as a discrete distribution over `NUM_BINS` bins; the
decoded distance (in grid cells) is the expectation sum(softmax(logits) * [0..7]).
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np

NUM_BINS = 8
NUM_EDGES = 4
DISPLACEMENT_CHANNELS = NUM_EDGES * NUM_BINS

_PROJECT = np.arange(NUM_BINS, dtype=np.float32)

ArrayLike = Union[np.ndarray, Sequence[float]]


def softmax(logits: ArrayLike, axis: int = -1) -> np.ndarray:
    x = np.asarray(logits, dtype=np.float32)
    # Shift by the max so large logits cannot overflow exp()
    e = np.exp(x - np.max(x, axis=axis, keepdims=True))
    return e / np.sum(e, axis=axis, keepdims=True)


def decode_distance(distribution: ArrayLike) -> float:
    """
    Decode one edge: 8 bin logits -> expected distance in grid cells.
    """

    d = np.asarray(distribution, dtype=np.float32)
    if d.shape != (NUM_BINS,):
        raise ValueError(f"Expected {NUM_BINS} bin logits, got shape {d.shape}")
    return float(np.dot(softmax(d), _PROJECT))


def decode_distances(displacements: np.ndarray) -> np.ndarray:
    """
    Decode all four edges for many anchors: (N, 32) -> (N, 4) as (left, top, right, bottom).
    """

    disp = np.asarray(displacements, dtype=np.float32)
    if disp.ndim != 2 or disp.shape[1] != DISPLACEMENT_CHANNELS:
        raise ValueError(f"Expected displacements of shape (N, {DISPLACEMENT_CHANNELS}), got {disp.shape}")
    probs = softmax(disp.reshape(-1, NUM_EDGES, NUM_BINS), axis=-1)
    return probs @ _PROJECT
