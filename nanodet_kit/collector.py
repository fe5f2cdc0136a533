from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .anchors import AnchorGrid
from .boxes import RectTransform, assemble_boxes
from .dfl import decode_distances
from .errors import ConfigurationError
from .types import Candidate, Rect, StrideConfig

logger = logging.getLogger(__name__)

SCORE_ACTIVATIONS = ("none", "sigmoid")


def _sigmoid(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


class CandidateCollector:
    """
    Turns per-stride class scores + DFL displacements into candidate boxes.

    Output lists are parallel and ordered by stride (as given), then anchor index.
    They are scratch buffers owned by the collector: cleared at the start of every
    `collect` call and only valid until the next one. Not safe for concurrent use.
    """

    def __init__(self, anchor_grid: AnchorGrid, score_activation: str = "none"):
        if score_activation not in SCORE_ACTIVATIONS:
            raise ConfigurationError(f"score_activation must be one of {SCORE_ACTIVATIONS}, got {score_activation!r}")
        self.anchor_grid = anchor_grid
        self.score_activation = score_activation
        self._boxes: List[Rect] = []
        self._scores: List[float] = []
        self._labels: List[str] = []

    def collect(
        self,
        stride_configs: Iterable[StrideConfig],
        score_threshold: float,
        labels: Sequence[str],
        transform: Optional[RectTransform] = None,
    ) -> Tuple[List[Rect], List[float], List[str]]:
        self._boxes.clear()
        self._scores.clear()
        self._labels.clear()

        feature_w = self.anchor_grid.width
        feature_h = self.anchor_grid.height

        for cfg in stride_configs:
            anchors = self.anchor_grid.anchors(cfg.stride)
            logits = np.asarray(cfg.logits)
            if logits.shape[0] == 0 or logits.shape[1] == 0:
                continue

            # np.argmax returns the first index on ties
            class_ids = np.argmax(logits, axis=1)
            scores = logits[np.arange(logits.shape[0]), class_ids].astype(np.float64)
            if self.score_activation == "sigmoid":
                scores = _sigmoid(scores)

            keep = np.nonzero(scores >= score_threshold)[0]
            if keep.size == 0:
                continue

            distances = decode_distances(np.asarray(cfg.displacements)[keep])
            boxes = assemble_boxes(anchors[keep], cfg.stride, distances, feature_w, feature_h)

            for box, score, class_id in zip(boxes, scores[keep], class_ids[keep]):
                rect = Rect.from_min_max(*box)
                if transform is not None:
                    rect = transform(rect)
                self._boxes.append(rect)
                self._scores.append(float(score))
                self._labels.append(labels[int(class_id)])

            logger.debug("stride %d: %d/%d anchors above %.3f", cfg.stride, keep.size, logits.shape[0], score_threshold)

        return self._boxes, self._scores, self._labels

    def candidates(self) -> List[Candidate]:
        """
        Snapshot of the last `collect` call as Candidate records.
        """

        return [
            Candidate(rect=rect, label=label, score=score)
            for rect, score, label in zip(self._boxes, self._scores, self._labels)
        ]
