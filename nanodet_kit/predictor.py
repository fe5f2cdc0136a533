from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .anchors import DEFAULT_STRIDES, AnchorGrid
from .boxes import RectTransform
from .collector import CandidateCollector
from .config import PredictorConfig
from .dfl import DISPLACEMENT_CHANNELS
from .errors import InvalidInput
from .nms import suppress
from .types import Detection, StrideConfig

logger = logging.getLogger(__name__)


class NanoDetPredictor:
    """
    Decode raw NanoDet head outputs into normalized detections.

    Expected outputs (per image), in order:
    - class scores per stride: (1, N_s, C) for each stride in `strides`
    - DFL displacements per stride: (1, N_s, 32), same stride order

    N_s = floor(width / s) * floor(height / s) anchors, enumerated row-major.
    The leading batch axis may be omitted.

    A predictor owns reusable scratch buffers; do not call `predict` on the same
    instance from multiple threads at once.
    """

    def __init__(
        self,
        input_size: Tuple[int, int],
        labels: Sequence[str],
        min_score: float = 0.35,
        max_iou: float = 0.5,
        *,
        strides: Sequence[int] = DEFAULT_STRIDES,
        score_activation: str = "none",
        max_detections: Optional[int] = None,
    ):
        self.cfg = PredictorConfig(
            input_size=(int(input_size[0]), int(input_size[1])),
            labels=tuple(labels),
            min_score=float(min_score),
            max_iou=float(max_iou),
            strides=tuple(int(s) for s in strides),
            score_activation=score_activation,
            max_detections=max_detections,
        )
        width, height = self.cfg.input_size
        self.anchor_grid = AnchorGrid(width, height, self.cfg.strides)
        self._collector = CandidateCollector(self.anchor_grid, score_activation=self.cfg.score_activation)
        logger.debug(
            "NanoDetPredictor %dx%d, %d labels, min_score=%.3f max_iou=%.3f, %d anchors",
            width,
            height,
            len(self.cfg.labels),
            self.cfg.min_score,
            self.cfg.max_iou,
            self.anchor_grid.total,
        )

    @classmethod
    def from_config(cls, cfg: PredictorConfig) -> "NanoDetPredictor":
        return cls(
            cfg.input_size,
            cfg.labels,
            cfg.min_score,
            cfg.max_iou,
            strides=cfg.strides,
            score_activation=cfg.score_activation,
            max_detections=cfg.max_detections,
        )

    @property
    def input_size(self) -> Tuple[int, int]:
        return self.cfg.input_size

    @property
    def labels(self) -> Tuple[str, ...]:
        return self.cfg.labels

    @property
    def num_outputs(self) -> int:
        return 2 * len(self.cfg.strides)

    def predict(self, outputs: Sequence[np.ndarray], transform: Optional[RectTransform] = None) -> List[Detection]:
        """
        Run anchor decoding, thresholding and NMS on one image's raw outputs.

        Args:
            outputs: raw tensors (scores per stride, then displacements per stride)
            transform: optional mapping from model-input space back to the original image

        Returns:
            Detections in NMS keep order (descending score). Empty if nothing passes.
        """

        stride_configs = self._stride_configs(outputs)
        boxes, scores, labels = self._collector.collect(
            stride_configs, self.cfg.min_score, self.cfg.labels, transform=transform
        )
        if not boxes:
            return []

        keep = suppress(boxes, scores, self.cfg.max_iou, max_detections=self.cfg.max_detections)
        logger.debug("%d candidates, %d kept after NMS", len(boxes), len(keep))
        return [Detection(rect=boxes[i], label=labels[i], score=scores[i]) for i in keep]

    __call__ = predict

    # ------------------------------------------------------------------ #
    # Helper internal
    # ------------------------------------------------------------------ #
    def _stride_configs(self, outputs: Sequence[np.ndarray]) -> List[StrideConfig]:
        """
        Validate every output tensor before any decoding happens.
        """

        strides = self.cfg.strides
        if outputs is None or len(outputs) != self.num_outputs:
            got = None if outputs is None else len(outputs)
            raise InvalidInput(f"Expected {self.num_outputs} output tensors, got {got}")

        num_classes = len(self.cfg.labels)
        configs: List[StrideConfig] = []
        for k, stride in enumerate(strides):
            n = self.anchor_grid.count(stride)
            logits = self._squeeze(outputs[k], f"logits[{stride}]")
            displacements = self._squeeze(outputs[len(strides) + k], f"displacements[{stride}]")
            if logits.shape != (n, num_classes):
                raise InvalidInput(
                    f"logits[{stride}] must have shape (1, {n}, {num_classes}), got {np.shape(outputs[k])}"
                )
            if displacements.shape != (n, DISPLACEMENT_CHANNELS):
                raise InvalidInput(
                    f"displacements[{stride}] must have shape (1, {n}, {DISPLACEMENT_CHANNELS}), "
                    f"got {np.shape(outputs[len(strides) + k])}"
                )
            configs.append(StrideConfig(stride=stride, logits=logits, displacements=displacements))
        return configs

    @staticmethod
    def _squeeze(tensor: np.ndarray, name: str) -> np.ndarray:
        t = np.asarray(tensor)
        if t.ndim == 3:
            if t.shape[0] != 1:
                raise InvalidInput(f"Batch > 1 is not supported ({name} has shape {t.shape}). Pass one image at a time.")
            t = t[0]
        if t.ndim != 2:
            raise InvalidInput(f"{name} must be 2-D or 3-D, got shape {t.shape}")
        return t
