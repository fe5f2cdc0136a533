from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from .anchors import DEFAULT_STRIDES
from .collector import SCORE_ACTIVATIONS
from .errors import ConfigurationError
from .metadata import load_labels

PathLike = Union[str, Path]

IMAGENET_MEAN = (0.485, 0.456, 0.406)
IMAGENET_STD = (0.229, 0.224, 0.225)


@dataclass(frozen=True)
class PredictorConfig:
    """
    Construction-time parameters for `NanoDetPredictor`.

    - input_size: (width, height) the model was exported with
    - labels: ordered class names, one per logits channel
    - min_score: candidates scoring below this are dropped before NMS
    - max_iou: overlapping boxes above this IoU are suppressed
    """

    input_size: Tuple[int, int]
    labels: Tuple[str, ...]
    min_score: float = 0.35
    max_iou: float = 0.5
    strides: Tuple[int, ...] = DEFAULT_STRIDES
    score_activation: str = "none"
    max_detections: Optional[int] = None

    def __post_init__(self) -> None:
        if len(self.input_size) != 2 or any(int(v) <= 0 for v in self.input_size):
            raise ConfigurationError(f"input_size must be two positive ints, got {self.input_size}")
        if not self.labels:
            raise ConfigurationError("labels must not be empty")
        if not 0.0 <= float(self.min_score) <= 1.0:
            raise ConfigurationError(f"min_score must be in [0, 1], got {self.min_score}")
        if not 0.0 <= float(self.max_iou) <= 1.0:
            raise ConfigurationError(f"max_iou must be in [0, 1], got {self.max_iou}")
        if not self.strides or any(int(s) <= 0 for s in self.strides):
            raise ConfigurationError(f"strides must be positive ints, got {self.strides}")
        if len(set(self.strides)) != len(self.strides):
            raise ConfigurationError(f"strides must be unique, got {self.strides}")
        if self.score_activation not in SCORE_ACTIVATIONS:
            raise ConfigurationError(
                f"score_activation must be one of {SCORE_ACTIVATIONS}, got {self.score_activation!r}"
            )
        if self.max_detections is not None and self.max_detections < 1:
            raise ConfigurationError("max_detections must be >= 1")


@dataclass(frozen=True)
class PreprocessConfig:
    """
    Image preparation applied before inference.

    aspect_mode: "fit" letterboxes (keeps aspect, pads), "fill" stretches to the input size.
    """

    aspect_mode: str = "fit"
    color: Tuple[int, int, int] = (114, 114, 114)
    mean: Tuple[float, float, float] = IMAGENET_MEAN
    std: Tuple[float, float, float] = IMAGENET_STD

    def __post_init__(self) -> None:
        if self.aspect_mode not in ("fit", "fill"):
            raise ConfigurationError(f"aspect_mode must be 'fit' or 'fill', got {self.aspect_mode!r}")
        if len(self.mean) != 3 or len(self.std) != 3:
            raise ConfigurationError("mean and std must have 3 channels")
        if any(float(s) <= 0 for s in self.std):
            raise ConfigurationError("std values must be > 0")


def _require_number(payload: Dict[str, Any], key: str, default: Optional[float] = None) -> float:
    if key not in payload:
        if default is None:
            raise ValueError(f"Missing required key: {key}")
        return default
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int_seq(payload: Dict[str, Any], key: str, length: Optional[int] = None) -> Tuple[int, ...]:
    value = payload[key]
    if not isinstance(value, list) or not all(isinstance(v, int) and not isinstance(v, bool) for v in value):
        raise ValueError(f"{key} must be a list of integers")
    if length is not None and len(value) != length:
        raise ValueError(f"{key} must have {length} items")
    return tuple(int(v) for v in value)


def _require_float_seq(payload: Dict[str, Any], key: str, length: int) -> Tuple[float, ...]:
    value = payload[key]
    if (
        not isinstance(value, list)
        or len(value) != length
        or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value)
    ):
        raise ValueError(f"{key} must be a list of {length} numbers")
    return tuple(float(v) for v in value)


def _resolve_labels(value: object, base_dir: Path) -> Tuple[str, ...]:
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value)
    if isinstance(value, str) and value.strip():
        p = Path(value)
        if not p.is_absolute():
            p = base_dir / p
        return tuple(load_labels(p))
    raise ValueError("labels must be a list of strings or a path to a labels file")


def load_predictor_config(
    path: PathLike, overrides: Optional[Dict[str, Any]] = None
) -> Tuple[PredictorConfig, PreprocessConfig]:
    """
    Load predictor + preprocessing settings from a JSON file.

    `labels` may be an inline list or a path (relative to the config file).
    Non-None entries in `overrides` (e.g. CLI flags) win over file values.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Predictor config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid predictor config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Predictor config must be a JSON object")

    if overrides:
        payload.update({k: v for k, v in overrides.items() if v is not None})

    allowed = {
        "input_size",
        "labels",
        "min_score",
        "max_iou",
        "strides",
        "score_activation",
        "max_detections",
        "aspect_mode",
        "pad_color",
        "mean",
        "std",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown predictor config keys: {unknown}")
    if "input_size" not in payload:
        raise ValueError("Missing required key: input_size")
    if "labels" not in payload:
        raise ValueError("Missing required key: labels")

    input_size = _require_int_seq(payload, "input_size", length=2)
    strides: Sequence[int] = _require_int_seq(payload, "strides") if "strides" in payload else DEFAULT_STRIDES
    max_detections = payload.get("max_detections")
    if max_detections is not None and (isinstance(max_detections, bool) or not isinstance(max_detections, int)):
        raise ValueError("max_detections must be an integer")
    score_activation = payload.get("score_activation", "none")
    if not isinstance(score_activation, str):
        raise ValueError("score_activation must be a string")

    predictor_cfg = PredictorConfig(
        input_size=(input_size[0], input_size[1]),
        labels=_resolve_labels(payload["labels"], path.parent),
        min_score=_require_number(payload, "min_score", 0.35),
        max_iou=_require_number(payload, "max_iou", 0.5),
        strides=tuple(strides),
        score_activation=score_activation,
        max_detections=max_detections,
    )

    defaults = PreprocessConfig()
    aspect_mode = payload.get("aspect_mode", defaults.aspect_mode)
    if not isinstance(aspect_mode, str):
        raise ValueError("aspect_mode must be a string")
    color = _require_int_seq(payload, "pad_color", length=3) if "pad_color" in payload else defaults.color
    mean = _require_float_seq(payload, "mean", 3) if "mean" in payload else defaults.mean
    std = _require_float_seq(payload, "std", 3) if "std" in payload else defaults.std
    preprocess_cfg = PreprocessConfig(
        aspect_mode=aspect_mode,
        color=(color[0], color[1], color[2]),
        mean=(mean[0], mean[1], mean[2]),
        std=(std[0], std[1], std[2]),
    )
    return predictor_cfg, preprocess_cfg
