from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .boxes import LetterboxTransform
from .config import PredictorConfig, PreprocessConfig
from .letterbox import letterbox
from .predictor import NanoDetPredictor
from .types import Detection

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
InferFn = Callable[[np.ndarray], Sequence[np.ndarray]]
DetectionSink = Callable[[List[Detection]], None]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", "setup.py", ".git", "requirements.txt"),
) -> Path:
    """
    Best-effort project root discovery.

    Lets scripts refer to `Models/nanodet.onnx` regardless of the working directory.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    # If a file is provided, start from its directory.
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path; relative paths resolve against `root`
    (or the project root when `root` is "auto"/None).
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    orig_size: Tuple[int, int]
    ratio: Tuple[float, float]
    pad: Tuple[float, float]


class NanoDetPipeline:
    """
    Plug-and-play pipeline: preprocess (letterbox) -> inference -> decode -> sink.

    `infer_fn` is any callable mapping an NCHW float32 blob to the raw head outputs.
    Expects BGR images (OpenCV-style) and returns detections normalized to the
    original image, bottom-left origin.
    """

    def __init__(
        self,
        infer_fn: InferFn,
        predictor: NanoDetPredictor,
        *,
        preprocess_cfg: PreprocessConfig = PreprocessConfig(),
        sink: Optional[DetectionSink] = None,
        backend: Optional[object] = None,
        backend_name: Optional[str] = None,
    ):
        self._infer_fn = infer_fn
        self.predictor = predictor
        self.preprocess_cfg = preprocess_cfg
        self.sink = sink
        self.backend = backend
        self.backend_name = backend_name
        self._mean = np.asarray(preprocess_cfg.mean, dtype=np.float32)
        self._std = np.asarray(preprocess_cfg.std, dtype=np.float32)

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        if image_bgr is None or not hasattr(image_bgr, "shape"):
            raise TypeError("image_bgr must be a NumPy array (BGR).")
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

        orig_h, orig_w = image_bgr.shape[:2]
        img, ratio, pad = letterbox(
            image_bgr,
            new_shape=self.predictor.input_size,
            color=self.preprocess_cfg.color,
            aspect_mode=self.preprocess_cfg.aspect_mode,
        )

        # BGR -> RGB, [0, 1], mean/std, HWC -> CHW, add batch
        blob = img[:, :, ::-1].astype(np.float32) / 255.0
        blob = (blob - self._mean) / self._std
        blob = np.ascontiguousarray(np.transpose(blob, (2, 0, 1))[None, ...])

        return PreprocessResult(blob=blob, orig_size=(orig_w, orig_h), ratio=ratio, pad=pad)

    def transform_for(self, prep: PreprocessResult) -> LetterboxTransform:
        return LetterboxTransform(
            orig_size=prep.orig_size,
            input_size=self.predictor.input_size,
            ratio=prep.ratio,
            pad=prep.pad,
        )

    def __call__(self, image_bgr: np.ndarray) -> List[Detection]:
        prep = self.preprocess(image_bgr)
        outputs = self._infer_fn(prep.blob)
        detections = self.predictor.predict(outputs, transform=self.transform_for(prep))
        if self.sink is not None:
            self.sink(detections)
        return detections


def load_pipeline(
    model_path: PathLike,
    predictor_cfg: PredictorConfig,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    preprocess_cfg: PreprocessConfig = PreprocessConfig(),
    sink: Optional[DetectionSink] = None,
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_output_names: Optional[Sequence[str]] = None,
    torch_device: str = "cpu",
    torch_half: bool = False,
) -> NanoDetPipeline:
    """
    Create a pipeline for a NanoDet model on disk.

    Typical usage:
        cfg, prep = load_predictor_config("Models/nanodet.json")
        pipe = load_pipeline("Models/nanodet.onnx", cfg, preprocess_cfg=prep)

    Args:
        model_path: path to the model file; relative paths resolve against project root by default
        backend: "onnxruntime" / "torchscript", or None to infer from the extension
    """

    resolved = resolve_path(model_path, root=root)
    chosen = backend
    if chosen is None:
        suffix = resolved.suffix.lower()
        if suffix == ".onnx":
            chosen = "onnxruntime"
        elif suffix in {".torchscript", ".ts", ".pt"}:
            chosen = "torchscript"
        else:
            raise ValueError(
                f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
            )

    predictor = NanoDetPredictor.from_config(predictor_cfg)

    chosen = chosen.lower()
    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        ort_backend = OnnxRuntimeBackend(
            resolved,
            OnnxRuntimeBackendConfig(providers=onnx_providers, output_names=onnx_output_names),
        )
        declared = ort_backend.input_size
        if declared is not None and declared != predictor.input_size:
            logger.warning(
                "Model input %s differs from configured input_size %s", declared, predictor.input_size
            )
        return NanoDetPipeline(
            ort_backend.infer,
            predictor,
            preprocess_cfg=preprocess_cfg,
            sink=sink,
            backend=ort_backend,
            backend_name="onnxruntime",
        )

    if chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        ts_backend = TorchScriptBackend(resolved, TorchScriptBackendConfig(device=torch_device, half=torch_half))
        return NanoDetPipeline(
            ts_backend.infer,
            predictor,
            preprocess_cfg=preprocess_cfg,
            sink=sink,
            backend=ts_backend,
            backend_name="torchscript",
        )

    raise ValueError(f"Unsupported backend: {backend!r}")
