"""
NanoDet post-processing helpers.

Turns the six raw head outputs of a NanoDet export (class scores + DFL
displacements at strides 8/16/32) into normalized, de-duplicated detections.
The decode core needs only NumPy; OpenCV is used for letterboxing and drawing,
and inference runtimes are optional backends.
"""

from .types import AnchorPoint, Candidate, Detection, Rect, StrideConfig
from .errors import ConfigurationError, InvalidInput, NanoDetError
from .anchors import AnchorGrid, generate_anchors
from .dfl import decode_distance, decode_distances, softmax
from .boxes import LetterboxTransform, RectTransform, assemble_box, assemble_boxes, iou
from .collector import CandidateCollector
from .nms import NMSConfig, nms, suppress
from .config import PredictorConfig, PreprocessConfig, load_predictor_config
from .predictor import NanoDetPredictor
from .letterbox import letterbox
from .metadata import load_labels
from .runtime import NanoDetPipeline, load_pipeline, find_project_root, resolve_path
from .visualize import draw_detections

__all__ = [
    "AnchorPoint",
    "Candidate",
    "Detection",
    "Rect",
    "StrideConfig",
    "ConfigurationError",
    "InvalidInput",
    "NanoDetError",
    "AnchorGrid",
    "generate_anchors",
    "decode_distance",
    "decode_distances",
    "softmax",
    "LetterboxTransform",
    "RectTransform",
    "assemble_box",
    "assemble_boxes",
    "iou",
    "CandidateCollector",
    "NMSConfig",
    "nms",
    "suppress",
    "PredictorConfig",
    "PreprocessConfig",
    "load_predictor_config",
    "NanoDetPredictor",
    "letterbox",
    "load_labels",
    "NanoDetPipeline",
    "load_pipeline",
    "find_project_root",
    "resolve_path",
    "draw_detections",
]
