from __future__ import annotations

import argparse
import time
from typing import List

import numpy as np

from nanodet_kit import NanoDetPredictor


def _format_timings(label: str, values_s: List[float]) -> str:
    ms = np.asarray(values_s, dtype=np.float64) * 1000.0
    p50, p90, p95 = np.percentile(ms, [50.0, 90.0, 95.0])
    return f"{label}: n={ms.size} mean={ms.mean():.3f}ms p50={p50:.3f}ms p90={p90:.3f}ms p95={p95:.3f}ms"


def _synthetic_outputs(predictor: NanoDetPredictor, hit_rate: float, seed: int) -> List[np.ndarray]:
    """
    Random head outputs where roughly `hit_rate` of anchors clear min_score.
    """

    rng = np.random.default_rng(seed)
    num_classes = len(predictor.labels)
    logits, displacements = [], []
    for stride in predictor.cfg.strides:
        n = predictor.anchor_grid.count(stride)
        scores = rng.uniform(0.0, predictor.cfg.min_score * 0.99, size=(1, n, num_classes)).astype(np.float32)
        hits = rng.random(n) < hit_rate
        cls = rng.integers(0, num_classes, size=n)
        scores[0, hits, cls[hits]] = rng.uniform(predictor.cfg.min_score, 1.0, size=int(hits.sum()))
        logits.append(scores)
        displacements.append(rng.normal(0.0, 1.0, size=(1, n, 32)).astype(np.float32))
    return logits + displacements


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark NanoDet decode + NMS latency on synthetic head outputs.")
    parser.add_argument("--imgsz", type=int, default=416, help="Square model input size (e.g., 416).")
    parser.add_argument("--classes", type=int, default=80, help="Number of classes.")
    parser.add_argument("--min-score", type=float, default=0.35, help="Score threshold (pre-NMS).")
    parser.add_argument("--max-iou", type=float, default=0.5, help="IoU threshold for NMS.")
    parser.add_argument("--hit-rate", type=float, default=0.01, help="Fraction of anchors above threshold.")
    parser.add_argument("--warmup", type=int, default=10, help="Warmup iterations to run but not record.")
    parser.add_argument("--repeats", type=int, default=200, help="Recorded iterations.")
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    if args.imgsz < 32:
        raise ValueError("--imgsz must be >= 32")
    if args.classes < 1:
        raise ValueError("--classes must be >= 1")
    if not 0.0 <= args.hit_rate <= 1.0:
        raise ValueError("--hit-rate must be in [0, 1]")
    if args.warmup < 0:
        raise ValueError("--warmup must be >= 0")
    if args.repeats < 1:
        raise ValueError("--repeats must be >= 1")

    predictor = NanoDetPredictor(
        (args.imgsz, args.imgsz),
        [f"class_{i}" for i in range(args.classes)],
        min_score=args.min_score,
        max_iou=args.max_iou,
    )
    outputs = _synthetic_outputs(predictor, args.hit_rate, args.seed)

    timings: List[float] = []
    kept = 0
    for k in range(args.warmup + args.repeats):
        t0 = time.perf_counter()
        detections = predictor.predict(outputs)
        t1 = time.perf_counter()
        if k >= args.warmup:
            timings.append(t1 - t0)
            kept = len(detections)

    print(_format_timings("decode_with_nms", timings))
    print(f"anchors={predictor.anchor_grid.total} detections={kept} repeats={args.repeats} warmup={args.warmup}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
