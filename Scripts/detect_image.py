from __future__ import annotations

import argparse
import logging
from pathlib import Path

import cv2

from nanodet_kit import draw_detections, load_pipeline, load_predictor_config


def read_image(path: str):
    img = cv2.imread(path)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {path}")
    return img


def main() -> int:
    parser = argparse.ArgumentParser(description="Run NanoDet on a single image and print/draw detections.")
    parser.add_argument("--image", required=True, help="Path to an input image.")
    parser.add_argument("--model", default="Models/nanodet.onnx", help="Path to a NanoDet model (.onnx/.pt).")
    parser.add_argument("--config", default="Models/nanodet.json", help="Predictor config JSON.")
    parser.add_argument("--backend", default=None, help="Force backend: onnxruntime / torchscript.")
    parser.add_argument("--min-score", type=float, default=None, help="Override min_score from the config.")
    parser.add_argument("--max-iou", type=float, default=None, help="Override max_iou from the config.")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--out", default=None, help="Write the annotated image here instead of showing it.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    predictor_cfg, preprocess_cfg = load_predictor_config(
        Path(args.config),
        overrides={"min_score": args.min_score, "max_iou": args.max_iou},
    )

    onnx_providers = None
    if args.onnx_providers:
        onnx_providers = [p.strip() for p in str(args.onnx_providers).split(",") if p.strip()]

    image = read_image(args.image)
    pipeline = load_pipeline(
        args.model,
        predictor_cfg,
        backend=args.backend,
        preprocess_cfg=preprocess_cfg,
        onnx_providers=onnx_providers,
    )

    detections = pipeline(image)
    for det in detections:
        print(det.label, f"{det.score:.3f}", det.rect)

    vis = draw_detections(image, detections, labels=predictor_cfg.labels)
    if args.out:
        cv2.imwrite(args.out, vis)
        print(f"wrote {args.out}")
    else:
        cv2.imshow("detections", vis)
        cv2.waitKey(0)
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
