import unittest

import numpy as np

from nanodet_kit import ConfigurationError, InvalidInput, NanoDetPredictor
from nanodet_kit.boxes import LetterboxTransform

LABELS = [f"class_{i}" for i in range(5)]


def _zero_outputs(predictor: NanoDetPredictor, fill: float = 0.0):
    c = len(predictor.labels)
    strides = predictor.cfg.strides
    logits = [np.full((1, predictor.anchor_grid.count(s), c), fill, dtype=np.float32) for s in strides]
    displacements = [np.zeros((1, predictor.anchor_grid.count(s), 32), dtype=np.float32) for s in strides]
    return logits + displacements


class TestEndToEnd(unittest.TestCase):
    def setUp(self) -> None:
        self.predictor = NanoDetPredictor((416, 416), LABELS)

    def test_anchor_totals_at_416(self) -> None:
        grid = self.predictor.anchor_grid
        self.assertEqual([grid.count(s) for s in (8, 16, 32)], [2704, 676, 169])
        self.assertEqual(grid.total, 3549)

    def test_single_hot_anchor(self) -> None:
        outputs = _zero_outputs(self.predictor)
        outputs[0][0, 100, 3] = 0.9999546
        detections = self.predictor.predict(outputs)

        self.assertEqual(len(detections), 1)
        det = detections[0]
        self.assertEqual(det.label, "class_3")
        self.assertAlmostEqual(det.score, 0.9999546, places=6)

        # anchor 100 at stride 8 on a 52-wide grid: row 1, column 48
        cx, cy = 8 * 48 + 3.5, 8 * 1 + 3.5
        half = 3.5 * 8
        self.assertAlmostEqual(det.rect.x_min, (cx - half) / 416, places=5)
        self.assertAlmostEqual(det.rect.x_max, (cx + half) / 416, places=5)
        self.assertAlmostEqual(det.rect.y_min, 1.0 - (cy + half) / 416, places=5)
        self.assertAlmostEqual(det.rect.y_max, 1.0 - (cy - half) / 416, places=5)
        self.assertAlmostEqual(det.rect.width, 56 / 416, places=5)
        self.assertAlmostEqual(det.rect.height, 56 / 416, places=5)

    def test_sigmoid_logits(self) -> None:
        predictor = NanoDetPredictor((416, 416), LABELS, score_activation="sigmoid")
        outputs = _zero_outputs(predictor, fill=-10.0)
        outputs[0][0, 100, 3] = 10.0
        detections = predictor.predict(outputs)
        self.assertEqual(len(detections), 1)
        self.assertEqual(detections[0].label, "class_3")
        self.assertAlmostEqual(detections[0].score, 0.9999546, places=6)

    def test_saturated_sigmoid_scores_keep_precision(self) -> None:
        predictor = NanoDetPredictor((416, 416), LABELS, score_activation="sigmoid")
        outputs = _zero_outputs(predictor, fill=-10.0)
        # Both round to 1.0 in float32; the higher score must still win the overlap
        outputs[0][0, 100, 0] = 18.0
        outputs[0][0, 101, 1] = 19.0
        detections = predictor.predict(outputs)
        self.assertEqual([d.label for d in detections], ["class_1"])

    def test_saturated_sigmoid_scores_sorted_descending(self) -> None:
        predictor = NanoDetPredictor((416, 416), LABELS, score_activation="sigmoid")
        outputs = _zero_outputs(predictor, fill=-10.0)
        outputs[0][0, 0, 0] = 18.0
        outputs[0][0, 2000, 1] = 19.0
        detections = predictor.predict(outputs)
        self.assertEqual([d.label for d in detections], ["class_1", "class_0"])
        self.assertGreater(detections[0].score, detections[1].score)

    def test_all_below_threshold_is_empty(self) -> None:
        self.assertEqual(self.predictor.predict(_zero_outputs(self.predictor, fill=0.1)), [])

    def test_overlap_collapse(self) -> None:
        outputs = _zero_outputs(self.predictor)
        # Neighbouring stride-8 anchors with uniform displacements overlap at IoU 0.75
        outputs[0][0, 100, 1] = 0.6
        outputs[0][0, 101, 2] = 0.8
        detections = self.predictor.predict(outputs)
        self.assertEqual(len(detections), 1)
        self.assertEqual(detections[0].label, "class_2")

    def test_output_sorted_by_score(self) -> None:
        outputs = _zero_outputs(self.predictor)
        outputs[0][0, 0, 0] = 0.5
        outputs[1][0, 300, 1] = 0.9
        outputs[2][0, 168, 2] = 0.7
        scores = [d.score for d in self.predictor.predict(outputs)]
        self.assertEqual(len(scores), 3)
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_batch_axis_optional(self) -> None:
        outputs = [t[0] for t in _zero_outputs(self.predictor)]
        outputs[0][100, 3] = 0.9
        self.assertEqual(len(self.predictor.predict(outputs)), 1)

    def test_transform_is_applied(self) -> None:
        outputs = _zero_outputs(self.predictor)
        outputs[0][0, 100, 3] = 0.9
        det = self.predictor.predict(outputs, transform=LetterboxTransform.identity((416, 416)))[0]
        # Box pokes above the top of the image; the transform clips it
        self.assertAlmostEqual(det.rect.y_max, 1.0, places=6)

    def test_callable(self) -> None:
        self.assertEqual(self.predictor(_zero_outputs(self.predictor)), [])

    def test_max_detections(self) -> None:
        predictor = NanoDetPredictor((416, 416), LABELS, max_detections=2)
        outputs = _zero_outputs(predictor)
        outputs[0][0, 0, 0] = 0.5
        outputs[1][0, 300, 1] = 0.9
        outputs[2][0, 168, 2] = 0.7
        self.assertEqual([d.label for d in predictor.predict(outputs)], ["class_1", "class_2"])


class TestInvalidInput(unittest.TestCase):
    def setUp(self) -> None:
        self.predictor = NanoDetPredictor((64, 64), LABELS)

    def test_wrong_tensor_count(self) -> None:
        with self.assertRaises(InvalidInput):
            self.predictor.predict(_zero_outputs(self.predictor)[:5])

    def test_wrong_class_count(self) -> None:
        outputs = _zero_outputs(self.predictor)
        outputs[1] = np.zeros((1, 16, 4), dtype=np.float32)
        with self.assertRaises(InvalidInput):
            self.predictor.predict(outputs)

    def test_wrong_anchor_count(self) -> None:
        outputs = _zero_outputs(self.predictor)
        outputs[3] = np.zeros((1, 63, 32), dtype=np.float32)
        with self.assertRaises(InvalidInput):
            self.predictor.predict(outputs)

    def test_wrong_displacement_width(self) -> None:
        outputs = _zero_outputs(self.predictor)
        outputs[5] = np.zeros((1, 4, 16), dtype=np.float32)
        with self.assertRaises(InvalidInput):
            self.predictor.predict(outputs)

    def test_batch_greater_than_one(self) -> None:
        outputs = _zero_outputs(self.predictor)
        outputs[0] = np.zeros((2, 64, 5), dtype=np.float32)
        with self.assertRaises(InvalidInput):
            self.predictor.predict(outputs)

    def test_invalid_input_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            self.predictor.predict([])


class TestConfiguration(unittest.TestCase):
    def test_defaults(self) -> None:
        p = NanoDetPredictor((416, 416), LABELS)
        self.assertEqual(p.cfg.min_score, 0.35)
        self.assertEqual(p.cfg.max_iou, 0.5)
        self.assertEqual(p.num_outputs, 6)

    def test_thresholds_out_of_range(self) -> None:
        for kwargs in ({"min_score": -0.1}, {"min_score": 1.5}, {"max_iou": -0.01}, {"max_iou": 2.0}):
            with self.assertRaises(ConfigurationError):
                NanoDetPredictor((416, 416), LABELS, **kwargs)

    def test_empty_labels(self) -> None:
        with self.assertRaises(ConfigurationError):
            NanoDetPredictor((416, 416), [])

    def test_bad_activation(self) -> None:
        with self.assertRaises(ConfigurationError):
            NanoDetPredictor((416, 416), LABELS, score_activation="relu")

    def test_tiny_resolution_yields_nothing(self) -> None:
        p = NanoDetPredictor((4, 4), LABELS)
        self.assertEqual(p.anchor_grid.total, 0)
        self.assertEqual(p.predict(_zero_outputs(p, fill=1.0)), [])


if __name__ == "__main__":
    unittest.main()
