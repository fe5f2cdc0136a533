import tempfile
import unittest
from pathlib import Path

from nanodet_kit.metadata import load_labels


class TestLoadLabels(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_names_mapping(self) -> None:
        path = self.tmp / "metadata.yaml"
        path.write_text(
            "# exported by nanodet\nnames:\n  0: person\n  1: 'traffic light'\n  2: \"stop sign\"\nimgsz: 416\n",
            encoding="utf-8",
        )
        self.assertEqual(load_labels(path), ["person", "traffic light", "stop sign"])

    def test_plain_lines(self) -> None:
        path = self.tmp / "labels.txt"
        path.write_text("person\n\nbicycle\n# comment\ncar\n", encoding="utf-8")
        self.assertEqual(load_labels(path), ["person", "bicycle", "car"])

    def test_gap_in_ids(self) -> None:
        path = self.tmp / "metadata.yaml"
        path.write_text("names:\n  0: a\n  2: c\n", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_labels(path)

    def test_empty(self) -> None:
        path = self.tmp / "labels.txt"
        path.write_text("\n", encoding="utf-8")
        with self.assertRaises(ValueError):
            load_labels(path)


if __name__ == "__main__":
    unittest.main()
