from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Union


def load_labels(path: Union[str, Path]) -> List[str]:
    """
    Load the ordered label table for a model.

    Two formats are accepted. The lightweight metadata YAML mapping:

        names:
          0: person
          1: bicycle
          ...

    or a plain text file with one label per line (line order = class index).
    Parsed by hand to avoid a PyYAML dependency.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Labels file not found: {path}")
    lines = path.read_text(encoding="utf-8").splitlines()

    if any(line.strip() == "names:" for line in lines):
        return _parse_names_mapping(lines, path)

    labels = [line.strip() for line in lines if line.strip() and not line.strip().startswith("#")]
    if not labels:
        raise ValueError(f"No labels found in {path}")
    return labels


def _parse_names_mapping(lines: List[str], path: Path) -> List[str]:
    names: Dict[int, str] = {}
    in_names = False

    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line == "names:":
            in_names = True
            continue
        if not in_names:
            continue
        # Dedented key ends the mapping
        if not raw[:1].isspace():
            break

        # Parse "id: label"
        if ":" not in line:
            continue
        left, right = line.split(":", 1)
        left = left.strip()
        right = right.strip().strip("'").strip('"')
        if not left.isdigit():
            continue
        names[int(left)] = right

    if not names:
        raise ValueError(f"No labels found in {path}")
    expected = list(range(len(names)))
    if sorted(names) != expected:
        raise ValueError(f"Label ids in {path} must be contiguous from 0, got {sorted(names)}")
    return [names[i] for i in expected]
