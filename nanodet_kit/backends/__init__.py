"""
Optional inference backends for nanodet_kit.

Backends live in a separate module so the decode core (anchors, DFL, NMS) stays
lightweight and importable without any inference runtime installed.
Every backend returns the full list of raw head outputs in declared order.
"""

from __future__ import annotations

__all__ = []
