from __future__ import annotations


class NanoDetError(Exception):
    """Base class for nanodet_kit errors."""


class ConfigurationError(NanoDetError, ValueError):
    """Raised at construction time for out-of-range thresholds or invalid model geometry."""


class InvalidInput(NanoDetError, ValueError):
    """Raised when the raw output tensors do not match the configured model."""
