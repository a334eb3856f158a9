"""Chart pattern detectors."""

from . import double, trend
from .registry import detect_patterns

__all__ = ["double", "trend", "detect_patterns"]
