"""Registry of chart pattern detectors."""

from __future__ import annotations

from typing import Callable, Dict, Mapping, Optional

from pandas import DataFrame

from ..contract import ChartPattern
from . import double, trend

Detector = Callable[[DataFrame, int], Optional[ChartPattern]]

# Kolejność ma znaczenie: trend zawsze pierwszy w wyniku.
PATTERN_DETECTORS: Dict[str, Detector] = {
    "trend": trend.detect,
    "double_top": double.detect_double_top,
    "double_bottom": double.detect_double_bottom,
}


def detect_patterns(
    df: DataFrame, lookback: int, config: Optional[Mapping[str, bool]] = None
) -> list[ChartPattern]:
    """Run every enabled detector over the last ``lookback`` bars."""

    if config is not None and hasattr(config, "model_dump"):
        config = config.model_dump()

    found: list[ChartPattern] = []
    for name, detector in PATTERN_DETECTORS.items():
        if config is not None and config.get(name) is False:
            continue
        result = detector(df, lookback)
        if result is not None:
            found.append(result)
    return found
