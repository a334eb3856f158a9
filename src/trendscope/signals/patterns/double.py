"""Double top / double bottom detection over local extrema."""

from __future__ import annotations

import pandas as pd

from ...core.levels import local_extrema
from ..contract import ChartPattern

PRICE_TOLERANCE = 0.01
MIN_GAP = 3


def _first_pair(points: list[tuple[int, float]], lookback: int) -> float | None:
    # Skan od najświeższego ekstremum; pierwsza pasująca para wygrywa.
    recent_first = points[::-1]
    for i, (idx_a, price_a) in enumerate(recent_first):
        for idx_b, price_b in recent_first[i + 1 :]:
            if price_a == 0:
                continue
            diff = abs(price_a - price_b) / abs(price_a)
            gap = abs(idx_a - idx_b)
            if diff < PRICE_TOLERANCE and MIN_GAP < gap < lookback / 2:
                return (price_a + price_b) / 2
    return None


def detect_double_top(df: pd.DataFrame, lookback: int) -> ChartPattern | None:
    window = df.iloc[-int(lookback) :]
    peaks, _ = local_extrema(window)
    price = _first_pair(peaks, lookback)
    if price is None:
        return None
    return ChartPattern(name="double_top", bias="bearish", price=price)


def detect_double_bottom(df: pd.DataFrame, lookback: int) -> ChartPattern | None:
    window = df.iloc[-int(lookback) :]
    _, troughs = local_extrema(window)
    price = _first_pair(troughs, lookback)
    if price is None:
        return None
    return ChartPattern(name="double_bottom", bias="bullish", price=price)
