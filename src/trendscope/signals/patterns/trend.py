"""Trend direction and strength from a least-squares fit of closes."""

from __future__ import annotations

import numpy as np
import pandas as pd

from ..contract import ChartPattern, Strength


def r_squared(y: np.ndarray) -> float:
    """R² of ``y`` regressed on its index; 0 when ``y`` has no variance."""

    n = len(y)
    if n < 2:
        return 0.0
    x = np.arange(n, dtype=float)
    total = float(((y - y.mean()) ** 2).sum())
    if total == 0.0:
        return 0.0
    slope, intercept = np.polyfit(x, y, 1)
    fitted = slope * x + intercept
    explained = float(((fitted - y.mean()) ** 2).sum())
    return min(1.0, explained / total)


def strength_for(r2: float) -> Strength:
    if r2 > 0.7:
        return "strong"
    if r2 > 0.3:
        return "moderate"
    return "weak"


def detect(df: pd.DataFrame, lookback: int) -> ChartPattern | None:
    """Trend over the last ``lookback`` bars.

    Direction compares the most recent close with the oldest one in the
    window; equal closes give a neutral (sideways) trend.
    """

    window = df.iloc[-int(lookback) :]
    if len(window) < 2:
        return None
    closes = window["close"].to_numpy(dtype=float)
    r2 = r_squared(closes)
    if closes[-1] > closes[0]:
        bias = "bullish"
    elif closes[-1] < closes[0]:
        bias = "bearish"
    else:
        bias = "neutral"
    return ChartPattern(name="trend", bias=bias, strength=strength_for(r2), r_squared=r2)
