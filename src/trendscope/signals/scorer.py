"""Map the snapshot to one bounded directional signal per indicator.

Each scorer returns a float in ``[-2, 2]`` or ``None`` when its inputs are
unavailable. Ties within float tolerance (price on an average, MACD on its signal line, equal
DIs, unchanged price) score 0.
"""

from __future__ import annotations

import math
from typing import Callable

from ..snapshot import IndicatorSnapshot

Signal = float | None

SIGNAL_NAMES = ("rsi", "macd", "ema", "adx", "bollinger", "volume", "pattern")


def _sign(x: float) -> int:
    return (x > 0) - (x < 0)


# Tolerancja remisu: szum zaokrągleń (np. EMA stałej serii) to nie kierunek.
REL_TOL = 1e-9
ABS_TOL = 1e-12


def _direction(a: float, b: float, scale: float = 1.0) -> int:
    """Sign of ``a - b``; 0 when the two are equal within float tolerance.

    ``scale`` (usually the price) sizes the absolute tolerance so that values
    near zero, like the MACD line of a flat series, still count as ties.
    """

    if math.isclose(a, b, rel_tol=REL_TOL, abs_tol=ABS_TOL * max(abs(scale), 1.0)):
        return 0
    return _sign(a - b)


def rsi_signal(snap: IndicatorSnapshot) -> Signal:
    rsi = snap.momentum.rsi
    if rsi is None:
        return None
    if rsi > 75:
        return -2.0
    if rsi > 65:
        return -1.0
    if rsi < 25:
        return 2.0
    if rsi < 35:
        return 1.0
    if rsi > 60:
        return -0.5
    if rsi < 40:
        return 0.5
    return 0.0


def macd_signal(snap: IndicatorSnapshot) -> Signal:
    m = snap.momentum
    if m.macd is None or m.macd_signal is None or m.macd_histogram is None:
        return None
    direction = _direction(m.macd, m.macd_signal, snap.price.current)
    if direction == 0:
        return 0.0
    hist = m.macd_histogram * direction
    if hist > 0:
        strength = 2.0 if hist > abs(m.macd * 0.1) else 1.0
    else:
        strength = 0.5
    return direction * strength


def ema_signal(snap: IndicatorSnapshot) -> Signal:
    """Moving-average alignment averaged over the comparisons available."""

    ma = snap.moving_averages
    price = snap.price.current
    if not price:
        return None

    total = 0.0
    count = 0.0
    if ma.ema is not None and ma.sma_medium is not None:
        total += _direction(ma.ema, ma.sma_medium, price)
        count += 1
    if ma.ema is not None:
        total += _direction(price, ma.ema, price)
        count += 1
    if ma.sma_long is not None:
        total += 0.5 * _direction(price, ma.sma_long, price)
        count += 0.5
    if ma.ema is not None and ma.sma_medium:
        ratio = ma.ema / ma.sma_medium
        if ratio > 1.005:
            total += 0.5
        elif ratio < 0.995:
            total -= 0.5
        count += 0.5
    return total / count if count > 0 else None


def adx_signal(snap: IndicatorSnapshot) -> Signal:
    t = snap.trend
    if t.adx is None or t.plus_di is None or t.minus_di is None:
        return None
    if t.adx > 30:
        strength = 2.0
    elif t.adx > 20:
        strength = 1.5
    elif t.adx > 15:
        strength = 1.0
    else:
        strength = 0.5
    return _direction(t.plus_di, t.minus_di) * strength


def bollinger_signal(snap: IndicatorSnapshot) -> Signal:
    v = snap.volatility
    price = snap.price.current
    if v.bollinger_upper is None or v.bollinger_lower is None or v.bollinger_middle is None:
        return None
    if _direction(price, v.bollinger_upper, price) > 0:
        return -1.5
    if _direction(price, v.bollinger_lower, price) < 0:
        return 1.5
    # pasma sklejone (płaska seria): brak pozycji w kanale
    if _direction(v.bollinger_upper, v.bollinger_lower, price) <= 0:
        return 0.0
    width = v.bollinger_upper - v.bollinger_lower
    pos = (price - v.bollinger_lower) / width
    if pos > 0.85:
        return -1.0
    if pos > 0.65:
        return -0.5
    if pos < 0.15:
        return 1.0
    if pos < 0.35:
        return 0.5
    return 0.0


def volume_signal(snap: IndicatorSnapshot) -> Signal:
    vol = snap.volume
    if vol.average <= 0:
        return None
    ratio = vol.current / vol.average
    direction = _sign(snap.price.change_percent or 0.0)
    if ratio > 2:
        tier = 2.0
    elif ratio > 1.5:
        tier = 1.5
    elif ratio > 1.2:
        tier = 1.0
    elif ratio < 0.5:
        tier = 0.5
    else:
        return 0.0
    return direction * tier


_TREND_WEIGHT = {"strong": 2.0, "moderate": 1.0, "weak": 0.5}
_BIAS_VALUE = {"bullish": 1.0, "bearish": -1.0, "neutral": 0.0}


def pattern_signal(snap: IndicatorSnapshot) -> Signal:
    patterns = snap.trend.patterns
    if not patterns:
        return None
    total = 0.0
    weight_sum = 0.0
    for p in patterns:
        if p.name == "trend":
            value = _BIAS_VALUE[p.bias]
            weight = _TREND_WEIGHT.get(p.strength or "moderate", 1.0)
        else:
            value = 1.5 * _BIAS_VALUE[p.bias]
            weight = 1.0
        total += value * weight
        weight_sum += weight
    return total / weight_sum if weight_sum > 0 else None


SCORERS: dict[str, Callable[[IndicatorSnapshot], Signal]] = {
    "rsi": rsi_signal,
    "macd": macd_signal,
    "ema": ema_signal,
    "adx": adx_signal,
    "bollinger": bollinger_signal,
    "volume": volume_signal,
    "pattern": pattern_signal,
}


def score_signals(snap: IndicatorSnapshot) -> dict[str, Signal]:
    """All seven signals keyed by indicator name, clamped to ``[-2, 2]``."""

    out: dict[str, Signal] = {}
    for name, fn in SCORERS.items():
        value = fn(snap)
        out[name] = None if value is None else max(-2.0, min(2.0, float(value)))
    return out


__all__ = [
    "SCORERS",
    "SIGNAL_NAMES",
    "Signal",
    "adx_signal",
    "bollinger_signal",
    "ema_signal",
    "macd_signal",
    "pattern_signal",
    "rsi_signal",
    "score_signals",
    "volume_signal",
]
