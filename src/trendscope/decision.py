from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from .profiles import Profile, ProfileKey, SignalWeights
from .signals.scorer import Signal
from .snapshot import IndicatorSnapshot
from .utils.log import E_PROFILE_FILTER, E_SIGNALS_SCORED, TelemetryContext, log_event


class Label(str, Enum):
    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    HOLD = "HOLD"
    SELL = "SELL"
    STRONG_SELL = "STRONG_SELL"

    @property
    def rank(self) -> int:
        """+2 for STRONG_BUY down to -2 for STRONG_SELL."""
        return _RANK[self]


_RANK = {
    Label.STRONG_BUY: 2,
    Label.BUY: 1,
    Label.HOLD: 0,
    Label.SELL: -1,
    Label.STRONG_SELL: -2,
}


class Confidence(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"
    NONE = "NONE"

    @property
    def sign(self) -> int:
        return {"LONG": 1, "SHORT": -1}.get(self.value, 0)


def direction_for(label: Label) -> Direction:
    """BUY labels go long, SELL labels go short, HOLD stays out."""

    if label.rank > 0:
        return Direction.LONG
    if label.rank < 0:
        return Direction.SHORT
    return Direction.NONE


@dataclass(frozen=True)
class Recommendation:
    label: Label
    score: float
    confidence: Confidence
    weighted_score: float = 0.0
    max_score: float = 0.0
    signals: dict[str, Signal] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label.value,
            "score": round(self.score, 2),
            "confidence": self.confidence.value,
            "weighted_score": self.weighted_score,
            "max_score": self.max_score,
            "signals": dict(self.signals),
        }


def label_for_score(score: float) -> Label:
    if score > 7:
        return Label.STRONG_BUY
    if score > 3:
        return Label.BUY
    if score > -3:
        return Label.HOLD
    if score > -7:
        return Label.SELL
    return Label.STRONG_SELL


def _tier(value: float, high: float, medium: float) -> str:
    if value > high:
        return "high"
    if value > medium:
        return "medium"
    return "low"


def confidence_for(score: float, signals: Mapping[str, Signal]) -> Confidence:
    """Combine score strength with signal coherence (mean over spread)."""

    values = [float(v) for v in signals.values() if v is not None]
    if len(values) < 2:
        return Confidence.LOW
    mean = sum(values) / len(values)
    std = math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))
    snr = abs(mean) / max(std, 1.0)

    strength = _tier(abs(score), 5, 2)
    coherence = _tier(snr, 1.5, 0.8)
    if strength == "high" and coherence == "high":
        return Confidence.HIGH
    if strength == "low" or coherence == "low":
        return Confidence.LOW
    return Confidence.MEDIUM


def recommend(
    signals: Mapping[str, Signal],
    weights: SignalWeights | Mapping[str, float],
    ctx: TelemetryContext | None = None,
) -> Recommendation:
    """Weighted, normalised score in ``[-10, 10]`` with label and confidence.

    Unavailable signals drop out of both the weighted sum and the maximum.
    """

    w = weights.as_dict() if isinstance(weights, SignalWeights) else dict(weights)
    weighted = 0.0
    max_score = 0.0
    for name, weight in w.items():
        value = signals.get(name)
        if value is None:
            continue
        weighted += value * weight
        max_score += abs(weight * 2)

    score = 10.0 * weighted / max_score if max_score > 0 else 0.0
    score = max(-10.0, min(10.0, score))
    rec = Recommendation(
        label=label_for_score(score),
        score=score,
        confidence=confidence_for(score, signals),
        weighted_score=weighted,
        max_score=max_score,
        signals=dict(signals),
    )
    log_event(
        E_SIGNALS_SCORED,
        ctx,
        score=round(score, 4),
        label=rec.label.value,
        confidence=rec.confidence.value,
        available=sum(v is not None for v in signals.values()),
    )
    return rec


@dataclass(frozen=True, slots=True)
class ProfileVerdict:
    """Recommendation label after the profile's market-condition filters."""

    label: Label
    note: str = ""
    changed: bool = False


# Wartości zastępcze, gdy wskaźnik jest niedostępny.
_DEFAULT_VOLATILITY = 15.0
_DEFAULT_RSI = 50.0
_DEFAULT_ADX = 20.0

_WEAKER = {
    Label.STRONG_BUY: Label.BUY,
    Label.STRONG_SELL: Label.SELL,
}


def adapt_to_profile(
    rec: Recommendation,
    snap: IndicatorSnapshot,
    profile: Profile,
    ctx: TelemetryContext | None = None,
) -> ProfileVerdict:
    """Apply the profile's filters on volatility, trend strength and RSI."""

    vol = snap.volatility.value if snap.volatility.value is not None else _DEFAULT_VOLATILITY
    rsi = snap.momentum.rsi if snap.momentum.rsi is not None else _DEFAULT_RSI
    adx = snap.trend.adx if snap.trend.adx is not None else _DEFAULT_ADX
    label = rec.label
    buy = label.rank > 0
    active = label is not Label.HOLD

    verdict = ProfileVerdict(label)
    key = profile.key
    if key is ProfileKey.SCALPING:
        if vol < 10 and buy:
            verdict = ProfileVerdict(Label.HOLD, "volatility too low for scalping", True)
        elif adx < 15 and active:
            verdict = ProfileVerdict(Label.HOLD, "trend too weak for scalping", True)
        elif label is Label.BUY and rsi < 40:
            verdict = ProfileVerdict(Label.STRONG_BUY, "rebound from oversold", True)
        elif label is Label.SELL and rsi > 60:
            verdict = ProfileVerdict(Label.STRONG_SELL, "correction from overbought", True)
    elif key is ProfileKey.SWING:
        if adx < 20 and label in _WEAKER:
            verdict = ProfileVerdict(_WEAKER[label], "trend not defined enough for a strong call", True)
    elif key is ProfileKey.POSITION:
        if adx < 25 and buy:
            verdict = ProfileVerdict(Label.HOLD, "wait for trend confirmation", True)
        elif vol > 25 and active:
            verdict = ProfileVerdict(Label.HOLD, "volatility too high, wait for stabilisation", True)
    elif key is ProfileKey.LONGTERM:
        if label is Label.BUY:
            verdict = ProfileVerdict(Label.BUY, "accumulate gradually", False)
        elif label is Label.SELL:
            verdict = ProfileVerdict(Label.HOLD, "reassess only on a long-term trend change", True)
        elif label is Label.STRONG_BUY:
            verdict = ProfileVerdict(Label.BUY, "long-term investment opportunity", True)
        elif label is Label.STRONG_SELL:
            verdict = ProfileVerdict(Label.SELL, "consider strategic reallocation", True)

    if verdict.changed:
        log_event(
            E_PROFILE_FILTER,
            ctx,
            before=rec.label.value,
            after=verdict.label.value,
            note=verdict.note,
        )
    return verdict
