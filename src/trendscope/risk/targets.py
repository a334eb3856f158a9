"""Weighted stop-loss and target candidates and the per-profile pick."""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..decision import Direction
from ..profiles import Profile, TargetSelection
from ..snapshot import IndicatorSnapshot

TRADING_DAYS = 252
FIB_RATIOS = ((0.382, 1.0, "fib_38"), (0.618, 2.0, "fib_62"), (1.0, 1.5, "fib_100"))
SCALPING_BAND = 0.02
CREDIBLE_WEIGHT = 1.5


@dataclass(frozen=True, slots=True)
class Candidate:
    value: float
    weight: float
    source: str

    def distance(self, price: float) -> float:
        """Relative distance from ``price``."""
        return abs(self.value - price) / price if price else 0.0


def nearest_support_below(snap: IndicatorSnapshot, price: float) -> float | None:
    below = [s for s in snap.levels.supports if s < price]
    return max(below) if below else None


def nearest_resistance_above(snap: IndicatorSnapshot, price: float) -> float | None:
    above = [r for r in snap.levels.resistances if r > price]
    return min(above) if above else None


def atr_estimate(price: float, volatility: float | None) -> float | None:
    """Daily ATR proxy from annualised-style realised volatility (percent)."""

    if volatility is None or volatility <= 0:
        return None
    return price * (volatility / 100.0) / math.sqrt(TRADING_DAYS)


def stop_candidates(
    snap: IndicatorSnapshot, direction: Direction, profile: Profile, price: float
) -> list[Candidate]:
    """Stops on the loss side of ``price``; empty for :attr:`Direction.NONE`."""

    side = direction.sign
    if side == 0 or price <= 0:
        return []
    out: list[Candidate] = []

    level = (
        nearest_support_below(snap, price)
        if side > 0
        else nearest_resistance_above(snap, price)
    )
    if level is not None:
        out.append(Candidate(level, 3.0, "support" if side > 0 else "resistance"))

    atr = atr_estimate(price, snap.volatility.value)
    if atr is not None:
        out.append(Candidate(price - side * atr * profile.risk.atr_multiplier, 2.0, "atr"))

    ma = snap.moving_averages
    averages = [v for v in (ma.sma_short, ma.ema, ma.sma_medium) if v is not None]
    loss_side = [v for v in averages if (v < price if side > 0 else v > price)]
    if loss_side:
        nearest = max(loss_side) if side > 0 else min(loss_side)
        out.append(Candidate(nearest, 2.0, "moving_average"))

    pct = profile.risk.stop_percentage / 100.0
    out.append(Candidate(price * (1 - side * pct), 1.0, "percent"))
    return out


def target_candidates(
    snap: IndicatorSnapshot, direction: Direction, profile: Profile, price: float
) -> list[Candidate]:
    """Targets on the profit side of ``price``."""

    side = direction.sign
    if side == 0 or price <= 0:
        return []
    out: list[Candidate] = []

    if side > 0:
        level = nearest_resistance_above(snap, price)
        opposite = nearest_support_below(snap, price)
    else:
        level = nearest_support_below(snap, price)
        opposite = nearest_resistance_above(snap, price)
    if level is not None:
        out.append(Candidate(level, 3.0, "resistance" if side > 0 else "support"))

    if opposite is not None:
        rng = abs(price - opposite)
        for ratio, weight, source in FIB_RATIOS:
            out.append(Candidate(price + side * rng * ratio, weight, source))

    pct = profile.risk.target_percentage / 100.0
    out.append(Candidate(price * (1 + side * pct), 1.0, "percent"))
    return out


def select_stop(candidates: list[Candidate], price: float) -> Candidate | None:
    """Candidate with the largest ``distance * weight``; first one wins ties."""

    best = None
    best_score = -math.inf
    for c in candidates:
        score = c.distance(price) * c.weight
        if score > best_score:
            best, best_score = c, score
    return best


def select_target(
    candidates: list[Candidate], price: float, strategy: TargetSelection
) -> Candidate | None:
    if not candidates:
        return None

    if strategy is TargetSelection.NEAREST_WITHIN_BAND:
        near = [c for c in candidates if c.distance(price) < SCALPING_BAND]
        if near:
            return max(near, key=lambda c: (c.weight, -c.distance(price)))
        return min(candidates, key=lambda c: c.distance(price))

    if strategy is TargetSelection.WEIGHT_OVER_DISTANCE:
        usable = [c for c in candidates if c.distance(price) > 0]
        if not usable:
            return None
        return max(usable, key=lambda c: c.weight / c.distance(price))

    if strategy is TargetSelection.FARTHEST_CREDIBLE:
        credible = [c for c in candidates if c.weight >= CREDIBLE_WEIGHT]
        if credible:
            return max(credible, key=lambda c: c.distance(price))
        return max(candidates, key=lambda c: c.weight)

    return max(candidates, key=lambda c: c.weight)


def risk_reward_ratio(entry: float, target: float, stop: float) -> float | None:
    """``|target - entry| / |entry - stop|``; ``None`` when there is no risk."""

    risk = abs(entry - stop)
    if risk == 0:
        return None
    return abs(target - entry) / risk
