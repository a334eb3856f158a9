"""Pivot point, local extrema and clustered support/resistance levels."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Sequence

import pandas as pd

LevelKind = Literal["support", "resistance", "pivot"]

CLUSTER_TOLERANCE = 0.005


@dataclass(frozen=True, slots=True)
class PriceLevel:
    value: float
    kind: LevelKind

    def to_dict(self) -> dict:
        return {"value": self.value, "kind": self.kind}


@dataclass(frozen=True, slots=True)
class PivotLevels:
    pivot: float
    r1: float
    r2: float
    s1: float
    s2: float


@dataclass(frozen=True)
class Levels:
    pivot_point: float
    supports: tuple[float, ...] = field(default_factory=tuple)
    resistances: tuple[float, ...] = field(default_factory=tuple)

    def price_levels(self) -> list[PriceLevel]:
        out = [PriceLevel(v, "support") for v in self.supports]
        out.append(PriceLevel(self.pivot_point, "pivot"))
        out.extend(PriceLevel(v, "resistance") for v in self.resistances)
        return out

    def to_dict(self) -> dict:
        return {
            "pivot_point": self.pivot_point,
            "supports": list(self.supports),
            "resistances": list(self.resistances),
        }


def lookback_window(df: pd.DataFrame, lookback: int) -> pd.DataFrame:
    """The most recent ``lookback`` bars, still in chronological order."""

    return df.iloc[-int(lookback) :] if lookback > 0 else df.iloc[0:0]


def pivot_levels(window: pd.DataFrame) -> PivotLevels:
    """Classic floor-trader pivot over the window (close = most recent bar)."""

    high = float(window["high"].max())
    low = float(window["low"].min())
    close = float(window["close"].iloc[-1])
    p = (high + low + close) / 3.0
    rng = high - low
    return PivotLevels(pivot=p, r1=2 * p - low, r2=p + rng, s1=2 * p - high, s2=p - rng)


def local_extrema(window: pd.DataFrame) -> tuple[list[tuple[int, float]], list[tuple[int, float]]]:
    """Strict local highs and lows as ``(position, price)`` pairs.

    A bar is a local high (low) when its high (low) is strictly above (below)
    both immediate neighbours. The first and last bar never qualify.
    """

    highs = window["high"].to_numpy(dtype=float)
    lows = window["low"].to_numpy(dtype=float)
    peaks: list[tuple[int, float]] = []
    troughs: list[tuple[int, float]] = []
    for i in range(1, len(window) - 1):
        if highs[i] > highs[i - 1] and highs[i] > highs[i + 1]:
            peaks.append((i, float(highs[i])))
        if lows[i] < lows[i - 1] and lows[i] < lows[i + 1]:
            troughs.append((i, float(lows[i])))
    return peaks, troughs


def cluster_levels(values: Sequence[float], tolerance: float = CLUSTER_TOLERANCE) -> list[float]:
    """Merge ascending values closer than ``tolerance`` (relative) into their mean."""

    if not values:
        return []
    ordered = sorted(float(v) for v in values)
    groups: list[list[float]] = [[ordered[0]]]
    for v in ordered[1:]:
        last = groups[-1][-1]
        close_enough = v == last if last == 0 else abs(v - last) / abs(last) < tolerance
        if close_enough:
            groups[-1].append(v)
        else:
            groups.append([v])
    return [sum(g) / len(g) for g in groups]


def support_resistance(df: pd.DataFrame, lookback: int) -> Levels:
    """Clustered extrema merged with the classic R1/R2 and S1/S2 levels."""

    window = lookback_window(df, lookback)
    peaks, troughs = local_extrema(window)
    resistances = cluster_levels([p for _, p in peaks])
    supports = cluster_levels([p for _, p in troughs])

    piv = pivot_levels(window)
    for lvl in (piv.r1, piv.r2):
        if lvl not in resistances:
            resistances.append(lvl)
    for lvl in (piv.s1, piv.s2):
        if lvl not in supports:
            supports.append(lvl)

    return Levels(
        pivot_point=piv.pivot,
        supports=tuple(sorted(supports)),
        resistances=tuple(sorted(resistances)),
    )
