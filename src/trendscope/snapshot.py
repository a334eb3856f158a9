"""Point-in-time view of every indicator, level and pattern for one analysis run."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

import pandas as pd

from .core.indicators import compute_indicator_frame, realized_volatility, resolve_periods
from .core.levels import Levels, support_resistance
from .profiles import Profile
from .signals.contract import ChartPattern
from .signals.patterns import detect_patterns


def _num(value: Any) -> float | None:
    """Float value or ``None`` for the unavailable marker (NaN/inf/None)."""

    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def _pct_change(current: float | None, previous: float | None) -> float | None:
    if current is None or not previous:
        return None
    return (current / previous - 1.0) * 100.0


@dataclass(frozen=True, slots=True)
class PriceData:
    current: float
    previous: float | None
    open: float
    high: float
    low: float
    change_percent: float | None


@dataclass(frozen=True, slots=True)
class MovingAverages:
    sma_short: float | None
    sma_medium: float | None
    sma_long: float | None
    ema: float | None


@dataclass(frozen=True, slots=True)
class Momentum:
    rsi: float | None
    macd: float | None
    macd_signal: float | None
    macd_histogram: float | None


@dataclass(frozen=True, slots=True)
class Volatility:
    value: float | None
    bollinger_upper: float | None
    bollinger_middle: float | None
    bollinger_lower: float | None
    bollinger_width: float | None  # (upper - lower) w % środkowego pasma


@dataclass(frozen=True, slots=True)
class Trend:
    adx: float | None
    plus_di: float | None
    minus_di: float | None
    patterns: tuple[ChartPattern, ...] = ()


@dataclass(frozen=True, slots=True)
class VolumeData:
    current: float
    average: float
    change_percent: float | None


@dataclass(frozen=True)
class IndicatorSnapshot:
    price: PriceData
    moving_averages: MovingAverages
    momentum: Momentum
    volatility: Volatility
    trend: Trend
    levels: Levels
    volume: VolumeData
    bars: int
    periods: dict[str, int] = field(default_factory=dict)

    def unavailable(self) -> list[str]:
        """Dotted names of indicator fields with no value."""

        missing = []
        for section in ("moving_averages", "momentum", "volatility"):
            for key, value in asdict(getattr(self, section)).items():
                if value is None:
                    missing.append(f"{section}.{key}")
        for key in ("adx", "plus_di", "minus_di"):
            if getattr(self.trend, key) is None:
                missing.append(f"trend.{key}")
        return missing

    def to_dict(self) -> dict[str, Any]:
        trend = asdict(self.trend)
        trend["patterns"] = [p.to_dict() for p in self.trend.patterns]
        return {
            "price": asdict(self.price),
            "moving_averages": asdict(self.moving_averages),
            "momentum": asdict(self.momentum),
            "volatility": asdict(self.volatility),
            "trend": trend,
            "levels": self.levels.to_dict(),
            "volume": asdict(self.volume),
            "bars": self.bars,
            "periods": dict(self.periods),
        }


def build_snapshot(
    df: pd.DataFrame,
    profile: Profile,
    *,
    frame: pd.DataFrame | None = None,
    pattern_config: Mapping[str, bool] | None = None,
) -> IndicatorSnapshot:
    """Assemble the snapshot for the most recent bar of ``df``.

    ``df`` must already be normalised (chronological ascending, see
    :func:`trendscope.bars.bars_to_frame`). ``frame`` may carry precomputed
    indicator series from :func:`compute_indicator_frame`.
    """

    if frame is None:
        frame = compute_indicator_frame(df, profile)
    periods = resolve_periods(profile, len(df))
    last = frame.iloc[-1]
    bar = df.iloc[-1]

    current = float(bar["close"])
    previous = float(df["close"].iloc[-2]) if len(df) > 1 else None
    price = PriceData(
        current=current,
        previous=previous,
        open=float(bar["open"]),
        high=float(bar["high"]),
        low=float(bar["low"]),
        change_percent=_pct_change(current, previous),
    )

    upper = _num(last["bb_upper"])
    lower = _num(last["bb_lower"])
    middle = _num(last["bb_middle"])
    width = None
    if upper is not None and lower is not None and middle:
        width = (upper - lower) / middle * 100.0

    vol_now = float(df["volume"].iloc[-1])
    vol_prev = float(df["volume"].iloc[-2]) if len(df) > 1 else None

    return IndicatorSnapshot(
        price=price,
        moving_averages=MovingAverages(
            sma_short=_num(last["sma_short"]),
            sma_medium=_num(last["sma_medium"]),
            sma_long=_num(last["sma_long"]),
            ema=_num(last["ema"]),
        ),
        momentum=Momentum(
            rsi=_num(last["rsi"]),
            macd=_num(last["macd"]),
            macd_signal=_num(last["macd_signal"]),
            macd_histogram=_num(last["macd_histogram"]),
        ),
        volatility=Volatility(
            value=_num(realized_volatility(df["close"])),
            bollinger_upper=upper,
            bollinger_middle=middle,
            bollinger_lower=lower,
            bollinger_width=width,
        ),
        trend=Trend(
            adx=_num(last["adx"]),
            plus_di=_num(last["plus_di"]),
            minus_di=_num(last["minus_di"]),
            patterns=tuple(detect_patterns(df, periods["lookback"], pattern_config)),
        ),
        levels=support_resistance(df, periods["lookback"]),
        volume=VolumeData(
            current=vol_now,
            average=float(df["volume"].mean()),
            change_percent=_pct_change(vol_now, vol_prev),
        ),
        bars=len(df),
        periods=periods,
    )
