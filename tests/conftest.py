from __future__ import annotations

import numpy as np
import pandas as pd
import pytest
import structlog

from trendscope.core.levels import Levels
from trendscope.snapshot import (
    IndicatorSnapshot,
    Momentum,
    MovingAverages,
    PriceData,
    Trend,
    Volatility,
    VolumeData,
)


def _snapshot(
    price: float = 100.0,
    previous: float | None = 100.0,
    rsi: float | None = None,
    macd: float | None = None,
    macd_signal: float | None = None,
    macd_histogram: float | None = None,
    ema: float | None = None,
    sma_short: float | None = None,
    sma_medium: float | None = None,
    sma_long: float | None = None,
    upper: float | None = None,
    middle: float | None = None,
    lower: float | None = None,
    volatility: float | None = 15.0,
    adx: float | None = None,
    plus_di: float | None = None,
    minus_di: float | None = None,
    patterns: tuple = (),
    supports: tuple = (),
    resistances: tuple = (),
    volume: float = 1000.0,
    volume_average: float = 1000.0,
) -> IndicatorSnapshot:
    change = (price / previous - 1) * 100 if previous else None
    width = None
    if upper is not None and lower is not None and middle:
        width = (upper - lower) / middle * 100.0
    return IndicatorSnapshot(
        price=PriceData(
            current=price,
            previous=previous,
            open=price,
            high=price,
            low=price,
            change_percent=change,
        ),
        moving_averages=MovingAverages(sma_short, sma_medium, sma_long, ema),
        momentum=Momentum(rsi, macd, macd_signal, macd_histogram),
        volatility=Volatility(volatility, upper, middle, lower, width),
        trend=Trend(adx, plus_di, minus_di, tuple(patterns)),
        levels=Levels(pivot_point=price, supports=tuple(supports), resistances=tuple(resistances)),
        volume=VolumeData(volume, volume_average, None),
        bars=100,
    )


@pytest.fixture
def make_snapshot():
    """Factory for hand-built snapshots; every indicator defaults to unavailable."""

    return _snapshot


def _frame(closes, highs=None, lows=None, volume=1000.0, start="2024-01-01", freq="D"):
    closes = np.asarray(closes, dtype=float)
    highs = closes if highs is None else np.asarray(highs, dtype=float)
    lows = closes if lows is None else np.asarray(lows, dtype=float)
    idx = pd.date_range(start, periods=len(closes), freq=freq)
    return pd.DataFrame(
        {
            "open": closes,
            "high": highs,
            "low": lows,
            "close": closes,
            "volume": np.full(len(closes), float(volume)),
        },
        index=idx,
    )


@pytest.fixture
def make_frame():
    """Factory for OHLCV frames (open == close unless highs/lows are given)."""

    return _frame


@pytest.fixture(autouse=True)
def _reset_structlog():
    # setup_logger() wiąże strumień przechwycony przez capsys; po teście wracamy do domyślnych
    yield
    structlog.reset_defaults()
