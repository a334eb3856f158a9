from __future__ import annotations

import numpy as np
import pandas as pd
from numpy.lib.stride_tricks import sliding_window_view

from ..profiles import Profile


__all__ = [
    "sma",
    "ema",
    "rsi",
    "macd",
    "bollinger",
    "adx",
    "realized_volatility",
    "resolve_periods",
    "compute_indicator_frame",
]

# Niedostępne wartości to NaN na pełnej długości serii, nigdy wyjątek.


def _check_period(period: int) -> int:
    period = int(period)
    if period < 1:
        raise ValueError("period must be >= 1")
    return period


def _nan_like(x: pd.Series) -> pd.Series:
    return pd.Series(np.nan, index=x.index, dtype=float)


def sma(close: pd.Series, period: int) -> pd.Series:
    period = _check_period(period)
    return close.astype(float).rolling(period, min_periods=period).mean()


def ema(close: pd.Series, period: int) -> pd.Series:
    """EMA seeded with the running SMA of the first ``period`` points.

    For ``i < period`` the value is the mean of ``close[0..i]``; afterwards the
    usual recurrence with ``k = 2 / (period + 1)``.
    """

    period = _check_period(period)
    values = close.to_numpy(dtype=float)
    n = len(values)
    out = np.full(n, np.nan)
    if n < period:
        return pd.Series(out, index=close.index)

    k = 2.0 / (period + 1)
    running = 0.0
    for i in range(n):
        if i < period:
            running += values[i]
            out[i] = running / (i + 1)
        else:
            # price*k + prev*(1-k); stała seria zostaje przy P z dokładnością do 1 ulp ziarna
            out[i] = out[i - 1] + k * (values[i] - out[i - 1])
    return pd.Series(out, index=close.index)


def rsi(close: pd.Series, period: int) -> pd.Series:
    """RSI over a plain sliding window of the last ``period`` price changes."""

    period = _check_period(period)
    values = close.to_numpy(dtype=float)
    n = len(values)
    out = np.full(n, np.nan)
    if n < period + 1:
        return pd.Series(out, index=close.index)

    delta = np.diff(values)
    gains = sliding_window_view(np.clip(delta, 0, None), period).sum(axis=1) / period
    losses = sliding_window_view(np.clip(-delta, 0, None), period).sum(axis=1) / period

    res = np.empty_like(gains)
    flat = (losses == 0) & (gains == 0)
    only_gains = (losses == 0) & (gains > 0)
    regular = losses > 0
    res[flat] = 50.0
    res[only_gains] = 100.0
    res[regular] = 100.0 - 100.0 / (1.0 + gains[regular] / losses[regular])
    out[period:] = res
    return pd.Series(out, index=close.index)


def macd(close: pd.Series, fast: int = 12, slow: int = 26, signal: int = 9) -> pd.DataFrame:
    """MACD line, signal line and histogram.

    The signal EMA runs over the defined part of the MACD line only and is
    right-aligned back onto the full index.
    """

    line = ema(close, fast) - ema(close, slow)
    sig = _nan_like(close)
    defined = line.dropna()
    if not defined.empty:
        sig.loc[defined.index] = ema(defined, signal).to_numpy()
    hist = line - sig
    return pd.DataFrame({"macd": line, "signal": sig, "histogram": hist}, index=close.index)


def bollinger(close: pd.Series, period: int, k: float = 2.0) -> pd.DataFrame:
    """Bollinger bands with a population standard deviation."""

    period = _check_period(period)
    middle = sma(close, period)
    std = _nan_like(close)
    values = close.to_numpy(dtype=float)
    if len(values) >= period:
        std.iloc[period - 1 :] = sliding_window_view(values, period).std(axis=1, ddof=0)
    return pd.DataFrame(
        {"upper": middle + k * std, "middle": middle, "lower": middle - k * std},
        index=close.index,
    )


def _wilder(values: np.ndarray, period: int, start: int) -> np.ndarray:
    """Cumulative mean for the first ``period`` values from ``start``, then Wilder."""

    out = np.full(len(values), np.nan)
    total = 0.0
    for i in range(start, len(values)):
        j = i - start
        if j < period:
            total += values[i]
            out[i] = total / (j + 1)
        else:
            out[i] = (out[i - 1] * (period - 1) + values[i]) / period
    return out


def adx(high: pd.Series, low: pd.Series, close: pd.Series, period: int) -> pd.DataFrame:
    """ADX with +DI/-DI; all NaN for fewer than ``2 * period`` bars."""

    period = _check_period(period)
    idx = close.index
    n = len(close)
    empty = pd.DataFrame(
        {"adx": np.full(n, np.nan), "plus_di": np.full(n, np.nan), "minus_di": np.full(n, np.nan)},
        index=idx,
    )
    if n < 2 * period or n < 2:
        return empty

    h = high.to_numpy(dtype=float)
    lo = low.to_numpy(dtype=float)
    c = close.to_numpy(dtype=float)

    tr = np.zeros(n)
    plus_dm = np.zeros(n)
    minus_dm = np.zeros(n)
    tr[1:] = np.maximum.reduce(
        [h[1:] - lo[1:], np.abs(h[1:] - c[:-1]), np.abs(lo[1:] - c[:-1])]
    )
    up = h[1:] - h[:-1]
    down = lo[:-1] - lo[1:]
    plus_dm[1:] = np.where((up > down) & (up > 0), up, 0.0)
    minus_dm[1:] = np.where((down > up) & (down > 0), down, 0.0)

    atr = _wilder(tr, period, start=1)
    s_plus = _wilder(plus_dm, period, start=1)
    s_minus = _wilder(minus_dm, period, start=1)

    with np.errstate(divide="ignore", invalid="ignore"):
        plus_di = np.where(atr > 0, 100.0 * s_plus / atr, 0.0)
        minus_di = np.where(atr > 0, 100.0 * s_minus / atr, 0.0)
        di_sum = plus_di + minus_di
        dx = np.where(di_sum > 0, 100.0 * np.abs(plus_di - minus_di) / di_sum, 0.0)
    plus_di[0] = minus_di[0] = dx[0] = np.nan

    # pierwsze ADX = średnia z `period` wartości DX, okres po pierwszym DI
    adx_values = _wilder(dx, period, start=2)
    adx_values[: period + 1] = np.nan

    return pd.DataFrame(
        {"adx": adx_values, "plus_di": plus_di, "minus_di": minus_di}, index=idx
    )


def realized_volatility(close: pd.Series) -> float:
    """Population std of simple returns, in percent; NaN with fewer than 2 bars."""

    returns = close.astype(float).pct_change().replace([np.inf, -np.inf], np.nan).dropna()
    if returns.empty:
        return float("nan")
    return float(returns.std(ddof=0) * 100.0)


def resolve_periods(profile: Profile, n_bars: int) -> dict[str, int]:
    """Indicator periods for ``profile``; the long SMA shrinks to the bar count."""

    p = profile.periods
    return {
        "sma_short": p.sma_short,
        "sma_medium": p.sma_medium,
        "sma_long": max(1, min(p.sma_long, n_bars)),
        "ema": p.sma_short,
        "rsi": p.rsi,
        "bollinger": p.bollinger,
        "adx": p.adx,
        "lookback": p.lookback,
    }


def compute_indicator_frame(df: pd.DataFrame, profile: Profile) -> pd.DataFrame:
    """All indicator series for ``profile`` as columns aligned with ``df``."""

    periods = resolve_periods(profile, len(df))
    close = df["close"]
    out = pd.DataFrame(index=df.index)
    out["sma_short"] = sma(close, periods["sma_short"])
    out["sma_medium"] = sma(close, periods["sma_medium"])
    out["sma_long"] = sma(close, periods["sma_long"])
    out["ema"] = ema(close, periods["ema"])
    out["rsi"] = rsi(close, periods["rsi"])
    m = macd(close)
    out["macd"] = m["macd"]
    out["macd_signal"] = m["signal"]
    out["macd_histogram"] = m["histogram"]
    bb = bollinger(close, periods["bollinger"])
    out["bb_upper"] = bb["upper"]
    out["bb_middle"] = bb["middle"]
    out["bb_lower"] = bb["lower"]
    dmi = adx(df["high"], df["low"], close, periods["adx"])
    out["adx"] = dmi["adx"]
    out["plus_di"] = dmi["plus_di"]
    out["minus_di"] = dmi["minus_di"]
    return out
