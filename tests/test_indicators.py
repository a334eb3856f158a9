import numpy as np
import pandas as pd
import pytest

from trendscope.core.indicators import (
    adx,
    bollinger,
    compute_indicator_frame,
    ema,
    macd,
    realized_volatility,
    resolve_periods,
    rsi,
    sma,
)
from trendscope.examples.synthetic import generate_ohlcv
from trendscope.profiles import PROFILES, ProfileKey


def _series(values):
    return pd.Series(values, index=pd.date_range("2024-01-01", periods=len(values), freq="D"), dtype=float)


FLAT_PRICES = [100.0, 1.1, 0.3, 37.7, 123.45]


@pytest.mark.parametrize("price", FLAT_PRICES)
def test_sma_and_ema_converge_on_constant_series(price):
    s = _series([price] * 30)
    assert sma(s, 10).iloc[:9].isna().all()
    assert sma(s, 10).iloc[9:].tolist() == pytest.approx([price] * 21, rel=1e-12)
    assert ema(s, 10).tolist() == pytest.approx([price] * 30, rel=1e-12)


def test_ema_hybrid_seed():
    out = ema(_series([1, 2, 3, 4, 5]), 3)
    assert out.tolist() == pytest.approx([1.0, 1.5, 2.0, 3.0, 4.0])


def test_ema_short_input_is_unavailable():
    assert ema(_series([1, 2]), 3).isna().all()


def test_rsi_strictly_increasing_is_100():
    out = rsi(_series(np.arange(1, 31)), 14)
    assert out.iloc[:14].isna().all()
    assert (out.iloc[14:] == 100.0).all()


def test_rsi_strictly_decreasing_is_0():
    out = rsi(_series(np.arange(30, 0, -1)), 14)
    assert (out.iloc[14:] == 0.0).all()


def test_rsi_flat_window_is_neutral():
    out = rsi(_series([5.0] * 20), 14)
    assert (out.iloc[14:] == 50.0).all()


def test_rsi_uses_last_period_changes_only():
    out = rsi(_series([1, 2, 1, 2, 3]), 2)
    assert np.isnan(out.iloc[1])
    assert out.iloc[2] == pytest.approx(50.0)
    assert out.iloc[3] == pytest.approx(50.0)
    assert out.iloc[4] == pytest.approx(100.0)


def test_rsi_needs_period_plus_one_points():
    assert rsi(_series(np.arange(14)), 14).isna().all()


def test_macd_histogram_matches_lines():
    close = generate_ohlcv(80, seed=3)["close"]
    m = macd(close)
    assert list(m.columns) == ["macd", "signal", "histogram"]
    both = m.dropna()
    assert not both.empty
    assert np.allclose(both["histogram"], both["macd"] - both["signal"])
    assert (np.sign(both["histogram"]) == np.sign(both["macd"] - both["signal"])).all()


def test_macd_unavailable_for_short_series():
    m = macd(_series(np.arange(20)))
    assert m.isna().all().all()


def test_bollinger_width_is_four_population_std():
    close = generate_ohlcv(50, seed=7)["close"]
    bb = bollinger(close, 20).dropna()
    std = close.rolling(20).std(ddof=0).dropna()
    assert np.allclose(bb["upper"] - bb["lower"], 4 * std)
    assert (bb["lower"] <= bb["middle"]).all()
    assert (bb["middle"] <= bb["upper"]).all()


def test_adx_unavailable_below_two_periods():
    df = generate_ohlcv(27, seed=1)
    out = adx(df["high"], df["low"], df["close"], 14)
    assert out.isna().all().all()


def test_adx_first_value_after_period_plus_one():
    df = generate_ohlcv(60, seed=1)
    out = adx(df["high"], df["low"], df["close"], 14)
    assert out["adx"].iloc[:15].isna().all()
    assert out["adx"].iloc[15:].notna().all()
    assert np.isnan(out["plus_di"].iloc[0])
    assert out["plus_di"].iloc[1:].notna().all()
    assert ((out["adx"].dropna() >= 0) & (out["adx"].dropna() <= 100)).all()


def test_adx_flat_market_is_zero():
    s = _series([10.0] * 40)
    out = adx(s, s, s, 14)
    assert out["adx"].iloc[-1] == 0.0
    assert out["plus_di"].iloc[-1] == 0.0
    assert out["minus_di"].iloc[-1] == 0.0


def test_adx_uptrend_has_dominant_plus_di():
    base = np.arange(40, dtype=float) + 100
    out = adx(_series(base + 1), _series(base - 1), _series(base), 14)
    last = out.iloc[-1]
    assert last["plus_di"] > last["minus_di"]
    assert last["adx"] > 50


def test_realized_volatility():
    assert realized_volatility(_series([100.0] * 10)) == 0.0
    assert np.isnan(realized_volatility(_series([100.0])))
    assert realized_volatility(_series([100.0, 110.0, 99.0])) == pytest.approx(10.0)


def test_resolve_periods_caps_long_sma():
    prof = PROFILES[ProfileKey.SWING]
    assert resolve_periods(prof, 60)["sma_long"] == 60
    assert resolve_periods(prof, 500)["sma_long"] == 200
    assert resolve_periods(prof, 500)["ema"] == prof.periods.sma_short


def test_compute_indicator_frame_columns_and_alignment():
    df = generate_ohlcv(120)
    frame = compute_indicator_frame(df, PROFILES[ProfileKey.SCALPING])
    assert frame.index.equals(df.index)
    assert list(frame.columns) == [
        "sma_short",
        "sma_medium",
        "sma_long",
        "ema",
        "rsi",
        "macd",
        "macd_signal",
        "macd_histogram",
        "bb_upper",
        "bb_middle",
        "bb_lower",
        "adx",
        "plus_di",
        "minus_di",
    ]
    assert frame.iloc[-1].notna().all()


def test_period_must_be_positive():
    with pytest.raises(ValueError):
        sma(_series([1.0, 2.0]), 0)
