from __future__ import annotations

import argparse
import numpy as np
import pandas as pd

from ..bars import PriceBar, frame_to_bars


def generate_ohlcv(
    periods: int = 100,
    start_price: float = 100.0,
    freq: str = "D",
    drift: float = 0.0,
    seed: int = 42,
) -> pd.DataFrame:
    """Random-walk OHLCV bars; ``drift`` is the mean per-bar return."""

    # normalize frequency to lowercase to avoid pandas warnings
    freq = freq.lower()
    idx = pd.date_range("2024-01-01", periods=periods, freq=freq)
    rnd = np.random.default_rng(seed)
    ret = rnd.normal(drift, 0.01, size=periods)
    px = start_price * (1 + pd.Series(ret, index=idx)).cumprod()
    open_ = px.shift(1).fillna(px.iloc[0])
    close = px
    top = np.maximum(open_, close)
    bottom = np.minimum(open_, close)
    high = top * (1 + rnd.uniform(0.0, 0.02, size=periods))
    low = bottom * (1 - rnd.uniform(0.0, 0.02, size=periods))
    volume = rnd.integers(1_000, 5_000, size=periods).astype(float)
    df = pd.DataFrame(
        {"open": open_, "high": high, "low": low, "close": close, "volume": volume}, index=idx
    )
    df.index.name = "date"
    return df


def generate_bars(periods: int = 100, **kwargs) -> list[PriceBar]:
    return frame_to_bars(generate_ohlcv(periods, **kwargs))


def main() -> None:
    p = argparse.ArgumentParser("trendscope-demo")
    p.add_argument("--periods", type=int, default=120)
    p.add_argument("--start", type=float, default=100.0)
    p.add_argument("--freq", default="D")
    p.add_argument("--drift", type=float, default=0.0)
    p.add_argument("--out")
    args = p.parse_args()
    df = generate_ohlcv(args.periods, args.start, args.freq, args.drift)
    if args.out:
        df.to_csv(args.out, index=True, date_format="%Y-%m-%d %H:%M:%S")
        print(f"Saved -> {args.out}")
    else:
        print(df.head(10))


if __name__ == "__main__":
    main()
