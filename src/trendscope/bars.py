from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

import numpy as np
import pandas as pd

from .errors import DataValidationError
from .utils.log import E_BARS_REVERSED, TelemetryContext, log_event

OHLC_COLUMNS = ("open", "high", "low", "close")
BAR_COLUMNS = (*OHLC_COLUMNS, "volume")


@dataclass(frozen=True, slots=True)
class PriceBar:
    date: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _rows(data: Iterable[PriceBar | Mapping[str, Any]]) -> list[dict[str, Any]]:
    rows = []
    for item in data:
        if isinstance(item, PriceBar):
            rows.append(item.to_dict())
        elif isinstance(item, Mapping):
            rows.append(dict(item))
        else:
            raise DataValidationError(f"Unsupported bar type: {type(item).__name__}")
    return rows


def bars_to_frame(
    data: pd.DataFrame | Iterable[PriceBar | Mapping[str, Any]],
    ctx: TelemetryContext | None = None,
) -> pd.DataFrame:
    """Return a chronological ascending OHLCV frame indexed by ``date``.

    Accepts a DataFrame (``DatetimeIndex`` or a ``date``/``time`` column) or any
    iterable of :class:`PriceBar` / mappings. A strictly descending series is
    reversed; any other order, duplicate dates or an empty series raise
    :class:`DataValidationError`. Missing volume becomes 0.
    """

    if isinstance(data, pd.DataFrame):
        df = data.copy()
    else:
        df = pd.DataFrame(_rows(data))

    if df.empty:
        raise DataValidationError("Bar series is empty")

    df.columns = [str(c).lower() for c in df.columns]
    if not isinstance(df.index, pd.DatetimeIndex):
        date_col = next((c for c in ("date", "time", "datetime", "timestamp") if c in df.columns), None)
        if date_col is None:
            raise DataValidationError("Bars need a DatetimeIndex or a 'date' column")
        try:
            df[date_col] = pd.to_datetime(df[date_col])
        except (ValueError, TypeError) as exc:
            raise DataValidationError(f"Unparseable bar dates: {exc}") from exc
        df = df.set_index(date_col)
    df.index.name = "date"

    missing = [c for c in OHLC_COLUMNS if c not in df.columns]
    if missing:
        raise DataValidationError(f"Bars missing columns: {missing}")
    if "volume" not in df.columns:
        df["volume"] = 0.0

    out = pd.DataFrame(index=df.index)
    for col in BAR_COLUMNS:
        out[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
    out["volume"] = out["volume"].fillna(0.0)
    if out[list(OHLC_COLUMNS)].isna().any().any():
        raise DataValidationError("Bars contain missing or non-numeric prices")
    if not np.isfinite(out.to_numpy()).all():
        raise DataValidationError("Bars contain non-finite values")

    idx = out.index
    if idx.has_duplicates:
        raise DataValidationError("Bars contain duplicate dates")
    if idx.is_monotonic_increasing:
        return out
    if idx.is_monotonic_decreasing:
        log_event(E_BARS_REVERSED, ctx, bars=len(out))
        return out.iloc[::-1]
    raise DataValidationError("Bars are not in chronological order")


def frame_to_bars(df: pd.DataFrame) -> list[PriceBar]:
    return [
        PriceBar(
            date=ts.to_pydatetime(),
            open=float(r.open),
            high=float(r.high),
            low=float(r.low),
            close=float(r.close),
            volume=float(r.volume),
        )
        for ts, r in df.iterrows()
    ]
