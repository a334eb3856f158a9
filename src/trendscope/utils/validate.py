from __future__ import annotations

import pandas as pd

from ..errors import DataValidationError


def ensure_analysis_ready(df: pd.DataFrame) -> pd.DataFrame:
    """
    - Upewnia się, że mamy kolumny OHLC
    - Sortuje rosnąco po czasie, usuwa duplikaty (zostaje ostatni wiersz)
    - Wymusza typy numeryczne, odrzuca wiersze bez cen, brak wolumenu -> 0
    """
    required = {"open", "high", "low", "close"}
    if not required.issubset(set(df.columns)):
        raise DataValidationError(f"CSV must contain columns: {sorted(required)}")
    if not isinstance(df.index, pd.DatetimeIndex):
        raise DataValidationError("DataFrame must have a DatetimeIndex")

    df = df.copy()
    if df.index.tz is not None:
        df.index = df.index.tz_convert(None)
    df = df.sort_index(kind="mergesort")
    df = df[~df.index.duplicated(keep="last")]

    for col in ("open", "high", "low", "close"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
    if "volume" in df.columns:
        df["volume"] = pd.to_numeric(df["volume"], errors="coerce").fillna(0.0)
    else:
        df["volume"] = 0.0
    df = df.dropna(subset=["open", "high", "low", "close"])
    if df.empty:
        raise DataValidationError("No usable bars after cleaning")
    return df
