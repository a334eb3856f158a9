from __future__ import annotations

from pathlib import Path

import pandas as pd

from ..errors import DataValidationError

TIME_ALIASES = ("date", "time", "datetime", "timestamp")
COLUMN_ALIASES = {
    "o": "open",
    "h": "high",
    "l": "low",
    "c": "close",
    "adj close": "close",
    "vol": "volume",
    "v": "volume",
}


def read_ohlc_csv(
    path: str | Path,
    time_col: str | None = None,
    sep: str | None = None,
) -> pd.DataFrame:
    """Load an OHLCV CSV into a frame indexed by time.

    Column names are matched case-insensitively; common short aliases
    (``o/h/l/c/v``, ``vol``) are accepted. Row order is left untouched so the
    caller decides how to treat unsorted files.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    df = pd.read_csv(path, sep=sep, engine="python" if sep is None else "c")
    df.columns = [str(c).strip().lower() for c in df.columns]
    df = df.rename(columns={k: v for k, v in COLUMN_ALIASES.items() if v not in df.columns})

    if time_col is not None:
        target = time_col.lower()
        if target not in df.columns:
            available = ", ".join(df.columns)
            raise DataValidationError(
                f"Specified time column '{time_col}' not found (available: {available})"
            )
    else:
        target = next((c for c in TIME_ALIASES if c in df.columns), None)
        if target is None:
            raise DataValidationError(f"{path.name}: no time column (expected one of {TIME_ALIASES})")

    try:
        df[target] = pd.to_datetime(df[target])
    except (ValueError, TypeError) as exc:
        raise DataValidationError(f"{path.name}: cannot parse '{target}' as dates") from exc
    df = df.set_index(target)
    df.index.name = "date"
    return df
