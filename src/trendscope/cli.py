from __future__ import annotations

import argparse
import json
import re
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from trendscope import __version__
from trendscope.analysis import AnalysisResult, analyze
from trendscope.config import AnalysisSettings, default_config_path
from trendscope.errors import TrendscopeError
from trendscope.orders import format_mt4_command
from trendscope.profiles import PROFILES, ProfileKey
from trendscope.utils.io import read_ohlc_csv
from trendscope.utils.log import E_CONFIG_LOADED, E_ERROR, log_event, setup_logger
from trendscope.utils.validate import ensure_analysis_ready


class SafeHelpFormatter(argparse.ArgumentDefaultsHelpFormatter, argparse.RawTextHelpFormatter):
    """Help formatter that escapes bare '%' to avoid ValueError in argparse."""

    def _expand_help(self, action):
        params = dict(vars(action), prog=self._prog)
        help_text = self._get_help_string(action) or ""
        help_text = re.sub(r"%(?!\()", "%%", help_text)
        return help_text % params


def _fmt(value: float | None, digits: int = 2) -> str:
    return "n/a" if value is None else f"{value:.{digits}f}"


def _load_settings(args: argparse.Namespace) -> AnalysisSettings:
    path = default_config_path(getattr(args, "config", None))
    if path is not None:
        settings = AnalysisSettings.from_file(path)
        log_event(E_CONFIG_LOADED, path=str(path))
    else:
        settings = AnalysisSettings()

    updates: dict = {}
    if args.profile is not None:
        updates["profile"] = args.profile
    if args.symbol is not None:
        updates["symbol"] = args.symbol
    if args.apply_filters:
        updates["apply_profile_filters"] = True
    if args.decimals is not None:
        updates["price_decimals"] = args.decimals
    data = settings.model_dump()
    data.update(updates)
    if args.balance is not None:
        data["account"]["balance"] = float(args.balance)
    if args.risk is not None:
        data["risk"]["max_risk_per_trade"] = float(args.risk)
    return AnalysisSettings(**data)


def render_table(result: AnalysisResult, symbol: str, console: Console | None = None) -> None:
    console = console or Console()
    rec = result.recommendation
    snap = result.snapshot

    head = Table(title=f"{symbol} · {result.profile.name}", show_header=False)
    head.add_row("Price", _fmt(snap.price.current, 4))
    head.add_row("Change %", _fmt(snap.price.change_percent))
    head.add_row("Recommendation", rec.label.value)
    head.add_row("Score", _fmt(rec.score))
    head.add_row("Confidence", rec.confidence.value)
    if result.verdict is not None and result.verdict.changed:
        head.add_row("Profile view", f"{result.verdict.label.value} ({result.verdict.note})")
    console.print(head)

    sig = Table(title="Signals")
    sig.add_column("indicator")
    sig.add_column("signal", justify="right")
    sig.add_column("weight", justify="right")
    weights = result.profile.weights.as_dict()
    for name, value in result.signals.items():
        sig.add_row(name, _fmt(value), _fmt(weights.get(name)))
    console.print(sig)

    order = result.order
    tbl = Table(title="Order proposal", show_header=False)
    tbl.add_row("Direction", order.direction.value)
    tbl.add_row("Valid", "yes" if order.valid else f"no – {order.rejection_reason}")
    tbl.add_row("Entry", _fmt(order.entry_price, 4))
    tbl.add_row("Stop loss", f"{_fmt(order.stop_loss, 4)} ({order.stop_source or '-'})")
    tbl.add_row("Target", f"{_fmt(order.target_price, 4)} ({order.target_source or '-'})")
    tbl.add_row("Risk/reward", _fmt(order.risk_reward_ratio))
    tbl.add_row("Size", _fmt(order.position_size))
    if result.risk is not None:
        tbl.add_row("Leverage", f"{result.risk.recommended_leverage:g}x")
        tbl.add_row("Max drawdown", f"{result.risk.max_drawdown:.1%}")
    if order.expiry is not None:
        tbl.add_row("Expiry", order.expiry.isoformat(sep=" ", timespec="minutes"))
    if order.comment:
        tbl.add_row("Comment", order.comment)
    if order.valid:
        tbl.add_row("MT4", format_mt4_command(order, symbol))
    console.print(tbl)


# ------------------------------- CLI commands --------------------------------


def cmd_analyze(args: argparse.Namespace) -> int:
    csv_path = Path(args.csv)
    if not csv_path.exists():
        print(f"CSV file not found: {csv_path}", file=sys.stderr)
        return 1

    try:
        settings = _load_settings(args)
        if args.log_level is None:
            setup_logger(settings.log_level)
        df = read_ohlc_csv(csv_path, time_col=args.time_col, sep=args.sep)
        if args.repair:
            df = ensure_analysis_ready(df)
        result = analyze(df, settings=settings)
    except (TrendscopeError, ValidationError, FileNotFoundError) as exc:
        log_event(E_ERROR, error=str(exc), kind=type(exc).__name__)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        render_table(result, settings.symbol)
    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    if args.format == "json":
        payload = {k.value: p.model_dump(mode="json") for k, p in PROFILES.items()}
        print(json.dumps(payload, indent=2))
        return 0

    table = Table(title="Trading profiles")
    for col in ("key", "name", "rsi/sma/bb/adx", "lookback", "max risk", "min R/R", "target pick"):
        table.add_column(col)
    for key, p in PROFILES.items():
        per = p.periods
        table.add_row(
            key.value,
            p.name,
            f"{per.rsi}/{per.sma_short}-{per.sma_medium}/{per.bollinger}/{per.adx}",
            str(per.lookback),
            f"{p.risk.max_risk_per_trade:.1%}",
            f"{p.risk.minimum_risk_reward:.1f}",
            p.target_selection.value,
        )
    Console().print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="trendscope",
        description="trendscope – analiza techniczna i propozycje zleceń.",
        formatter_class=SafeHelpFormatter,
    )
    p.add_argument("--version", action="version", version=f"trendscope {__version__}")
    p.add_argument("--log-level", default=None, help="poziom logowania (structlog), domyślnie WARNING")
    sub = p.add_subparsers(dest="command")

    a = sub.add_parser("analyze", help="analizuj plik CSV z barami OHLCV", formatter_class=SafeHelpFormatter)
    a.add_argument("--csv", required=True, help="plik CSV z kolumnami date,open,high,low,close[,volume]")
    a.add_argument("--profile", choices=[k.value for k in ProfileKey], default=None, help="profil tradingowy")
    a.add_argument("--symbol", default=None, help="symbol instrumentu")
    a.add_argument("--balance", type=float, default=None, help="saldo konta")
    a.add_argument("--risk", type=float, default=None, help="max ryzyko na transakcję, np. 0.01 = 1%")
    a.add_argument("--config", default=None, help="plik YAML/JSON z ustawieniami")
    a.add_argument("--time-col", default=None, help="nazwa kolumny czasu")
    a.add_argument("--sep", default=None, help="separator CSV")
    a.add_argument("--decimals", type=int, default=None, help="precyzja ceny wejścia")
    a.add_argument("--repair", action="store_true", help="posortuj i oczyść dane przed analizą")
    a.add_argument("--apply-filters", action="store_true", help="zastosuj filtry profilu do etykiety")
    a.add_argument("--format", choices=["table", "json"], default="table")
    a.set_defaults(func=cmd_analyze)

    pr = sub.add_parser("profiles", help="pokaż profile tradingowe", formatter_class=SafeHelpFormatter)
    pr.add_argument("--format", choices=["table", "json"], default="table")
    pr.set_defaults(func=cmd_profiles)
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(args.log_level or "WARNING")
    if not hasattr(args, "func"):
        parser.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
