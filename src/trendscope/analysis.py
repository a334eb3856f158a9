"""End-to-end analysis: bars -> snapshot -> signals -> recommendation -> order."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable, Mapping

import pandas as pd

from .bars import PriceBar, bars_to_frame
from .config import AnalysisSettings
from .core.indicators import compute_indicator_frame
from .decision import ProfileVerdict, Recommendation, adapt_to_profile, recommend
from .orders import OrderProposal, propose_order
from .profiles import Profile, ProfileKey, get_profile
from .risk.sizing import AccountInfo, RiskSettings
from .signals.scorer import Signal, score_signals
from .snapshot import IndicatorSnapshot, build_snapshot
from .utils.log import (
    E_ANALYSIS_DONE,
    E_ANALYSIS_START,
    E_INDICATOR_UNAVAILABLE,
    R_INSUFFICIENT_DATA,
    TelemetryContext,
    log_event,
    new_id,
)


@dataclass(frozen=True)
class AnalysisResult:
    profile: Profile
    snapshot: IndicatorSnapshot
    signals: dict[str, Signal]
    recommendation: Recommendation
    order: OrderProposal
    verdict: ProfileVerdict | None = None
    risk: RiskSettings | None = None
    indicators: pd.DataFrame | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "profile": self.profile.key.value,
            "snapshot": self.snapshot.to_dict(),
            "signals": dict(self.signals),
            "recommendation": self.recommendation.to_dict(),
            "verdict": (
                {"label": self.verdict.label.value, "note": self.verdict.note}
                if self.verdict
                else None
            ),
            "order": self.order.to_dict(),
            "risk": asdict(self.risk) if self.risk else None,
        }


def analyze(
    data: pd.DataFrame | Iterable[PriceBar | Mapping[str, Any]],
    profile: Profile | ProfileKey | str | None = None,
    account: AccountInfo | None = None,
    *,
    settings: AnalysisSettings | None = None,
    symbol: str | None = None,
    ctx: TelemetryContext | None = None,
) -> AnalysisResult:
    """Run the whole engine on one bar series.

    Only malformed input raises (:class:`~trendscope.errors.DataValidationError`);
    short history shows up as unavailable indicators and a HOLD or rejected
    order instead.
    """

    settings = settings or AnalysisSettings()
    prof = get_profile(profile if profile is not None else settings.profile)
    symbol = symbol or settings.symbol
    account = account or settings.account_info()
    if ctx is None:
        ctx = TelemetryContext(
            run_id=new_id("run"),
            symbol=symbol,
            profile=prof.key.value,
            timeframe=settings.timeframe or prof.default_timeframe,
        )

    df = bars_to_frame(data, ctx)
    log_event(E_ANALYSIS_START, ctx, bars=len(df))

    frame = compute_indicator_frame(df, prof)
    snap = build_snapshot(df, prof, frame=frame, pattern_config=settings.patterns)
    missing = snap.unavailable()
    if missing:
        log_event(E_INDICATOR_UNAVAILABLE, ctx, reason=R_INSUFFICIENT_DATA, fields=missing, bars=len(df))

    signals = score_signals(snap)
    rec = recommend(signals, prof.weights, ctx)

    verdict = adapt_to_profile(rec, snap, prof, ctx)
    label = verdict.label if settings.apply_profile_filters else rec.label

    risk = settings.risk_settings(prof, account.balance)
    as_of = df.index[-1].to_pydatetime()
    order = propose_order(
        snap,
        rec,
        prof,
        account,
        label=label,
        settings=risk,
        symbol=symbol,
        as_of=as_of,
        decimals=settings.price_decimals,
        ctx=ctx,
    )
    log_event(
        E_ANALYSIS_DONE,
        ctx,
        label=label.value,
        score=round(rec.score, 2),
        confidence=rec.confidence.value,
        order_valid=order.valid,
    )
    return AnalysisResult(
        profile=prof,
        snapshot=snap,
        signals=signals,
        recommendation=rec,
        order=order,
        verdict=verdict,
        risk=risk,
        indicators=frame,
    )
