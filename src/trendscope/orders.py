"""Turn a recommendation into a pending-order proposal (entry, stop, target, size)."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any

import pandas as pd

from .decision import Confidence, Direction, Label, Recommendation, direction_for
from .profiles import Profile
from .risk.sizing import (
    AccountInfo,
    RiskSettings,
    ScaleLevel,
    estimate_unit_risk,
    position_size,
    scale_in_levels,
    scale_out_levels,
    validate_risk_limits,
)
from .risk.targets import (
    risk_reward_ratio,
    select_stop,
    select_target,
    stop_candidates,
    target_candidates,
)
from .snapshot import IndicatorSnapshot
from .utils.log import (
    E_ORDER_PROPOSED,
    E_ORDER_REJECTED,
    R_NO_DIRECTION,
    R_NO_STOP,
    R_NO_TARGET,
    R_RISK_LIMIT,
    R_RR_BELOW_MIN,
    R_ZERO_RISK,
    TelemetryContext,
    log_event,
)

__all__ = [
    "Direction",
    "OrderProposal",
    "build_order",
    "direction_for",
    "entry_price",
    "format_mt4_command",
    "order_comment",
    "order_expiry",
    "propose_order",
]

MT4_SLIPPAGE = 3
MT4_COMMENT = "TradingAI"
MT4_MAGIC = 12345


@dataclass(frozen=True)
class OrderProposal:
    direction: Direction
    entry_price: float | None = None
    stop_loss: float | None = None
    target_price: float | None = None
    risk_reward_ratio: float | None = None
    position_size: float = 0.0
    valid: bool = False
    rejection_reason: str | None = None
    reason_code: str | None = None
    stop_source: str | None = None
    target_source: str | None = None
    confidence: Confidence | None = None
    symbol: str | None = None
    expiry: datetime | None = None
    comment: str | None = None
    scale_in: tuple[ScaleLevel, ...] = field(default_factory=tuple)
    scale_out: tuple[ScaleLevel, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["direction"] = self.direction.value
        d["confidence"] = self.confidence.value if self.confidence else None
        d["expiry"] = self.expiry.isoformat() if self.expiry else None
        return d


def entry_price(current: float, direction: Direction, profile: Profile, decimals: int = 2) -> float:
    """Limit entry pulled back from ``current`` by the profile's offset."""

    offset = current * profile.risk.entry_offset
    return round(current - direction.sign * offset, decimals)


_EXPIRY_RE = re.compile(r"^(\d+)\s*([hDM])$")


def order_expiry(as_of: datetime, window: str) -> datetime:
    """``as_of`` shifted by an ``"<n>h"``, ``"<n>D"`` or ``"<n>M"`` window."""

    m = _EXPIRY_RE.match(window.strip())
    if not m:
        raise ValueError(f"Unsupported expiry: {window!r}")
    n, unit = int(m.group(1)), m.group(2)
    ts = pd.Timestamp(as_of)
    if unit == "h":
        ts = ts + pd.Timedelta(hours=n)
    elif unit == "D":
        ts = ts + pd.Timedelta(days=n)
    else:
        ts = ts + pd.DateOffset(months=n)
    return ts.to_pydatetime()


def order_comment(symbol: str, profile: Profile, as_of: datetime, strong: bool) -> str:
    """``SYMBOL_CODE_YYMMDD_H`` for strong calls, ``..._M`` otherwise."""

    return f"{symbol}_{profile.code}_{as_of:%y%m%d}_{'H' if strong else 'M'}"


def _reject(
    direction: Direction,
    code: str,
    reason: str,
    ctx: TelemetryContext | None,
    **values: Any,
) -> OrderProposal:
    log_event(E_ORDER_REJECTED, ctx, reason=code, detail=reason, direction=direction.value)
    return OrderProposal(direction=direction, valid=False, rejection_reason=reason, reason_code=code, **values)


def build_order(
    direction: Direction,
    entry: float | None,
    stop: float | None,
    target: float | None,
    profile: Profile,
    *,
    account: AccountInfo | None = None,
    settings: RiskSettings | None = None,
    volatility: float | None = None,
    confidence: Confidence | None = None,
    strong: bool = False,
    symbol: str | None = None,
    as_of: datetime | None = None,
    ctx: TelemetryContext | None = None,
    stop_source: str | None = None,
    target_source: str | None = None,
) -> OrderProposal:
    """Validate explicit prices against the profile and size the position.

    Never raises for expected conditions: a proposal that cannot be traded
    comes back with ``valid=False`` and a human-readable reason.
    """

    if direction is Direction.NONE:
        return _reject(direction, R_NO_DIRECTION, "recommendation has no clear direction", ctx)
    if entry is None or entry <= 0:
        return _reject(direction, R_ZERO_RISK, "no usable entry price", ctx)
    values: dict[str, Any] = {
        "entry_price": entry,
        "stop_loss": stop,
        "target_price": target,
        "stop_source": stop_source,
        "target_source": target_source,
        "confidence": confidence,
        "symbol": symbol,
    }
    if stop is None:
        return _reject(direction, R_NO_STOP, "no valid stop-loss candidate", ctx, **values)
    if target is None:
        return _reject(direction, R_NO_TARGET, "no valid target candidate", ctx, **values)

    side = direction.sign
    if (stop - entry) * side >= 0:
        return _reject(direction, R_NO_STOP, "stop-loss is not on the loss side of entry", ctx, **values)
    if (target - entry) * side <= 0:
        return _reject(direction, R_NO_TARGET, "target is not on the profit side of entry", ctx, **values)

    rr = risk_reward_ratio(entry, target, stop)
    if rr is None:
        return _reject(direction, R_ZERO_RISK, "stop-loss equals entry", ctx, **values)
    values["risk_reward_ratio"] = rr
    minimum = profile.risk.minimum_risk_reward
    if rr < minimum:
        return _reject(
            direction,
            R_RR_BELOW_MIN,
            f"risk/reward ratio {rr:.2f} is below the profile minimum {minimum:.2f}",
            ctx,
            **values,
        )

    size = 0.0
    if account is not None:
        settings = settings or RiskSettings.for_profile(profile, account.balance)
        risk_fraction = abs(entry - stop) / entry
        unit = estimate_unit_risk(account.balance, entry, stop, settings.unit_risk_model)
        size = position_size(account.balance, risk_fraction, settings, volatility, unit)
        check = validate_risk_limits(
            account, min(risk_fraction, settings.max_risk_per_trade), settings
        )
        if not check.valid:
            return _reject(direction, R_RISK_LIMIT, check.reason or "risk limit exceeded", ctx, **values)
        if size <= 0:
            return _reject(direction, R_ZERO_RISK, "position size rounds to zero", ctx, **values)
        scale_in = tuple(scale_in_levels(entry, side > 0, settings.scale_in_levels))
        scale_out = tuple(scale_out_levels(entry, target, settings.scale_out_levels))
    else:
        scale_in = scale_out = ()

    expiry = comment = None
    if as_of is not None:
        expiry = order_expiry(as_of, profile.expiry)
        comment = order_comment(symbol or "SYMBOL", profile, as_of, strong)

    proposal = OrderProposal(
        direction=direction,
        position_size=size,
        valid=True,
        expiry=expiry,
        comment=comment,
        scale_in=scale_in,
        scale_out=scale_out,
        **values,
    )
    log_event(
        E_ORDER_PROPOSED,
        ctx,
        direction=direction.value,
        entry=entry,
        stop=stop,
        target=target,
        rr=round(rr, 4),
        size=size,
    )
    return proposal


def propose_order(
    snap: IndicatorSnapshot,
    rec: Recommendation,
    profile: Profile,
    account: AccountInfo | None = None,
    *,
    label: Label | None = None,
    settings: RiskSettings | None = None,
    symbol: str | None = None,
    as_of: datetime | None = None,
    decimals: int = 2,
    ctx: TelemetryContext | None = None,
) -> OrderProposal:
    """Pick entry, stop and target for the recommendation and build the order.

    ``label`` overrides the recommendation label (e.g. after profile filters).
    Stop and target candidates are measured from the current price; the entry
    only feeds the risk/reward ratio and the side checks in :func:`build_order`.
    """

    label = label or rec.label
    direction = direction_for(label)
    if direction is Direction.NONE:
        return build_order(direction, None, None, None, profile, ctx=ctx)

    current = snap.price.current
    entry = entry_price(current, direction, profile, decimals)
    stop = select_stop(stop_candidates(snap, direction, profile, current), current)
    target = select_target(
        target_candidates(snap, direction, profile, current), current, profile.target_selection
    )
    return build_order(
        direction,
        entry,
        stop.value if stop else None,
        target.value if target else None,
        profile,
        account=account,
        settings=settings,
        volatility=snap.volatility.value,
        confidence=rec.confidence,
        strong=label in (Label.STRONG_BUY, Label.STRONG_SELL),
        symbol=symbol,
        as_of=as_of,
        ctx=ctx,
        stop_source=stop.source if stop else None,
        target_source=target.source if target else None,
    )


def format_mt4_command(proposal: OrderProposal, symbol: str | None = None, decimals: int = 2) -> str:
    """MT4 ``OrderSend`` line for a valid pending limit order."""

    if not proposal.valid:
        raise ValueError(f"cannot format a rejected order: {proposal.rejection_reason}")
    sym = symbol or proposal.symbol or "SYMBOL"
    op = "OP_BUYLIMIT" if proposal.direction is Direction.LONG else "OP_SELLLIMIT"
    f = f"{{:.{decimals}f}}"
    return (
        f'OrderSend("{sym}", {op}, {proposal.position_size:.2f}, {f.format(proposal.entry_price)}, '
        f"{MT4_SLIPPAGE}, {f.format(proposal.stop_loss)}, {f.format(proposal.target_price)}, "
        f'"{MT4_COMMENT}", {MT4_MAGIC}, 0, Green);'
    )
