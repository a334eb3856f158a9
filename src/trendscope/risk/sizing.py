from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal

from ..profiles import Profile

UnitRiskModel = Literal["pip", "stop_distance"]

PIP_FRACTION = 0.0001
SCALE_IN_STEP = 0.005
SCALE_IN_FIRST = 0.4


@dataclass(frozen=True, slots=True)
class OpenPosition:
    symbol: str
    risk: float  # ułamek salda


@dataclass(frozen=True)
class AccountInfo:
    balance: float
    currency: str = "USD"
    leverage: float = 1.0
    open_positions: tuple[OpenPosition, ...] = field(default_factory=tuple)

    @property
    def open_risk(self) -> float:
        return sum(max(0.0, p.risk) for p in self.open_positions)


@dataclass(frozen=True)
class RiskSettings:
    """Money-management limits for one sizing call.

    Built per call (usually via :meth:`for_profile`) and never mutated; use
    :meth:`with_overrides` for user adjustments.
    """

    max_risk_per_trade: float = 0.015
    max_daily_risk: float = 0.04
    max_drawdown: float = 0.08
    scale_in_levels: int = 3
    scale_out_levels: int = 3
    recommended_leverage: float = 5.0
    max_position_fraction: float = 0.05
    unit_risk_model: UnitRiskModel = "pip"

    @classmethod
    def for_profile(cls, profile: Profile, balance: float | None = None) -> "RiskSettings":
        """Profile defaults, with per-trade risk adjusted to the account size.

        Small accounts (< 1000) take 70% of the profile risk but at least 0.5%;
        large accounts (> 50000) take 80% of it but at most 1%.
        """

        r = profile.risk
        max_risk = r.max_risk_per_trade
        if balance is not None:
            if balance < 1000:
                max_risk = max(0.005, max_risk * 0.7)
            elif balance > 50000:
                max_risk = min(0.01, max_risk * 0.8)
        return cls(
            max_risk_per_trade=max_risk,
            max_daily_risk=r.max_daily_risk,
            max_drawdown=r.max_drawdown,
            scale_in_levels=r.scale_in_levels,
            scale_out_levels=r.scale_out_levels,
            recommended_leverage=r.recommended_leverage,
        )

    def with_overrides(self, **changes) -> "RiskSettings":
        changes = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **changes)


def volatility_factor(volatility: float | None) -> float:
    """Shrink size in volatile markets, grow it in quiet ones."""

    if volatility is None:
        return 1.0
    if volatility > 25:
        return 0.8
    if volatility < 10:
        return 1.2
    return 1.0


def estimate_unit_risk(
    balance: float,
    entry: float | None = None,
    stop: float | None = None,
    model: UnitRiskModel = "pip",
) -> float:
    """Money at risk per unit of size.

    ``pip`` uses a flat ``balance * 0.0001`` per unit; ``stop_distance`` uses
    the price distance between entry and stop.
    """

    if model == "stop_distance":
        if entry is None or stop is None:
            return 0.0
        return abs(entry - stop)
    return balance * PIP_FRACTION


def position_size(
    balance: float,
    risk_percent: float | None,
    settings: RiskSettings,
    volatility: float | None = None,
    unit_risk: float | None = None,
) -> float:
    """Size = balance * min(risk, max risk) / unit risk * volatility factor.

    Rounded to 2 decimals and capped at ``max_position_fraction`` of the
    balance over the same unit risk. Degenerate input gives 0.
    """

    if balance <= 0:
        return 0.0
    if unit_risk is None:
        unit_risk = estimate_unit_risk(balance, model="pip")
    if unit_risk <= 0:
        return 0.0
    if risk_percent is None or risk_percent <= 0:
        risk_percent = settings.max_risk_per_trade

    effective = min(risk_percent, settings.max_risk_per_trade)
    size = balance * effective / unit_risk * volatility_factor(volatility)
    size = round(size, 2)
    ceiling = balance * settings.max_position_fraction / unit_risk
    return max(0.0, min(size, ceiling))


@dataclass(frozen=True, slots=True)
class ScaleLevel:
    price: float
    fraction: float
    label: str


def scale_in_levels(entry: float, long: bool, levels: int) -> list[ScaleLevel]:
    """Main entry takes 40%, the rest is split evenly every 0.5% against the trade."""

    levels = max(1, int(levels))
    if levels == 1:
        return [ScaleLevel(entry, 1.0, "main")]
    step = -SCALE_IN_STEP if long else SCALE_IN_STEP
    rest = (1.0 - SCALE_IN_FIRST) / (levels - 1)
    out = [ScaleLevel(entry, SCALE_IN_FIRST, "main")]
    for i in range(1, levels):
        out.append(ScaleLevel(entry * (1 + step * i), rest, f"scale_in_{i}"))
    return out


def scale_out_levels(entry: float, target: float, levels: int) -> list[ScaleLevel]:
    """Evenly spaced exits up to ``target``; the final exit takes the remainder."""

    levels = max(1, int(levels))
    if entry == 0:
        return []
    step = (target - entry) / entry / levels
    base = 0.9 / levels
    fractions = [base] * (levels - 1)
    fractions.append(1.0 - sum(fractions))
    out = []
    for i, frac in enumerate(fractions):
        label = "final_target" if i == levels - 1 else f"partial_{i + 1}"
        out.append(ScaleLevel(entry * (1 + step * (i + 1)), frac, label))
    return out


@dataclass(frozen=True, slots=True)
class RiskCheck:
    valid: bool
    total_risk: float
    remaining_risk: float
    reason: str | None = None


def validate_risk_limits(
    account: AccountInfo, new_risk: float, settings: RiskSettings
) -> RiskCheck:
    """Check ``new_risk`` against the per-trade and daily (open + new) limits."""

    total = account.open_risk + new_risk
    remaining = settings.max_daily_risk - total
    if new_risk > settings.max_risk_per_trade:
        return RiskCheck(
            False,
            total,
            remaining,
            f"position risk {new_risk:.2%} exceeds per-trade maximum "
            f"{settings.max_risk_per_trade:.2%}",
        )
    if total > settings.max_daily_risk:
        return RiskCheck(
            False,
            total,
            remaining,
            f"total risk {total:.2%} exceeds daily maximum {settings.max_daily_risk:.2%}",
        )
    return RiskCheck(True, total, remaining)
