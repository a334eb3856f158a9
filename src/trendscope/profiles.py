"""Trading profiles: fixed, named bundles of weights, periods and risk parameters."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigError


class ProfileKey(str, Enum):
    SCALPING = "scalping"
    SWING = "swing"
    POSITION = "position"
    LONGTERM = "longterm"


class TargetSelection(str, Enum):
    """How a profile picks one target out of the weighted candidates."""

    NEAREST_WITHIN_BAND = "nearest_within_band"
    WEIGHT_OVER_DISTANCE = "weight_over_distance"
    FARTHEST_CREDIBLE = "farthest_credible"
    HIGHEST_WEIGHT = "highest_weight"


class SignalWeights(BaseModel):
    model_config = ConfigDict(frozen=True)

    rsi: float = Field(1.0, ge=0)
    macd: float = Field(1.0, ge=0)
    ema: float = Field(1.0, ge=0)
    adx: float = Field(1.0, ge=0)
    bollinger: float = Field(1.0, ge=0)
    volume: float = Field(1.0, ge=0)
    pattern: float = Field(1.0, ge=0)

    def as_dict(self) -> dict[str, float]:
        return self.model_dump()


class ProfilePeriods(BaseModel):
    model_config = ConfigDict(frozen=True)

    rsi: int = Field(14, gt=1)
    sma_short: int = Field(20, gt=0)
    sma_medium: int = Field(50, gt=0)
    sma_long: int = Field(200, gt=0)
    bollinger: int = Field(20, gt=1)
    adx: int = Field(14, gt=1)
    lookback: int = Field(60, gt=2)


class RiskParameters(BaseModel):
    """Per-profile risk envelope (fractions unless the name says percentage)."""

    model_config = ConfigDict(frozen=True)

    max_risk_per_trade: float = Field(0.015, gt=0, le=1)
    max_daily_risk: float = Field(0.04, gt=0, le=1)
    max_drawdown: float = Field(0.08, gt=0, le=1)
    target_percentage: float = Field(3.0, gt=0)
    stop_percentage: float = Field(2.0, gt=0)
    minimum_risk_reward: float = Field(1.5, ge=0)
    atr_multiplier: float = Field(2.0, gt=0)
    entry_offset: float = Field(0.005, ge=0)
    scale_in_levels: int = Field(3, ge=1)
    scale_out_levels: int = Field(3, ge=1)
    recommended_leverage: float = Field(5.0, ge=1)


class Profile(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: ProfileKey
    name: str
    code: str
    weights: SignalWeights = Field(default_factory=SignalWeights)
    periods: ProfilePeriods = Field(default_factory=ProfilePeriods)
    risk: RiskParameters = Field(default_factory=RiskParameters)
    target_selection: TargetSelection = TargetSelection.HIGHEST_WEIGHT
    # Order validity window: "<n>h", "<n>D" or "<n>M" (calendar months).
    expiry: str = "2D"
    default_timeframe: str = "1hour"

    def with_overrides(self, **changes) -> "Profile":
        """Return a copy with nested sections merged from ``changes``."""

        data = self.model_dump()
        for section, value in changes.items():
            if isinstance(value, dict) and isinstance(data.get(section), dict):
                data[section] = {**data[section], **value}
            else:
                data[section] = value
        return Profile(**data)


PROFILES: dict[ProfileKey, Profile] = {
    ProfileKey.SCALPING: Profile(
        key=ProfileKey.SCALPING,
        name="Scalping",
        code="SCA",
        weights=SignalWeights(
            rsi=2.5, macd=1.5, ema=2.0, adx=1.5, bollinger=2.0, volume=2.5, pattern=1.0
        ),
        periods=ProfilePeriods(
            rsi=7, sma_short=10, sma_medium=20, bollinger=10, adx=7, lookback=30
        ),
        risk=RiskParameters(
            max_risk_per_trade=0.01,
            max_daily_risk=0.03,
            max_drawdown=0.05,
            target_percentage=1.0,
            stop_percentage=0.5,
            minimum_risk_reward=1.2,
            atr_multiplier=1.5,
            entry_offset=0.0015,
            scale_in_levels=2,
            scale_out_levels=3,
            recommended_leverage=10,
        ),
        target_selection=TargetSelection.NEAREST_WITHIN_BAND,
        expiry="4h",
        default_timeframe="15min",
    ),
    ProfileKey.SWING: Profile(
        key=ProfileKey.SWING,
        name="Swing Trading",
        code="SWI",
        weights=SignalWeights(
            rsi=2.0, macd=2.5, ema=2.0, adx=2.0, bollinger=1.5, volume=1.0, pattern=2.0
        ),
        periods=ProfilePeriods(
            rsi=14, sma_short=20, sma_medium=50, bollinger=20, adx=14, lookback=60
        ),
        risk=RiskParameters(
            max_risk_per_trade=0.015,
            max_daily_risk=0.04,
            max_drawdown=0.08,
            target_percentage=3.0,
            stop_percentage=2.0,
            minimum_risk_reward=1.5,
            atr_multiplier=2.0,
            entry_offset=0.005,
            scale_in_levels=3,
            scale_out_levels=3,
            recommended_leverage=5,
        ),
        target_selection=TargetSelection.WEIGHT_OVER_DISTANCE,
        expiry="2D",
        default_timeframe="1hour",
    ),
    ProfileKey.POSITION: Profile(
        key=ProfileKey.POSITION,
        name="Position Trading",
        code="POS",
        weights=SignalWeights(
            rsi=1.5, macd=2.0, ema=2.5, adx=2.5, bollinger=1.0, volume=0.5, pattern=1.5
        ),
        periods=ProfilePeriods(
            rsi=21, sma_short=30, sma_medium=100, bollinger=20, adx=14, lookback=90
        ),
        risk=RiskParameters(
            max_risk_per_trade=0.02,
            max_daily_risk=0.05,
            max_drawdown=0.12,
            target_percentage=8.0,
            stop_percentage=5.0,
            minimum_risk_reward=2.0,
            atr_multiplier=2.5,
            entry_offset=0.01,
            scale_in_levels=4,
            scale_out_levels=2,
            recommended_leverage=3,
        ),
        target_selection=TargetSelection.FARTHEST_CREDIBLE,
        expiry="7D",
        default_timeframe="daily",
    ),
    ProfileKey.LONGTERM: Profile(
        key=ProfileKey.LONGTERM,
        name="Long-term Investing",
        code="LNG",
        weights=SignalWeights(
            rsi=1.0, macd=1.5, ema=3.0, adx=1.5, bollinger=0.5, volume=0.5, pattern=1.0
        ),
        periods=ProfilePeriods(
            rsi=21, sma_short=30, sma_medium=100, bollinger=20, adx=14, lookback=120
        ),
        risk=RiskParameters(
            max_risk_per_trade=0.025,
            max_daily_risk=0.05,
            max_drawdown=0.15,
            target_percentage=15.0,
            stop_percentage=10.0,
            minimum_risk_reward=2.5,
            atr_multiplier=3.0,
            entry_offset=0.01,
            scale_in_levels=5,
            scale_out_levels=2,
            recommended_leverage=1,
        ),
        target_selection=TargetSelection.FARTHEST_CREDIBLE,
        expiry="1M",
        default_timeframe="weekly",
    ),
}


def get_profile(key: ProfileKey | str | Profile) -> Profile:
    """Return the canonical profile for ``key``.

    Only exact enum values are accepted; unknown names raise :class:`ConfigError`.
    """

    if isinstance(key, Profile):
        return key
    try:
        return PROFILES[ProfileKey(key)]
    except ValueError as exc:
        allowed = ", ".join(k.value for k in ProfileKey)
        raise ConfigError(f"Unknown profile {key!r} (allowed: {allowed})") from exc
