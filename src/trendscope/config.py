from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from .errors import ConfigError
from .profiles import Profile, ProfileKey, get_profile
from .risk.sizing import AccountInfo, OpenPosition, RiskSettings

# Domyślny plik konfiguracyjny CLI można wskazać zmienną środowiskową.
CONFIG_ENV_VAR = "TRENDSCOPE_CONFIG"


def default_config_path(override: str | Path | None = None) -> Path | None:
    """Return the settings file to load, if any.

    Priority order: ``override`` argument > ``TRENDSCOPE_CONFIG`` environment
    variable > no file.
    """

    if override is not None:
        return Path(override)
    env = os.environ.get(CONFIG_ENV_VAR)
    if env:
        return Path(env)
    return None


class OpenPositionSettings(BaseModel):
    symbol: str
    risk: float = Field(0.0, ge=0, le=1)


class AccountSettings(BaseModel):
    balance: float = 10_000.0
    currency: str = "USD"
    leverage: float = Field(1.0, ge=1)
    open_positions: list[OpenPositionSettings] = Field(default_factory=list)

    @field_validator("balance")
    @classmethod
    def _positive_balance(cls, v: float) -> float:
        if v <= 0:
            raise ConfigError("account.balance must be > 0")
        return v

    def to_account(self) -> AccountInfo:
        return AccountInfo(
            balance=self.balance,
            currency=self.currency,
            leverage=self.leverage,
            open_positions=tuple(OpenPosition(p.symbol, p.risk) for p in self.open_positions),
        )


class RiskOverrides(BaseModel):
    """User adjustments on top of the profile's money-management defaults."""

    max_risk_per_trade: float | None = Field(None, gt=0, le=1)
    max_daily_risk: float | None = Field(None, gt=0, le=1)
    max_drawdown: float | None = Field(None, gt=0, le=1)
    scale_in_levels: int | None = Field(None, ge=1)
    scale_out_levels: int | None = Field(None, ge=1)
    max_position_fraction: float | None = Field(None, gt=0, le=1)
    unit_risk_model: Literal["pip", "stop_distance"] | None = None


class PatternSettings(BaseModel):
    trend: bool = True
    double_top: bool = True
    double_bottom: bool = True


class AnalysisSettings(BaseModel):
    symbol: str = "SYMBOL"
    profile: ProfileKey = ProfileKey.SWING
    timeframe: str | None = None
    account: AccountSettings = Field(default_factory=AccountSettings)
    risk: RiskOverrides = Field(default_factory=RiskOverrides)
    patterns: PatternSettings = Field(default_factory=PatternSettings)
    price_decimals: int = Field(2, ge=0, le=8)
    apply_profile_filters: bool = False
    log_level: str = "WARNING"

    @field_validator("profile", mode="before")
    @classmethod
    def _known_profile(cls, v: ProfileKey | str) -> ProfileKey:
        return get_profile(v).key

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    def resolved_profile(self) -> Profile:
        return get_profile(self.profile)

    def account_info(self) -> AccountInfo:
        return self.account.to_account()

    def risk_settings(
        self, profile: Profile | None = None, balance: float | None = None
    ) -> RiskSettings:
        profile = profile or self.resolved_profile()
        base = RiskSettings.for_profile(profile, balance or self.account.balance)
        return base.with_overrides(**self.risk.model_dump())

    @classmethod
    def from_file(cls, path: str | Path) -> "AnalysisSettings":
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(p)
        text = p.read_text(encoding="utf-8")
        try:
            if p.suffix.lower() in {".yml", ".yaml"}:
                data = yaml.safe_load(text)
            elif p.suffix.lower() == ".json":
                data = json.loads(text)
            else:
                raise ConfigError("Supported: .yaml/.yml/.json")
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Cannot parse {p}: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{p}: top level must be a mapping")
        return cls(**data)
