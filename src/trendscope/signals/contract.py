"""Data contract for detected chart patterns."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Literal

PatternName = Literal["trend", "double_top", "double_bottom"]
Bias = Literal["bullish", "bearish", "neutral"]
Strength = Literal["strong", "moderate", "weak"]


@dataclass(frozen=True, slots=True)
class ChartPattern:
    """One detected pattern with its directional implication."""

    name: PatternName
    bias: Bias
    strength: Strength | None = None
    r_squared: float | None = None
    price: float | None = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


__all__ = ["Bias", "ChartPattern", "PatternName", "Strength"]
