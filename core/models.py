"""Read-only records produced by the external analysis pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping


class SignalCategory(str, Enum):
    """Indicator family a signal was derived from."""

    FIBONACCI = "FIBONACCI"
    MA_RIBBON = "MA_RIBBON"
    MA_POSITION = "MA_POSITION"
    RSI = "RSI"
    STOCHASTIC = "STOCHASTIC"
    MACD = "MACD"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")

    @property
    def color(self) -> str:
        return _CATEGORY_COLORS[self]


class SignalStrength(str, Enum):
    """Direction/strength classification attached to a signal."""

    WEAK = "WEAK"
    MODERATE = "MODERATE"
    STRONG = "STRONG"
    NEUTRAL = "NEUTRAL"
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"

    @property
    def color(self) -> str:
        return _STRENGTH_COLORS[self]

    @property
    def score(self) -> float:
        """Numeric weight used by the radar chart strength axis."""
        return _STRENGTH_SCORES[self]


class Recommendation(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    NEUTRAL = "NEUTRAL"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class VolatilityRegimeKind(str, Enum):
    LOW_VOLATILITY = "LOW_VOLATILITY"
    NORMAL = "NORMAL"
    HIGH_VOLATILITY = "HIGH_VOLATILITY"


class AlertSeverity(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


_CATEGORY_COLORS: dict[SignalCategory, str] = {
    SignalCategory.FIBONACCI: "#8b5cf6",
    SignalCategory.MACD: "#06b6d4",
    SignalCategory.RSI: "#f59e0b",
    SignalCategory.STOCHASTIC: "#ec4899",
    SignalCategory.MA_RIBBON: "#3b82f6",
    SignalCategory.MA_POSITION: "#10b981",
}

_STRENGTH_COLORS: dict[SignalStrength, str] = {
    SignalStrength.BULLISH: "#22c55e",
    SignalStrength.STRONG: "#16a34a",
    SignalStrength.BEARISH: "#ef4444",
    SignalStrength.WEAK: "#9ca3af",
    SignalStrength.MODERATE: "#f59e0b",
    SignalStrength.NEUTRAL: "#71717a",
}

_STRENGTH_SCORES: dict[SignalStrength, float] = {
    SignalStrength.STRONG: 1.0,
    SignalStrength.BULLISH: 0.8,
    SignalStrength.MODERATE: 0.6,
    SignalStrength.NEUTRAL: 0.5,
    SignalStrength.WEAK: 0.3,
    SignalStrength.BEARISH: 0.2,
}


@dataclass(frozen=True)
class Signal:
    """One classified observation about an indicator."""

    id: str
    analysis_id: str
    name: str
    category: SignalCategory
    strength: SignalStrength
    confidence: float
    description: str
    value: float
    symbol: str | None = None
    trading_implication: str | None = None
    indicator_name: str | None = None


@dataclass(frozen=True)
class SignalSummary:
    total: int
    bullish: int
    bearish: int
    neutral: int


@dataclass(frozen=True)
class Analysis:
    """One pipeline run for one symbol."""

    id: str
    symbol: str
    interval: str
    timestamp: datetime
    bars_analyzed: int
    indicators: Mapping[str, float]
    signal_summary: SignalSummary
    ai_enabled: bool

    def __post_init__(self) -> None:
        object.__setattr__(self, "indicators", MappingProxyType(dict(self.indicators)))


@dataclass(frozen=True)
class TradingRecommendation:
    recommendation: Recommendation
    confidence: float
    reasoning: str
    entry: float | None = None
    stop_loss: float | None = None
    target: float | None = None
    risk_reward_ratio: float | None = None
    position_size_adjustment: str = ""


@dataclass(frozen=True)
class RiskAssessment:
    overall_risk_level: RiskLevel
    identified_risks: list[str] = field(default_factory=list)
    recommended_stop_loss_pct: float | None = None
    position_size_adjustment: str = ""


@dataclass(frozen=True)
class VolatilityRegime:
    regime: VolatilityRegimeKind
    hv_30d: str = ""
    atr_pct: str = ""
    recommended_action: str = ""

    @property
    def label(self) -> str:
        return self.regime.value.replace("_", " ")


@dataclass(frozen=True)
class Opportunity:
    type: str
    description: str
    entry_trigger: str = ""
    confidence: float = 0.0
    action: str = ""


@dataclass(frozen=True)
class Alert:
    type: str
    message: str
    severity: AlertSeverity = AlertSeverity.INFO


@dataclass(frozen=True)
class AIOutput:
    """Optional AI commentary stored alongside an analysis."""

    id: str
    trading_recommendation: TradingRecommendation
    risk_assessment: RiskAssessment
    volatility_regime: VolatilityRegime
    signal_summary: str = ""
    opportunities: list[Opportunity] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)


@dataclass(frozen=True)
class FullAnalysis:
    analysis: Analysis
    signals: list[Signal]
    ai_output: AIOutput | None
