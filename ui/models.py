"""UI view models for the dashboard and analysis detail pages."""

from __future__ import annotations

from dataclasses import dataclass, field

from core.chart_selector import ChartPanel, plan_signal_panels
from core.fibonacci import FibonacciRetracement, fibonacci_retracement
from core.indicators import (
    MacdCrossover,
    MovingAveragePositioning,
    OscillatorReading,
    has_macd,
    has_moving_averages,
    indicator_value,
    macd_crossover,
    moving_average_positioning,
    rsi_reading,
    stochastic_reading,
)
from core.models import AIOutput, Analysis, FullAnalysis, Signal, SignalCategory
from core.sentiment import SentimentAggregate, aggregate_sentiment, group_by_category


@dataclass
class IndicatorCard:
    label: str
    value: float | None
    decimals: int = 2
    highlight: bool = False
    trend: str | None = None
    volume: bool = False


@dataclass
class AnalysisViewModel:
    """Detail page payload for one symbol."""

    analysis: Analysis
    signals: list[Signal]
    ai_output: AIOutput | None
    indicator_cards: list[IndicatorCard]
    sentiment: SentimentAggregate
    panels: list[ChartPanel]
    positioning: MovingAveragePositioning | None
    crossover: MacdCrossover | None
    rsi: OscillatorReading
    stochastic: OscillatorReading
    fibonacci: FibonacciRetracement | None
    signals_by_category: dict[SignalCategory, list[Signal]] = field(default_factory=dict)

    @property
    def symbol(self) -> str:
        return self.analysis.symbol

    @property
    def fibonacci_signals(self) -> list[Signal]:
        return [signal for signal in self.signals if signal.category is SignalCategory.FIBONACCI or "FIB" in signal.name]

    @property
    def macd_signals(self) -> list[Signal]:
        return [signal for signal in self.signals if signal.category is SignalCategory.MACD or "MACD" in signal.name]

    @property
    def show_macd(self) -> bool:
        return has_macd(self.analysis.indicators)

    @property
    def show_moving_averages(self) -> bool:
        return has_moving_averages(self.analysis.indicators)

    @property
    def show_fibonacci(self) -> bool:
        return self.fibonacci is not None and any(
            signal.category is SignalCategory.FIBONACCI for signal in self.signals
        )


def macd_magnitude_range(macd: float | None, signal: float | None) -> float | None:
    """Comparison range for histogram strength: the larger line magnitude."""
    if macd is None or signal is None:
        return None
    return max(abs(macd), abs(signal)) or None


def _indicator_cards(analysis: Analysis, crossover: MacdCrossover | None) -> list[IndicatorCard]:
    indicators = analysis.indicators
    cards = [
        IndicatorCard("Price", indicator_value(indicators, "Current_Price"), highlight=True),
        IndicatorCard("Volume", indicator_value(indicators, "Volume"), volume=True),
        IndicatorCard(
            "MACD",
            indicator_value(indicators, "MACD"),
            decimals=4,
            trend=None if crossover is None else ("up" if crossover.bullish else "down"),
        ),
    ]
    for key in ("SMA_20", "SMA_50", "SMA_200"):
        cards.append(IndicatorCard(key.replace("_", " "), indicator_value(indicators, key)))
    return cards


def build_analysis_view(full: FullAnalysis) -> AnalysisViewModel:
    """Derive every presentation fact the detail page needs."""
    analysis = full.analysis
    indicators = analysis.indicators
    signals = full.signals

    crossover = macd_crossover(
        indicators,
        magnitude_range=macd_magnitude_range(
            indicator_value(indicators, "MACD"), indicator_value(indicators, "MACD_Signal")
        ),
    )
    price = indicator_value(indicators, "Current_Price")
    fibonacci = None
    if price is not None and price > 0:
        fibonacci = fibonacci_retracement(price, indicators=indicators)

    return AnalysisViewModel(
        analysis=analysis,
        signals=signals,
        ai_output=full.ai_output,
        indicator_cards=_indicator_cards(analysis, crossover),
        sentiment=aggregate_sentiment(signals),
        panels=plan_signal_panels(signals),
        positioning=moving_average_positioning(indicators),
        crossover=crossover,
        rsi=rsi_reading(signals),
        stochastic=stochastic_reading(signals),
        fibonacci=fibonacci,
        signals_by_category=group_by_category(signals),
    )
