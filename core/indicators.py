"""Presentation facts derived from an indicator snapshot and its signals."""

from __future__ import annotations

from dataclasses import dataclass
import math
import re
from typing import Iterable, Mapping

from core.models import Signal, SignalCategory

ABOVE_ALL = "ABOVE_ALL"
BELOW_ALL = "BELOW_ALL"
MIXED = "MIXED"

OVERBOUGHT = "OVERBOUGHT"
OVERSOLD = "OVERSOLD"
NEUTRAL = "NEUTRAL"

STRONG = "STRONG"
MODERATE = "MODERATE"
WEAK = "WEAK"

RSI_THRESHOLDS = (70.0, 30.0)
STOCHASTIC_THRESHOLDS = (80.0, 20.0)
OSCILLATOR_MIDPOINT = 50.0

_SMA_KEY = re.compile(r"^SMA_(\d+)$")


@dataclass(frozen=True)
class MovingAverageDistance:
    """Price distance from one simple moving average."""

    key: str
    period: int
    value: float
    diff_pct: float

    @property
    def label(self) -> str:
        return f"SMA {self.period}"

    @property
    def price_above(self) -> bool:
        return self.diff_pct > 0


@dataclass(frozen=True)
class MovingAveragePositioning:
    price: float
    averages: list[MovingAverageDistance]
    position: str


@dataclass(frozen=True)
class MacdCrossover:
    macd: float
    signal: float
    histogram: float
    bullish: bool
    strength: str | None

    @property
    def label(self) -> str:
        return "Bullish Crossover" if self.bullish else "Bearish Crossover"


@dataclass(frozen=True)
class OscillatorReading:
    """Zone classification for a 0-100 oscillator.

    ``observed`` is False when no signal carried a value and the neutral
    midpoint was substituted.
    """

    value: float
    zone: str
    observed: bool
    high: float
    low: float


def indicator_value(indicators: Mapping[str, float], key: str) -> float | None:
    """Numeric value stored under ``key``; numeric strings are accepted, NaN is dropped."""
    value = indicators.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def moving_averages(indicators: Mapping[str, float]) -> list[tuple[str, int, float]]:
    """Return ``(key, period, value)`` for every positive ``SMA_<period>`` entry, by period."""
    found: list[tuple[str, int, float]] = []
    for key in indicators:
        match = _SMA_KEY.match(key)
        if match is None:
            continue
        value = indicator_value(indicators, key)
        if value is None or value <= 0:
            continue
        found.append((key, int(match.group(1)), value))
    found.sort(key=lambda item: item[1])
    return found


def has_moving_averages(indicators: Mapping[str, float]) -> bool:
    return bool(moving_averages(indicators))


def has_macd(indicators: Mapping[str, float]) -> bool:
    return indicator_value(indicators, "MACD") is not None and indicator_value(indicators, "MACD_Signal") is not None


def moving_average_positioning(indicators: Mapping[str, float]) -> MovingAveragePositioning | None:
    """Classify price against every moving average; ``None`` means no data."""
    price = indicator_value(indicators, "Current_Price")
    averages = moving_averages(indicators)
    if price is None or not averages:
        return None

    distances = [
        MovingAverageDistance(key=key, period=period, value=value, diff_pct=(price - value) / value * 100)
        for key, period, value in averages
    ]

    if all(price > item.value for item in distances):
        position = ABOVE_ALL
    elif all(price < item.value for item in distances):
        position = BELOW_ALL
    else:
        position = MIXED

    return MovingAveragePositioning(price=price, averages=distances, position=position)


def classify_histogram(histogram: float, magnitude_range: float | None) -> str | None:
    """Grade histogram magnitude against the observed range."""
    if magnitude_range is None or magnitude_range <= 0:
        return None
    magnitude = abs(histogram)
    if magnitude > magnitude_range * 0.7:
        return STRONG
    if magnitude > magnitude_range * 0.3:
        return MODERATE
    return WEAK


def macd_crossover(indicators: Mapping[str, float], magnitude_range: float | None = None) -> MacdCrossover | None:
    macd = indicator_value(indicators, "MACD")
    signal = indicator_value(indicators, "MACD_Signal")
    if macd is None or signal is None:
        return None

    histogram = macd - signal
    return MacdCrossover(
        macd=macd,
        signal=signal,
        histogram=histogram,
        bullish=macd > signal,
        strength=classify_histogram(histogram, magnitude_range),
    )


def classify_oscillator(value: float, high: float, low: float) -> str:
    if value >= high:
        return OVERBOUGHT
    if value <= low:
        return OVERSOLD
    return NEUTRAL


def oscillator_reading(
    value: float | None,
    high: float,
    low: float,
    default: float = OSCILLATOR_MIDPOINT,
) -> OscillatorReading:
    observed = value is not None
    resolved = float(value) if value is not None else default
    return OscillatorReading(
        value=resolved,
        zone=classify_oscillator(resolved, high, low),
        observed=observed,
        high=high,
        low=low,
    )


def find_signal_value(
    signals: Iterable[Signal],
    indicator_name: str,
    category: SignalCategory | None = None,
) -> float | None:
    """Value of the first signal produced by ``indicator_name``, falling back to ``category``."""
    pool = list(signals)
    wanted = indicator_name.lower()
    for signal in pool:
        if signal.indicator_name and signal.indicator_name.lower() == wanted:
            return signal.value
    if category is not None:
        for signal in pool:
            if signal.category is category:
                return signal.value
    return None


def rsi_reading(signals: Iterable[Signal], high: float = RSI_THRESHOLDS[0], low: float = RSI_THRESHOLDS[1]) -> OscillatorReading:
    return oscillator_reading(find_signal_value(signals, "RSI", SignalCategory.RSI), high, low)


def stochastic_reading(
    signals: Iterable[Signal],
    high: float = STOCHASTIC_THRESHOLDS[0],
    low: float = STOCHASTIC_THRESHOLDS[1],
) -> OscillatorReading:
    return oscillator_reading(find_signal_value(signals, "Stochastic", SignalCategory.STOCHASTIC), high, low)
