"""Fibonacci retracement ladder with support/resistance classification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from core.indicators import indicator_value, moving_averages

SUPPORT = "support"
RESISTANCE = "resistance"
AT_PRICE = "at_price"

RANGE_PADDING = 0.05

# (ratio, label, colour, emphasis); "key" levels are drawn solid.
FIB_LEVELS: tuple[tuple[float, str, str, str], ...] = (
    (0.0, "0%", "#22c55e", "minor"),
    (0.236, "23.6%", "#84cc16", "minor"),
    (0.382, "38.2%", "#eab308", "key"),
    (0.5, "50%", "#f97316", "key"),
    (0.618, "61.8% (Golden)", "#ef4444", "key"),
    (0.786, "78.6%", "#dc2626", "minor"),
    (1.0, "100%", "#b91c1c", "minor"),
)


@dataclass(frozen=True)
class FibonacciLevel:
    ratio: float
    label: str
    color: str
    emphasis: str
    price: float
    role: str

    @property
    def is_key(self) -> bool:
        return self.emphasis == "key"

    def distance_pct(self, current_price: float) -> float:
        return abs(self.price - current_price) / current_price * 100


@dataclass(frozen=True)
class FibonacciRetracement:
    """Levels plus the facts the Fibonacci panel needs."""

    current_price: float
    swing_high: float
    swing_low: float
    estimated: bool
    levels: list[FibonacciLevel]
    current_zone: tuple[FibonacciLevel, FibonacciLevel] | None
    nearest_support: FibonacciLevel | None
    nearest_resistance: FibonacciLevel | None

    @property
    def resistance_levels(self) -> list[FibonacciLevel]:
        return [level for level in self.levels if level.role == RESISTANCE]

    @property
    def support_levels(self) -> list[FibonacciLevel]:
        return [level for level in self.levels if level.role == SUPPORT]


def estimate_swing_range(
    indicators: Mapping[str, float],
    padding: float = RANGE_PADDING,
) -> tuple[float, float] | None:
    """Pad the extremes of current price and moving averages into a swing range."""
    prices = [value for _, _, value in moving_averages(indicators)]
    current = indicator_value(indicators, "Current_Price")
    if current is not None and current > 0:
        prices.append(current)
    if not prices:
        return None
    return max(prices) * (1 + padding), min(prices) * (1 - padding)


def retracement_levels(swing_high: float, swing_low: float, current_price: float) -> list[FibonacciLevel]:
    span = swing_high - swing_low
    levels: list[FibonacciLevel] = []
    for ratio, label, color, emphasis in FIB_LEVELS:
        price = swing_high - span * ratio
        if price > current_price:
            role = RESISTANCE
        elif price < current_price:
            role = SUPPORT
        else:
            role = AT_PRICE
        levels.append(
            FibonacciLevel(ratio=ratio, label=label, color=color, emphasis=emphasis, price=price, role=role)
        )
    return levels


def fibonacci_retracement(
    current_price: float,
    swing_high: float | None = None,
    swing_low: float | None = None,
    indicators: Mapping[str, float] | None = None,
) -> FibonacciRetracement | None:
    """Build the retracement ladder.

    When no swing range is given it is estimated from ``indicators``. ``None``
    is returned for a non-positive price or when there is nothing to estimate from.
    """
    if current_price <= 0:
        return None
    estimated = swing_high is None or swing_low is None
    if estimated:
        bounds = estimate_swing_range(indicators or {})
        if bounds is None:
            return None
        swing_high, swing_low = bounds

    levels = retracement_levels(swing_high, swing_low, current_price)

    current_zone = None
    for upper, lower in zip(levels, levels[1:]):
        if upper.price >= current_price >= lower.price:
            current_zone = (upper, lower)
            break

    supports = [level for level in levels if level.role == SUPPORT]
    resistances = [level for level in levels if level.role == RESISTANCE]

    return FibonacciRetracement(
        current_price=current_price,
        swing_high=swing_high,
        swing_low=swing_low,
        estimated=estimated,
        levels=levels,
        current_zone=current_zone,
        nearest_support=max(supports, key=lambda level: level.price) if supports else None,
        nearest_resistance=min(resistances, key=lambda level: level.price) if resistances else None,
    )
