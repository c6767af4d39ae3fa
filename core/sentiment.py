"""Signal aggregates: net sentiment and per-category chart statistics."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import pandas as pd

from core.models import Signal, SignalCategory, SignalStrength

BULLISH = "BULLISH"
BEARISH = "BEARISH"
NEUTRAL = "NEUTRAL"

# STRONG leans bullish and WEAK leans bearish regardless of confidence.
BULLISH_STRENGTHS = frozenset({SignalStrength.BULLISH, SignalStrength.STRONG})
BEARISH_STRENGTHS = frozenset({SignalStrength.BEARISH, SignalStrength.WEAK})

HEATMAP_STRENGTH_ORDER: tuple[SignalStrength, ...] = (
    SignalStrength.STRONG,
    SignalStrength.BULLISH,
    SignalStrength.MODERATE,
    SignalStrength.NEUTRAL,
    SignalStrength.WEAK,
    SignalStrength.BEARISH,
)


@dataclass(frozen=True)
class SentimentAggregate:
    average_confidence: float | None
    bullish_count: int
    bearish_count: int
    sentiment: str

    @property
    def color(self) -> str:
        if self.sentiment == BULLISH:
            return SignalStrength.BULLISH.color
        if self.sentiment == BEARISH:
            return SignalStrength.BEARISH.color
        return SignalStrength.NEUTRAL.color


@dataclass(frozen=True)
class CategoryBreakdown:
    """Radar axis: mean confidence and mean strength score, both in percent."""

    category: SignalCategory
    confidence_pct: int
    strength_pct: int
    count: int


@dataclass(frozen=True)
class CategoryCount:
    category: SignalCategory
    count: int


@dataclass(frozen=True)
class HeatmapCell:
    strength: SignalStrength
    count: int
    average_confidence: float


@dataclass(frozen=True)
class HeatmapRow:
    category: SignalCategory
    cells: list[HeatmapCell]


def aggregate_sentiment(signals: Sequence[Signal]) -> SentimentAggregate:
    bullish = sum(1 for signal in signals if signal.strength in BULLISH_STRENGTHS)
    bearish = sum(1 for signal in signals if signal.strength in BEARISH_STRENGTHS)

    if bullish > bearish:
        sentiment = BULLISH
    elif bearish > bullish:
        sentiment = BEARISH
    else:
        sentiment = NEUTRAL

    average = sum(signal.confidence for signal in signals) / len(signals) if signals else None
    return SentimentAggregate(
        average_confidence=average,
        bullish_count=bullish,
        bearish_count=bearish,
        sentiment=sentiment,
    )


def signals_frame(signals: Sequence[Signal]) -> pd.DataFrame:
    """Tabulate signals for grouping; one row per signal."""
    return pd.DataFrame(
        {
            "name": [signal.name for signal in signals],
            "category": [signal.category for signal in signals],
            "strength": [signal.strength for signal in signals],
            "confidence": [float(signal.confidence) for signal in signals],
            "score": [signal.strength.score for signal in signals],
            "value": [float(signal.value) for signal in signals],
        }
    )


def category_breakdown(signals: Sequence[Signal]) -> list[CategoryBreakdown]:
    """Per-category means in first-seen category order."""
    if not signals:
        return []
    frame = signals_frame(signals)
    grouped = frame.groupby("category", sort=False).agg(
        confidence=("confidence", "mean"),
        score=("score", "mean"),
        count=("confidence", "size"),
    )
    return [
        CategoryBreakdown(
            category=category,
            confidence_pct=int(round(row.confidence * 100)),
            strength_pct=int(round(row.score * 100)),
            count=int(row["count"]),
        )
        for category, row in grouped.iterrows()
    ]


def category_counts(signals: Sequence[Signal]) -> list[CategoryCount]:
    """Signal counts per category, largest first."""
    if not signals:
        return []
    counts = signals_frame(signals)["category"].value_counts(sort=False)
    ordered = sorted(counts.items(), key=lambda item: -item[1])
    return [CategoryCount(category=category, count=int(count)) for category, count in ordered]


def strength_heatmap(signals: Sequence[Signal]) -> list[HeatmapRow]:
    """Category x strength grid with counts and mean confidence."""
    if not signals:
        return []
    frame = signals_frame(signals)
    stats = frame.groupby(["category", "strength"]).agg(
        count=("confidence", "size"),
        confidence=("confidence", "mean"),
    )

    rows: list[HeatmapRow] = []
    for category in sorted(frame["category"].unique(), key=lambda item: item.value):
        cells: list[HeatmapCell] = []
        for strength in HEATMAP_STRENGTH_ORDER:
            if (category, strength) in stats.index:
                entry = stats.loc[(category, strength)]
                cells.append(
                    HeatmapCell(
                        strength=strength,
                        count=int(entry["count"]),
                        average_confidence=float(entry["confidence"]),
                    )
                )
            else:
                cells.append(HeatmapCell(strength=strength, count=0, average_confidence=0.0))
        rows.append(HeatmapRow(category=category, cells=cells))
    return rows


def ranked_by_confidence(signals: Sequence[Signal]) -> list[Signal]:
    return sorted(signals, key=lambda signal: signal.confidence, reverse=True)


def average_confidence_pct(signals: Sequence[Signal]) -> int | None:
    if not signals:
        return None
    return int(round(sum(signal.confidence for signal in signals) / len(signals) * 100))


def group_by_category(signals: Sequence[Signal]) -> dict[SignalCategory, list[Signal]]:
    grouped: dict[SignalCategory, list[Signal]] = {}
    for signal in signals:
        grouped.setdefault(signal.category, []).append(signal)
    return grouped
