"""Choose which visualization best represents a set of signals."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from core.models import Signal

# Fixed policy constants; changing them changes which chart users see.
RADAR_MIN_CATEGORIES = 3
RADAR_MIN_SIGNALS = 4
CONFIDENCE_DISPERSION_THRESHOLD = 0.15

BAR_PANEL_MIN_SIGNALS = 5


class ChartVariant(str, Enum):
    EMPTY = "empty"
    RADAR = "radar"
    BAR = "bar"
    PIE = "pie"
    GAUGE = "gauge"
    HEATMAP = "heatmap"


OVERRIDABLE_VARIANTS = frozenset(
    {ChartVariant.RADAR, ChartVariant.BAR, ChartVariant.PIE, ChartVariant.GAUGE, ChartVariant.HEATMAP}
)


@dataclass(frozen=True)
class ChartPanel:
    title: str
    variant: ChartVariant
    wide: bool = False


def confidence_dispersion(signals: Sequence[Signal]) -> float:
    """Population standard deviation of confidence; 0.0 below two signals."""
    if len(signals) < 2:
        return 0.0
    return float(np.std([signal.confidence for signal in signals]))


def parse_variant(raw: str | ChartVariant | None) -> ChartVariant | None:
    """Map a request value to an override; ``None``/``"auto"`` mean no override."""
    if raw is None or isinstance(raw, ChartVariant):
        return raw
    text = raw.strip().lower()
    if text in ("", "auto"):
        return None
    variant = ChartVariant(text)
    if variant not in OVERRIDABLE_VARIANTS:
        raise ValueError(f"{raw!r} cannot be forced")
    return variant


def select_chart_variant(signals: Sequence[Signal], override: ChartVariant | None = None) -> ChartVariant:
    """Pick a chart variant; ``override`` bypasses the decision tree.

    An empty signal set always renders the placeholder.
    """
    if not signals:
        return ChartVariant.EMPTY
    if override is not None:
        if override not in OVERRIDABLE_VARIANTS:
            raise ValueError(f"{override.value!r} cannot be forced")
        return override

    categories = {signal.category for signal in signals}
    if len(categories) >= RADAR_MIN_CATEGORIES and len(signals) >= RADAR_MIN_SIGNALS:
        return ChartVariant.RADAR
    if confidence_dispersion(signals) > CONFIDENCE_DISPERSION_THRESHOLD:
        return ChartVariant.BAR
    return ChartVariant.PIE


def plan_signal_panels(signals: Sequence[Signal]) -> list[ChartPanel]:
    """Panels shown in the signal analysis section, in display order."""
    many_categories = len({signal.category for signal in signals}) >= RADAR_MIN_CATEGORIES
    many_signals = len(signals) >= BAR_PANEL_MIN_SIGNALS

    panels = [
        ChartPanel("Signal Overview", select_chart_variant(signals)),
        ChartPanel("Aggregate Confidence", select_chart_variant(signals, ChartVariant.GAUGE)),
    ]
    if many_categories:
        panels.append(ChartPanel("By Category", ChartVariant.PIE))
    if many_signals:
        panels.append(ChartPanel("Signal Confidence Ranking", ChartVariant.BAR, wide=True))
    if many_categories and many_signals:
        panels.append(ChartPanel("Strength Distribution", ChartVariant.HEATMAP, wide=True))
    return panels
