import pytest

from core.models import SignalCategory, SignalStrength
from core.sentiment import (
    BEARISH,
    BULLISH,
    NEUTRAL,
    aggregate_sentiment,
    average_confidence_pct,
    category_breakdown,
    category_counts,
    group_by_category,
    ranked_by_confidence,
    strength_heatmap,
)


def test_strong_weak_neutral_cancel_out(make_signal):
    signals = [make_signal(strength="STRONG"), make_signal(strength="WEAK"), make_signal(strength="NEUTRAL")]
    result = aggregate_sentiment(signals)
    assert (result.bullish_count, result.bearish_count) == (1, 1)
    assert result.sentiment == NEUTRAL


def test_moderate_is_neither_side(make_signal):
    result = aggregate_sentiment([make_signal(strength="MODERATE"), make_signal(strength="BULLISH")])
    assert (result.bullish_count, result.bearish_count) == (1, 0)
    assert result.sentiment == BULLISH
    assert result.color == SignalStrength.BULLISH.color


def test_bearish_majority(make_signal):
    result = aggregate_sentiment([make_signal(strength="BEARISH", confidence=0.2), make_signal(strength="WEAK", confidence=0.4)])
    assert result.sentiment == BEARISH
    assert result.average_confidence == pytest.approx(0.3)


def test_empty_signals():
    result = aggregate_sentiment([])
    assert result.average_confidence is None
    assert result.sentiment == NEUTRAL
    assert average_confidence_pct([]) is None
    assert category_breakdown([]) == []
    assert strength_heatmap([]) == []


def test_category_breakdown_means(make_signal):
    signals = [
        make_signal("RSI", "STRONG", 0.9),
        make_signal("MACD", "BEARISH", 0.4),
        make_signal("RSI", "WEAK", 0.5),
    ]
    breakdown = category_breakdown(signals)
    assert [item.category for item in breakdown] == [SignalCategory.RSI, SignalCategory.MACD]
    rsi = breakdown[0]
    assert rsi.count == 2
    assert rsi.confidence_pct == 70
    assert rsi.strength_pct == 65


def test_category_counts_largest_first(make_signal):
    signals = [make_signal("MACD"), make_signal("RSI"), make_signal("RSI")]
    counts = category_counts(signals)
    assert [(item.category, item.count) for item in counts] == [(SignalCategory.RSI, 2), (SignalCategory.MACD, 1)]


def test_strength_heatmap_cells(make_signal):
    signals = [
        make_signal("RSI", "BULLISH", 0.6),
        make_signal("RSI", "BULLISH", 0.8),
        make_signal("FIBONACCI", "WEAK", 0.3),
    ]
    rows = strength_heatmap(signals)
    assert [row.category for row in rows] == [SignalCategory.FIBONACCI, SignalCategory.RSI]
    rsi_row = rows[1]
    bullish = next(cell for cell in rsi_row.cells if cell.strength is SignalStrength.BULLISH)
    assert bullish.count == 2
    assert bullish.average_confidence == pytest.approx(0.7)
    assert sum(cell.count for cell in rsi_row.cells) == 2
    assert len(rsi_row.cells) == len(SignalStrength)


def test_ranking_and_grouping(make_signal):
    low = make_signal("RSI", confidence=0.2)
    high = make_signal("MACD", confidence=0.9)
    mid = make_signal("RSI", confidence=0.5)
    assert ranked_by_confidence([low, high, mid]) == [high, mid, low]
    assert average_confidence_pct([low, high, mid]) == 53
    grouped = group_by_category([low, high, mid])
    assert list(grouped) == [SignalCategory.RSI, SignalCategory.MACD]
    assert grouped[SignalCategory.RSI] == [low, mid]
