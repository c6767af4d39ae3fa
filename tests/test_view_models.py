from dataclasses import replace

import pytest

from core.chart_selector import ChartVariant
from core.indicators import MODERATE
from core.models import FullAnalysis, SignalCategory
from ui.api import parse_bool, serialize_view
from ui.models import build_analysis_view, macd_magnitude_range


def test_macd_magnitude_range():
    assert macd_magnitude_range(0.05, -0.08) == 0.08
    assert macd_magnitude_range(None, 0.1) is None
    assert macd_magnitude_range(0.0, 0.0) is None


def test_build_view_for_full_analysis(service):
    view = build_analysis_view(service.get_full_analysis("AAPL"))

    assert view.symbol == "AAPL"
    assert [card.label for card in view.indicator_cards] == ["Price", "Volume", "MACD", "SMA 20", "SMA 50", "SMA 200"]
    assert view.indicator_cards[2].trend == "up"
    # histogram 0.02 against a 0.05 range
    assert view.crossover.strength == MODERATE
    assert view.panels[0].variant is ChartVariant.RADAR
    assert view.show_fibonacci
    assert [signal.id for signal in view.fibonacci_signals] == ["sig-4"]
    assert [signal.id for signal in view.macd_signals] == ["sig-2"]
    assert list(view.signals_by_category)[:2] == [SignalCategory.MA_POSITION, SignalCategory.MACD]


def test_build_view_with_sparse_indicators(service):
    view = build_analysis_view(service.get_full_analysis("MSFT"))

    assert view.positioning is None
    assert view.crossover is None
    assert not view.show_fibonacci
    assert not view.rsi.observed
    assert view.panels[0].variant is ChartVariant.EMPTY
    assert view.indicator_cards[1].value is None


def test_serialized_view_is_json_ready(service):
    payload = serialize_view(build_analysis_view(service.get_full_analysis("AAPL")))

    assert payload["analysis"]["timestamp"] == "2024-01-15T21:00:00+00:00"
    assert payload["sentiment"]["sentiment"] == "BULLISH"
    assert (payload["sentiment"]["bullish_count"], payload["sentiment"]["bearish_count"]) == (2, 1)
    assert payload["sentiment"]["average_confidence"] == pytest.approx(0.65)
    nearest = payload["fibonacci"]["nearest_support"]
    assert nearest["role"] == "support"


def test_parse_bool():
    assert parse_bool(True)
    assert parse_bool("on")
    assert parse_bool("TRUE")
    assert not parse_bool(None)
    assert not parse_bool("false")


def _with_indicators(full, indicators):
    return FullAnalysis(
        analysis=replace(full.analysis, indicators=indicators),
        signals=full.signals,
        ai_output=full.ai_output,
    )


def test_string_indicator_values_are_read_as_numbers(service):
    full = _with_indicators(
        service.get_full_analysis("AAPL"),
        {"Current_Price": "100", "MACD": "0.05", "MACD_Signal": "0.03", "SMA_20": 90.0},
    )

    view = build_analysis_view(full)

    assert view.crossover.bullish
    assert view.crossover.strength == MODERATE
    assert view.positioning.position == "ABOVE_ALL"
    assert view.fibonacci is not None
    assert view.fibonacci.current_price == 100.0
    assert view.indicator_cards[0].value == 100.0
    assert view.show_macd
    assert view.show_moving_averages


def test_nan_price_has_no_fibonacci(service):
    full = _with_indicators(service.get_full_analysis("AAPL"), {"Current_Price": float("nan")})

    view = build_analysis_view(full)

    assert view.fibonacci is None
    assert not view.show_macd
    assert not view.show_moving_averages
