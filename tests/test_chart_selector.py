import pytest

from core.chart_selector import (
    ChartVariant,
    confidence_dispersion,
    parse_variant,
    plan_signal_panels,
    select_chart_variant,
)


def test_empty_signals_render_placeholder():
    assert select_chart_variant([]) is ChartVariant.EMPTY


def test_empty_signals_ignore_override():
    assert select_chart_variant([], ChartVariant.BAR) is ChartVariant.EMPTY


def test_four_categories_choose_radar(make_signal):
    signals = [make_signal(category) for category in ("RSI", "MACD", "FIBONACCI", "STOCHASTIC")]
    assert select_chart_variant(signals) is ChartVariant.RADAR


def test_three_categories_need_four_signals(make_signal):
    signals = [make_signal(category, confidence=0.5) for category in ("RSI", "MACD", "FIBONACCI")]
    assert select_chart_variant(signals) is ChartVariant.PIE


def test_dispersed_confidence_chooses_bar(make_signal):
    signals = [make_signal("RSI", confidence=0.1), make_signal("MACD", confidence=0.9)]
    assert confidence_dispersion(signals) == pytest.approx(0.4)
    assert select_chart_variant(signals) is ChartVariant.BAR


def test_uniform_confidence_chooses_pie(make_signal):
    signals = [make_signal("RSI", confidence=0.6), make_signal("RSI", confidence=0.65)]
    assert select_chart_variant(signals) is ChartVariant.PIE


def test_single_signal_has_no_dispersion(make_signal):
    assert confidence_dispersion([make_signal(confidence=0.9)]) == 0.0
    assert select_chart_variant([make_signal()]) is ChartVariant.PIE


def test_override_wins_for_non_empty(make_signal):
    signals = [make_signal(category) for category in ("RSI", "MACD", "FIBONACCI", "STOCHASTIC")]
    assert select_chart_variant(signals, ChartVariant.HEATMAP) is ChartVariant.HEATMAP


def test_empty_cannot_be_forced(make_signal):
    with pytest.raises(ValueError):
        select_chart_variant([make_signal()], ChartVariant.EMPTY)


def test_parse_variant():
    assert parse_variant(None) is None
    assert parse_variant(" Auto ") is None
    assert parse_variant("RADAR") is ChartVariant.RADAR
    with pytest.raises(ValueError):
        parse_variant("empty")
    with pytest.raises(ValueError):
        parse_variant("scatter")


def test_panel_plan_for_rich_signal_set(make_signal):
    signals = [make_signal(category) for category in ("RSI", "MACD", "FIBONACCI", "STOCHASTIC", "RSI")]
    panels = plan_signal_panels(signals)
    assert [panel.title for panel in panels] == [
        "Signal Overview",
        "Aggregate Confidence",
        "By Category",
        "Signal Confidence Ranking",
        "Strength Distribution",
    ]
    assert [panel.variant for panel in panels] == [
        ChartVariant.RADAR,
        ChartVariant.GAUGE,
        ChartVariant.PIE,
        ChartVariant.BAR,
        ChartVariant.HEATMAP,
    ]
    assert [panel.wide for panel in panels] == [False, False, False, True, True]


def test_panel_plan_for_no_signals():
    panels = plan_signal_panels([])
    assert [panel.variant for panel in panels] == [ChartVariant.EMPTY, ChartVariant.EMPTY]


def test_four_categories_choose_radar_despite_spread(make_signal):
    signals = [
        make_signal(category, confidence=confidence)
        for category, confidence in zip(("RSI", "MACD", "FIBONACCI", "STOCHASTIC"), (0.0, 1.0, 0.0, 1.0))
    ]
    assert confidence_dispersion(signals) == pytest.approx(0.5)
    assert select_chart_variant(signals) is ChartVariant.RADAR
