"""Plotly and static chart builders for SignalBoard pages."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

from matplotlib.figure import Figure
import plotly.graph_objects as go
from plotly.offline import plot

from core.chart_selector import ChartVariant
from core.fibonacci import FibonacciRetracement
from core.indicators import MacdCrossover, MovingAveragePositioning, OscillatorReading
from core.models import Signal, SignalCategory
from core.sentiment import (
    HEATMAP_STRENGTH_ORDER,
    aggregate_sentiment,
    average_confidence_pct,
    category_breakdown,
    category_counts,
    ranked_by_confidence,
    strength_heatmap,
)

PRIMARY = "#3b82f6"
SECONDARY = "#8b5cf6"
ACCENT = "#06b6d4"
GRID = "#e5e7eb"
NEUTRAL = "#71717a"
BULLISH = "#22c55e"
BEARISH = "#ef4444"

_PLOT_CONFIG = {"displaylogo": False, "responsive": True}
_MARGIN = {"l": 20, "r": 30, "t": 20, "b": 20}


def _to_div(figure: go.Figure) -> str:
    return plot(figure, output_type="div", include_plotlyjs=False, config=_PLOT_CONFIG)


def _truncate(text: str, limit: int = 20) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "..."


def build_radar_chart(signals: Sequence[Signal]) -> str:
    """Per-category confidence vs strength on a shared 0-100 polar axis."""
    breakdown = category_breakdown(signals)
    labels = [item.category.label.title() for item in breakdown]

    figure = go.Figure()
    for name, values, color in [
        ("Confidence", [item.confidence_pct for item in breakdown], PRIMARY),
        ("Strength", [item.strength_pct for item in breakdown], SECONDARY),
    ]:
        figure.add_trace(
            go.Scatterpolar(
                r=values + values[:1],
                theta=labels + labels[:1],
                fill="toself",
                name=name,
                line={"color": color},
                opacity=0.6,
                hovertemplate="%{theta}: %{r}%<extra></extra>",
            )
        )
    figure.update_layout(
        template="plotly_white",
        height=350,
        margin=_MARGIN,
        polar={"radialaxis": {"range": [0, 100], "gridcolor": GRID}},
        legend={"orientation": "h"},
    )
    return _to_div(figure)


def build_bar_chart(signals: Sequence[Signal]) -> str:
    """Horizontal confidence ranking with an average reference line."""
    ranked = ranked_by_confidence(signals)
    average = average_confidence_pct(signals) or 0

    figure = go.Figure(
        go.Bar(
            x=[round(signal.confidence * 100) for signal in ranked],
            y=[_truncate(signal.name) for signal in ranked],
            orientation="h",
            marker={"color": [signal.category.color for signal in ranked]},
            customdata=[[signal.name, signal.category.label, signal.strength.value] for signal in ranked],
            hovertemplate="%{customdata[0]}<br>%{customdata[1]} | %{customdata[2]}<br>%{x}%<extra></extra>",
        )
    )
    figure.add_vline(x=average, line_dash="dash", line_color=NEUTRAL, annotation_text="Avg")
    figure.update_layout(
        template="plotly_white",
        height=max(300, len(ranked) * 40),
        margin=_MARGIN,
        xaxis={"range": [0, 100], "ticksuffix": "%"},
        yaxis={"autorange": "reversed"},
    )
    return _to_div(figure)


def build_pie_chart(signals: Sequence[Signal]) -> str:
    counts = category_counts(signals)
    figure = go.Figure(
        go.Pie(
            labels=[item.category.label for item in counts],
            values=[item.count for item in counts],
            hole=0.4,
            sort=False,
            marker={"colors": [item.category.color for item in counts]},
            textinfo="label+percent",
            hovertemplate="%{label}: %{value} signals<extra></extra>",
        )
    )
    figure.update_layout(template="plotly_white", height=300, margin=_MARGIN, showlegend=False)
    return _to_div(figure)


def build_gauge_chart(signals: Sequence[Signal]) -> str:
    """Average confidence gauge coloured by net sentiment."""
    sentiment = aggregate_sentiment(signals)
    average = (sentiment.average_confidence or 0.0) * 100

    figure = go.Figure(
        go.Indicator(
            mode="gauge+number",
            value=round(average),
            number={"suffix": "%"},
            title={"text": f"{sentiment.sentiment.title()} ({sentiment.bullish_count} / {sentiment.bearish_count})"},
            gauge={
                "axis": {"range": [0, 100]},
                "bar": {"color": sentiment.color},
                "bgcolor": GRID,
            },
        )
    )
    figure.update_layout(template="plotly_white", height=220, margin=_MARGIN)
    return _to_div(figure)


def build_heatmap_chart(signals: Sequence[Signal]) -> str:
    """Category x strength counts; colour intensity follows mean confidence."""
    rows = strength_heatmap(signals)
    figure = go.Figure(
        go.Heatmap(
            z=[[cell.average_confidence if cell.count else None for cell in row.cells] for row in rows],
            x=[strength.value for strength in HEATMAP_STRENGTH_ORDER],
            y=[row.category.label for row in rows],
            text=[[str(cell.count) if cell.count else "-" for cell in row.cells] for row in rows],
            texttemplate="%{text}",
            zmin=0,
            zmax=1,
            colorscale="Blues",
            hoverongaps=False,
            hovertemplate="%{y} / %{x}<br>Avg confidence: %{z:.0%}<extra></extra>",
        )
    )
    figure.update_layout(template="plotly_white", height=max(240, 48 * len(rows)), margin=_MARGIN)
    return _to_div(figure)


_SIGNAL_BUILDERS: dict[ChartVariant, Callable[[Sequence[Signal]], str]] = {
    ChartVariant.RADAR: build_radar_chart,
    ChartVariant.BAR: build_bar_chart,
    ChartVariant.PIE: build_pie_chart,
    ChartVariant.GAUGE: build_gauge_chart,
    ChartVariant.HEATMAP: build_heatmap_chart,
}


def render_signal_chart(signals: Sequence[Signal], variant: ChartVariant) -> str | None:
    """HTML fragment for ``variant``; ``None`` for the empty placeholder."""
    if variant is ChartVariant.EMPTY or not signals:
        return None
    return _SIGNAL_BUILDERS[variant](signals)


def build_oscillator_chart(reading: OscillatorReading, title: str, category: SignalCategory) -> str:
    """Single-value 0-100 bullet with overbought/oversold bands."""
    figure = go.Figure(
        go.Indicator(
            mode="number+gauge",
            value=round(reading.value, 1),
            title={"text": title if reading.observed else f"{title} (no data)"},
            gauge={
                "shape": "bullet",
                "axis": {"range": [0, 100]},
                "bar": {"color": category.color},
                "steps": [
                    {"range": [0, reading.low], "color": "rgba(34, 197, 94, 0.2)"},
                    {"range": [reading.high, 100], "color": "rgba(239, 68, 68, 0.2)"},
                ],
            },
        )
    )
    figure.update_layout(template="plotly_white", height=120, margin={"l": 110, "r": 20, "t": 10, "b": 20})
    return _to_div(figure)


def build_moving_average_chart(positioning: MovingAveragePositioning) -> str:
    """Moving-average values as bars with the percent distance on a second axis."""
    labels = [item.label for item in positioning.averages]
    figure = go.Figure()
    figure.add_trace(
        go.Bar(
            x=labels,
            y=[item.value for item in positioning.averages],
            name="MA Value",
            marker={"color": PRIMARY},
            hovertemplate="%{x}: %{y:.2f}<extra></extra>",
        )
    )
    figure.add_trace(
        go.Scatter(
            x=labels,
            y=[round(item.diff_pct, 2) for item in positioning.averages],
            name="% from Price",
            mode="lines+markers",
            yaxis="y2",
            line={"color": ACCENT},
            hovertemplate="%{x}: %{y:.2f}%<extra></extra>",
        )
    )
    figure.add_hline(
        y=positioning.price,
        line_dash="dash",
        line_color=PRIMARY,
        annotation_text=f"Price: ${positioning.price:.2f}",
    )
    figure.update_layout(
        template="plotly_white",
        height=260,
        margin=_MARGIN,
        yaxis={"title": "Price", "tickprefix": "$"},
        yaxis2={"overlaying": "y", "side": "right", "ticksuffix": "%", "range": [-10, 10]},
        legend={"orientation": "h"},
    )
    return _to_div(figure)


def build_macd_chart(crossover: MacdCrossover) -> str:
    values = [crossover.macd, crossover.signal, crossover.histogram]
    colors = [
        BULLISH if crossover.macd > 0 else BEARISH,
        NEUTRAL,
        BULLISH if crossover.bullish else BEARISH,
    ]
    figure = go.Figure(
        go.Bar(
            x=["MACD", "Signal", "Histogram"],
            y=values,
            marker={"color": colors},
            text=[f"{value:.4f}" for value in values],
            textposition="outside",
            hovertemplate="%{x}: %{y:.4f}<extra></extra>",
        )
    )
    figure.add_hline(y=0, line_color=GRID)
    figure.update_layout(template="plotly_white", height=260, margin=_MARGIN)
    return _to_div(figure)


def build_fibonacci_chart(fibonacci: FibonacciRetracement) -> str:
    """Retracement ladder with shaded zones and the current price marker."""
    figure = go.Figure()
    levels = fibonacci.levels
    zone = fibonacci.current_zone

    for upper, lower in zip(levels, levels[1:]):
        if zone is not None and upper is zone[0]:
            fill = "rgba(59, 130, 246, 0.15)"
        elif lower.price > fibonacci.current_price:
            fill = "rgba(239, 68, 68, 0.06)"
        elif upper.price < fibonacci.current_price:
            fill = "rgba(34, 197, 94, 0.06)"
        else:
            fill = "rgba(100, 100, 100, 0.03)"
        figure.add_hrect(y0=lower.price, y1=upper.price, fillcolor=fill, line_width=0)

    for level in levels:
        active = zone is not None and (level is zone[0] or level is zone[1])
        figure.add_hline(
            y=level.price,
            line_color=level.color,
            line_width=3 if active else (2 if level.is_key else 1.5),
            line_dash="solid" if level.is_key else "dash",
            annotation_text=f"{level.label} ${level.price:.2f}",
            annotation_position="right",
        )

    figure.add_trace(
        go.Scatter(
            x=[0.5],
            y=[fibonacci.current_price],
            mode="markers+text",
            marker={"size": 14, "color": PRIMARY, "line": {"color": "#ffffff", "width": 3}},
            text=[f"${fibonacci.current_price:.2f}"],
            textposition="middle left",
            name="Current Price",
            hovertemplate="Current price: %{y:.2f}<extra></extra>",
        )
    )
    figure.update_layout(
        template="plotly_white",
        height=400,
        margin={"l": 60, "r": 140, "t": 20, "b": 20},
        xaxis={"visible": False, "range": [0, 1]},
        yaxis={
            "range": [fibonacci.swing_low * 0.98, fibonacci.swing_high * 1.02],
            "tickprefix": "$",
        },
        showlegend=False,
    )
    return _to_div(figure)


def plot_signal_confidence_chart(signals: Sequence[Signal], output_path: Path) -> None:
    """Save static confidence ranking for the PDF report."""
    ranked = ranked_by_confidence(signals)
    fig = Figure(figsize=(11, max(3.0, 0.4 * len(ranked) + 1)))
    ax = fig.add_subplot(111)

    if ranked:
        names = [_truncate(signal.name, 28) for signal in ranked]
        ax.barh(names, [signal.confidence * 100 for signal in ranked], color=[signal.category.color for signal in ranked])
        ax.invert_yaxis()
        ax.axvline(average_confidence_pct(ranked) or 0, color=NEUTRAL, linestyle="--", linewidth=0.9, label="Average")
        ax.legend(loc="lower right")
    else:
        ax.text(0.5, 0.5, "No signals to display", ha="center", va="center", transform=ax.transAxes)

    ax.set_xlim(0, 100)
    ax.set_xlabel("Confidence (%)")
    ax.set_title("Signal Confidence Ranking")
    ax.grid(axis="x", alpha=0.25)
    fig.tight_layout()
    fig.savefig(output_path, dpi=130)


def plot_fibonacci_chart(fibonacci: FibonacciRetracement | None, output_path: Path) -> None:
    """Save static Fibonacci ladder for the PDF report."""
    fig = Figure(figsize=(11, 4.5))
    ax = fig.add_subplot(111)

    if fibonacci is None:
        ax.text(0.5, 0.5, "Fibonacci levels not available", ha="center", va="center", transform=ax.transAxes)
    else:
        for level in fibonacci.levels:
            ax.axhline(level.price, color=level.color, linestyle="-" if level.is_key else "--", linewidth=1.2)
            ax.text(1.01, level.price, f"{level.label} {level.price:.2f}", color=level.color, va="center",
                    transform=ax.get_yaxis_transform(), fontsize=8)
        ax.axhline(fibonacci.current_price, color=PRIMARY, linewidth=2.2, label="Current Price")
        ax.set_ylim(fibonacci.swing_low * 0.98, fibonacci.swing_high * 1.02)
        ax.legend(loc="upper left")

    ax.set_xticks([])
    ax.set_ylabel("Price")
    ax.set_title("Fibonacci Retracement")
    ax.grid(axis="y", alpha=0.25)
    fig.tight_layout()
    fig.savefig(output_path, dpi=130)


def ensure_static_charts(
    symbol: str,
    analysis_id: str,
    signals: Sequence[Signal],
    fibonacci: FibonacciRetracement | None,
    charts_dir: Path,
) -> tuple[str, str]:
    """Generate static charts once per analysis and reuse cached files."""
    confidence_file = charts_dir / f"{symbol}_{analysis_id}_confidence.png"
    fibonacci_file = charts_dir / f"{symbol}_{analysis_id}_fibonacci.png"

    if not confidence_file.exists():
        plot_signal_confidence_chart(signals, confidence_file)
    if not fibonacci_file.exists():
        plot_fibonacci_chart(fibonacci, fibonacci_file)

    return (f"charts/{confidence_file.name}", f"charts/{fibonacci_file.name}")


def cache_busted_static_url(
    static_dir: Path,
    relative_path: str | None,
    url_for_fn: Callable[..., str],
) -> str | None:
    """Return static asset URL with cache-busting query parameter."""
    if not relative_path:
        return None
    asset = static_dir / relative_path
    if not asset.exists():
        return None
    version = asset.stat().st_mtime_ns
    return f"{url_for_fn('static', filename=relative_path)}?v={version}"
