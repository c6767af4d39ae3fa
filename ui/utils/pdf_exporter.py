"""PDF export helpers for SignalBoard analysis pages."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas

from config.settings import BASE_DIR
from ui.models import AnalysisViewModel


PDF_DIR = Path(BASE_DIR) / "reports" / "pdf"

_SENTIMENT_COLORS = {
    "BULLISH": (0.13, 0.77, 0.37),
    "BEARISH": (0.94, 0.27, 0.27),
}

DISCLAIMER = "Disclaimer: Technical signals are informational only and are not investment advice."


def _hex_to_rgb(value: str) -> tuple[float, float, float]:
    value = value.lstrip("#")
    return tuple(int(value[idx : idx + 2], 16) / 255 for idx in (0, 2, 4))  # type: ignore[return-value]


def build_analysis_pdf(
    view: AnalysisViewModel,
    *,
    confidence_chart_path: Path,
    fibonacci_chart_path: Path,
    output_dir: Path = PDF_DIR,
) -> Path:
    """Generate a PDF report for one symbol's latest analysis."""
    output_dir.mkdir(parents=True, exist_ok=True)

    analysis = view.analysis
    date_stamp = analysis.timestamp.strftime("%Y%m%d")
    output_path = output_dir / f"{analysis.symbol}_analysis_{date_stamp}.pdf"

    pdf = canvas.Canvas(str(output_path), pagesize=A4)
    width, height = A4
    left_margin = 0.75 * inch
    top = height - 0.75 * inch
    y = top

    def draw_title(text: str, size: int = 16) -> None:
        nonlocal y
        pdf.setFont("Helvetica-Bold", size)
        pdf.drawString(left_margin, y, text)
        y -= 0.28 * inch

    def draw_line(text: str, bold: bool = False, color: tuple[float, float, float] | None = None) -> None:
        nonlocal y
        if y < 0.8 * inch:
            pdf.showPage()
            y = top

        pdf.setFont("Helvetica-Bold" if bold else "Helvetica", 10)
        if color is not None:
            pdf.setFillColorRGB(*color)
        else:
            pdf.setFillColor(colors.black)

        pdf.drawString(left_margin, y, text[:110])
        y -= 0.2 * inch
        pdf.setFillColor(colors.black)

    def draw_image_block(image_path: Path, label: str, desired_height: float) -> None:
        nonlocal y
        if not image_path.exists():
            draw_line(f"{label}: not available")
            return

        if y < desired_height + 1.0 * inch:
            pdf.showPage()
            y = top

        draw_line(label, bold=True)
        img_width = width - (2 * left_margin)
        pdf.drawImage(str(image_path), left_margin, y - desired_height, width=img_width, height=desired_height, preserveAspectRatio=True)
        y -= desired_height + 0.2 * inch

    draw_title(f"SignalBoard Report: {analysis.symbol}")
    draw_line(f"Interval: {analysis.interval} | Bars analyzed: {analysis.bars_analyzed}")
    draw_line(f"Analysis time: {analysis.timestamp.strftime('%Y-%m-%d %H:%M')}")
    draw_line(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    sentiment = view.sentiment
    average = sentiment.average_confidence
    draw_line(
        f"Sentiment: {sentiment.sentiment} ({sentiment.bullish_count} bullish / {sentiment.bearish_count} bearish)",
        bold=True,
        color=_SENTIMENT_COLORS.get(sentiment.sentiment),
    )
    draw_line(f"Average confidence: {'n/a' if average is None else f'{average * 100:.0f}%'}")

    y -= 0.08 * inch
    draw_line("Key indicators:", bold=True)
    for card in view.indicator_cards:
        if card.value is None:
            continue
        text = f"{card.value:,.0f}" if card.volume else f"{card.value:.{card.decimals}f}"
        draw_line(f"- {card.label}: {text}")
    if view.crossover is not None:
        strength = f" ({view.crossover.strength})" if view.crossover.strength else ""
        draw_line(f"- MACD: {view.crossover.label}{strength}, histogram {view.crossover.histogram:.4f}")
    draw_line(f"- RSI: {view.rsi.value:.1f} ({view.rsi.zone})")
    draw_line(f"- Stochastic: {view.stochastic.value:.1f} ({view.stochastic.zone})")

    y -= 0.05 * inch
    draw_line(f"Signals ({len(view.signals)}):", bold=True)
    for category, signals in view.signals_by_category.items():
        draw_line(category.label, bold=True, color=_hex_to_rgb(category.color))
        for signal in signals:
            draw_line(f"- {signal.name} | {signal.strength.value} | {signal.confidence * 100:.0f}%")

    if view.ai_output is not None:
        rec = view.ai_output.trading_recommendation
        y -= 0.05 * inch
        draw_line("AI insights:", bold=True)
        draw_line(f"Recommendation: {rec.recommendation.value} ({rec.confidence * 100:.0f}% confidence)")
        if rec.reasoning:
            draw_line(rec.reasoning)
        draw_line(f"Risk level: {view.ai_output.risk_assessment.overall_risk_level.value}")
        draw_line(f"Volatility regime: {view.ai_output.volatility_regime.label}")
        for alert in view.ai_output.alerts:
            draw_line(f"- [{alert.severity.value}] {alert.message}")

    y -= 0.05 * inch
    draw_line(DISCLAIMER, bold=True)

    draw_image_block(confidence_chart_path, "Signal Confidence", desired_height=2.8 * inch)
    draw_image_block(fibonacci_chart_path, "Fibonacci Retracement", desired_height=2.4 * inch)

    pdf.save()
    return output_path
