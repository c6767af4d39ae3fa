"""JSON payload helpers for SignalBoard API routes."""

from __future__ import annotations

from typing import Any

from core.fibonacci import FibonacciRetracement
from core.indicators import MacdCrossover, MovingAveragePositioning, OscillatorReading
from core.models import AIOutput, Analysis, Signal
from ui.models import AnalysisViewModel


def parse_bool(raw_value: Any) -> bool:
    """Interpret form/JSON flags such as ``on``, ``true`` or ``1``."""
    if isinstance(raw_value, bool):
        return raw_value
    if raw_value is None:
        return False
    return str(raw_value).strip().lower() in {"1", "true", "on", "yes"}


def serialize_analysis(analysis: Analysis) -> dict[str, Any]:
    return {
        "id": analysis.id,
        "symbol": analysis.symbol,
        "interval": analysis.interval,
        "timestamp": analysis.timestamp.isoformat(),
        "bars_analyzed": analysis.bars_analyzed,
        "indicators": dict(analysis.indicators),
        "signal_summary": {
            "total": analysis.signal_summary.total,
            "bullish": analysis.signal_summary.bullish,
            "bearish": analysis.signal_summary.bearish,
            "neutral": analysis.signal_summary.neutral,
        },
        "ai_enabled": analysis.ai_enabled,
    }


def serialize_signal(signal: Signal) -> dict[str, Any]:
    return {
        "id": signal.id,
        "analysis_id": signal.analysis_id,
        "symbol": signal.symbol,
        "name": signal.name,
        "category": signal.category.value,
        "strength": signal.strength.value,
        "confidence": round(signal.confidence, 4),
        "description": signal.description,
        "value": signal.value,
        "trading_implication": signal.trading_implication,
        "indicator_name": signal.indicator_name,
    }


def serialize_ai_output(output: AIOutput | None) -> dict[str, Any] | None:
    if output is None:
        return None
    rec = output.trading_recommendation
    risk = output.risk_assessment
    vol = output.volatility_regime
    return {
        "id": output.id,
        "signal_summary": output.signal_summary,
        "trading_recommendation": {
            "recommendation": rec.recommendation.value,
            "confidence": rec.confidence,
            "reasoning": rec.reasoning,
            "entry": rec.entry,
            "stop_loss": rec.stop_loss,
            "target": rec.target,
            "risk_reward_ratio": rec.risk_reward_ratio,
            "position_size_adjustment": rec.position_size_adjustment,
        },
        "risk_assessment": {
            "overall_risk_level": risk.overall_risk_level.value,
            "identified_risks": list(risk.identified_risks),
            "recommended_stop_loss_pct": risk.recommended_stop_loss_pct,
            "position_size_adjustment": risk.position_size_adjustment,
        },
        "volatility_regime": {
            "regime": vol.regime.value,
            "hv_30d": vol.hv_30d,
            "atr_pct": vol.atr_pct,
            "recommended_action": vol.recommended_action,
        },
        "opportunities": [
            {
                "type": item.type,
                "description": item.description,
                "entry_trigger": item.entry_trigger,
                "confidence": item.confidence,
                "action": item.action,
            }
            for item in output.opportunities
        ],
        "alerts": [
            {"type": item.type, "message": item.message, "severity": item.severity.value}
            for item in output.alerts
        ],
    }


def _serialize_positioning(positioning: MovingAveragePositioning | None) -> dict[str, Any] | None:
    if positioning is None:
        return None
    return {
        "price": positioning.price,
        "position": positioning.position,
        "averages": [
            {
                "key": item.key,
                "period": item.period,
                "value": item.value,
                "diff_pct": round(item.diff_pct, 2),
                "price_above": item.price_above,
            }
            for item in positioning.averages
        ],
    }


def _serialize_crossover(crossover: MacdCrossover | None) -> dict[str, Any] | None:
    if crossover is None:
        return None
    return {
        "macd": crossover.macd,
        "signal": crossover.signal,
        "histogram": crossover.histogram,
        "bullish": crossover.bullish,
        "label": crossover.label,
        "strength": crossover.strength,
    }


def _serialize_oscillator(reading: OscillatorReading) -> dict[str, Any]:
    return {
        "value": reading.value,
        "zone": reading.zone,
        "observed": reading.observed,
        "overbought": reading.high,
        "oversold": reading.low,
    }


def _serialize_fibonacci(fibonacci: FibonacciRetracement | None) -> dict[str, Any] | None:
    if fibonacci is None:
        return None

    def level_payload(level: Any) -> dict[str, Any] | None:
        if level is None:
            return None
        return {
            "ratio": level.ratio,
            "label": level.label,
            "price": round(level.price, 4),
            "role": level.role,
            "key": level.is_key,
            "distance_pct": round(level.distance_pct(fibonacci.current_price), 2),
        }

    zone = fibonacci.current_zone
    return {
        "current_price": fibonacci.current_price,
        "swing_high": fibonacci.swing_high,
        "swing_low": fibonacci.swing_low,
        "estimated": fibonacci.estimated,
        "levels": [level_payload(level) for level in fibonacci.levels],
        "current_zone": None if zone is None else [level_payload(zone[0]), level_payload(zone[1])],
        "nearest_support": level_payload(fibonacci.nearest_support),
        "nearest_resistance": level_payload(fibonacci.nearest_resistance),
    }


def serialize_view(view: AnalysisViewModel) -> dict[str, Any]:
    """Full detail-page payload for ``GET /api/analysis/<symbol>``."""
    sentiment = view.sentiment
    return {
        "analysis": serialize_analysis(view.analysis),
        "signals": [serialize_signal(signal) for signal in view.signals],
        "ai_output": serialize_ai_output(view.ai_output),
        "sentiment": {
            "sentiment": sentiment.sentiment,
            "bullish_count": sentiment.bullish_count,
            "bearish_count": sentiment.bearish_count,
            "average_confidence": sentiment.average_confidence,
        },
        "charts": [
            {"title": panel.title, "variant": panel.variant.value, "wide": panel.wide}
            for panel in view.panels
        ],
        "moving_averages": _serialize_positioning(view.positioning),
        "macd": _serialize_crossover(view.crossover),
        "rsi": _serialize_oscillator(view.rsi),
        "stochastic": _serialize_oscillator(view.stochastic),
        "fibonacci": _serialize_fibonacci(view.fibonacci),
    }
