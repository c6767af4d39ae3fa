"""Firestore read layer: map pipeline documents to typed records."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, TypeVar

from google.cloud.firestore_v1.base_query import FieldFilter

from core.models import (
    AIOutput,
    Alert,
    AlertSeverity,
    Analysis,
    Opportunity,
    Recommendation,
    RiskAssessment,
    RiskLevel,
    Signal,
    SignalCategory,
    SignalStrength,
    SignalSummary,
    TradingRecommendation,
    VolatilityRegime,
    VolatilityRegimeKind,
)

ANALYSES = "analyses"
SIGNALS = "signals"
AI_OUTPUTS = "ai_outputs"
DESCENDING = "DESCENDING"

T = TypeVar("T")


class RecordError(RuntimeError):
    """A document exists but cannot be mapped to a record."""

    def __init__(self, collection: str, doc_id: str, reason: str) -> None:
        super().__init__(f"Malformed {collection} document {doc_id}: {reason}")
        self.collection = collection
        self.doc_id = doc_id


def _require(data: dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None:
        raise KeyError(key)
    return value


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    raise ValueError(f"unsupported timestamp {value!r}")


def _optional_float(value: Any) -> float | None:
    return None if value is None else float(value)


def _map_document(collection: str, doc: Any, mapper: Callable[[str, dict[str, Any]], T]) -> T:
    data = doc.to_dict()
    if data is None:
        raise RecordError(collection, doc.id, "document has no data")
    try:
        return mapper(doc.id, data)
    except KeyError as exc:
        raise RecordError(collection, doc.id, f"missing field {exc.args[0]!r}") from exc
    except (AttributeError, TypeError, ValueError) as exc:
        raise RecordError(collection, doc.id, str(exc)) from exc


def to_analysis(doc_id: str, data: dict[str, Any]) -> Analysis:
    summary = _require(data, "signal_summary")
    indicators = _require(data, "indicators")
    if not isinstance(indicators, dict):
        raise TypeError("indicators must be a mapping")
    return Analysis(
        id=doc_id,
        symbol=str(_require(data, "symbol")),
        interval=str(_require(data, "interval")),
        timestamp=_parse_timestamp(_require(data, "timestamp")),
        bars_analyzed=int(_require(data, "bars_analyzed")),
        indicators={str(key): value for key, value in indicators.items()},
        signal_summary=SignalSummary(
            total=int(summary.get("total", 0)),
            bullish=int(summary.get("bullish", 0)),
            bearish=int(summary.get("bearish", 0)),
            neutral=int(summary.get("neutral", 0)),
        ),
        ai_enabled=bool(data.get("ai_enabled", False)),
    )


def to_signal(doc_id: str, data: dict[str, Any]) -> Signal:
    category = SignalCategory(_require(data, "category"))
    confidence = float(_require(data, "confidence"))
    if not 0.0 <= confidence <= 1.0:
        raise ValueError(f"confidence {confidence} outside [0, 1]")
    return Signal(
        id=doc_id,
        analysis_id=str(_require(data, "analysis_id")),
        name=str(data.get("name") or category.label),
        category=category,
        strength=SignalStrength(_require(data, "strength")),
        confidence=confidence,
        description=str(data.get("description") or ""),
        value=float(_require(data, "value")),
        symbol=data.get("symbol"),
        trading_implication=data.get("trading_implication") or None,
        indicator_name=data.get("indicator_name") or None,
    )


def to_ai_output(doc_id: str, data: dict[str, Any]) -> AIOutput:
    rec = _require(data, "trading_recommendation")
    risk = _require(data, "risk_assessment")
    vol = _require(data, "volatility_regime")
    return AIOutput(
        id=doc_id,
        signal_summary=str(data.get("signal_summary") or ""),
        trading_recommendation=TradingRecommendation(
            recommendation=Recommendation(_require(rec, "recommendation")),
            confidence=float(_require(rec, "confidence")),
            reasoning=str(rec.get("reasoning") or ""),
            entry=_optional_float(rec.get("entry")),
            stop_loss=_optional_float(rec.get("stop_loss")),
            target=_optional_float(rec.get("target")),
            risk_reward_ratio=_optional_float(rec.get("risk_reward_ratio")),
            position_size_adjustment=str(rec.get("position_size_adjustment") or ""),
        ),
        risk_assessment=RiskAssessment(
            overall_risk_level=RiskLevel(_require(risk, "overall_risk_level")),
            identified_risks=[str(item) for item in risk.get("identified_risks") or []],
            recommended_stop_loss_pct=_optional_float(risk.get("recommended_stop_loss_pct")),
            position_size_adjustment=str(risk.get("position_size_adjustment") or ""),
        ),
        volatility_regime=VolatilityRegime(
            regime=VolatilityRegimeKind(_require(vol, "regime")),
            hv_30d=str(vol.get("hv_30d") or ""),
            atr_pct=str(vol.get("atr_pct") or ""),
            recommended_action=str(vol.get("recommended_action") or ""),
        ),
        opportunities=[
            Opportunity(
                type=str(item.get("type") or ""),
                description=str(item.get("description") or ""),
                entry_trigger=str(item.get("entry_trigger") or ""),
                confidence=float(item.get("confidence") or 0.0),
                action=str(item.get("action") or ""),
            )
            for item in data.get("opportunities") or []
        ],
        alerts=[
            Alert(
                type=str(item.get("type") or ""),
                message=str(item.get("message") or ""),
                severity=AlertSeverity(item.get("severity") or AlertSeverity.INFO.value),
            )
            for item in data.get("alerts") or []
        ],
    )


class AnalysisRepository:
    def __init__(self, client: Any) -> None:
        self._client = client

    def get_all(self) -> list[Analysis]:
        docs = self._client.collection(ANALYSES).order_by("timestamp", direction=DESCENDING).stream()
        return [_map_document(ANALYSES, doc, to_analysis) for doc in docs]

    def get_by_symbol(self, symbol: str) -> Analysis | None:
        """Most recent analysis for ``symbol`` or ``None``."""
        # Filter only, then sort in memory; avoids a composite index.
        docs = (
            self._client.collection(ANALYSES)
            .where(filter=FieldFilter("symbol", "==", symbol.strip().upper()))
            .stream()
        )
        analyses = [_map_document(ANALYSES, doc, to_analysis) for doc in docs]
        if not analyses:
            return None
        return max(analyses, key=lambda item: item.timestamp)

    def get_by_id(self, analysis_id: str) -> Analysis | None:
        doc = self._client.collection(ANALYSES).document(analysis_id).get()
        if not doc.exists:
            return None
        return _map_document(ANALYSES, doc, to_analysis)


class SignalRepository:
    def __init__(self, client: Any) -> None:
        self._client = client

    def _where(self, field: str, value: Any) -> list[Signal]:
        docs = self._client.collection(SIGNALS).where(filter=FieldFilter(field, "==", value)).stream()
        return [_map_document(SIGNALS, doc, to_signal) for doc in docs]

    def get_by_analysis_id(self, analysis_id: str) -> list[Signal]:
        return self._where("analysis_id", analysis_id)

    def get_by_symbol(self, symbol: str) -> list[Signal]:
        return self._where("symbol", symbol.strip().upper())

    def get_by_category(self, category: SignalCategory | str) -> list[Signal]:
        return self._where("category", SignalCategory(category).value)

    def get_bullish(self, limit: int = 20) -> list[Signal]:
        signals = self._where("strength", SignalStrength.BULLISH.value)
        signals.sort(key=lambda signal: signal.confidence, reverse=True)
        return signals[:limit]


class AIOutputRepository:
    def __init__(self, client: Any) -> None:
        self._client = client

    def get_by_analysis_id(self, analysis_id: str) -> AIOutput | None:
        doc = self._client.collection(AI_OUTPUTS).document(analysis_id).get()
        if not doc.exists:
            return None
        return _map_document(AI_OUTPUTS, doc, to_ai_output)
