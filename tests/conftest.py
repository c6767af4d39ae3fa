from datetime import datetime, timezone

import pytest

from core.models import Signal, SignalCategory, SignalStrength
from core.pipeline import PipelineRunner
from core.service import AnalysisService
from ui.app import create_app
from ui.cache import PageCache

REVALIDATION_SECRET = "s" * 32


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return None if self._data is None else dict(self._data)


class FakeDocumentRef:
    def __init__(self, store, doc_id):
        self._store = store
        self.id = doc_id

    def get(self):
        return FakeSnapshot(self.id, self._store.get(self.id))


class FakeQuery:
    def __init__(self, docs):
        self._docs = docs

    def where(self, filter):
        assert filter.op_string == "=="
        return FakeQuery([(doc_id, data) for doc_id, data in self._docs if data.get(filter.field_path) == filter.value])

    def order_by(self, field, direction="ASCENDING"):
        ordered = sorted(self._docs, key=lambda item: item[1][field], reverse=direction == "DESCENDING")
        return FakeQuery(ordered)

    def stream(self):
        return iter([FakeSnapshot(doc_id, data) for doc_id, data in self._docs])


class FakeCollection(FakeQuery):
    def __init__(self, store):
        super().__init__(list(store.items()))
        self._store = store

    def document(self, doc_id):
        return FakeDocumentRef(self._store, doc_id)


class FakeFirestore:
    """In-memory stand-in for the handful of Firestore calls the repositories make."""

    def __init__(self):
        self.collections = {}
        self.queries = []

    def collection(self, name):
        self.queries.append(name)
        return FakeCollection(self.collections.setdefault(name, {}))

    def add(self, collection, doc_id, data):
        self.collections.setdefault(collection, {})[doc_id] = data


def _signal_doc(analysis_id, symbol, name, category, strength, confidence, value, **extra):
    doc = {
        "analysis_id": analysis_id,
        "symbol": symbol,
        "name": name,
        "category": category,
        "strength": strength,
        "confidence": confidence,
        "description": f"{name} observed",
        "value": value,
    }
    doc.update(extra)
    return doc


def seed(client):
    client.add(
        "analyses",
        "aapl-1",
        {
            "symbol": "AAPL",
            "interval": "1d",
            "timestamp": datetime(2024, 1, 10, 21, 0, tzinfo=timezone.utc),
            "bars_analyzed": 250,
            "indicators": {"Current_Price": 140.0, "SMA_20": 138.0},
            "signal_summary": {"total": 1, "bullish": 1, "bearish": 0, "neutral": 0},
            "ai_enabled": False,
        },
    )
    client.add(
        "analyses",
        "aapl-2",
        {
            "symbol": "AAPL",
            "interval": "1d",
            "timestamp": datetime(2024, 1, 15, 21, 0, tzinfo=timezone.utc),
            "bars_analyzed": 250,
            "indicators": {
                "Current_Price": 150.0,
                "Volume": 1_000_000,
                "MACD": 0.05,
                "MACD_Signal": 0.03,
                "MACD_Histogram": 0.02,
                "SMA_20": 148.0,
                "SMA_50": 145.0,
                "SMA_200": 140.0,
            },
            "signal_summary": {"total": 5, "bullish": 2, "bearish": 1, "neutral": 2},
            "ai_enabled": True,
        },
    )
    client.add(
        "analyses",
        "msft-1",
        {
            "symbol": "MSFT",
            "interval": "1h",
            "timestamp": datetime(2024, 1, 12, 15, 30, tzinfo=timezone.utc),
            "bars_analyzed": 120,
            "indicators": {"Current_Price": 400.0},
            "signal_summary": {"total": 0, "bullish": 0, "bearish": 0, "neutral": 0},
            "ai_enabled": False,
        },
    )

    signals = {
        "sig-old": _signal_doc("aapl-1", "AAPL", "Above 20 SMA", "MA_POSITION", "BULLISH", 0.55, 138.0),
        "sig-1": _signal_doc("aapl-2", "AAPL", "Above 20 SMA", "MA_POSITION", "BULLISH", 0.8, 148.0),
        "sig-2": _signal_doc("aapl-2", "AAPL", "MACD Bullish Cross", "MACD", "BULLISH", 0.7, 0.02),
        "sig-3": _signal_doc("aapl-2", "AAPL", "RSI Neutral", "RSI", "NEUTRAL", 0.5, 55.0, indicator_name="RSI"),
        "sig-4": _signal_doc("aapl-2", "AAPL", "Near FIB 61.8%", "FIBONACCI", "MODERATE", 0.6, 145.0),
        "sig-5": _signal_doc(
            "aapl-2", "AAPL", "Stochastic Overbought", "STOCHASTIC", "BEARISH", 0.65, 85.0, indicator_name="Stochastic"
        ),
    }
    for doc_id, data in signals.items():
        client.add("signals", doc_id, data)

    client.add(
        "ai_outputs",
        "aapl-2",
        {
            "signal_summary": "Momentum is constructive above key averages.",
            "trading_recommendation": {
                "recommendation": "BUY",
                "confidence": 0.72,
                "reasoning": "Price holds above all moving averages.",
                "entry": 150.0,
                "stop_loss": 144.0,
                "target": 162.0,
                "risk_reward_ratio": 2.0,
            },
            "risk_assessment": {"overall_risk_level": "MEDIUM", "identified_risks": ["Stochastic overbought"]},
            "volatility_regime": {"regime": "NORMAL", "hv_30d": "22%"},
            "opportunities": [{"type": "Pullback", "description": "Buy near SMA 20", "confidence": 0.6}],
            "alerts": [{"type": "momentum", "message": "Stochastic above 80", "severity": "WARNING"}],
        },
    )


@pytest.fixture
def firestore_client():
    client = FakeFirestore()
    seed(client)
    return client


@pytest.fixture
def service(firestore_client):
    svc = AnalysisService.from_client(firestore_client, max_workers=2)
    yield svc
    svc.close()


@pytest.fixture
def pipeline_dir(tmp_path):
    path = tmp_path / "pipeline"
    path.mkdir()
    return path


@pytest.fixture
def page_cache():
    return PageCache(300)


@pytest.fixture
def app(service, pipeline_dir, page_cache):
    app = create_app(
        service=service,
        runner=PipelineRunner(str(pipeline_dir)),
        page_cache=page_cache,
        revalidation_secret=REVALIDATION_SECRET,
        test_config={"TESTING": True, "WRITE_PLOTLY_BUNDLE": False},
    )
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_signal():
    counter = iter(range(1, 10_000))

    def factory(category="RSI", strength="NEUTRAL", confidence=0.5, value=50.0, name=None, indicator_name=None):
        idx = next(counter)
        category = SignalCategory(category)
        return Signal(
            id=f"sig-{idx}",
            analysis_id="analysis-1",
            name=name or f"{category.label} signal {idx}",
            category=category,
            strength=SignalStrength(strength),
            confidence=confidence,
            description="",
            value=value,
            indicator_name=indicator_name,
        )

    return factory


@pytest.fixture
def revalidation_secret():
    return REVALIDATION_SECRET
