from core.service import TOP_BULLISH_LIMIT


def test_full_analysis_assembles_parts(service):
    full = service.get_full_analysis("AAPL")
    assert full.analysis.id == "aapl-2"
    assert len(full.signals) == 5
    assert all(signal.analysis_id == "aapl-2" for signal in full.signals)
    assert full.ai_output.id == "aapl-2"


def test_full_analysis_without_ai_output(service):
    full = service.get_full_analysis("msft")
    assert full.analysis.symbol == "MSFT"
    assert full.signals == []
    assert full.ai_output is None


def test_unknown_symbol_is_none(service, firestore_client):
    assert service.get_full_analysis("TSLA") is None
    assert "signals" not in firestore_client.queries


def test_dashboard_data(service):
    data = service.get_dashboard_data()
    assert [item.symbol for item in data.analyses] == ["AAPL", "MSFT", "AAPL"]
    assert len(data.bullish_signals) <= TOP_BULLISH_LIMIT
    assert data.bullish_signals[0].confidence == 0.8


def test_all_symbols_unique_in_recency_order(service):
    assert service.get_all_symbols() == ["AAPL", "MSFT"]
