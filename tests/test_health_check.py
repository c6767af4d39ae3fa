from datetime import datetime, timedelta, timezone

from scripts.health_check import CURRENT, FRESH, STALE, check_data_freshness, classify_age, freshness_report


def test_report_keeps_latest_per_symbol(service):
    analyses = service.analyses.get_all()
    now = datetime(2024, 1, 16, 9, 0, tzinfo=timezone.utc)

    rows = freshness_report(analyses, now=now)

    assert [row.symbol for row in rows] == ["MSFT", "AAPL"]
    aapl = rows[1]
    assert aapl.age == timedelta(hours=12)
    assert aapl.status == FRESH
    assert rows[0].status == STALE


def test_classify_age():
    assert classify_age(timedelta(hours=24)) == FRESH
    assert classify_age(timedelta(days=2)) == CURRENT
    assert classify_age(timedelta(days=3, seconds=1)) == STALE


def test_old_analyses_are_stale(service):
    analyses = service.analyses.get_all()
    rows = freshness_report(analyses, now=datetime(2024, 3, 1, tzinfo=timezone.utc))
    assert {row.status for row in rows} == {STALE}


def test_check_without_data(capsys):
    assert not check_data_freshness([])
    assert "No analyses stored yet" in capsys.readouterr().out
