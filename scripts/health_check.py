#!/usr/bin/env python3
"""SignalBoard document-store health check and freshness report."""

from dataclasses import dataclass
import datetime
import os
import sys

# Add project to path
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from core.models import Analysis

FRESH_HOURS = 24
CURRENT_DAYS = 3
MAX_STALE_SYMBOLS = 5

FRESH = "fresh"
CURRENT = "current"
STALE = "stale"


@dataclass(frozen=True)
class SymbolFreshness:
    symbol: str
    timestamp: datetime.datetime
    age: datetime.timedelta
    status: str


def _as_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def classify_age(age: datetime.timedelta) -> str:
    if age <= datetime.timedelta(hours=FRESH_HOURS):
        return FRESH
    if age <= datetime.timedelta(days=CURRENT_DAYS):
        return CURRENT
    return STALE


def freshness_report(analyses: list[Analysis], now: datetime.datetime | None = None) -> list[SymbolFreshness]:
    """Latest analysis per symbol, oldest first."""
    now = _as_utc(now or datetime.datetime.now(datetime.timezone.utc))
    latest: dict[str, Analysis] = {}
    for analysis in analyses:
        existing = latest.get(analysis.symbol)
        if existing is None or _as_utc(analysis.timestamp) > _as_utc(existing.timestamp):
            latest[analysis.symbol] = analysis

    rows = []
    for symbol, analysis in latest.items():
        age = now - _as_utc(analysis.timestamp)
        rows.append(SymbolFreshness(symbol=symbol, timestamp=analysis.timestamp, age=age, status=classify_age(age)))
    rows.sort(key=lambda row: row.age, reverse=True)
    return rows


def check_data_freshness(analyses: list[Analysis]) -> bool:
    """Report on analysis freshness per symbol."""
    print("\n📊 SignalBoard Freshness Report")
    print("=" * 70)

    rows = freshness_report(analyses)
    if not rows:
        print("  No analyses stored yet. Run the pipeline to generate data.")
        return False

    labels = {FRESH: "✓ Fresh", CURRENT: "⚠ Current", STALE: "✗ Stale"}
    for row in rows:
        hours = row.age.total_seconds() / 3600
        print(f"  {labels[row.status]:12} {row.symbol:6} | last={row.timestamp:%Y-%m-%d %H:%M} | age={hours:6.1f}h")

    stale = [row.symbol for row in rows if row.status == STALE]
    print("\n" + "=" * 70)
    print("Summary:")
    print(f"  Fresh (<{FRESH_HOURS}h):      {sum(1 for row in rows if row.status == FRESH):3} / {len(rows)}")
    print(f"  Current (<{CURRENT_DAYS}d):      {sum(1 for row in rows if row.status == CURRENT):3} / {len(rows)}")
    print(f"  Stale:              {len(stale):3} / {len(rows)}")

    if stale:
        print(f"\n⚠ Stale Symbols ({len(stale)}):")
        for symbol in stale:
            print(f"    - {symbol}")

    return len(stale) <= MAX_STALE_SYMBOLS


def check_logs() -> bool:
    """Check recent UI log entries."""
    print("\n📋 Recent Log Entries (last 10)")
    print("=" * 70)

    log_file = os.path.join(BASE_DIR, "logs", "ui.log")
    if not os.path.exists(log_file):
        print("  No log file found yet.")
        return True

    try:
        with open(log_file, "r", encoding="utf-8") as f:
            lines = f.readlines()[-10:]
    except OSError as e:
        print(f"  Error reading logs: {e}")
        return False

    for line in lines:
        print(f"  {line.rstrip()}")
    return not any("| ERROR |" in line for line in lines)


def main() -> int:
    """Run all checks."""
    from core.db import create_firestore_client
    from core.repository import AnalysisRepository

    print("\n" + "=" * 70)
    print("  SignalBoard Health Check")
    print("=" * 70)

    all_pass = True
    try:
        analyses = AnalysisRepository(create_firestore_client()).get_all()
    except Exception as e:
        print(f"\n❌ Document store unreachable: {e}")
        analyses = None
        all_pass = False

    if analyses is not None and not check_data_freshness(analyses):
        all_pass = False
    if not check_logs():
        all_pass = False

    print("\n" + "=" * 70)
    if all_pass:
        print("✓ All checks passed. SignalBoard is healthy!")
    else:
        print("⚠ Some checks failed. Review above for details.")
    print("=" * 70 + "\n")

    return 0 if all_pass else 1


if __name__ == "__main__":
    sys.exit(main())
