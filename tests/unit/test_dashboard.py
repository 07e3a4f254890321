"""Unit tests for dashboard aggregation"""

from datetime import datetime, timezone
from types import SimpleNamespace
from fintrack.domain.dashboard import summarize_transactions


def _tx(amount, timestamp):
    return SimpleNamespace(amount=amount, timestamp=timestamp)


def test_summarize_groups_by_month():
    """Test count, total and per-month sums"""
    transactions = [
        _tx(10.0, "2024-01-03T00:00:00+00:00"),
        _tx(5.5, datetime(2024, 1, 20, 12, 0, tzinfo=timezone.utc)),
        _tx(100.0, "2024-02-01T09:00:00Z"),
    ]

    summary = summarize_transactions(transactions)

    assert summary.count == 3
    assert summary.total == 115.5
    assert summary.by_month == {"2024-01": 15.5, "2024-02": 100.0}


def test_summarize_months_sorted():
    """Test month keys come out in calendar order"""
    transactions = [_tx(1, "2024-03-01"), _tx(1, "2023-12-31"), _tx(1, "2024-01-15")]

    summary = summarize_transactions(transactions)

    assert list(summary.by_month) == ["2023-12", "2024-01", "2024-03"]


def test_summarize_unparseable_timestamp_counts_only_toward_total():
    """Test transactions without a usable timestamp still count and add to total"""
    transactions = [_tx(10.0, "2024-01-03"), _tx(7.0, None), _tx(3.0, "garbage")]

    summary = summarize_transactions(transactions)

    assert summary.count == 3
    assert summary.total == 20.0
    assert summary.by_month == {"2024-01": 10.0}


def test_summarize_month_uses_utc():
    """Test offsets are converted before bucketing"""
    # 2024-02-01 01:00 at +02:00 is still January in UTC
    summary = summarize_transactions([_tx(1.0, "2024-02-01T01:00:00+02:00")])

    assert summary.by_month == {"2024-01": 1.0}


def test_summarize_rounds_to_cents():
    """Test float noise is rounded away"""
    summary = summarize_transactions([_tx(0.1, "2024-01-01"), _tx(0.2, "2024-01-02")])

    assert summary.total == 0.3
    assert summary.by_month == {"2024-01": 0.3}


def test_summarize_empty():
    """Test an empty history yields zeros"""
    summary = summarize_transactions([])

    assert summary.count == 0
    assert summary.total == 0.0
    assert summary.by_month == {}
