"""Dashboard aggregates over a user's transactions"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable

from fintrack.domain.scoring import coerce_amount
from fintrack.utils.date_utils import month_key


@dataclass
class DashboardSummary:
    """Totals for the dashboard view"""

    count: int = 0
    total: float = 0.0
    by_month: Dict[str, float] = field(default_factory=dict)


def summarize_transactions(transactions: Iterable[Any]) -> DashboardSummary:
    """
    Count and sum transactions, bucketing amounts by YYYY-MM of their timestamp.

    Transactions without a parseable timestamp count toward the total but
    not toward any month.
    """
    summary = DashboardSummary()
    for tx in transactions:
        amount = coerce_amount(getattr(tx, "amount", None))
        summary.count += 1
        summary.total += amount

        month = month_key(getattr(tx, "timestamp", None))
        if month is not None:
            summary.by_month[month] = summary.by_month.get(month, 0.0) + amount

    summary.total = round(summary.total, 2)
    summary.by_month = {m: round(v, 2) for m, v in sorted(summary.by_month.items())}
    return summary
