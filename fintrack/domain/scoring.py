"""Risk scoring engine - heuristic fraud score for a single transaction"""

import math
from collections.abc import Mapping
from typing import Any, Dict, FrozenSet, Iterable, List, Optional
from zoneinfo import ZoneInfo

from fintrack.domain.models import RiskAssessment, RiskWeights
from fintrack.utils.date_utils import parse_timestamp, to_utc

DEFAULT_MERCHANT_BLACKLIST = frozenset({"scamshop ltd", "suspicious merchant"})
DEFAULT_ALLOWED_COUNTRIES = frozenset({"ireland", "uk", "usa"})

MAX_SCORE = 100.0
OFF_HOURS_END = 5  # hours [0, 5) count as off-hours


def _field(tx: Any, name: str) -> Any:
    """Read a field from a mapping or an attribute object"""
    if tx is None:
        return None
    if isinstance(tx, Mapping):
        return tx.get(name)
    return getattr(tx, name, None)


def coerce_amount(value: Any) -> float:
    """Numeric amount, 0.0 for anything absent, non-numeric or non-finite"""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    return amount if math.isfinite(amount) else 0.0


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).lower()


class RiskEstimator:
    """
    Deterministic risk score in [0, 100] from amount, country, hour and merchant.

    Signals (each weight is scaled by 100):
    - Large amount: amount >= threshold adds min(1, ln(amount/threshold + 1)) * weight.
      The logarithm keeps a single huge transaction from dominating the score.
    - Unusual country: non-empty country outside the allowed set.
    - Off hours: local hour in [0, 5).
    - Blacklisted merchant: exact case-insensitive name match.

    Holds no mutable state, so one instance can be shared across threads.
    """

    def __init__(
        self,
        weights: Optional[RiskWeights] = None,
        merchant_blacklist: Optional[Iterable[str]] = None,
        allowed_countries: Optional[Iterable[str]] = None,
        timezone_name: str = "UTC",
    ):
        self.weights = weights or RiskWeights()
        self.merchant_blacklist: FrozenSet[str] = (
            frozenset(_text(m) for m in merchant_blacklist)
            if merchant_blacklist is not None
            else DEFAULT_MERCHANT_BLACKLIST
        )
        self.allowed_countries: FrozenSet[str] = (
            frozenset(_text(c) for c in allowed_countries)
            if allowed_countries is not None
            else DEFAULT_ALLOWED_COUNTRIES
        )
        self.timezone = ZoneInfo(timezone_name)

    @classmethod
    def from_settings(cls, settings) -> "RiskEstimator":
        """Build an estimator from application settings"""
        return cls(
            weights=RiskWeights(
                large_amount_threshold=settings.risk_large_amount_threshold,
                large_amount_weight=settings.risk_large_amount_weight,
                unusual_country_weight=settings.risk_unusual_country_weight,
                off_hours_weight=settings.risk_off_hours_weight,
                blacklist_weight=settings.risk_blacklist_weight,
            ),
            merchant_blacklist=settings.risk_merchant_blacklist,
            allowed_countries=settings.risk_allowed_countries,
            timezone_name=settings.risk_timezone,
        )

    def large_amount_signal(self, amount: float) -> float:
        threshold = self.weights.large_amount_threshold
        if threshold <= 0 or amount < threshold:
            return 0.0
        return min(1.0, math.log(amount / threshold + 1)) * self.weights.large_amount_weight * 100

    def unusual_country_signal(self, country: str) -> float:
        if country and country not in self.allowed_countries:
            return self.weights.unusual_country_weight * 100
        return 0.0

    def off_hours_signal(self, timestamp: Any) -> float:
        parsed = parse_timestamp(timestamp)
        if parsed is None:
            return 0.0
        try:
            local_hour = to_utc(parsed).astimezone(self.timezone).hour
        except (OverflowError, ValueError):
            return 0.0
        if 0 <= local_hour < OFF_HOURS_END:
            return self.weights.off_hours_weight * 100
        return 0.0

    def blacklist_signal(self, merchant: str) -> float:
        if merchant and merchant in self.merchant_blacklist:
            return self.weights.blacklist_weight * 100
        return 0.0

    def assess(self, tx: Any) -> RiskAssessment:
        """Score a transaction and report each signal's contribution"""
        signals: Dict[str, float] = {
            "large_amount": self.large_amount_signal(coerce_amount(_field(tx, "amount"))),
            "unusual_country": self.unusual_country_signal(_text(_field(tx, "country"))),
            "off_hours": self.off_hours_signal(_field(tx, "timestamp")),
            "blacklisted_merchant": self.blacklist_signal(_text(_field(tx, "merchant"))),
        }
        total = min(MAX_SCORE, max(0.0, sum(signals.values())))
        return RiskAssessment(
            score=round(total, 2),
            signals={name: round(value, 2) for name, value in signals.items()},
        )

    def score(self, tx: Any) -> float:
        """Risk score in [0, 100]; never raises"""
        return self.assess(tx).score

    def batch_score(self, transactions: Iterable[Any]) -> List[float]:
        return [self.score(tx) for tx in transactions]
