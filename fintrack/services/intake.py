"""Entry points into the scoring core used by the HTTP layer"""

import re
from typing import Any, Optional

from fintrack.domain.csv_mapping import DEFAULT_COUNTRY, DEFAULT_MERCHANT, normalize_timestamp, parse_amount
from fintrack.domain.exceptions import ValidationError
from fintrack.domain.models import JobType, TransactionDraft
from fintrack.domain.scoring import RiskEstimator
from fintrack.infrastructure.database.repositories import JobRepository
from fintrack.infrastructure.observability.metrics import jobs_enqueued_counter
from fintrack.utils.date_utils import to_iso_utc, utc_now

USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_\-]{1,128}$")


def validate_user_id(user_id: Optional[str]) -> str:
    """
    Check a caller-supplied user id before any job or transaction is created.

    Raises:
        ValidationError: if missing, blank, or not made of [A-Za-z0-9_-]
    """
    if user_id is None or not str(user_id).strip():
        raise ValidationError("user_id required")
    user_id = str(user_id).strip()
    if not USER_ID_PATTERN.match(user_id):
        raise ValidationError("user_id appears invalid")
    return user_id


def enqueue_parse_csv(jobs: JobRepository, user_id: str, file_locator: str) -> str:
    """Queue ingestion of an uploaded CSV file"""
    user_id = validate_user_id(user_id)
    if not file_locator or not str(file_locator).strip():
        raise ValidationError("file_locator required")
    job_id = jobs.enqueue(
        JobType.PARSE_CSV.value,
        {"user_id": user_id, "file_locator": str(file_locator).strip()},
    )
    jobs_enqueued_counter.labels(type=JobType.PARSE_CSV.value).inc()
    return job_id


def enqueue_rescore_all(jobs: JobRepository, user_id: str) -> str:
    """Queue recomputation of every stored score for a user"""
    user_id = validate_user_id(user_id)
    job_id = jobs.enqueue(JobType.RESCORE_ALL.value, {"user_id": user_id})
    jobs_enqueued_counter.labels(type=JobType.RESCORE_ALL.value).inc()
    return job_id


def score_transaction(estimator: RiskEstimator, draft: Any) -> float:
    """Synchronous single-transaction scoring, bypassing the queue"""
    return estimator.score(draft)


def build_draft(
    amount: Any = None,
    country: Optional[str] = None,
    merchant: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> TransactionDraft:
    """
    Canonical draft from loosely typed API fields.

    Amount text is cleaned like a CSV cell; missing country and merchant fall
    back to the CSV defaults; a missing timestamp means now.
    """
    return TransactionDraft(
        amount=parse_amount(amount),
        country=(country or "").strip() or DEFAULT_COUNTRY,
        merchant=(merchant or "").strip() or DEFAULT_MERCHANT,
        timestamp=normalize_timestamp(timestamp) if timestamp and timestamp.strip() else to_iso_utc(utc_now()),
    )
