"""Job execution - CSV ingestion and bulk rescoring"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from fintrack.domain.csv_mapping import CsvRowMapper, decode_csv, read_csv_rows
from fintrack.domain.exceptions import JobPayloadError, SourceFileNotFoundError, UnknownJobTypeError
from fintrack.domain.models import JobResult, JobType, TransactionDraft
from fintrack.domain.scoring import RiskEstimator
from fintrack.infrastructure.database.repositories import TransactionRepository
from fintrack.infrastructure.observability.metrics import csv_rows_skipped_counter, record_score
from fintrack.infrastructure.storage.files import FileStorage

logger = logging.getLogger(__name__)


def _require(payload: Dict[str, Any], *keys: str) -> str:
    """First non-blank payload value among keys"""
    for key in keys:
        value = payload.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    raise JobPayloadError(f"Job payload missing {keys[0]}")


class JobProcessor:
    """
    Executes a single claimed job.

    Row-level problems (a row that cannot be read, mapped, scored or stored) are
    logged and skipped. Job-level problems (missing payload field, missing
    source file, failed query) raise and leave the status decision to the
    caller. Rows inserted before a job-level failure stay inserted.
    """

    def __init__(
        self,
        transactions: TransactionRepository,
        storage: FileStorage,
        estimator: RiskEstimator,
        mapper: Optional[CsvRowMapper] = None,
    ):
        self.transactions = transactions
        self.storage = storage
        self.estimator = estimator
        self.mapper = mapper or CsvRowMapper()
        self._handlers: Dict[str, Callable[[Any], JobResult]] = {
            JobType.PARSE_CSV.value: self.parse_csv,
            JobType.RESCORE_ALL.value: self.rescore_all,
        }

    def handles(self, job_type: str) -> bool:
        return job_type in self._handlers

    def process(self, job: Any) -> JobResult:
        """Dispatch by job type"""
        handler = self._handlers.get(job.type)
        if handler is None:
            raise UnknownJobTypeError(f"Unknown job type: {job.type!r}")
        return handler(job)

    def parse_csv(self, job: Any) -> JobResult:
        """
        Ingest an uploaded CSV into scored transactions.

        Payload: {"user_id": ..., "file_locator": ...}

        Raises:
            JobPayloadError: user_id or file_locator missing
            SourceFileNotFoundError: nothing stored at the locator
            FileStorageError: file could not be read
            InvalidTransactionDataError: header row could not be read
        """
        payload = job.payload or {}
        user_id = _require(payload, "user_id")
        locator = _require(payload, "file_locator", "local_path")

        logger.info("Processing CSV job=%s user=%s locator=%s", job.id, user_id, locator)
        content = self.storage.fetch(locator)
        if content is None:
            raise SourceFileNotFoundError(f"CSV file not found: {locator}")

        result = JobResult(job_id=job.id, job_type=JobType.PARSE_CSV.value, file_locator=locator)

        def skip(where: str, error: Exception) -> None:
            result.skipped += 1
            csv_rows_skipped_counter.inc()
            logger.warning("CSV job %s: skipping %s: %s", job.id, where, error)

        rows = read_csv_rows(
            decode_csv(content),
            on_error=lambda line_number, error: skip(f"unreadable line {line_number}", error),
        )
        for row_number, row in enumerate(rows, start=1):
            try:
                draft = self.mapper.map_row(row)
                score = self.estimator.score(draft)
                self.transactions.insert(user_id, draft, score)
            except Exception as e:
                skip(f"data row {row_number}", e)
                continue
            record_score("csv", score)
            result.processed += 1

        self.storage.delete(locator)
        logger.info(
            "CSV job %s inserted %d rows, skipped %d", job.id, result.processed, result.skipped
        )
        return result

    def rescore_all(self, job: Any) -> JobResult:
        """
        Recompute the risk score of every stored transaction of a user.

        Payload: {"user_id": ...}
        """
        payload = job.payload or {}
        user_id = _require(payload, "user_id")

        logger.info("Processing rescore job=%s user=%s", job.id, user_id)
        # Snapshot before updating: each update commits and expires loaded rows
        snapshot: List[Tuple[str, TransactionDraft]] = [
            (
                tx.id,
                TransactionDraft(
                    amount=tx.amount,
                    country=tx.country,
                    merchant=tx.merchant,
                    timestamp=tx.timestamp,
                ),
            )
            for tx in self.transactions.list_by_user(user_id)
        ]

        result = JobResult(job_id=job.id, job_type=JobType.RESCORE_ALL.value)
        for transaction_id, draft in snapshot:
            try:
                score = self.estimator.score(draft)
                self.transactions.update_risk_score(transaction_id, score)
            except Exception as e:
                result.skipped += 1
                logger.warning("Rescore job %s: skipping transaction %s: %s", job.id, transaction_id, e)
                continue
            record_score("rescore", score)
            result.processed += 1

        logger.info("Rescore job %s updated %d rows", job.id, result.processed)
        return result
