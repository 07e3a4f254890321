"""Data access layer for users, transactions and jobs"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fintrack.infrastructure.database.models import Job, Transaction, User
from fintrack.domain.exceptions import InvalidTransactionDataError
from fintrack.domain.models import JobStatus, TransactionDraft
from fintrack.utils.date_utils import parse_timestamp, to_utc

logger = logging.getLogger(__name__)


def _storable_timestamp(value: Any) -> Optional[datetime]:
    """Timestamp column value; rejects strings the column cannot hold"""
    if value is None:
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise InvalidTransactionDataError(f"Unparseable timestamp: {value!r}")
    try:
        return to_utc(parsed)
    except (OverflowError, ValueError) as e:
        raise InvalidTransactionDataError(f"Timestamp out of range: {value!r}") from e


class UserRepository:
    """Repository for users"""

    def __init__(self, db: Session):
        self.db = db

    def get_or_create(self, email: str) -> User:
        """Return the user with this email, creating it on first sight"""
        user = self.db.query(User).filter(User.email == email).first()
        if user is not None:
            return user
        user = User(email=email)
        self.db.add(user)
        self.db.commit()
        return user


class TransactionRepository:
    """Repository for scored transactions. Every write is committed on its own."""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, user_id: str, draft: TransactionDraft, risk_score: float) -> Transaction:
        """
        Persist one scored transaction.

        Raises:
            InvalidTransactionDataError: timestamp cannot be stored
            SQLAlchemyError: database rejected the row (session is rolled back)
        """
        db_transaction = Transaction(
            user_id=user_id,
            amount=draft.amount,
            country=draft.country,
            merchant=draft.merchant,
            timestamp=_storable_timestamp(draft.timestamp),
            risk_score=risk_score,
        )
        self.db.add(db_transaction)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return db_transaction

    def list_by_user(self, user_id: str, limit: Optional[int] = None) -> List[Transaction]:
        """Fetch a user's transactions, newest first"""
        query = (
            self.db.query(Transaction)
            .filter(Transaction.user_id == user_id)
            .order_by(Transaction.created_at.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def update_risk_score(self, transaction_id: str, risk_score: float) -> None:
        """Overwrite the stored score of one transaction"""
        try:
            self.db.execute(
                update(Transaction)
                .where(Transaction.id == transaction_id)
                .values(risk_score=risk_score)
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise


class JobRepository:
    """Durable job queue backed by the jobs table"""

    def __init__(self, db: Session):
        self.db = db

    def enqueue(self, job_type: str, payload: Dict[str, Any]) -> str:
        """Insert a pending job and return its id"""
        db_job = Job(type=job_type, payload=payload, status=JobStatus.PENDING.value)
        self.db.add(db_job)
        self.db.commit()
        return db_job.id

    def get(self, job_id: str) -> Optional[Job]:
        return self.db.query(Job).filter(Job.id == job_id).first()

    def claim_pending(self, limit: int) -> List[Job]:
        """
        Claim up to `limit` pending jobs, oldest first, marking each processing.

        Each claim is a conditional update on status='pending', so when two
        workers race for the same job only one update matches a row.
        """
        candidates = (
            self.db.query(Job)
            .filter(Job.status == JobStatus.PENDING.value)
            .order_by(Job.created_at.asc(), Job.id.asc())
            .limit(limit)
            .all()
        )

        claimed = []
        for job in candidates:
            result = self.db.execute(
                update(Job)
                .where(Job.id == job.id, Job.status == JobStatus.PENDING.value)
                .values(status=JobStatus.PROCESSING.value)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                claimed.append(job)
            else:
                logger.info("Job %s was claimed by another worker", job.id)
        self.db.commit()
        return claimed

    def complete(self, job_id: str) -> bool:
        return self._finish(job_id, JobStatus.DONE)

    def fail(self, job_id: str) -> bool:
        return self._finish(job_id, JobStatus.FAILED)

    def _finish(self, job_id: str, status: JobStatus) -> bool:
        """Move a processing job to a terminal status; False if it was not processing"""
        result = self.db.execute(
            update(Job)
            .where(Job.id == job_id, Job.status == JobStatus.PROCESSING.value)
            .values(status=status.value)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        if result.rowcount != 1:
            logger.warning("Job %s was not processing; %s transition ignored", job_id, status.value)
            return False
        return True
