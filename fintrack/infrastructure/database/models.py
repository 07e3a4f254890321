"""SQLAlchemy ORM models for users, transactions and the job queue"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Float, Index, Text, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    # Client-side timestamps keep microsecond ordering for the job queue
    return datetime.now(timezone.utc)


class User(Base):
    """Account created by the echo/upsert endpoint"""

    __tablename__ = "users"

    id = Column(Text, primary_key=True, default=_new_id)
    email = Column(Text, nullable=False, unique=True)


class Transaction(Base):
    """Scored financial transaction"""

    __tablename__ = "transactions"

    id = Column(Text, primary_key=True, default=_new_id)
    user_id = Column(Text, nullable=False, index=True)
    amount = Column(Float, nullable=False, default=0.0)
    country = Column(Text, nullable=True)
    merchant = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=True)
    risk_score = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)


class Job(Base):
    """Asynchronous work item claimed and executed by the worker loop"""

    __tablename__ = "jobs"
    __table_args__ = (Index("ix_jobs_status_created_at", "status", "created_at"),)

    id = Column(Text, primary_key=True, default=_new_id)
    type = Column(Text, nullable=False)
    payload = Column(JSON, nullable=False, default=dict)
    status = Column(Text, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
