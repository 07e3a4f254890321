"""Dependency injection for FastAPI endpoints"""

from functools import lru_cache
from fastapi import Request
from fintrack.config import settings
from fintrack.domain.scoring import RiskEstimator
from fintrack.infrastructure.storage.files import FileStorage


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


@lru_cache(maxsize=1)
def get_estimator() -> RiskEstimator:
    """Provide the shared risk estimator built from settings"""
    return RiskEstimator.from_settings(settings)


def get_file_storage() -> FileStorage:
    """Provide upload storage"""
    return FileStorage.from_settings(settings)
