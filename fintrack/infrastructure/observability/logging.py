"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from fintrack.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_job_outcome(
    job_id: str,
    job_type: str,
    status: str,
    duration_ms: float,
    processed: int = 0,
    skipped: int = 0,
    error: Optional[str] = None,
) -> None:
    """Log structured job outcome for analysis"""
    extra = {
        "job_id": job_id,
        "job_type": job_type,
        "step": "job_complete",
        "job_status": status,
        "processed": processed,
        "skipped": skipped,
        "duration_ms": duration_ms,
    }
    if error is not None:
        extra["error"] = error
        logging.warning("Job failed", extra=extra)
    else:
        logging.info("Job completed", extra=extra)
