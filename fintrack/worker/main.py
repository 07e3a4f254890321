"""Standalone worker process: `fintrack-worker`"""

import logging

from fintrack.config import settings
from fintrack.domain.scoring import RiskEstimator
from fintrack.infrastructure.database.session import SessionLocal, init_db
from fintrack.infrastructure.observability.logging import setup_logging
from fintrack.infrastructure.storage.files import FileStorage
from fintrack.worker.loop import WorkerLoop


def build_worker() -> WorkerLoop:
    """Wire a worker loop from application settings"""
    return WorkerLoop(
        session_factory=SessionLocal,
        storage=FileStorage.from_settings(settings),
        estimator=RiskEstimator.from_settings(settings),
        batch_size=settings.worker_batch_size,
        poll_interval=settings.worker_poll_interval_seconds,
    )


def main() -> None:
    setup_logging(settings.log_level)
    if settings.create_tables_on_startup:
        init_db()

    worker = build_worker()
    try:
        worker.run_forever()
    except KeyboardInterrupt:
        logging.info("Worker interrupted")
        worker.stop()


if __name__ == "__main__":
    main()
