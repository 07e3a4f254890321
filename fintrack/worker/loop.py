"""Polling worker that drains the job queue"""

import logging
import threading
import time
from typing import Any, Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from fintrack.domain.exceptions import DomainException
from fintrack.domain.models import JobResult, JobStatus
from fintrack.domain.scoring import RiskEstimator
from fintrack.infrastructure.database.repositories import JobRepository, TransactionRepository
from fintrack.infrastructure.observability.logging import log_job_outcome
from fintrack.infrastructure.observability.metrics import record_job_finished, worker_poll_errors_counter
from fintrack.infrastructure.storage.files import FileStorage
from fintrack.worker.processor import JobProcessor

logger = logging.getLogger(__name__)

ProcessorFactory = Callable[[TransactionRepository, FileStorage, RiskEstimator], JobProcessor]


class WorkerLoop:
    """
    Claim a batch of pending jobs, run each, record its terminal status, sleep, repeat.

    Flow per iteration:
    1. Claim up to batch_size pending jobs, oldest first
    2. Fail jobs of unknown type without running anything
    3. Run the rest through JobProcessor; done on return, failed on exception
    4. Sleep poll_interval seconds

    Errors escaping an iteration (e.g. database unreachable) are logged and
    the next iteration tries again. Failed jobs are never retried.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        storage: FileStorage,
        estimator: RiskEstimator,
        batch_size: int = 10,
        poll_interval: float = 3.0,
        processor_factory: Optional[ProcessorFactory] = None,
    ):
        self.session_factory = session_factory
        self.storage = storage
        self.estimator = estimator
        self.batch_size = batch_size
        self.poll_interval = poll_interval
        self.processor_factory = processor_factory or JobProcessor
        self._stop_event = threading.Event()

    def run_once(self) -> List[Tuple[str, str]]:
        """Run one poll iteration; returns (job_id, final status) per claimed job"""
        outcomes = []
        with self.session_factory() as db:
            jobs = JobRepository(db)
            claimed = jobs.claim_pending(self.batch_size)
            if not claimed:
                return outcomes

            processor = self.processor_factory(TransactionRepository(db), self.storage, self.estimator)
            for job in claimed:
                outcomes.append(self._execute(job, jobs, processor, db))
        return outcomes

    def _execute(self, job: Any, jobs: JobRepository, processor: JobProcessor, db: Session) -> Tuple[str, str]:
        job_id, job_type = job.id, job.type
        start_time = time.time()

        if not processor.handles(job_type):
            logger.warning("Unknown job type %r for job %s", job_type, job_id)
            return self._finish(jobs, job_id, job_type, JobStatus.FAILED, start_time, error=f"unknown job type {job_type!r}")

        try:
            result = processor.process(job)
        except DomainException as e:
            db.rollback()
            return self._finish(jobs, job_id, job_type, JobStatus.FAILED, start_time, error=str(e))
        except Exception as e:
            db.rollback()
            logger.exception("Job %s (%s) raised unexpectedly", job_id, job_type)
            return self._finish(jobs, job_id, job_type, JobStatus.FAILED, start_time, error=str(e))

        return self._finish(jobs, job_id, job_type, JobStatus.DONE, start_time, result=result)

    def _finish(
        self,
        jobs: JobRepository,
        job_id: str,
        job_type: str,
        status: JobStatus,
        start_time: float,
        result: Optional[JobResult] = None,
        error: Optional[str] = None,
    ) -> Tuple[str, str]:
        if status is JobStatus.DONE:
            jobs.complete(job_id)
        else:
            jobs.fail(job_id)

        duration = time.time() - start_time
        record_job_finished(job_type, status.value, duration)
        log_job_outcome(
            job_id,
            job_type,
            status.value,
            duration * 1000,
            processed=result.processed if result else 0,
            skipped=result.skipped if result else 0,
            error=error,
        )
        return job_id, status.value

    def run_forever(self) -> None:
        """Poll until stop() is called"""
        logger.info("Worker started, polling for jobs every %.1fs", self.poll_interval)
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception:
                worker_poll_errors_counter.inc()
                logger.exception("Worker loop error")
            self._stop_event.wait(self.poll_interval)
        logger.info("Worker stopped")

    def stop(self) -> None:
        self._stop_event.set()

    def start_in_thread(self) -> threading.Thread:
        """Run the loop on a daemon thread inside the current process"""
        thread = threading.Thread(target=self.run_forever, name="fintrack-worker", daemon=True)
        thread.start()
        return thread
