"""Prometheus metrics for scoring volume, job outcomes and worker health"""

from prometheus_client import Counter, Histogram

# Scoring metrics
transactions_scored_counter = Counter(
    "fintrack_transactions_scored_total",
    "Transactions scored by the risk estimator",
    ["source"],  # api | csv | rescore
)

risk_score_histogram = Histogram(
    "fintrack_risk_score",
    "Distribution of issued risk scores",
    buckets=[10, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

# Job metrics
jobs_enqueued_counter = Counter(
    "fintrack_jobs_enqueued_total",
    "Jobs written to the queue",
    ["type"],
)

jobs_finished_counter = Counter(
    "fintrack_jobs_finished_total",
    "Jobs that reached a terminal status",
    ["type", "status"],  # done | failed
)

job_duration_histogram = Histogram(
    "fintrack_job_duration_seconds",
    "Job execution time",
    ["type"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
)

csv_rows_skipped_counter = Counter(
    "fintrack_csv_rows_skipped_total",
    "CSV rows that could not be mapped or stored",
)

# Worker health
worker_poll_errors_counter = Counter(
    "fintrack_worker_poll_errors_total",
    "Worker iterations aborted by an unexpected error",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_score(source: str, score: float) -> None:
    """Record one issued risk score"""
    transactions_scored_counter.labels(source=source).inc()
    risk_score_histogram.observe(score)


def record_job_finished(job_type: str, status: str, duration_seconds: float) -> None:
    """Record a job reaching done/failed"""
    jobs_finished_counter.labels(type=job_type, status=status).inc()
    job_duration_histogram.labels(type=job_type).observe(duration_seconds)
