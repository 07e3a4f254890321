"""Job endpoints - queue a rescore and poll job status"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from fintrack.api.v1.schemas import JobEnqueuedResponse, JobStatusResponse, RescoreRequest
from fintrack.api.dependencies import get_request_id
from fintrack.domain.exceptions import ValidationError
from fintrack.infrastructure.database.session import get_db
from fintrack.infrastructure.database.repositories import JobRepository
from fintrack.services.intake import enqueue_rescore_all
from fintrack.utils.date_utils import to_iso_utc

router = APIRouter()


@router.post("/rescore", response_model=JobEnqueuedResponse)
def rescore(
    request_body: RescoreRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Queue recomputation of every stored risk score for a user"""
    request_id = get_request_id(request)

    try:
        job_id = enqueue_rescore_all(JobRepository(db), request_body.user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return JobEnqueuedResponse(job_id=job_id)


@router.get("/jobs/{job_id}", response_model=JobStatusResponse)
def get_job(job_id: str, db: Session = Depends(get_db)):
    """Current status of a queued job"""
    job = JobRepository(db).get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")

    return JobStatusResponse(
        job_id=job.id,
        type=job.type,
        status=job.status,
        created_at=to_iso_utc(job.created_at),
    )
