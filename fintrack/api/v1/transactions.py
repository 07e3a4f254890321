"""Transaction endpoints - synchronous create, listing and CSV upload"""

import os
import logging
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from sqlalchemy.orm import Session

from fintrack.api.v1.schemas import (
    TransactionCreate,
    TransactionCreated,
    TransactionItem,
    TransactionListResponse,
    UploadResponse,
)
from fintrack.api.dependencies import get_estimator, get_file_storage, get_request_id
from fintrack.config import settings
from fintrack.domain.exceptions import InvalidTransactionDataError, ValidationError
from fintrack.domain.scoring import RiskEstimator
from fintrack.infrastructure.database.session import get_db
from fintrack.infrastructure.database.repositories import JobRepository, TransactionRepository
from fintrack.infrastructure.observability.metrics import record_score
from fintrack.infrastructure.storage.files import FileStorage
from fintrack.services.intake import build_draft, enqueue_parse_csv, score_transaction, validate_user_id
from fintrack.utils.date_utils import to_iso_utc

router = APIRouter()

ALLOWED_UPLOAD_EXTENSIONS = (".csv", ".txt")
LIST_LIMIT = 1000


def _to_item(tx) -> TransactionItem:
    return TransactionItem(
        id=tx.id,
        user_id=tx.user_id,
        amount=tx.amount,
        country=tx.country,
        merchant=tx.merchant,
        timestamp=to_iso_utc(tx.timestamp) if tx.timestamp is not None else None,
        risk_score=tx.risk_score,
        created_at=to_iso_utc(tx.created_at),
    )


@router.post("/transactions", response_model=TransactionCreated)
def create_transaction(
    request_body: TransactionCreate,
    request: Request,
    db: Session = Depends(get_db),
    estimator: RiskEstimator = Depends(get_estimator),
):
    """
    Score and store a single transaction without going through the queue.

    Amount may be a number or text such as '€1,250.50'; missing country,
    merchant and timestamp default to Ireland, 'unknown' and now.
    """
    request_id = get_request_id(request)

    try:
        user_id = validate_user_id(request_body.user_id)
        raw_amount = request_body.amount if request_body.amount is not None else request_body.amount_string
        draft = build_draft(
            amount=raw_amount,
            country=request_body.country,
            merchant=request_body.merchant,
            timestamp=request_body.timestamp,
        )
        risk_score = score_transaction(estimator, draft)
        db_transaction = TransactionRepository(db).insert(user_id, draft, risk_score)
        record_score("api", risk_score)

        return TransactionCreated(id=db_transaction.id, risk_score=risk_score)

    except ValidationError as e:
        logging.warning(f"Rejected transaction: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except InvalidTransactionDataError as e:
        db.rollback()
        logging.warning(f"Invalid transaction data: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    user_id: str = Query(..., description="User identifier"),
    db: Session = Depends(get_db),
):
    """Return up to 1000 of the user's transactions, newest first"""
    try:
        user_id = validate_user_id(user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    transactions = TransactionRepository(db).list_by_user(user_id, limit=LIST_LIMIT)
    return TransactionListResponse(user_id=user_id, transactions=[_to_item(tx) for tx in transactions])


@router.post("/transactions/upload", response_model=UploadResponse)
async def upload_transactions(
    request: Request,
    file: UploadFile = File(...),
    user_id: str = Form(...),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_file_storage),
):
    """
    Accept a CSV export and queue it for parsing.

    Flow:
    1. Validate user id, extension and size
    2. Store the file
    3. Enqueue a parse_csv job pointing at the stored file
    """
    request_id = get_request_id(request)

    try:
        user_id = validate_user_id(user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    extension = os.path.splitext(file.filename or "")[1].lower()
    if extension not in ALLOWED_UPLOAD_EXTENSIONS:
        raise HTTPException(status_code=400, detail="Only .csv or .txt files are accepted")

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="Uploaded file is too large")

    locator = None
    try:
        locator = storage.store(content, suffix=extension)
        job_id = enqueue_parse_csv(JobRepository(db), user_id, locator)
    except Exception as e:
        db.rollback()
        if locator is not None:
            storage.delete(locator)
        logging.error(f"Upload failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Could not queue upload")

    logging.info(
        "CSV upload queued",
        extra={"request_id": request_id, "user_id": user_id, "job_id": job_id, "bytes": len(content)},
    )
    return UploadResponse(uploaded=True, file_locator=locator, job_id=job_id)
