"""GET /v1/dashboard - per-user totals by month"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fintrack.api.v1.schemas import DashboardResponse
from fintrack.domain.dashboard import summarize_transactions
from fintrack.domain.exceptions import ValidationError
from fintrack.infrastructure.database.session import get_db
from fintrack.infrastructure.database.repositories import TransactionRepository
from fintrack.services.intake import validate_user_id

router = APIRouter()

DASHBOARD_WINDOW = 1000


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    user_id: str = Query(..., description="User identifier"),
    db: Session = Depends(get_db),
):
    """
    Summarize the user's most recent transactions.

    Returns:
        Transaction count, total amount, and amount per YYYY-MM
    """
    try:
        user_id = validate_user_id(user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    transactions = TransactionRepository(db).list_by_user(user_id, limit=DASHBOARD_WINDOW)
    summary = summarize_transactions(transactions)
    return DashboardResponse(
        user_id=user_id,
        count=summary.count,
        total=summary.total,
        by_month=summary.by_month,
    )
