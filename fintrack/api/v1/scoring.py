"""POST /v1/score - score a transaction without storing it"""

from fastapi import APIRouter, Depends

from fintrack.api.v1.schemas import ScoreRequest, ScoreResponse
from fintrack.api.dependencies import get_estimator
from fintrack.domain.scoring import RiskEstimator
from fintrack.services.intake import build_draft

router = APIRouter()


@router.post("/score", response_model=ScoreResponse)
def score(request_body: ScoreRequest, estimator: RiskEstimator = Depends(get_estimator)):
    draft = build_draft(
        amount=request_body.amount,
        country=request_body.country,
        merchant=request_body.merchant,
        timestamp=request_body.timestamp,
    )
    assessment = estimator.assess(draft)
    return ScoreResponse(risk_score=assessment.score, signals=assessment.signals)
