"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Union


class EchoRequest(BaseModel):
    """Request body for POST /v1/auth/echo"""

    email: str = Field(..., min_length=3, description="User email address")


class UserResponse(BaseModel):
    """Response for POST /v1/auth/echo"""

    id: str
    email: str


class TransactionCreate(BaseModel):
    """Request body for POST /v1/transactions"""

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(None, description="Owner of the transaction")
    amount: Optional[Union[float, str]] = Field(None, description="Numeric amount or raw text")
    amount_string: Optional[str] = Field(None, alias="amountString", description="Raw amount text, e.g. '€1,250.50'")
    country: Optional[str] = None
    merchant: Optional[str] = None
    timestamp: Optional[str] = Field(None, description="Any common date/time format; defaults to now")


class TransactionCreated(BaseModel):
    """Response for POST /v1/transactions"""

    id: str
    risk_score: float


class TransactionItem(BaseModel):
    """Single stored transaction"""

    id: str
    user_id: str
    amount: float
    country: Optional[str] = None
    merchant: Optional[str] = None
    timestamp: Optional[str] = None
    risk_score: Optional[float] = None
    created_at: str


class TransactionListResponse(BaseModel):
    """Response for GET /v1/transactions"""

    user_id: str
    transactions: List[TransactionItem]


class UploadResponse(BaseModel):
    """Response for POST /v1/transactions/upload"""

    uploaded: bool
    file_locator: str
    job_id: str


class RescoreRequest(BaseModel):
    """Request body for POST /v1/rescore"""

    user_id: Optional[str] = None


class JobEnqueuedResponse(BaseModel):
    """Response for endpoints that queue background work"""

    job_id: str


class JobStatusResponse(BaseModel):
    """Response for GET /v1/jobs/{job_id}"""

    job_id: str
    type: str
    status: str
    created_at: str


class ScoreRequest(BaseModel):
    """Request body for POST /v1/score"""

    amount: Optional[Union[float, str]] = None
    country: Optional[str] = None
    merchant: Optional[str] = None
    timestamp: Optional[str] = None


class ScoreResponse(BaseModel):
    """Response for POST /v1/score"""

    risk_score: float
    signals: Dict[str, float]


class DashboardResponse(BaseModel):
    """Response for GET /v1/dashboard"""

    user_id: str
    count: int
    total: float
    by_month: Dict[str, float]
