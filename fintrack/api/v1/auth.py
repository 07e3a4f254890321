"""POST /v1/auth/echo - find or create a user by email"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from fintrack.api.v1.schemas import EchoRequest, UserResponse
from fintrack.api.dependencies import get_request_id
from fintrack.infrastructure.database.session import get_db
from fintrack.infrastructure.database.repositories import UserRepository

router = APIRouter()


@router.post("/auth/echo", response_model=UserResponse)
def echo_user(
    request_body: EchoRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    request_id = get_request_id(request)
    email = request_body.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="email appears invalid")

    try:
        user = UserRepository(db).get_or_create(email)
    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return UserResponse(id=user.id, email=user.email)
