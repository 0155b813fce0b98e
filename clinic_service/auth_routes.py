import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clinic_service import users_repository
from clinic_service.config import Settings, get_settings
from clinic_service.db import get_db
from clinic_service.errors import NotFound
from clinic_service.schemas import LoginRequest, UserSummary
from clinic_service.security import get_current_user_id
from clinic_service.tokens import issue_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login")
def login(data: LoginRequest,
          db: Session = Depends(get_db),
          settings: Settings = Depends(get_settings)):
    user = users_repository.authenticate(db, data.email, data.password)
    token = issue_token(user.id, settings)
    logger.info("Login succeeded for user %s", user.id)
    return {
        "message": "Login successful",
        "token": token,
        "token_type": "bearer",
        "user": UserSummary.model_validate(user),
    }


@router.get("/verify")
def verify(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)):
    user = users_repository.get(db, user_id)
    if not user:
        raise NotFound("User not found")
    return {"user": UserSummary.model_validate(user)}
