import logging

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from clinic_service.config import Settings, get_settings
from clinic_service.db import get_db
from clinic_service.errors import Forbidden, InternalError, InvalidToken, NotFound, Unauthorized
from clinic_service.tokens import verify_token
from clinic_service import users_repository

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


# --- Authentication ---
def get_current_user_id(request: Request,
                        token: str = Depends(oauth2_scheme),
                        settings: Settings = Depends(get_settings)) -> int:
    if not token:
        raise Unauthorized("Token required")
    try:
        user_id = verify_token(token, settings)
    except InvalidToken as exc:
        logger.info("Rejected token on %s: %s", request.url.path, exc)
        raise Unauthorized("Invalid token")
    request.state.user_id = user_id
    return user_id


# --- Authorization ---
def require_roles(*roles: str):
    """Dependency factory: the caller's role, read fresh from the store, must be in ``roles``."""
    allowed = frozenset(roles)

    def checker(user_id: int = Depends(get_current_user_id), db: Session = Depends(get_db)) -> int:
        try:
            role = users_repository.get_role(db, user_id)
        except SQLAlchemyError as exc:
            raise InternalError("Error verifying permissions") from exc
        if role is None:
            raise NotFound("User not found")
        if role.value not in allowed:
            logger.info("User %s with role %s denied (needs one of %s)", user_id, role.value, sorted(allowed))
            raise Forbidden()
        return user_id

    return checker
