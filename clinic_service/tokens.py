from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from clinic_service.config import Settings
from clinic_service.errors import InvalidToken


def issue_token(user_id: int, settings: Settings) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=settings.token_expire_days)
    return jwt.encode({"userId": user_id, "exp": expire}, settings.jwt_secret,
                      algorithm=settings.jwt_algorithm)


def verify_token(token: str, settings: Settings) -> int:
    """Return the user id carried by ``token`` or raise InvalidToken."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise InvalidToken(str(exc)) from exc

    user_id = payload.get("userId")
    # bool is an int subclass
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise InvalidToken("Token carries no user id")
    if "exp" not in payload:
        raise InvalidToken("Token carries no expiration")
    return user_id
