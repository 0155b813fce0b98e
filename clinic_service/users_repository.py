import logging
from typing import Iterable, List, Optional

from passlib.hash import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clinic_service.errors import BadRequest, Conflict, NotFound, Unauthorized
from clinic_service.models import RoleEnum, User
from clinic_service.schemas import UserCreate, UserUpdate

logger = logging.getLogger(__name__)

USER_MUTABLE_FIELDS = ("name", "email", "role", "is_active")
_NOT_NULL_FIELDS = frozenset(USER_MUTABLE_FIELDS)


def hash_password(password: str) -> str:
    return bcrypt.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.verify(password, password_hash)
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def _check_role(role: str, allowed_roles: Iterable[str]) -> RoleEnum:
    allowed = list(allowed_roles)
    if role not in allowed:
        raise BadRequest(errors=[{"field": "role", "message": f"role must be one of {allowed}"}])
    return RoleEnum(role)


def get(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def get_role(db: Session, user_id: int) -> Optional[RoleEnum]:
    return db.scalar(select(User.role).where(User.id == user_id))


def get_by_email(db: Session, email: str) -> Optional[User]:
    return db.scalar(select(User).where(User.email == email))


def list_users(db: Session) -> List[User]:
    return list(db.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())))


def create(db: Session, data: UserCreate, allowed_roles: Iterable[str]) -> User:
    role = _check_role(data.role, allowed_roles)
    if get_by_email(db, data.email):
        logger.warning("Duplicate email registration attempt: %s", data.email)
        raise Conflict("Email already registered")

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password),
        role=role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent request registered the same email first
        db.rollback()
        logger.warning("Email uniqueness violated on insert: %s", data.email)
        raise Conflict("Email already registered")
    db.refresh(user)
    logger.info("User created | id=%s role=%s", user.id, user.role.value)
    return user


def update(db: Session, user_id: int, data: UserUpdate, allowed_roles: Iterable[str]) -> User:
    changes = {k: v for k, v in data.model_dump(exclude_unset=True).items() if k in USER_MUTABLE_FIELDS}
    if not changes:
        raise BadRequest("No fields to update")
    nulls = [k for k, v in changes.items() if v is None and k in _NOT_NULL_FIELDS]
    if nulls:
        raise BadRequest(errors=[{"field": k, "message": "must not be null"} for k in nulls])
    if "role" in changes:
        changes["role"] = _check_role(changes["role"], allowed_roles)

    user = get(db, user_id)
    if not user:
        raise NotFound("User not found")
    if "email" in changes and changes["email"] != user.email and get_by_email(db, changes["email"]):
        raise Conflict("Email already registered")

    for key, value in changes.items():
        setattr(user, key, value)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Email already registered")
    db.refresh(user)
    logger.info("User updated | id=%s fields=%s", user_id, sorted(changes))
    return user


def soft_delete(db: Session, user_id: int) -> User:
    user = get(db, user_id)
    if not user:
        raise NotFound("User not found")
    user.is_active = False
    db.commit()
    logger.info("User deactivated | id=%s", user_id)
    return user


def authenticate(db: Session, email: str, password: str) -> User:
    """Active user matching the credentials.

    Raises Unauthorized("User deactivated") when the email belongs to an inactive
    account and a generic Unauthorized otherwise.
    """
    user = db.scalar(select(User).where(User.email == email, User.is_active.is_(True)))
    if user is None:
        if db.scalar(select(User.id).where(User.email == email, User.is_active.is_(False))):
            logger.info("Login rejected for deactivated account: %s", email)
            raise Unauthorized("User deactivated")
        logger.info("Login rejected, unknown email: %s", email)
        raise Unauthorized("Invalid credentials")
    if not verify_password(password, user.password_hash):
        logger.info("Login rejected, wrong password for user %s", user.id)
        raise Unauthorized("Invalid credentials")
    return user
