from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from clinic_service import users_repository
from clinic_service.config import Settings, get_settings
from clinic_service.db import get_db
from clinic_service.errors import Forbidden
from clinic_service.models import RoleEnum
from clinic_service.schemas import UserCreate, UserOut, UserUpdate
from clinic_service.security import require_roles

router = APIRouter()

admin_only = require_roles(RoleEnum.admin.value)


# Public signup, no token required
@router.post("/create-initial", status_code=status.HTTP_201_CREATED)
def create_initial(data: UserCreate,
                   db: Session = Depends(get_db),
                   settings: Settings = Depends(get_settings)):
    if data.role == RoleEnum.admin.value and not settings.allow_public_admin_signup:
        raise Forbidden("Public signup cannot create administrators")
    user = users_repository.create(db, data, settings.signup_roles)
    return {"message": "User created successfully", "userId": user.id}


@router.get("", response_model=List[UserOut])
def list_users(_: int = Depends(admin_only), db: Session = Depends(get_db)):
    return [UserOut.model_validate(u) for u in users_repository.list_users(db)]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreate,
                _: int = Depends(admin_only),
                db: Session = Depends(get_db),
                settings: Settings = Depends(get_settings)):
    user = users_repository.create(db, data, settings.staff_roles)
    return {"message": "User created successfully", "userId": user.id}


@router.put("/{user_id}")
def update_user(user_id: int,
                data: UserUpdate,
                _: int = Depends(admin_only),
                db: Session = Depends(get_db),
                settings: Settings = Depends(get_settings)):
    users_repository.update(db, user_id, data, settings.staff_roles)
    return {"message": "User updated successfully"}


@router.delete("/{user_id}")
def deactivate_user(user_id: int, _: int = Depends(admin_only), db: Session = Depends(get_db)):
    users_repository.soft_delete(db, user_id)
    return {"message": "User deactivated successfully"}
