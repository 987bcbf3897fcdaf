from typing import List

from fastapi import APIRouter, Depends
import structlog

from ..deps import get_storage
from ..errors import NotFoundError
from ..schemas.users import UserCreate, UserResponse, UserRole, UserUpdate
from ..storage.provider import Storage


router = APIRouter(prefix="/api", tags=["users"])

logger = structlog.get_logger(__name__)


@router.get("/users", response_model=List[UserResponse])
def list_users(storage: Storage = Depends(get_storage)):
    return storage.get_all_residents()


@router.post("/users", response_model=UserResponse)
def create_user(payload: UserCreate, storage: Storage = Depends(get_storage)):
    user = storage.create_user(payload)
    logger.info("user_created", user_id=user.id, flat_number=user.flat_number, role=user.role)
    return user


@router.get("/users/phone/{phone_number}", response_model=UserResponse)
def get_user_by_phone(phone_number: str, storage: Storage = Depends(get_storage)):
    user = storage.get_user_by_phone(phone_number.strip())
    if not user:
        raise NotFoundError("User", phone_number)
    return user


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(user_id: int, storage: Storage = Depends(get_storage)):
    user = storage.get_user(user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return user


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(user_id: int, payload: UserUpdate, storage: Storage = Depends(get_storage)):
    user = storage.update_user(user_id, payload)
    if not user:
        raise NotFoundError("User", user_id)
    return user


@router.get("/residents", response_model=List[UserResponse])
def list_residents(storage: Storage = Depends(get_storage)):
    return [u for u in storage.get_all_residents() if u.role == UserRole.resident.value]
