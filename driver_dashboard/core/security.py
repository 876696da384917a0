# driver_dashboard/core/security.py
import logging

from fastapi import Depends, HTTPException, Request, status
from passlib.context import CryptContext

from driver_dashboard.config import settings
from driver_dashboard.data.storage import MemStorage, get_storage
from driver_dashboard.models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

SESSION_USER_KEY = "user_id"

DEMO_USER = {
    "username": "demo",
    "password": "demo123",
    "full_name": "Demo Driver",
    "role": "Driver",
    "driver_id": "DRV-001",
    "is_active": True,
}


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def authenticate(storage: MemStorage, username: str, password: str):
    user = storage.get_user_by_username(username)
    if user is None or not verify_password(password, user.password):
        return None
    return user


def register_user(storage: MemStorage, data: dict) -> User:
    return storage.create_user({**data, "password": get_password_hash(data["password"])})


def _demo_user(storage: MemStorage) -> User:
    user = storage.get_user_by_username(DEMO_USER["username"])
    if user is None:
        logger.info("Creating demo driver account for unauthenticated access.")
        user = register_user(storage, DEMO_USER)
    return user


async def get_current_user(request: Request, storage: MemStorage = Depends(get_storage)) -> User:
    """Resolves the session user. In demo mode anonymous callers become the demo driver."""
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is not None:
        user = storage.get_user(user_id)
        if user is not None and user.is_active:
            return user
        request.session.pop(SESSION_USER_KEY, None)

    if settings.DEMO_MODE:
        user = _demo_user(storage)
        request.session[SESSION_USER_KEY] = user.id
        return user

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
    )
