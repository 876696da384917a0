# driver_dashboard/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
import logging

from driver_dashboard.core.security import SESSION_USER_KEY, authenticate, get_current_user
from driver_dashboard.data.storage import MemStorage, get_storage
from driver_dashboard.models import LoginRequest, User, UserPublic

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=UserPublic, summary="Log in with username and password")
def login(credentials: LoginRequest, request: Request, storage: MemStorage = Depends(get_storage)):
    user = authenticate(storage, credentials.username, credentials.password)
    if user is None:
        logger.info(f"Failed login attempt for '{credentials.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    request.session[SESSION_USER_KEY] = user.id
    logger.info(f"User {user.username} logged in")
    return user


@router.post("/logout", summary="End the current session")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"success": True}


@router.get("/me", response_model=UserPublic, summary="The logged-in user")
def me(user: User = Depends(get_current_user)):
    return user
