"""
Account endpoints.

Route summary
-------------
POST   /api/auth/register         — create account, returns {user, token}
POST   /api/auth/login            — exchange credentials for a token
GET    /api/auth/me               — current user's profile
PUT    /api/auth/profile          — update name / orcid / affiliation / bio
POST   /api/auth/change-password  — replace password (current one required)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from paperforum.config import settings
from paperforum.database import get_db
from paperforum.dependencies.auth import get_current_user
from paperforum.models.database_models import User
from paperforum.models.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    SuccessResponse,
    UserProfile,
    UserSummary,
)
from paperforum.services.security import (
    create_access_token,
    hash_password,
    login_tracker,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_password_strength(password: str) -> None:
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
        )


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        user=UserSummary.model_validate(user),
        token=create_access_token(user.id, user.email),
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    _check_password_strength(body.password)

    existing = await db.execute(select(User).where(User.email == body.email))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User already exists",
        )

    user = User(email=body.email, password=hash_password(body.password), name=body.name)
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("Registered user %d (%s)", user.id, user.email)
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    remaining_lock = login_tracker.lock_status(body.email)
    if remaining_lock is not None:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "message": "Account temporarily locked due to too many failed login attempts",
                "remaining_time": remaining_lock,
            },
        )

    result = await db.execute(select(User).where(User.email == body.email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(body.password, user.password):
        login_tracker.record_failure(body.email)
        logger.warning("Failed login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "message": "Invalid credentials",
                "remaining_attempts": login_tracker.remaining_attempts(body.email),
            },
        )

    login_tracker.clear(body.email)
    return _auth_response(user)


@router.get("/me", response_model=UserProfile)
async def me(user: User = Depends(get_current_user)):
    return user


@router.put("/profile", response_model=UserProfile)
async def update_profile(
    body: ProfileUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    for field, value in body.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(user, field, value)
    await db.flush()
    await db.refresh(user)
    return user


@router.post("/change-password", response_model=SuccessResponse)
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not verify_password(body.current_password, user.password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    _check_password_strength(body.new_password)

    user.password = hash_password(body.new_password)
    await db.flush()
    logger.info("User %d changed password", user.id)
    return SuccessResponse(message="Password updated")
