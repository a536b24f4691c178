# FILE: devprofile/api/auth.py
import logging
from datetime import timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from devprofile.core.database import get_db
from devprofile.models.user import User
from devprofile.schemas.auth import UserCreate, UserLogin, TokenResponse, UserResponse
from devprofile.services.account_store import AccountStore
from devprofile.services.auth_service import hash_password, verify_password, create_token
from devprofile.api.deps import get_current_user

logger = logging.getLogger("devprofile.auth")

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        created_at=user.created_at.replace(tzinfo=timezone.utc).isoformat(),
        github_connected=bool(user.github_connected),
        github_username=user.github_username,
    )


@router.post("/register", response_model=TokenResponse)
async def register(data: UserCreate, db: AsyncSession = Depends(get_db)):
    store = AccountStore(db)
    email = data.email.strip().lower()
    if await store.get_user_by_email(email):
        raise HTTPException(status_code=400, detail="Email already registered")

    user = await store.create_user(email=email, password_hash=hash_password(data.password), name=data.name)
    logger.info(f"Registered user {user.id}")
    return TokenResponse(token=create_token(user.id, user.email), user=_user_response(user))


@router.post("/login", response_model=TokenResponse)
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    user = await AccountStore(db).get_user_by_email(data.email.strip().lower())
    if not user or not verify_password(data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return TokenResponse(token=create_token(user.id, user.email), user=_user_response(user))


@router.get("/me", response_model=UserResponse)
async def auth_me(user=Depends(get_current_user)):
    """Current user, including whether a GitHub account is linked."""
    return UserResponse(**user)
