# FILE: devprofile/api/deps.py

import jwt
from datetime import timezone

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from devprofile.core.database import get_db
from devprofile.core.exceptions import ValidationError
from devprofile.services.account_store import AccountStore
from devprofile.services.auth_service import decode_token
from devprofile.services.github_service import GitHubClient, github_client
from devprofile.services.state_service import OAuthStateStore, state_store
from devprofile.services.sync_service import GitHubSyncService

security = HTTPBearer(auto_error=False)

async def get_current_user(
        credentials: HTTPAuthorizationCredentials = Depends(security),
        db: AsyncSession = Depends(get_db),
):
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        user_id = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")
    except ValidationError:
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = await AccountStore(db).get_user(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "created_at": user.created_at.replace(tzinfo=timezone.utc).isoformat(),
        "github_connected": bool(user.github_connected),
        "github_username": user.github_username,
    }


def get_github_client() -> GitHubClient:
    return github_client


def get_state_store() -> OAuthStateStore:
    return state_store


async def get_sync_service(
        db: AsyncSession = Depends(get_db),
        client: GitHubClient = Depends(get_github_client),
        states: OAuthStateStore = Depends(get_state_store),
) -> GitHubSyncService:
    return GitHubSyncService(AccountStore(db), client, states=states)
