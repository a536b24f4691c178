# FILE: devprofile/api/integrations.py
import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse

from devprofile.api.deps import get_current_user, get_sync_service
from devprofile.core import config
from devprofile.core.exceptions import (
    ConfigurationError,
    InvalidCodeError,
    InvalidStateError,
    NetworkError,
    RateLimitError,
)
from devprofile.schemas.github import (
    GitHubConnectionStatus,
    GitHubDisconnectResponse,
    GitHubOAuthStartResponse,
    GitHubStatsBody,
    GitHubStatsResponse,
    GitHubSyncResponse,
    SyncErrorKind,
)
from devprofile.services.stats_service import ordered_languages
from devprofile.services.sync_service import GitHubSyncService, run_background_sync

logger = logging.getLogger("devprofile.integrations")

router = APIRouter(prefix="/integrations", tags=["integrations"])

SYNC_ERROR_STATUS = {
    SyncErrorKind.NOT_CONNECTED: 400,
    SyncErrorKind.AUTH_EXPIRED: 401,
    SyncErrorKind.RATE_LIMITED: 429,
}

SYNC_ERROR_DETAIL = {
    SyncErrorKind.AUTH_EXPIRED: "GitHub token expired. Please reconnect.",
    SyncErrorKind.RATE_LIMITED: "GitHub API rate limit exceeded. Please try again later.",
}


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.replace(tzinfo=timezone.utc).isoformat() if dt else None


def _frontend_redirect(**params) -> RedirectResponse:
    return RedirectResponse(url=f"{config.FRONTEND_URL}/profile?{urlencode(params)}")


def _callback_error(reason: str) -> RedirectResponse:
    return _frontend_redirect(github="error", message=reason)


@router.get("/start", response_model=GitHubOAuthStartResponse)
async def github_oauth_start(
    user=Depends(get_current_user),
    service: GitHubSyncService = Depends(get_sync_service),
):
    """Start GitHub OAuth flow - returns URL to redirect user to."""
    try:
        auth_url = service.start_authorization(user["id"])
    except ConfigurationError:
        logger.error("Missing GitHub OAuth environment variables")
        raise HTTPException(status_code=500, detail="GitHub OAuth is not configured. Please contact support.")
    return GitHubOAuthStartResponse(auth_url=auth_url)


@router.get("/callback")
async def github_oauth_callback(
    background_tasks: BackgroundTasks,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    service: GitHubSyncService = Depends(get_sync_service),
):
    """Handle GitHub OAuth callback (public, called by GitHub)."""
    if not code:
        logger.error("GitHub callback missing code parameter")
        return _callback_error("missing_code")
    if not state:
        logger.error("GitHub callback missing state parameter")
        return _callback_error("missing_state")

    try:
        user_id = await service.complete_authorization(code, state)
    except InvalidStateError:
        logger.error("Invalid or expired state token")
        return _callback_error("invalid_state")
    except InvalidCodeError as e:
        logger.error(f"GitHub OAuth code rejected: {e}")
        return _callback_error("invalid_code")
    except RateLimitError:
        return _callback_error("rate_limit")
    except NetworkError as e:
        logger.error(f"GitHub OAuth network error: {e}")
        return _callback_error("network_error")
    except Exception:
        logger.exception("Unexpected error in GitHub callback")
        return _callback_error("unexpected_error")

    background_tasks.add_task(run_background_sync, user_id, service.client)
    return _frontend_redirect(github="connected")


@router.post("/sync", response_model=GitHubSyncResponse)
async def sync_github_stats(
    user=Depends(get_current_user),
    service: GitHubSyncService = Depends(get_sync_service),
):
    """Manually sync GitHub stats; blocks until the sync finishes."""
    result = await service.sync_user(user["id"])

    if not result.success:
        status = SYNC_ERROR_STATUS.get(result.error_kind, 500)
        detail = SYNC_ERROR_DETAIL.get(result.error_kind, result.message)
        raise HTTPException(status_code=status, detail=detail)

    return GitHubSyncResponse(
        message="GitHub stats synced successfully",
        stats=result.summary,
        synced_at=datetime.now(timezone.utc).isoformat(),
    )


@router.post("/disconnect", response_model=GitHubDisconnectResponse)
async def github_disconnect(
    user=Depends(get_current_user),
    service: GitHubSyncService = Depends(get_sync_service),
):
    """Disconnect GitHub account. Stats are kept."""
    await service.disconnect(user["id"])
    return GitHubDisconnectResponse(message="GitHub disconnected successfully")


@router.get("/stats", response_model=GitHubStatsResponse)
async def get_github_stats(
    user=Depends(get_current_user),
    service: GitHubSyncService = Depends(get_sync_service),
):
    """Return the last persisted GitHub stats."""
    account = await service.store.get_user(user["id"])
    stats = await service.store.get_stats(user["id"])

    if not account or not stats:
        raise HTTPException(status_code=404, detail="No GitHub stats found. Please connect GitHub first.")

    return GitHubStatsResponse(
        connected=bool(account.github_connected),
        username=account.github_username,
        stats=GitHubStatsBody(
            total_public_repos=stats.total_public_repos,
            total_stars=stats.total_stars,
            total_forks=stats.total_forks,
            followers=stats.followers,
            following=stats.following,
            top_languages=ordered_languages(stats.top_languages or {}),
            top_repos=stats.top_repos or [],
            last_calculated_at=_iso(stats.last_calculated_at),
        ),
        last_synced_at=_iso(account.github_last_synced_at),
    )


@router.get("/status", response_model=GitHubConnectionStatus)
async def github_connection_status(
    user=Depends(get_current_user),
    service: GitHubSyncService = Depends(get_sync_service),
):
    """Check if user has connected their GitHub account."""
    account = await service.store.get_user(user["id"])
    if not account or not account.github_connected:
        return GitHubConnectionStatus(connected=False)

    return GitHubConnectionStatus(
        connected=True,
        github_username=account.github_username,
        avatar_url=account.github_avatar_url,
        profile_url=account.github_profile_url,
        last_synced_at=_iso(account.github_last_synced_at),
    )
