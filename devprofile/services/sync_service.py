import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from devprofile.core import config
from devprofile.core.database import SessionLocal
from devprofile.core.exceptions import (
    AuthError,
    ConfigurationError,
    DevProfileError,
    InvalidStateError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from devprofile.models.user import User
from devprofile.schemas.github import GitHubRepo, LanguageBytes, SyncErrorKind, SyncResult, SyncSummary
from devprofile.services.account_store import AccountStore
from devprofile.services.encryption_service import TokenCipher, get_cipher
from devprofile.services.github_service import GitHubClient
from devprofile.services.redaction import redact_secret
from devprofile.services.state_service import OAuthStateStore, state_store
from devprofile.services.stats_service import (
    calculate_language_stats,
    languages_to_mapping,
    select_repositories_for_languages,
    select_top_repositories,
    summarize_totals,
)

logger = logging.getLogger("devprofile.sync")


@dataclass
class LanguageFetchOutcome:
    repo: str
    languages: LanguageBytes = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# user_id -> [lock, holders]; entries removed once nobody holds or waits
_sync_locks: Dict[str, list] = {}


@asynccontextmanager
async def _user_sync_lock(user_id: str):
    entry = _sync_locks.get(user_id)
    if entry is None:
        entry = _sync_locks[user_id] = [asyncio.Lock(), 0]
    entry[1] += 1
    try:
        async with entry[0]:
            yield
    finally:
        entry[1] -= 1
        if entry[1] == 0:
            _sync_locks.pop(user_id, None)


class GitHubSyncService:
    """Links a GitHub account and keeps its aggregated stats up to date."""

    def __init__(
        self,
        store: AccountStore,
        client: GitHubClient,
        cipher: Optional[TokenCipher] = None,
        states: OAuthStateStore = state_store,
        request_delay: float = config.GITHUB_REQUEST_DELAY_SECONDS,
        repo_limit: int = config.GITHUB_SYNC_REPO_LIMIT,
    ):
        self.store = store
        self.client = client
        self.cipher = cipher or get_cipher()
        self.states = states
        self.request_delay = request_delay
        self.repo_limit = repo_limit

    # ---------- OAuth ----------

    def start_authorization(self, user_id: str) -> str:
        if not (self.client.client_id and self.client.callback_url):
            raise ConfigurationError("GitHub OAuth is not configured")
        state = self.states.issue(user_id)
        logger.info(f"GitHub OAuth started for user {user_id}")
        return self.client.get_oauth_url(state)

    async def complete_authorization(self, code: str, state: str) -> str:
        """Validate the state, exchange the code and store the encrypted token.

        Returns the id of the user that started the flow.
        """
        user_id = self.states.validate(state)
        if not user_id:
            raise InvalidStateError("Invalid or expired state token")
        self.states.consume(state)

        access_token = await self.client.exchange_code(code)
        logger.info(f"GitHub OAuth token exchanged for user {user_id}")

        profile = await self.client.fetch_profile(access_token)

        user = await self.store.get_user(user_id)
        if user is None:
            raise ValidationError(f"User {user_id} not found")

        await self.store.save_connection(user, profile, self.cipher.encrypt(access_token))
        logger.info(f"GitHub account {profile.login} connected for user {user_id}")
        return user_id

    async def disconnect(self, user_id: str) -> None:
        user = await self.store.get_user(user_id)
        if user is None:
            return
        await self.store.clear_credential(user)
        logger.info(f"GitHub disconnected for user {user_id}")

    # ---------- Sync ----------

    async def sync_user(self, user_id: str) -> SyncResult:
        """Run a full sync. Never raises; failures come back as a SyncResult."""
        async with _user_sync_lock(user_id):
            return await self._sync(user_id)

    async def _sync(self, user_id: str) -> SyncResult:
        started = time.monotonic()
        logger.info(f"Starting GitHub sync for user {user_id}")
        user: Optional[User] = None
        token: Optional[str] = None

        try:
            user = await self.store.get_user(user_id)
            if user is None or not user.github_connected or not user.github_access_token:
                return SyncResult(
                    success=False,
                    error_kind=SyncErrorKind.NOT_CONNECTED,
                    message="GitHub account not connected. Please connect first.",
                )

            token = self.cipher.decrypt(user.github_access_token)
            summary = await self._collect_and_store(user, token)

        except AuthError as e:
            await self._reset_connection(user)
            return self._failure(user_id, SyncErrorKind.AUTH_EXPIRED, e, token)
        except RateLimitError as e:
            return self._failure(user_id, SyncErrorKind.RATE_LIMITED, e, token)
        except NetworkError as e:
            return self._failure(user_id, SyncErrorKind.NETWORK_ERROR, e, token)
        except DevProfileError as e:
            return self._failure(user_id, SyncErrorKind.UNKNOWN, e, token)
        except Exception as e:
            logger.exception(f"Unexpected error during GitHub sync for user {user_id}")
            await self._rollback(user_id)
            return self._failure(user_id, SyncErrorKind.UNKNOWN, e, token)

        logger.info(f"GitHub sync completed for user {user_id} in {time.monotonic() - started:.2f}s")
        return SyncResult(success=True, message="GitHub data synced successfully", summary=summary)

    async def _collect_and_store(self, user: User, token: str) -> SyncSummary:
        # Abort before any other call when quota is too low
        await self.client.check_quota(token)

        profile = await self.client.fetch_profile(token)
        logger.info(f"Fetched profile for user: {profile.login}")

        repos = await self.client.fetch_repositories(profile.login, token)
        logger.info(f"Fetched {len(repos)} repositories")

        to_process = select_repositories_for_languages(repos, self.repo_limit)
        outcomes = await self._fetch_languages(profile.login, to_process, token)

        language_stats = calculate_language_stats(o.languages for o in outcomes)
        top_repos = select_top_repositories(repos)
        total_stars, total_forks = summarize_totals(repos)

        await self.store.upsert_stats(
            user.id,
            total_public_repos=profile.public_repos,
            total_stars=total_stars,
            total_forks=total_forks,
            followers=profile.followers,
            following=profile.following,
            top_languages=languages_to_mapping(language_stats),
            top_repos=[r.model_dump() for r in top_repos],
        )
        await self.store.save_connection(user, profile, self.cipher.encrypt(token))

        return SyncSummary(
            username=profile.login,
            public_repos=profile.public_repos,
            total_stars=total_stars,
            total_forks=total_forks,
            followers=profile.followers,
            following=profile.following,
            languages_count=len(language_stats),
            top_repos_count=len(top_repos),
            repos_processed=len(outcomes),
            language_failures=sum(1 for o in outcomes if not o.ok),
        )

    async def _fetch_languages(self, owner: str, repos: List[GitHubRepo], token: str) -> List[LanguageFetchOutcome]:
        """Fetch languages one repo at a time with a pause between calls.

        A failing repo contributes an empty map; the loop never aborts.
        """
        logger.info(f"Processing language data for {len(repos)} repositories...")
        outcomes: List[LanguageFetchOutcome] = []

        for i, repo in enumerate(repos):
            try:
                languages = await self.client.fetch_languages(owner, repo.name, token)
                outcomes.append(LanguageFetchOutcome(repo=repo.name, languages=languages))
            except Exception as e:
                message = redact_secret(str(e) or type(e).__name__, token)
                logger.warning(f"Failed to fetch languages for {repo.name}: {message}")
                outcomes.append(LanguageFetchOutcome(repo=repo.name, error=message))

            if self.request_delay > 0 and i < len(repos) - 1:
                await asyncio.sleep(self.request_delay)

        return outcomes

    async def _reset_connection(self, user: Optional[User]) -> None:
        if user is None:
            return
        try:
            await self.store.clear_credential(user)
            logger.info(f"GitHub token rejected, user {user.id} marked as disconnected")
        except SQLAlchemyError:
            logger.exception(f"Failed to reset GitHub connection for user {user.id}")
            await self._rollback(user.id)

    async def _rollback(self, user_id: str) -> None:
        try:
            await self.store.db.rollback()
        except SQLAlchemyError:
            logger.exception(f"Rollback failed after GitHub sync error for user {user_id}")

    def _failure(self, user_id: str, kind: SyncErrorKind, error: BaseException, token: Optional[str]) -> SyncResult:
        message = redact_secret(str(error) or type(error).__name__, token)
        logger.error(f"GitHub sync failed for user {user_id} ({kind.value}): {message}")
        return SyncResult(success=False, error_kind=kind, message=message)


async def run_background_sync(user_id: str, client: GitHubClient) -> None:
    """Post-callback sync with its own session; failures are only logged."""
    try:
        async with SessionLocal() as db:
            result = await GitHubSyncService(AccountStore(db), client).sync_user(user_id)
        if not result.success:
            logger.error(f"Background GitHub sync failed for user {user_id}: {result.message}")
    except Exception:
        logger.exception(f"Background GitHub sync crashed for user {user_id}")
