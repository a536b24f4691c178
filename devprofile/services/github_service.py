import logging
from typing import Dict, List, Optional
from urllib.parse import urlencode

import httpx

from devprofile.core import config
from devprofile.core.exceptions import (
    AuthError,
    ForbiddenError,
    GitHubAPIError,
    InvalidCodeError,
    NetworkError,
    NotFoundError,
    RateLimitError,
)
from devprofile.schemas.github import GitHubProfile, GitHubRepo, LanguageBytes

logger = logging.getLogger("devprofile.github")

GITHUB_API_BASE = "https://api.github.com"
GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"
OAUTH_SCOPES = "read:user"
REPOS_PER_PAGE = 100


def _auth_headers(token: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/vnd.github+json",
    }


def _quota_exhausted(resp: httpx.Response) -> bool:
    return resp.headers.get("x-ratelimit-remaining") == "0"


def _raise_for_status(resp: httpx.Response, what: str) -> None:
    """Map a non-2xx GitHub response to the integration error taxonomy."""
    status = resp.status_code
    if status < 400:
        return
    if status == 401:
        raise AuthError("Invalid or expired GitHub access token", status)
    if status == 403:
        if _quota_exhausted(resp):
            raise RateLimitError("GitHub API rate limit exceeded. Please try again later.", status)
        raise ForbiddenError("Access forbidden. Token may not have required permissions.", status)
    if status == 429:
        raise RateLimitError("GitHub API rate limit exceeded. Please try again later.", status)
    if status == 404:
        raise NotFoundError(f"{what} not found", status)
    raise GitHubAPIError(f"GitHub API error {status} while fetching {what}", status)


class GitHubClient:
    """Thin async client for the GitHub endpoints used by the profile sync.

    Each call is a single attempt; retrying is left to the caller.
    """

    def __init__(
        self,
        client_id: str = config.GITHUB_CLIENT_ID,
        client_secret: str = config.GITHUB_CLIENT_SECRET,
        callback_url: str = config.GITHUB_CALLBACK_URL,
        api_base: str = GITHUB_API_BASE,
        timeout: float = config.GITHUB_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self.api_base = api_base.rstrip("/")
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._http.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(f"Network error: Could not connect to GitHub ({type(e).__name__})") from e

    # ---------- OAuth ----------

    def get_oauth_url(self, state: str) -> str:
        """Generate GitHub OAuth authorization URL."""
        query = urlencode({
            "client_id": self.client_id,
            "redirect_uri": self.callback_url,
            "scope": OAUTH_SCOPES,
            "state": state,
        })
        return f"{GITHUB_AUTHORIZE_URL}?{query}"

    async def exchange_code(self, code: str) -> str:
        """Exchange OAuth code for access token."""
        resp = await self._send(
            "POST",
            GITHUB_TOKEN_URL,
            data={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code": code,
            },
            headers={"Accept": "application/json"},
        )
        if resp.status_code == 400:
            raise InvalidCodeError("Invalid authorization code. Code may have expired or already been used.", 400)
        _raise_for_status(resp, "access token")

        data = resp.json()
        if "error" in data:
            raise InvalidCodeError(f"GitHub OAuth error: {data.get('error_description') or data['error']}")
        access_token = data.get("access_token")
        if not access_token:
            raise InvalidCodeError("No access token received from GitHub")
        return access_token

    # ---------- REST ----------

    async def check_quota(self, token: str) -> int:
        """Return remaining core quota; raise RateLimitError below the floor."""
        resp = await self._send("GET", f"{self.api_base}/rate_limit", headers=_auth_headers(token))
        _raise_for_status(resp, "rate limit")

        remaining = int(resp.json().get("resources", {}).get("core", {}).get("remaining", 0))
        logger.info(f"GitHub API rate limit: {remaining} requests remaining")
        if remaining < config.GITHUB_RATE_LIMIT_FLOOR:
            raise RateLimitError("GitHub rate limit nearly exceeded. Please try again later.")
        return remaining

    async def fetch_profile(self, token: str) -> GitHubProfile:
        """Get the authenticated GitHub user."""
        resp = await self._send("GET", f"{self.api_base}/user", headers=_auth_headers(token))
        _raise_for_status(resp, "user profile")

        user = resp.json()
        if not user.get("login") or not user.get("id"):
            raise GitHubAPIError("Invalid GitHub user profile response")

        return GitHubProfile(
            login=user["login"],
            id=user["id"],
            avatar_url=user.get("avatar_url") or "",
            html_url=user.get("html_url") or "",
            name=user.get("name"),
            bio=user.get("bio"),
            public_repos=user.get("public_repos") or 0,
            followers=user.get("followers") or 0,
            following=user.get("following") or 0,
        )

    async def fetch_repositories(self, username: str, token: str) -> List[GitHubRepo]:
        """List all public repositories owned by ``username``, following Link pagination."""
        repos: List[GitHubRepo] = []
        url: Optional[str] = f"{self.api_base}/users/{username}/repos"
        params: Optional[Dict] = {
            "type": "owner",
            "per_page": REPOS_PER_PAGE,
            "sort": "updated",
        }

        while url:
            resp = await self._send("GET", url, params=params, headers=_auth_headers(token))
            if resp.status_code == 404:
                raise NotFoundError(f"GitHub user '{username}' not found", 404)
            _raise_for_status(resp, "repositories")

            for r in resp.json():
                if r.get("private"):
                    continue
                repos.append(GitHubRepo(
                    name=r["name"],
                    html_url=r["html_url"],
                    stargazers_count=r.get("stargazers_count") or 0,
                    forks_count=r.get("forks_count") or 0,
                    language=r.get("language"),
                    description=r.get("description"),
                    updated_at=r.get("updated_at"),
                    private=False,
                ))

            # next URL already carries the query string
            url = resp.links.get("next", {}).get("url")
            params = None

        return repos

    async def fetch_languages(self, owner: str, repo: str, token: str) -> LanguageBytes:
        """Language -> bytes for a repository; empty when the repo is gone."""
        resp = await self._send(
            "GET",
            f"{self.api_base}/repos/{owner}/{repo}/languages",
            headers=_auth_headers(token),
        )
        if resp.status_code == 404:
            logger.warning(f"Repository {owner}/{repo} not found or inaccessible")
            return {}
        _raise_for_status(resp, f"languages for {owner}/{repo}")

        data = resp.json()
        if not data:
            return {}
        return {str(lang): int(size) for lang, size in data.items()}


github_client = GitHubClient()
