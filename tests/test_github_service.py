"""Tests for the GitHub API client, against a MockTransport."""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from conftest import ACCESS_TOKEN, make_repo
from devprofile.core.exceptions import (
    AuthError,
    ForbiddenError,
    InvalidCodeError,
    NetworkError,
    NotFoundError,
    RateLimitError,
)


def test_oauth_url_carries_state(github_client):
    url = github_client.get_oauth_url("abc123")
    parsed = urlparse(url)
    query = parse_qs(parsed.query)

    assert parsed.netloc == "github.com"
    assert parsed.path == "/login/oauth/authorize"
    assert query["state"] == ["abc123"]
    assert query["client_id"] == ["dummy-client-id"]
    assert query["redirect_uri"] == ["http://test/integrations/callback"]
    assert query["scope"] == ["read:user"]


class TestExchangeCode:

    async def test_returns_access_token(self, github_client):
        assert await github_client.exchange_code("good-code") == ACCESS_TOKEN

    async def test_bad_verification_code(self, github_client, fake_github):
        fake_github.token_response = {
            "error": "bad_verification_code",
            "error_description": "The code passed is incorrect or expired.",
        }
        with pytest.raises(InvalidCodeError):
            await github_client.exchange_code("stale")

    async def test_http_400_is_invalid_code(self, github_client, fake_github):
        fake_github.token_status = 400
        with pytest.raises(InvalidCodeError):
            await github_client.exchange_code("stale")

    async def test_missing_token_is_invalid_code(self, github_client, fake_github):
        fake_github.token_response = {"scope": ""}
        with pytest.raises(InvalidCodeError):
            await github_client.exchange_code("weird")

    async def test_transport_failure_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        from devprofile.services.github_service import GitHubClient

        client = GitHubClient(transport=httpx.MockTransport(handler))
        try:
            with pytest.raises(NetworkError):
                await client.exchange_code("code")
        finally:
            await client.aclose()


class TestCheckQuota:

    async def test_enough_quota(self, github_client):
        assert await github_client.check_quota(ACCESS_TOKEN) == 5000

    async def test_below_floor(self, github_client, fake_github):
        fake_github.remaining = 9
        with pytest.raises(RateLimitError):
            await github_client.check_quota(ACCESS_TOKEN)

    async def test_at_floor_is_allowed(self, github_client, fake_github):
        fake_github.remaining = 10
        assert await github_client.check_quota(ACCESS_TOKEN) == 10

    async def test_rejected_credential(self):
        from devprofile.services.github_service import GitHubClient

        client = GitHubClient(transport=httpx.MockTransport(lambda r: httpx.Response(401, json={})))
        try:
            with pytest.raises(AuthError):
                await client.check_quota(ACCESS_TOKEN)
        finally:
            await client.aclose()


class TestFetchProfile:

    async def test_maps_profile(self, github_client):
        profile = await github_client.fetch_profile(ACCESS_TOKEN)

        assert profile.login == "octocat"
        assert profile.id == 583231
        assert profile.public_repos == 8
        assert profile.followers == 100

    async def test_sends_bearer_token(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["authorization"]
            return httpx.Response(200, json={"login": "x", "id": 1})

        from devprofile.services.github_service import GitHubClient

        client = GitHubClient(transport=httpx.MockTransport(handler))
        try:
            await client.fetch_profile("tok")
        finally:
            await client.aclose()
        assert seen["auth"] == "Bearer tok"

    async def test_401(self, github_client, fake_github):
        fake_github.profile_status = 401
        with pytest.raises(AuthError):
            await github_client.fetch_profile(ACCESS_TOKEN)

    async def test_403_quota(self, github_client, fake_github):
        fake_github.profile_status = 403
        fake_github.profile_headers = {"X-RateLimit-Remaining": "0"}
        with pytest.raises(RateLimitError):
            await github_client.fetch_profile(ACCESS_TOKEN)

    async def test_403_permission(self, github_client, fake_github):
        fake_github.profile_status = 403
        fake_github.profile_headers = {"X-RateLimit-Remaining": "4000"}
        with pytest.raises(ForbiddenError):
            await github_client.fetch_profile(ACCESS_TOKEN)


class TestFetchRepositories:

    async def test_follows_link_pagination(self, github_client, fake_github):
        fake_github.per_page = 2
        fake_github.repos = [make_repo(f"r{i}", stars=i) for i in range(5)]

        repos = await github_client.fetch_repositories("octocat", ACCESS_TOKEN)

        assert [r.name for r in repos] == ["r0", "r1", "r2", "r3", "r4"]
        assert fake_github.calls["fetch_repositories"] == 3

    async def test_filters_private(self, github_client, fake_github):
        fake_github.repos = [
            make_repo("public-one"),
            make_repo("secret", private=True),
            make_repo("public-two"),
        ]

        repos = await github_client.fetch_repositories("octocat", ACCESS_TOKEN)

        assert [r.name for r in repos] == ["public-one", "public-two"]
        assert not any(r.private for r in repos)

    async def test_unknown_user(self, github_client, fake_github):
        fake_github.repos_status = 404
        with pytest.raises(NotFoundError):
            await github_client.fetch_repositories("ghost", ACCESS_TOKEN)

    async def test_revoked_token(self, github_client, fake_github):
        fake_github.repos_status = 401
        with pytest.raises(AuthError):
            await github_client.fetch_repositories("octocat", ACCESS_TOKEN)


class TestFetchLanguages:

    async def test_returns_bytes(self, github_client, fake_github):
        fake_github.languages["hello"] = {"Python": 1200, "Shell": 30}
        assert await github_client.fetch_languages("octocat", "hello", ACCESS_TOKEN) == {"Python": 1200, "Shell": 30}

    async def test_404_is_empty(self, github_client, fake_github):
        fake_github.languages["gone"] = 404
        assert await github_client.fetch_languages("octocat", "gone", ACCESS_TOKEN) == {}

    async def test_quota_exhausted(self):
        from devprofile.services.github_service import GitHubClient

        client = GitHubClient(transport=httpx.MockTransport(
            lambda r: httpx.Response(403, json={}, headers={"X-RateLimit-Remaining": "0"})
        ))
        try:
            with pytest.raises(RateLimitError):
                await client.fetch_languages("octocat", "hello", ACCESS_TOKEN)
        finally:
            await client.aclose()

    async def test_timeout_is_network_error(self, github_client, fake_github):
        fake_github.languages["slow"] = httpx.ReadTimeout("timed out")
        with pytest.raises(NetworkError):
            await github_client.fetch_languages("octocat", "slow", ACCESS_TOKEN)
