# devprofile/core/exceptions.py
from typing import Optional


class DevProfileError(Exception):
    """Base class for errors raised by the GitHub integration."""


class ConfigurationError(DevProfileError):
    """Missing or malformed process configuration (raised at startup)."""


class ValidationError(DevProfileError):
    """Missing or malformed request input."""


class InvalidStateError(ValidationError):
    """OAuth state token is unknown, expired or already used."""


# ---------- GitHub API ----------

class GitHubAPIError(DevProfileError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthError(GitHubAPIError):
    """Access token rejected by GitHub (expired or revoked)."""


class ForbiddenError(GitHubAPIError):
    """403 that is not caused by quota exhaustion."""


class RateLimitError(GitHubAPIError):
    """Quota exhausted or below the safety floor."""


class InvalidCodeError(GitHubAPIError):
    """Authorization code is stale or was already exchanged."""


class NetworkError(GitHubAPIError):
    """Transport failure talking to GitHub."""


class NotFoundError(GitHubAPIError):
    pass


# ---------- Stored credential ----------

class FormatError(DevProfileError):
    """Stored credential is not in iv:ciphertext hex form."""


class DecryptionError(DevProfileError):
    """Cipher rejected the stored credential."""
