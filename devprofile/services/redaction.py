import re
from typing import Optional

SECRET_PATTERNS = [
    re.compile(r'(?:access[_-]?token|auth[_-]?token|token)\s*[=:]\s*["\']?[\w\-.]{8,}', re.IGNORECASE),
    re.compile(r'bearer\s+[\w\-.]{8,}', re.IGNORECASE),
    re.compile(r'gh[pousr]_[a-zA-Z0-9]{20,}'),  # GitHub OAuth / PAT
    re.compile(r'github_pat_[a-zA-Z0-9_]{20,}'),  # Fine-grained PAT
]

REDACTED = "***"


def redact_secret(message: str, secret: Optional[str] = None) -> str:
    """Strip the known credential and anything resembling one from a message."""
    if not message:
        return message
    if secret:
        message = message.replace(secret, REDACTED)
    for pattern in SECRET_PATTERNS:
        message = pattern.sub(REDACTED, message)
    return message
