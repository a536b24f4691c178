import asyncio
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from devprofile.core.config import OAUTH_STATE_TTL_SECONDS, OAUTH_STATE_SWEEP_SECONDS

logger = logging.getLogger("devprofile.oauth_state")


@dataclass(frozen=True)
class AuthorizationState:
    token: str
    owner_id: str
    expires_at: float


class OAuthStateStore:
    """In-memory store of one-time OAuth state tokens.

    Expiry is checked on every read; ``sweep`` only bounds memory.
    """

    def __init__(self, ttl_seconds: int = OAUTH_STATE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._states: Dict[str, AuthorizationState] = {}

    def __len__(self) -> int:
        return len(self._states)

    def issue(self, owner_id: str) -> str:
        token = secrets.token_hex(32)
        self._states[token] = AuthorizationState(
            token=token,
            owner_id=owner_id,
            expires_at=self._clock() + self.ttl_seconds,
        )
        return token

    def validate(self, token: str) -> Optional[str]:
        state = self._states.get(token)
        if state is None:
            return None
        if self._clock() > state.expires_at:
            self._states.pop(token, None)
            return None
        return state.owner_id

    def consume(self, token: str) -> None:
        self._states.pop(token, None)

    def sweep(self) -> int:
        now = self._clock()
        expired = [t for t, s in list(self._states.items()) if now > s.expires_at]
        for token in expired:
            self._states.pop(token, None)
        return len(expired)

    async def run_sweeper(self, interval: float = OAUTH_STATE_SWEEP_SECONDS) -> None:
        while True:
            await asyncio.sleep(interval)
            removed = self.sweep()
            if removed:
                logger.debug(f"Swept {removed} expired OAuth states")


state_store = OAuthStateStore()
