from collections.abc import Callable
from time import monotonic

from cachetools import TTLCache
from loguru import logger

from fixer.core.config import settings
from fixer.core.security import redact_token
from fixer.services.marketplace import MarketplaceBackend, MarketplaceService
from fixer.services.session import DiscoverySession


class _SessionCache(TTLCache):
    """TTLCache that remembers the sessions it drops, whether expired or evicted for space."""

    def __init__(self, maxsize: int, ttl: float, timer: Callable[[], float] = monotonic):
        super().__init__(maxsize=maxsize, ttl=ttl, timer=timer)
        self.dropped: list[DiscoverySession] = []

    def expire(self, time=None):
        expired = super().expire(time)
        self.dropped.extend(session for _, session in expired)
        return expired

    def popitem(self):
        key, session = super().popitem()
        self.dropped.append(session)
        return key, session


class SessionStore:
    """Keeps one DiscoverySession per viewer token, expiring idle ones."""

    def __init__(
        self,
        maxsize: int | None = None,
        ttl_seconds: float | None = None,
        backend_factory: Callable[[str], MarketplaceBackend] = MarketplaceService,
        timer: Callable[[], float] = monotonic,
    ) -> None:
        self._sessions = _SessionCache(
            maxsize=maxsize or settings.SESSION_MAX_COUNT,
            ttl=ttl_seconds or settings.SESSION_TTL_SECONDS,
            timer=timer,
        )
        self._backend_factory = backend_factory

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, token: str) -> DiscoverySession | None:
        return self._sessions.get(token)

    async def get_or_create(self, token: str) -> DiscoverySession:
        session = self._sessions.get(token)
        if session is None:
            logger.info(f"Opening discovery session for token {redact_token(token)}")
            session = DiscoverySession(self._backend_factory(token))
        # Re-insert so the TTL counts from the last use
        self._sessions[token] = session
        await self._close_dropped()
        return session

    async def _close_dropped(self) -> None:
        dropped, self._sessions.dropped = self._sessions.dropped, []
        for session in dropped:
            try:
                await session.close()
            except Exception as exc:
                logger.warning(f"Failed to close expired discovery session: {exc}")
        if dropped:
            logger.debug(f"Closed {len(dropped)} expired discovery session(s)")

    async def discard(self, token: str) -> None:
        session = self._sessions.pop(token, None)
        if session is not None:
            await session.close()

    async def close_all(self) -> None:
        """Close every session's backend client, live or already expired (call on shutdown)."""
        self._sessions.expire()
        count = len(self._sessions) + len(self._sessions.dropped)
        self._sessions.clear()
        await self._close_dropped()
        logger.info(f"Closed {count} discovery session(s)")


session_store = SessionStore()
