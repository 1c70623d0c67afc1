"""Registry owning one ``TenantResolver`` per client session."""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

from src.modules.tenancy.directory import TenantDirectoryClient
from src.modules.tenancy.resolver import TenantResolver

logger = logging.getLogger(__name__)


@dataclass
class _SessionEntry:
    resolver: TenantResolver
    last_seen: float


class TenantSessionRegistry:
    """Maps session ids to resolvers and tears idle sessions down.

    Sessions never share resolution state. The registry is owned by the
    application instance (``app.state.tenant_sessions``) and holds at most
    ``max_sessions`` entries; when full, the least recently seen session is
    torn down to make room.

    Entries are kept in least-recently-seen order, so idle eviction only
    visits the sessions it removes.
    """

    def __init__(
        self,
        directory: TenantDirectoryClient,
        idle_seconds: int,
        max_sessions: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._directory = directory
        self._idle_seconds = idle_seconds
        self._max_sessions = max_sessions
        self._clock = clock
        self._sessions: OrderedDict[str, _SessionEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str | None) -> TenantResolver | None:
        """Return the session's resolver without opening a new session."""
        entry = self._sessions.get(session_id) if session_id else None
        if entry is None:
            return None
        self._touch(session_id, entry)
        return entry.resolver

    def get_or_create(self, session_id: str) -> TenantResolver:
        resolver = self.get(session_id)
        if resolver is not None:
            return resolver

        while len(self._sessions) >= self._max_sessions:
            oldest = next(iter(self._sessions))
            logger.info("Tenant session limit %d reached, evicting %s", self._max_sessions, oldest)
            self.discard(oldest)

        resolver = TenantResolver(self._directory)
        self._sessions[session_id] = _SessionEntry(resolver=resolver, last_seen=self._clock())
        logger.debug("Opened tenant session %s", session_id)
        return resolver

    def discard(self, session_id: str) -> None:
        entry = self._sessions.pop(session_id, None)
        if entry is not None:
            entry.resolver.teardown()
            logger.debug("Closed tenant session %s", session_id)

    def evict_idle(self) -> int:
        """Tear down sessions idle for longer than the configured window.

        Returns the number of sessions evicted.
        """
        cutoff = self._clock() - self._idle_seconds
        evicted = 0
        while self._sessions:
            session_id, entry = next(iter(self._sessions.items()))
            if entry.last_seen >= cutoff:
                break
            self.discard(session_id)
            evicted += 1
        if evicted:
            logger.info("Evicted %d idle tenant sessions", evicted)
        return evicted

    async def close(self) -> None:
        for entry in self._sessions.values():
            await entry.resolver.aclose()
        self._sessions.clear()
        await self._directory.aclose()

    def _touch(self, session_id: str, entry: _SessionEntry) -> None:
        entry.last_seen = self._clock()
        self._sessions.move_to_end(session_id)
