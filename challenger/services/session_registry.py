"""In-memory session registry for the HTTP host.

Holds live ConversationSession objects for this process and serializes
access to each one with its own asyncio.Lock (sessions are single-writer).
Nothing is persisted; ending a session removes it.

HTTP clients never signal a disconnect, so sessions idle for longer than
idle_timeout seconds are ended and dropped the next time a session is
created.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Dict, List, Optional, Union

import structlog

from challenger.core.exceptions import SessionNotFoundError
from challenger.domain.models.persona import PersonaId
from challenger.domain.models.session import OrgContext, UserContext
from challenger.services.conversation_session import ConversationSession

log = structlog.get_logger(__name__)

SessionFactory = Callable[[], ConversationSession]


@dataclass
class _Entry:
    session: ConversationSession
    last_used: float
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class SessionRegistry:
    """Live sessions keyed by session id."""

    def __init__(
        self,
        session_factory: SessionFactory,
        idle_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            session_factory: Builds an unstarted session with its collaborators
            idle_timeout: Seconds without use before a session is evicted
                (never evicted when None)
            clock: Monotonic time source in seconds
        """
        self.session_factory = session_factory
        self.idle_timeout = idle_timeout
        self.clock = clock
        self._entries: Dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._entries

    def create(
        self,
        persona_id: Union[PersonaId, str],
        user_context: Optional[UserContext] = None,
        org_context: Optional[OrgContext] = None,
        document_type: Optional[str] = None,
    ) -> ConversationSession:
        """
        Start a new session and register it.

        Raises:
            UnknownPersonaError: If the persona is not in the catalog
            UnknownDocumentTemplateError: If document_type has no template
        """
        self.evict_idle()

        session = self.session_factory()
        session_id = session.start(persona_id, user_context, org_context, document_type)
        self._entries[session_id] = _Entry(session=session, last_used=self.clock())
        log.info("session_registered", session_id=session_id, active=len(self._entries))
        return session

    def evict_idle(self) -> List[str]:
        """End and drop sessions idle past idle_timeout. Returns their ids.

        Sessions whose lock is held are in use and are never evicted.
        """
        if self.idle_timeout is None:
            return []

        cutoff = self.clock() - self.idle_timeout
        stale = [
            session_id
            for session_id, entry in self._entries.items()
            if entry.last_used < cutoff and not entry.lock.locked()
        ]
        for session_id in stale:
            self._entries.pop(session_id).session.end()
            log.info("session_evicted", session_id=session_id, idle_timeout=self.idle_timeout)
        return stale

    def get(self, session_id: str) -> ConversationSession:
        """
        Raises:
            SessionNotFoundError: If no live session has this id
        """
        entry = self._entries.get(session_id)
        if entry is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        return entry.session

    @asynccontextmanager
    async def locked(self, session_id: str) -> AsyncIterator[ConversationSession]:
        """Hold the session's lock for the duration of the block.

        Raises:
            SessionNotFoundError: If no live session has this id (checked again
                after the lock is acquired)
        """
        entry = self._entries.get(session_id)
        if entry is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")

        async with entry.lock:
            if self._entries.get(session_id) is not entry:
                raise SessionNotFoundError(f"Session not found: {session_id}")
            entry.last_used = self.clock()
            try:
                yield entry.session
            finally:
                entry.last_used = self.clock()

    async def end(self, session_id: str) -> bool:
        """End and remove a session. Returns False if it was already gone."""
        entry = self._entries.get(session_id)
        if entry is None:
            return False

        async with entry.lock:
            if self._entries.get(session_id) is not entry:
                return False
            entry.session.end()
            del self._entries[session_id]

        log.info("session_unregistered", session_id=session_id, active=len(self._entries))
        return True

    async def clear(self) -> None:
        """End every live session (used on shutdown)."""
        for session_id in list(self._entries):
            await self.end(session_id)
