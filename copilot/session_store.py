"""
Chat session state kept in memory for follow-up questions about a report.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Sequence, Tuple

from domain.papers import PaperRecord

from .errors import SessionNotFoundError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ChatSession:
    """A generated report and the conversation held about it."""

    id: str
    topic: str
    papers: Tuple[PaperRecord, ...]
    report: str
    history: List[str] = field(default_factory=list)
    created_at: float = 0.0
    last_active: float = 0.0


class SessionStore:
    """Thread-safe map of session id -> ChatSession.

    Sessions idle for longer than `ttl_seconds` expire, and once more than
    `max_sessions` are held the least recently used one is dropped.
    """

    def __init__(
        self,
        *,
        max_sessions: int = 500,
        ttl_seconds: float = 3600.0,
        history_limit: int = 20,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._max_sessions = max(1, max_sessions)
        self._ttl = ttl_seconds
        self._history_limit = history_limit
        self._clock = clock
        self._sessions: "OrderedDict[str, ChatSession]" = OrderedDict()
        self._last_id = 0
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def new_id(self) -> str:
        """Millisecond timestamp, bumped so ids strictly increase within the process."""
        with self._lock:
            candidate = int(self._clock() * 1000)
            if candidate <= self._last_id:
                candidate = self._last_id + 1
            self._last_id = candidate
            return str(candidate)

    def create(self, topic: str, papers: Sequence[PaperRecord], report: str) -> str:
        with self._lock:
            self._evict_expired()
            session_id = self.new_id()
            now = self._clock()
            self._sessions[session_id] = ChatSession(
                id=session_id,
                topic=topic,
                papers=tuple(papers),
                report=report,
                created_at=now,
                last_active=now,
            )
            while len(self._sessions) > self._max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.info("Session store full; evicted least recently used session %s", evicted)
            return session_id

    def get(self, session_id: str) -> Optional[ChatSession]:
        """Return a snapshot of the session, or None if unknown or expired."""
        with self._lock:
            self._evict_expired()
            session = self._sessions.get(session_id)
            if session is None:
                return None
            self._touch(session)
            return replace(session, history=list(session.history))

    def append_turn(self, session_id: str, user_message: str, assistant_reply: str) -> None:
        with self._lock:
            self._evict_expired()
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            session.history.append(f"User: {user_message}")
            session.history.append(f"Assistant: {assistant_reply}")
            if len(session.history) > self._history_limit:
                del session.history[: len(session.history) - self._history_limit]
            self._touch(session)

    def _touch(self, session: ChatSession) -> None:
        session.last_active = self._clock()
        self._sessions.move_to_end(session.id)

    def _evict_expired(self) -> None:
        if self._ttl <= 0:
            return
        cutoff = self._clock() - self._ttl
        # Ordered by last activity, so expired sessions sit at the front.
        while self._sessions:
            oldest_id, oldest = next(iter(self._sessions.items()))
            if oldest.last_active > cutoff:
                break
            del self._sessions[oldest_id]
            logger.info("Session %s expired after %.0fs idle", oldest_id, self._ttl)
