"""In-process conversation sessions keyed by sender phone."""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from domain.enums import ChatIntent


@dataclass
class ConversationSession:
    """Last known state of one WhatsApp sender."""

    sender: str
    intent: Optional[ChatIntent]
    created_at: float
    last_message_at: float


class ConversationSessionStore:
    """
    Bounded session map shared by concurrent webhook deliveries.

    Entries idle longer than ``ttl_seconds`` are evicted, and the least
    recently used entry is dropped once ``max_sessions`` is exceeded.
    """

    def __init__(
        self,
        ttl_seconds: float = 30 * 60,
        max_sessions: int = 10000,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: "OrderedDict[str, ConversationSession]" = OrderedDict()
        self._lock = threading.Lock()

    def record(self, sender: str, intent: ChatIntent) -> ConversationSession:
        """Create or refresh the sender's session with the latest intent."""
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            session = self._sessions.get(sender)
            if session is None:
                session = ConversationSession(sender=sender, intent=None, created_at=now, last_message_at=now)
                self._sessions[sender] = session
            session.intent = intent
            session.last_message_at = now
            self._sessions.move_to_end(sender)
            while len(self._sessions) > self.max_sessions:
                self._sessions.popitem(last=False)
            return session

    def get(self, sender: str) -> Optional[ConversationSession]:
        with self._lock:
            self._evict_expired(self._clock())
            return self._sessions.get(sender)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _evict_expired(self, now: float) -> None:
        # Ordered by last message, oldest first.
        while self._sessions:
            sender, session = next(iter(self._sessions.items()))
            if now - session.last_message_at <= self.ttl_seconds:
                break
            del self._sessions[sender]
