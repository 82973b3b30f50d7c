"""
In-memory form sessions. Lost on restart; nothing is persisted.

Sessions idle for longer than ttl_s are dropped, and the least recently
used one goes when max_sessions is reached.
"""
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from arduino_builder.orchestrator import RequestOrchestrator


@dataclass
class FormSession:
    session_id: str
    orchestrator: RequestOrchestrator
    last_seen: float


class SessionStore:
    def __init__(self, ttl_s: float = 3600, max_sessions: int = 1000,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_s = ttl_s
        self.max_sessions = max(1, max_sessions)
        self._clock = clock
        # Ordered by last access, oldest first
        self._sessions: OrderedDict[str, FormSession] = OrderedDict()

    def _evict_expired(self, now: float):
        while self._sessions:
            oldest = next(iter(self._sessions.values()))
            if now - oldest.last_seen <= self.ttl_s:
                break
            self._sessions.popitem(last=False)

    def create(self, orchestrator: RequestOrchestrator) -> FormSession:
        now = self._clock()
        self._evict_expired(now)
        while len(self._sessions) >= self.max_sessions:
            self._sessions.popitem(last=False)
        session = FormSession(session_id=uuid.uuid4().hex[:12], orchestrator=orchestrator, last_seen=now)
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> FormSession | None:
        now = self._clock()
        self._evict_expired(now)
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_seen = now
            self._sessions.move_to_end(session_id)
        return session

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)
