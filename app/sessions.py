import logging
import time
from collections import OrderedDict
from dataclasses import dataclass

from app.controller import FormController
from app.previews import PreviewStore

logger = logging.getLogger("estimator")


@dataclass
class _Session:
    controller: FormController
    last_seen: float


class SessionRegistry:
    """One FormController per browser session.

    Sessions are dropped after ``ttl_seconds`` idle, and at most
    ``max_sessions`` are kept: opening one more evicts the least recently
    seen, releasing its preview.
    """

    def __init__(
        self,
        previews: PreviewStore,
        ttl_seconds: int = 3600,
        max_sessions: int = 500,
        clock=time.monotonic,
    ):
        self.previews = previews
        self.ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        # Ordered oldest-seen first
        self._sessions: OrderedDict[str, _Session] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> FormController:
        self.evict_expired()
        now = self._clock()
        session = self._sessions.get(session_id)
        if session is None:
            self._make_room()
            session = _Session(controller=FormController(self.previews), last_seen=now)
            self._sessions[session_id] = session
        session.last_seen = now
        self._sessions.move_to_end(session_id)
        return session.controller

    def discard(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.controller.close()

    def _make_room(self) -> None:
        while len(self._sessions) >= self.max_sessions:
            oldest = next(iter(self._sessions))
            self.discard(oldest)
            logger.warning(
                "Session limit reached, evicted least recently seen",
                extra={"extra_data": {"max_sessions": self.max_sessions}},
            )

    def evict_expired(self) -> int:
        cutoff = self._clock() - self.ttl_seconds
        expired = [sid for sid, s in self._sessions.items() if s.last_seen < cutoff]
        for sid in expired:
            self.discard(sid)
        if expired:
            logger.info("Evicted idle sessions", extra={"extra_data": {"count": len(expired)}})
        return len(expired)

    def close_all(self) -> None:
        for sid in list(self._sessions):
            self.discard(sid)
        self.previews.clear()
