"""In-process session registry.

Authoritative mapping of connection id -> Session. Iteration follows
insertion order, which is what room member lists are ordered by.
Not synchronized: callers (RealtimeService) serialize access.
"""
from __future__ import annotations

from typing import Dict, Iterator, Optional

from domain.presence import Session
from core.logging_config import get_logger


logger = get_logger(__name__)


class SessionStore:
    """Owns every session record of this process."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Session] = {}

    def register(self, session_id: str, display_name: str, room: str) -> Session:
        """Insert or overwrite the record for ``session_id``.

        Overwriting keeps the session's position in iteration order.
        """
        session = Session(id=session_id, display_name=display_name, room=room)
        previous = self._sessions.get(session_id)
        self._sessions[session_id] = session
        if previous is not None:
            logger.debug(
                "session_overwritten",
                session_id=session_id,
                previous_room=previous.room,
                room=room,
            )
        return session

    def lookup(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[Session]:
        """Delete and return the record; ``None`` if there was none."""
        return self._sessions.pop(session_id, None)

    def __iter__(self) -> Iterator[Session]:
        # snapshot so callers may mutate while iterating
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
