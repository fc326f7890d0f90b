"""Room membership derived from the session store.

Rooms are never materialized: every call rescans the store, so a view
can't drift from the records it was computed from.
"""
from __future__ import annotations

from typing import Dict, List

from infrastructure.realtime.session_store import SessionStore


class RoomView:
    def __init__(self, store: SessionStore) -> None:
        self._store = store

    def members_of(self, room: str) -> List[str]:
        """Display names in ``room``, in store order. Duplicates are kept."""
        return [s.display_name for s in self._store if s.in_room(room)]

    def session_ids_in(self, room: str) -> List[str]:
        return [s.id for s in self._store if s.in_room(room)]

    def snapshot(self) -> Dict[str, List[str]]:
        """Every non-empty room with its member list."""
        rooms: Dict[str, List[str]] = {}
        for s in self._store:
            rooms.setdefault(s.room, []).append(s.display_name)
        return rooms
