"""Application service for realtime WebSocket workflows.

Sequences the session store, room view, dispatcher and presence
notifier for the three connection events (join, message, disconnect).

Each connection goes UNJOINED -> JOINED -> TERMINATED. Connections are
handled by separate asyncio tasks, so every event runs start-to-finish
under one lock: a member list is always computed against the mutation
that triggered it.
"""
from __future__ import annotations

import asyncio
import enum
from typing import Dict, Optional

from fastapi import WebSocket

from application.ports.realtime import ChatMessagePayload
from application.services.broadcast import BroadcastDispatcher
from application.services.presence import PresenceNotifier
from application.services.room_view import RoomView
from core.config import settings
from core.logging_config import get_logger
from domain.presence import EVENT_CHAT_MESSAGE, Session, SessionJoined, SessionLeft
from infrastructure.realtime.connection_manager import ConnectionManager
from infrastructure.realtime.session_store import SessionStore


logger = get_logger(__name__)


class ConnectionState(str, enum.Enum):
    UNJOINED = "unjoined"
    JOINED = "joined"
    TERMINATED = "terminated"


class RealtimeService:
    def __init__(
        self,
        *,
        store: SessionStore,
        connections: ConnectionManager,
        leave_on_rejoin: Optional[bool] = None,
    ) -> None:
        self._store = store
        self._conn = connections
        self._rooms = RoomView(store)
        self._dispatcher = BroadcastDispatcher(rooms=self._rooms, transport=connections)
        self._presence = PresenceNotifier(rooms=self._rooms, dispatcher=self._dispatcher)
        self._leave_on_rejoin = settings.REALTIME_LEAVE_ON_REJOIN if leave_on_rejoin is None else leave_on_rejoin
        # live connections only; TERMINATED ids are dropped, never reused
        self._states: Dict[str, ConnectionState] = {}
        self._lock = asyncio.Lock()

    # Connection lifecycle management
    async def connect(self, connection_id: str, ws: WebSocket) -> None:
        """Attach a new connection in the UNJOINED state."""
        await self._conn.add(connection_id, ws)
        async with self._lock:
            self._states[connection_id] = ConnectionState.UNJOINED
        logger.info("connection_opened", connection_id=connection_id)

    async def disconnect(self, connection_id: str) -> Optional[SessionLeft]:
        """Terminate a connection; announces a leave if it had joined a room.

        Safe to call more than once.
        """
        left: Optional[SessionLeft] = None
        async with self._lock:
            state = self._states.pop(connection_id, None)
            session = self._store.remove(connection_id)
            if session is not None:
                await self._presence.announce_leave(session)
                left = SessionLeft(session_id=session.id, display_name=session.display_name, room=session.room)
        await self._conn.remove(connection_id)
        if left is not None:
            logger.info("session_left", connection_id=connection_id, room=left.room, nickname=left.display_name)
        elif state is None:
            logger.debug("disconnect_ignored", connection_id=connection_id)
        return left

    # Public API (use-cases)
    async def join(self, connection_id: str, nickname: str, room: str) -> Optional[SessionJoined]:
        """Bind the connection to ``room`` under ``nickname`` and announce it."""
        async with self._lock:
            state = self._states.get(connection_id)
            if state is None:
                logger.debug("join_ignored_unknown_connection", connection_id=connection_id)
                return None
            previous = self._store.lookup(connection_id)
            if previous is not None and self._leave_on_rejoin and previous.room != room:
                self._store.remove(connection_id)
                await self._presence.announce_leave(previous)
                logger.info("session_left", connection_id=connection_id, room=previous.room, reason="rejoin")
            session = self._store.register(connection_id, nickname, room)
            self._states[connection_id] = ConnectionState.JOINED
            await self._presence.announce_join(session)
        logger.info(
            "session_joined",
            connection_id=connection_id,
            room=room,
            nickname=nickname,
            previous_room=previous.room if previous else None,
        )
        return SessionJoined(session_id=session.id, display_name=session.display_name, room=session.room)

    async def send_message(self, connection_id: str, text: str) -> int:
        """Echo ``text`` to the sender's whole room, sender included.

        Returns the number of connections reached; 0 when unjoined.
        """
        async with self._lock:
            session = self._store.lookup(connection_id)
            if session is None:
                logger.debug("chat_dropped_unjoined", connection_id=connection_id)
                return 0
            payload = ChatMessagePayload(nickname=session.display_name, message=text)
            return await self._dispatcher.send_to_room(session.room, EVENT_CHAT_MESSAGE, payload.model_dump())

    # Queries
    def state_of(self, connection_id: str) -> ConnectionState:
        return self._states.get(connection_id, ConnectionState.TERMINATED)

    def session_of(self, connection_id: str) -> Optional[Session]:
        return self._store.lookup(connection_id)

    # Expose for API convenience
    @property
    def rooms(self) -> RoomView:
        return self._rooms

    @property
    def connections(self) -> ConnectionManager:
        return self._conn
