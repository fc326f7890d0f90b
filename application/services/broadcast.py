"""Room-scoped fan-out over the realtime transport."""
from __future__ import annotations

from typing import Any, Optional

from application.ports.realtime import Envelope, RealtimeTransportPort
from application.services.room_view import RoomView
from core.logging_config import get_logger


logger = get_logger(__name__)


class BroadcastDispatcher:
    def __init__(self, *, rooms: RoomView, transport: RealtimeTransportPort) -> None:
        self._rooms = rooms
        self._transport = transport

    async def send_to_room(
        self,
        room: str,
        event: str,
        payload: Any,
        *,
        excluding: Optional[str] = None,
    ) -> int:
        """Hand ``payload`` tagged with ``event`` to every session in ``room``.

        Membership is read at call time. Returns how many connections
        accepted the frame; nothing is retried.
        """
        targets = [sid for sid in self._rooms.session_ids_in(room) if sid != excluding]
        if not targets:
            # "event" is the log message slot in structlog
            logger.debug("room_broadcast_empty", room=room, frame_event=event)
            return 0
        envelope = Envelope(event=event, data=payload)
        delivered = 0
        for sid in targets:
            if await self._transport.send(sid, envelope):
                delivered += 1
        logger.debug(
            "room_broadcast",
            room=room,
            frame_event=event,
            targets=len(targets),
            delivered=delivered,
        )
        return delivered
