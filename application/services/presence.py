"""Presence announcements: a system line plus a fresh member list."""
from __future__ import annotations

from application.ports.realtime import UserListPayload
from application.services.broadcast import BroadcastDispatcher
from application.services.room_view import RoomView
from domain.presence import (
    EVENT_SYSTEM_MESSAGE,
    EVENT_UPDATE_USER_LIST,
    Session,
)


class PresenceNotifier:
    def __init__(self, *, rooms: RoomView, dispatcher: BroadcastDispatcher) -> None:
        self._rooms = rooms
        self._dispatcher = dispatcher

    async def announce_join(self, session: Session) -> None:
        # session is already registered, so the joiner receives both frames
        await self._dispatcher.send_to_room(session.room, EVENT_SYSTEM_MESSAGE, session.joined_text())
        await self.publish_user_list(session.room)

    async def announce_leave(self, session: Session) -> None:
        # session is already removed, so it is absent from the new list
        await self._dispatcher.send_to_room(session.room, EVENT_SYSTEM_MESSAGE, session.left_text())
        await self.publish_user_list(session.room)

    async def publish_user_list(self, room: str) -> None:
        payload = UserListPayload(room_name=room, user_list=self._rooms.members_of(room))
        await self._dispatcher.send_to_room(
            room,
            EVENT_UPDATE_USER_LIST,
            payload.model_dump(by_alias=True),
        )
