"""
Realtime port and message DTOs (contracts-first).

This module defines the boundary DTOs and the RealtimeTransportPort
protocol so the application layer stays decoupled from the concrete
per-connection delivery mechanism (infrastructure).
"""
from __future__ import annotations

from typing import Any, Protocol
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone


def _utc_now_z() -> str:
    ts = datetime.now(timezone.utc)
    s = ts.isoformat()
    return s.replace("+00:00", "Z")


class Envelope(BaseModel):
    """Unified WS frame passed around the system.

    Fields:
      - event: event name (join room / chat message / system message / ...)
      - data: payload; a string for text events, an object otherwise
      - ts: server-generated UTC timestamp (ISO8601 with Z)
    """

    event: str
    data: Any = None
    ts: str = Field(default_factory=_utc_now_z)


class JoinRoomPayload(BaseModel):
    """Client payload of ``join room``. No content validation beyond types."""

    model_config = ConfigDict(strict=True)

    nickname: str
    room: str


class ChatMessagePayload(BaseModel):
    """Server payload of ``chat message``, echoed to the whole room."""

    nickname: str
    message: str


class UserListPayload(BaseModel):
    """Server payload of ``update user list``: a full snapshot, not a diff."""

    model_config = ConfigDict(populate_by_name=True)

    room_name: str = Field(alias="roomName")
    user_list: list[str] = Field(default_factory=list, alias="userList")


class RealtimeTransportPort(Protocol):
    """Abstraction for handing frames to one live connection.

    Implementations must not block: delivery is best-effort and
    fire-and-forget, the caller never waits for the peer.
    """

    async def send(self, connection_id: str, envelope: Envelope) -> bool: ...


__all__ = [
    "Envelope",
    "JoinRoomPayload",
    "ChatMessagePayload",
    "UserListPayload",
    "RealtimeTransportPort",
]
