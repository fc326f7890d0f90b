from .entity import Session
from .events import (
    EVENT_CHAT_MESSAGE,
    EVENT_JOIN_ROOM,
    EVENT_SYSTEM_MESSAGE,
    EVENT_UPDATE_USER_LIST,
    SessionJoined,
    SessionLeft,
)

__all__ = [
    "Session",
    "SessionJoined",
    "SessionLeft",
    "EVENT_JOIN_ROOM",
    "EVENT_CHAT_MESSAGE",
    "EVENT_SYSTEM_MESSAGE",
    "EVENT_UPDATE_USER_LIST",
]
