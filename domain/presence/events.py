"""
Presence domain events and the event names used on the realtime channel
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import uuid


# client -> server
EVENT_JOIN_ROOM = "join room"
# both directions: client sends text, server fans out {nickname, message}
EVENT_CHAT_MESSAGE = "chat message"
# server -> room
EVENT_SYSTEM_MESSAGE = "system message"
EVENT_UPDATE_USER_LIST = "update user list"


@dataclass
class SessionJoined:
    """会话加入房间事件"""
    session_id: str
    display_name: str
    room: str
    event_id: Optional[str] = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class SessionLeft:
    """会话离开房间事件"""
    session_id: str
    display_name: str
    room: str
    event_id: Optional[str] = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
