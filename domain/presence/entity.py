"""
Presence domain entity - a live connection bound to a display name and a room
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class Session:
    """Session entity.

    Created when a connection joins a room and dropped when it disconnects.
    Display name and room are taken as-is; empty strings are valid values.
    """

    id: str
    display_name: str
    room: str

    def in_room(self, room: str) -> bool:
        return self.room == room

    def joined_text(self) -> str:
        return f"{self.display_name} has joined"

    def left_text(self) -> str:
        return f"{self.display_name} has left"
