"""Domain-level business exceptions, shared by the domain and infrastructure layers.

The core layer only maps them to responses; the domain never depends back on core.
"""
from __future__ import annotations

from typing import Any, Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class RoomNotFoundException(BusinessException):
    def __init__(self, room: str):
        super().__init__(
            code=BusinessCode.ROOM_NOT_FOUND,
            message=f"Room {room!r} has no members",
            error_type="RoomNotFound",
            details={"room": room},
            field="room",
        )


class InvalidFrameException(BusinessException):
    """A realtime frame that could not be decoded into a known event."""

    def __init__(
        self,
        message: str = "Frame must be a JSON object with an 'event' field",
        *,
        code: int = BusinessCode.FRAME_INVALID,
        event: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        merged = dict(details or {})
        if event is not None:
            merged["event"] = event
        super().__init__(
            code=code,
            message=message,
            error_type="InvalidFrame",
            details=merged or None,
        )


class UnknownEventException(InvalidFrameException):
    def __init__(self, event: str):
        super().__init__(
            message=f"Unknown event {event!r}",
            code=BusinessCode.FRAME_UNKNOWN_EVENT,
            event=event,
        )


class InvalidPayloadException(InvalidFrameException):
    def __init__(self, event: str, reason: str):
        super().__init__(
            message=f"Invalid payload for {event!r}: {reason}",
            code=BusinessCode.FRAME_PAYLOAD_INVALID,
            event=event,
        )
