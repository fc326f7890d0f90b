"""
Shared business codes used across layers (Domain/Core/API).

Single source of truth for the `code` field of every HTTP response
envelope and for the realtime `error` frames.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    """Unified business status codes (single source of truth)."""

    # Success
    SUCCESS = 0

    # Parameter errors (1xxxx)
    PARAM_ERROR = 10000
    PARAM_MISSING = 10001
    PARAM_TYPE_ERROR = 10002
    PARAM_VALIDATION_ERROR = 10003

    # Business errors (2xxxx)
    BUSINESS_ERROR = 20000
    NOT_FOUND = 20006  # Generic resource not found
    ROOM_NOT_FOUND = 20101

    # System errors (4xxxx)
    SYSTEM_ERROR = 40000
    SERVICE_UNAVAILABLE = 40003

    # Realtime framing errors (6xxxx)
    FRAME_INVALID = 60000
    FRAME_UNKNOWN_EVENT = 60001
    FRAME_PAYLOAD_INVALID = 60002


__all__ = ["BusinessCode"]
