"""WebSocket route: the realtime channel clients join rooms over.

Every frame is a JSON object ``{"event": ..., "data": ...}``. Frames that
can't be decoded into a known event get an ``error`` frame back; they
never reach the session registry.

Optional heartbeat: when REALTIME_WS_IDLE_PING_INTERVAL_S > 0 the server
sends a ``ping`` frame on idle and closes after too many missed replies.
"""
from __future__ import annotations

import asyncio
import json
import uuid
from typing import Any, Tuple

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from api.middleware import resolve_client_ip
from application.ports.realtime import Envelope, JoinRoomPayload
from application.services.realtime_service import RealtimeService
from core.config import settings
from core.logging_config import get_logger
from domain.common.exceptions import (
    InvalidFrameException,
    InvalidPayloadException,
    UnknownEventException,
)
from domain.presence import EVENT_CHAT_MESSAGE, EVENT_JOIN_ROOM


logger = get_logger(__name__)


router = APIRouter(tags=["WebSocket"])

EVENT_PING = "ping"
EVENT_PONG = "pong"
EVENT_ERROR = "error"


def get_realtime_service_from_app(ws: WebSocket) -> RealtimeService:
    svc = getattr(ws.app.state, "realtime_service", None)
    if svc is None:
        raise RuntimeError("Realtime service not initialized. Ensure lifespan sets app.state.realtime_service.")
    return svc


def parse_frame(raw: str) -> Tuple[str, Any]:
    """Decode one client frame into ``(event, data)``."""
    try:
        msg = json.loads(raw)
    except ValueError:
        raise InvalidFrameException("Frame is not valid JSON")
    if not isinstance(msg, dict) or not isinstance(msg.get("event"), str):
        raise InvalidFrameException()
    return msg["event"], msg.get("data")


async def _receive_text(ws: WebSocket) -> str:
    message = await ws.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(code=message.get("code", 1000), reason=message.get("reason"))
    if message.get("text") is not None:
        return message["text"]
    return (message.get("bytes") or b"").decode("utf-8", errors="replace")


async def _handle_frame(rt: RealtimeService, connection_id: str, event: str, data: Any) -> None:
    if event == EVENT_JOIN_ROOM:
        try:
            payload = JoinRoomPayload.model_validate(data)
        except ValidationError:
            raise InvalidPayloadException(event, "expected {nickname: string, room: string}")
        await rt.join(connection_id, payload.nickname, payload.room)
    elif event == EVENT_CHAT_MESSAGE:
        if not isinstance(data, str):
            raise InvalidPayloadException(event, "expected a string")
        await rt.send_message(connection_id, data)
    elif event == EVENT_PING:
        await rt.connections.send(connection_id, Envelope(event=EVENT_PONG))
    elif event == EVENT_PONG:
        # Client heartbeat reply; nothing else to do.
        return
    else:
        raise UnknownEventException(event)


@router.websocket(settings.REALTIME_WS_PATH)
async def websocket_endpoint(ws: WebSocket) -> None:
    await ws.accept()
    rt = get_realtime_service_from_app(ws)
    connection_id = uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(
        connection_id=connection_id,
        client_ip=resolve_client_ip(ws.headers, ws.client),
    )

    await rt.connect(connection_id, ws)
    try:
        idle_ping_interval = float(settings.REALTIME_WS_IDLE_PING_INTERVAL_S)
        pong_grace = float(settings.REALTIME_WS_PONG_GRACE_S)
        missed_limit = int(settings.REALTIME_WS_MISSED_PING_LIMIT)

        missed = 0
        while True:
            if idle_ping_interval > 0:
                try:
                    raw = await asyncio.wait_for(_receive_text(ws), timeout=idle_ping_interval)
                    missed = 0
                except asyncio.TimeoutError:
                    missed += 1
                    await rt.connections.send(connection_id, Envelope(event=EVENT_PING))
                    try:
                        raw = await asyncio.wait_for(_receive_text(ws), timeout=pong_grace)
                        missed = 0
                    except asyncio.TimeoutError:
                        if missed > missed_limit:
                            logger.info("ws_idle_timeout", missed=missed)
                            await ws.close(code=1001)
                            break
                        continue
            else:
                raw = await _receive_text(ws)

            try:
                event, data = parse_frame(raw)
                await _handle_frame(rt, connection_id, event, data)
            except InvalidFrameException as exc:
                logger.warning("ws_frame_rejected", code=int(exc.code), error=exc.message)
                await rt.connections.send(
                    connection_id,
                    Envelope(event=EVENT_ERROR, data={"code": int(exc.code), "message": exc.message}),
                )
    except WebSocketDisconnect as exc:
        logger.info("ws_disconnected", code=exc.code)
    except Exception as exc:
        logger.error("ws_error", error=str(exc), exc_info=True)
    finally:
        # finish the leave sequence even if this task is being cancelled
        await asyncio.shield(rt.disconnect(connection_id))
        structlog.contextvars.unbind_contextvars("connection_id", "client_ip")
