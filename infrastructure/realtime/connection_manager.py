"""In-process WebSocket connection manager.

Implements RealtimeTransportPort: keeps one bounded send queue and one
sender task per connection, so handing a frame to a peer never waits on
that peer's socket.
"""
from __future__ import annotations

import asyncio
from typing import Dict, List, Set

from fastapi import WebSocket

from application.ports.realtime import Envelope
from core.logging_config import get_logger
from core.config import settings


logger = get_logger(__name__)

OVERFLOW_POLICIES = {"drop_oldest", "drop_new", "disconnect"}


class ConnectionManager:
    """Manage per-process WebSocket connections and their outbound queues."""

    def __init__(self, *, queue_max: int | None = None, overflow_policy: str | None = None) -> None:
        self._sockets: Dict[str, WebSocket] = {}
        self._lock = asyncio.Lock()
        # per-connection send queues and sender tasks
        self._send_queues: Dict[str, asyncio.Queue] = {}
        self._sender_tasks: Dict[str, asyncio.Task] = {}
        # overflow closes run off the caller's path
        self._close_tasks: Set[asyncio.Task] = set()
        self._queue_max = max(1, int(queue_max if queue_max is not None else settings.REALTIME_WS_SEND_QUEUE_MAX))
        policy = (overflow_policy or settings.REALTIME_WS_SEND_OVERFLOW_POLICY or "drop_oldest").lower()
        if policy not in OVERFLOW_POLICIES:
            logger.warning("ws_send_queue_policy_invalid", policy=policy, fallback="drop_oldest")
            policy = "drop_oldest"
        self._policy = policy

    async def add(self, connection_id: str, ws: WebSocket) -> None:
        async with self._lock:
            self._sockets[connection_id] = ws
            if connection_id not in self._send_queues:
                q: asyncio.Queue = asyncio.Queue(maxsize=self._queue_max)
                self._send_queues[connection_id] = q
                self._sender_tasks[connection_id] = asyncio.create_task(
                    self._sender_loop(connection_id, ws, q),
                    name=f"ws-sender-{connection_id}",
                )
        logger.info("ws_connected", connection_id=connection_id)

    async def remove(self, connection_id: str) -> None:
        async with self._lock:
            self._sockets.pop(connection_id, None)
            task = self._sender_tasks.pop(connection_id, None)
            if task is not None:
                task.cancel()
            self._send_queues.pop(connection_id, None)
        logger.info("ws_released", connection_id=connection_id)

    async def send(self, connection_id: str, envelope: Envelope) -> bool:
        """Queue ``envelope`` for one connection; False if it was not accepted."""
        async with self._lock:
            q = self._send_queues.get(connection_id)
            ws = self._sockets.get(connection_id)
        if q is None or ws is None:
            return False
        return await self._enqueue(ws, q, envelope.model_dump(mode="json"), context={"connection_id": connection_id})

    @property
    def connection_ids(self) -> List[str]:
        return list(self._sockets)

    def __len__(self) -> int:
        return len(self._sockets)

    async def aclose(self) -> None:
        async with self._lock:
            tasks = list(self._sender_tasks.values()) + list(self._close_tasks)
            self._sender_tasks.clear()
            self._close_tasks.clear()
            self._send_queues.clear()
            self._sockets.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _enqueue(self, ws: WebSocket, q: asyncio.Queue, payload: dict, context: dict) -> bool:
        try:
            q.put_nowait(payload)
            return True
        except asyncio.QueueFull:
            if self._policy == "drop_new":
                logger.warning("ws_send_queue_drop_new", **context)
                return False
            if self._policy == "disconnect":
                logger.warning("ws_send_queue_disconnect", **context)
                # callers may hold the service lock; a slow peer must not stall them
                task = asyncio.create_task(self._close(ws, 1013, context))
                self._close_tasks.add(task)
                task.add_done_callback(self._close_tasks.discard)
                return False
            # default: drop_oldest
            try:
                q.get_nowait()
            except asyncio.QueueEmpty:
                pass
            try:
                q.put_nowait(payload)
                return True
            except asyncio.QueueFull:
                logger.warning("ws_send_queue_drop_after_trim", **context)
                return False

    async def _close(self, ws: WebSocket, code: int, context: dict) -> None:
        try:
            await ws.close(code=code)
        except RuntimeError as exc:
            # already closed by the peer
            logger.debug("ws_close_failed", error=str(exc), **context)

    async def _sender_loop(self, connection_id: str, ws: WebSocket, q: asyncio.Queue) -> None:
        try:
            while True:
                payload = await q.get()
                try:
                    await ws.send_json(payload)
                except Exception as exc:  # pragma: no cover
                    logger.warning("ws_send_failed", connection_id=connection_id, error=str(exc))
        except asyncio.CancelledError:  # graceful exit
            return
