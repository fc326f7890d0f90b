"""Pytest bootstrap configuration.

Pin settings that tests depend on before any application module is
imported, and provide in-memory doubles for the realtime transport.
"""
import os

os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("REALTIME_WS_IDLE_PING_INTERVAL_S", "0")
os.environ.setdefault("REALTIME_LEAVE_ON_REJOIN", "true")

from typing import Dict, List, Tuple

import pytest

from application.ports.realtime import Envelope
from application.services.realtime_service import RealtimeService
from infrastructure.realtime.session_store import SessionStore


class RecordingConnections:
    """Stands in for ConnectionManager: records every frame per connection."""

    def __init__(self) -> None:
        self.live: Dict[str, object] = {}
        self.sent: List[Tuple[str, Envelope]] = []

    async def add(self, connection_id: str, ws) -> None:
        self.live[connection_id] = ws

    async def remove(self, connection_id: str) -> None:
        self.live.pop(connection_id, None)

    async def send(self, connection_id: str, envelope: Envelope) -> bool:
        if connection_id not in self.live:
            return False
        self.sent.append((connection_id, envelope))
        return True

    def frames_for(self, connection_id: str) -> List[Tuple[str, object]]:
        return [(env.event, env.data) for cid, env in self.sent if cid == connection_id]

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def connections() -> RecordingConnections:
    return RecordingConnections()


@pytest.fixture
def service(store, connections) -> RealtimeService:
    return RealtimeService(store=store, connections=connections, leave_on_rejoin=True)
