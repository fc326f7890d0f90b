import asyncio

import pytest

from application.ports.realtime import Envelope
from application.services.realtime_service import RealtimeService
from infrastructure.realtime.connection_manager import ConnectionManager
from infrastructure.realtime.session_store import SessionStore


pytestmark = pytest.mark.asyncio


class FakeWebSocket:
    def __init__(self, *, block: bool = False, slow_close: bool = False) -> None:
        self.sent = []
        self.closed_with = None
        self._gate = asyncio.Event()
        self._close_gate = asyncio.Event()
        if not block:
            self._gate.set()
        if not slow_close:
            self._close_gate.set()

    async def send_json(self, payload):
        await self._gate.wait()
        self.sent.append(payload)

    async def close(self, code: int = 1000):
        await self._close_gate.wait()
        self.closed_with = code

    def release(self):
        self._gate.set()


async def _drain():
    for _ in range(5):
        await asyncio.sleep(0)


async def test_send_delivers_in_order():
    mgr = ConnectionManager(queue_max=10)
    ws = FakeWebSocket()
    await mgr.add("c1", ws)

    assert await mgr.send("c1", Envelope(event="system message", data="one"))
    assert await mgr.send("c1", Envelope(event="system message", data="two"))
    await _drain()

    assert [p["data"] for p in ws.sent] == ["one", "two"]
    assert ws.sent[0]["event"] == "system message"
    assert ws.sent[0]["ts"].endswith("Z")
    await mgr.aclose()


async def test_send_to_unknown_connection_returns_false():
    mgr = ConnectionManager()
    assert await mgr.send("ghost", Envelope(event="x")) is False


async def test_remove_stops_delivery():
    mgr = ConnectionManager()
    ws = FakeWebSocket()
    await mgr.add("c1", ws)
    await mgr.remove("c1")

    assert await mgr.send("c1", Envelope(event="x")) is False
    assert len(mgr) == 0
    await mgr.remove("c1")


async def test_overflow_drop_oldest():
    mgr = ConnectionManager(queue_max=2, overflow_policy="drop_oldest")
    ws = FakeWebSocket(block=True)
    await mgr.add("c1", ws)
    await mgr.send("c1", Envelope(event="n", data=0))
    await _drain()  # sender task now parked on frame 0

    for n in range(1, 4):
        await mgr.send("c1", Envelope(event="n", data=n))
    ws.release()
    await _drain()

    assert [p["data"] for p in ws.sent] == [0, 2, 3]
    await mgr.aclose()


async def test_overflow_drop_new():
    mgr = ConnectionManager(queue_max=1, overflow_policy="drop_new")
    ws = FakeWebSocket(block=True)
    await mgr.add("c1", ws)
    assert await mgr.send("c1", Envelope(event="n", data=0))
    await _drain()

    assert await mgr.send("c1", Envelope(event="n", data=1))
    assert await mgr.send("c1", Envelope(event="n", data=2)) is False
    await mgr.aclose()


async def test_overflow_disconnect_closes_socket():
    mgr = ConnectionManager(queue_max=1, overflow_policy="disconnect")
    ws = FakeWebSocket(block=True)
    await mgr.add("c1", ws)
    await mgr.send("c1", Envelope(event="n", data=0))
    await _drain()

    await mgr.send("c1", Envelope(event="n", data=1))
    assert await mgr.send("c1", Envelope(event="n", data=2)) is False
    await _drain()
    assert ws.closed_with == 1013
    await mgr.aclose()


async def test_overflow_disconnect_does_not_wait_for_close():
    mgr = ConnectionManager(queue_max=1, overflow_policy="disconnect")
    ws = FakeWebSocket(block=True, slow_close=True)
    await mgr.add("c1", ws)
    await mgr.send("c1", Envelope(event="n", data=0))
    await _drain()
    await mgr.send("c1", Envelope(event="n", data=1))

    overflowed = await asyncio.wait_for(mgr.send("c1", Envelope(event="n", data=2)), timeout=1.0)

    assert overflowed is False
    assert ws.closed_with is None
    await mgr.aclose()


async def test_slow_close_does_not_stall_other_rooms():
    mgr = ConnectionManager(queue_max=1, overflow_policy="disconnect")
    service = RealtimeService(store=SessionStore(), connections=mgr, leave_on_rejoin=True)
    slow = FakeWebSocket(block=True, slow_close=True)
    fast = FakeWebSocket()
    await service.connect("slow", slow)
    await service.connect("fast", fast)

    # the join text fills the slow queue; the member list overflows it
    await asyncio.wait_for(service.join("slow", "Slow", "a"), timeout=1.0)
    await asyncio.wait_for(service.join("fast", "Fast", "b"), timeout=1.0)
    await _drain()

    assert [p["event"] for p in fast.sent] == ["system message", "update user list"]
    assert service.rooms.members_of("b") == ["Fast"]
    await mgr.aclose()


async def test_unknown_policy_falls_back_to_drop_oldest():
    mgr = ConnectionManager(overflow_policy="explode")
    assert mgr._policy == "drop_oldest"
