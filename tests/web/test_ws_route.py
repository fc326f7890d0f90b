import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from domain.common.exceptions import InvalidFrameException
from api.routes.ws import parse_frame
from core.config import settings
from main import app
from shared.codes import BusinessCode


def _join(ws, nickname, room):
    ws.send_json({"event": "join room", "data": {"nickname": nickname, "room": room}})


def _frame(ws):
    msg = ws.receive_json()
    return msg["event"], msg["data"]


def _settle(ws):
    """Consume the join announcement and member list."""
    _frame(ws)
    _frame(ws)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def test_join_chat_leave_over_websocket(client):
    with client.websocket_connect("/ws") as alice:
        _join(alice, "Alice", "general")
        assert _frame(alice) == ("system message", "Alice has joined")
        assert _frame(alice) == ("update user list", {"roomName": "general", "userList": ["Alice"]})

        with client.websocket_connect("/ws") as bob:
            _join(bob, "Bob", "general")
            for ws in (alice, bob):
                assert _frame(ws) == ("system message", "Bob has joined")
                assert _frame(ws) == (
                    "update user list",
                    {"roomName": "general", "userList": ["Alice", "Bob"]},
                )

            alice.send_json({"event": "chat message", "data": "hi"})
            for ws in (alice, bob):
                assert _frame(ws) == ("chat message", {"nickname": "Alice", "message": "hi"})

        assert _frame(alice) == ("system message", "Bob has left")
        assert _frame(alice) == ("update user list", {"roomName": "general", "userList": ["Alice"]})


def test_rooms_are_isolated(client):
    with client.websocket_connect("/ws") as a, client.websocket_connect("/ws") as b:
        _join(a, "Alice", "general")
        _settle(a)
        _join(b, "Bob", "random")
        _settle(b)

        b.send_json({"event": "chat message", "data": "only random"})
        assert _frame(b) == ("chat message", {"nickname": "Bob", "message": "only random"})

        # nothing from room "random" was queued for Alice before the pong
        a.send_json({"event": "ping"})
        assert _frame(a)[0] == "pong"


def test_unjoined_chat_gets_no_reply(client):
    with client.websocket_connect("/ws") as ws:
        ws.send_json({"event": "chat message", "data": "anyone?"})
        ws.send_json({"event": "ping"})
        assert _frame(ws)[0] == "pong"


@pytest.mark.parametrize(
    "send, code",
    [
        (lambda ws: ws.send_text("not json"), BusinessCode.FRAME_INVALID),
        (lambda ws: ws.send_json(["join room"]), BusinessCode.FRAME_INVALID),
        (lambda ws: ws.send_json({"event": "dance"}), BusinessCode.FRAME_UNKNOWN_EVENT),
        (lambda ws: ws.send_json({"event": "join room", "data": "general"}), BusinessCode.FRAME_PAYLOAD_INVALID),
        (lambda ws: ws.send_json({"event": "join room", "data": {"nickname": 1, "room": "x"}}), BusinessCode.FRAME_PAYLOAD_INVALID),
        (lambda ws: ws.send_json({"event": "chat message", "data": {"text": "hi"}}), BusinessCode.FRAME_PAYLOAD_INVALID),
    ],
)
def test_malformed_frames_get_error_frame(client, send, code):
    with client.websocket_connect("/ws") as ws:
        send(ws)
        event, data = _frame(ws)
        assert event == "error"
        assert data["code"] == int(code)

        # connection stays usable
        _join(ws, "Alice", "general")
        assert _frame(ws) == ("system message", "Alice has joined")


def test_parse_frame():
    assert parse_frame('{"event": "chat message", "data": "hi"}') == ("chat message", "hi")
    assert parse_frame('{"event": "ping"}') == ("ping", None)
    with pytest.raises(InvalidFrameException):
        parse_frame('{"data": "no event"}')
    with pytest.raises(InvalidFrameException):
        parse_frame("{")


@pytest.fixture
def heartbeat(monkeypatch):
    def _enable(interval, grace, missed_limit):
        monkeypatch.setattr(settings, "REALTIME_WS_IDLE_PING_INTERVAL_S", interval)
        monkeypatch.setattr(settings, "REALTIME_WS_PONG_GRACE_S", grace)
        monkeypatch.setattr(settings, "REALTIME_WS_MISSED_PING_LIMIT", missed_limit)
    return _enable


def test_idle_connection_is_pinged_then_closed(client, heartbeat):
    heartbeat(0.05, 0.05, 1)
    with client.websocket_connect("/ws") as ws:
        assert _frame(ws)[0] == "ping"
        assert _frame(ws)[0] == "ping"
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
        assert exc.value.code == 1001


def test_pong_keeps_idle_connection_open(client, heartbeat):
    heartbeat(0.05, 2.0, 0)
    with client.websocket_connect("/ws") as ws:
        assert _frame(ws)[0] == "ping"
        ws.send_json({"event": "pong"})
        ws.send_json({"event": "ping"})
        # idle pings may still be interleaved before the reply
        for _ in range(5):
            if _frame(ws)[0] == "pong":
                break
        else:
            pytest.fail("no pong after answering the heartbeat")
