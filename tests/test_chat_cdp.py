from __future__ import annotations

import json
import time
from collections import deque
from typing import Any

import pytest
import websocket

from mcp_servers.chat_bridge import session_cdp
from mcp_servers.chat_bridge.errors import CdpConnectionError, CommandTimeout, RemoteProtocolError
from mcp_servers.chat_bridge.session_cdp import CdpConnection


class FakeSocket:
    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.inbox: deque[str] = deque()
        self.closed = False
        self._timeout = 0.0

    def push(self, frame: dict[str, Any] | str) -> None:
        self.inbox.append(frame if isinstance(frame, str) else json.dumps(frame))

    def send(self, payload: str) -> None:
        self.sent.append(json.loads(payload))

    def recv(self) -> str:
        if not self.inbox:
            time.sleep(min(self._timeout, 0.01))
            raise websocket.WebSocketTimeoutException("timed out")
        return self.inbox.popleft()

    def settimeout(self, timeout: float) -> None:
        self._timeout = timeout

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def sock(monkeypatch: pytest.MonkeyPatch) -> FakeSocket:
    fake = FakeSocket()
    monkeypatch.setattr(session_cdp.websocket, "create_connection", lambda url, timeout: fake)
    return fake


def test_send_frames_incrementing_ids(sock: FakeSocket) -> None:
    sock.push({"id": 1, "result": {"a": 1}})
    sock.push({"id": 2, "result": {"b": 2}})
    conn = CdpConnection("ws://t", timeout=0.5)

    assert conn.send("Page.enable") == {"a": 1}
    assert conn.send("Runtime.evaluate", {"expression": "1"}) == {"b": 2}
    assert [m["id"] for m in sock.sent] == [1, 2]
    assert sock.sent[0] == {"id": 1, "method": "Page.enable", "params": {}}
    assert sock.sent[1]["params"] == {"expression": "1"}
    assert conn.pending == {}


def test_out_of_order_responses_resolve_their_own_command(sock: FakeSocket) -> None:
    conn = CdpConnection("ws://t", timeout=0.5)
    first = conn.issue("A")
    second = conn.issue("B")
    sock.push({"id": second, "result": {"who": "B"}})
    sock.push({"id": first, "result": {"who": "A"}})

    assert conn.wait(first) == {"who": "A"}
    assert conn.pending[second].done
    assert conn.wait(second) == {"who": "B"}
    assert conn.pending == {}


def test_error_frame_raises_remote_protocol_error(sock: FakeSocket) -> None:
    sock.push({"id": 1, "error": {"code": -32000, "message": "Cannot find context"}})
    conn = CdpConnection("ws://t", timeout=0.5)

    with pytest.raises(RemoteProtocolError) as excinfo:
        conn.send("Runtime.evaluate")
    assert excinfo.value.message == "Cannot find context"
    assert excinfo.value.method == "Runtime.evaluate"


def test_timeout_removes_pending_and_ignores_late_response(sock: FakeSocket) -> None:
    conn = CdpConnection("ws://t", timeout=0.05)

    with pytest.raises(CommandTimeout) as excinfo:
        conn.send("Page.captureScreenshot")
    assert excinfo.value.method == "Page.captureScreenshot"
    assert conn.pending == {}

    sock.push({"id": 1, "result": {"late": True}})
    sock.push({"id": 2, "result": {"fresh": True}})
    assert conn.send("Runtime.evaluate") == {"fresh": True}


def test_events_and_garbage_are_skipped(sock: FakeSocket) -> None:
    sock.push({"method": "Runtime.consoleAPICalled", "params": {}})
    sock.push("not json")
    sock.push({"id": 99, "result": {"foreign": True}})
    sock.push({"id": 1, "result": {"ok": True}})
    conn = CdpConnection("ws://t", timeout=0.5)

    assert conn.send("Runtime.evaluate") == {"ok": True}


def test_connect_failure_raises_connection_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(url: str, timeout: float) -> None:
        raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr(session_cdp.websocket, "create_connection", refuse)
    with pytest.raises(CdpConnectionError):
        CdpConnection("ws://127.0.0.1:1/devtools/page/x")


def test_close_is_idempotent_and_blocks_further_sends(sock: FakeSocket) -> None:
    with CdpConnection("ws://t", timeout=0.5) as conn:
        pass
    assert sock.closed
    conn.close()
    with pytest.raises(CdpConnectionError):
        conn.send("Page.enable")


def test_wait_unknown_id(sock: FakeSocket) -> None:
    conn = CdpConnection("ws://t", timeout=0.5)
    with pytest.raises(KeyError):
        conn.wait(42)
