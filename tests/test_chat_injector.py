from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from mcp_servers.chat_bridge import injector
from mcp_servers.chat_bridge.config import BridgeConfig
from mcp_servers.chat_bridge.errors import (
    CdpConnectionError,
    CommandTimeout,
    EvaluationException,
    NoChatInputFound,
)
from mcp_servers.chat_bridge.injector import InjectionResult, inject_text, send_text
from mcp_servers.chat_bridge.targets import DebugTarget

Behavior = Callable[[str, dict[str, Any]], dict[str, Any]]


class ScriptedConn:
    def __init__(self, behavior: Behavior) -> None:
        self.behavior = behavior
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def __enter__(self) -> ScriptedConn:
        return self

    def __exit__(self, *args: object) -> None:
        self.closed = True

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        self.calls.append((method, params or {}))
        return self.behavior(method, params or {})


def _page_value(value: Any) -> Behavior:
    def behavior(method: str, params: dict[str, Any]) -> dict[str, Any]:
        if method == "Runtime.evaluate":
            return {"result": {"type": "object", "value": value}}
        return {}

    return behavior


def _raises(exc: Exception) -> Behavior:
    def behavior(method: str, params: dict[str, Any]) -> dict[str, Any]:
        raise exc

    return behavior


FOUND = {"found": True, "method": ".jetski-chat-input textarea", "insert": "native", "submit": "button"}
MISSING = {"found": False, "error": "No chat input selector matched", "inputs": ["monaco | placeholder="]}


def test_inject_text_embeds_text_as_json_literal() -> None:
    conn = ScriptedConn(_page_value(FOUND))
    text = 'say "hi" `now` ${x}\n'
    result = inject_text(conn, text)

    assert result.found
    assert result.strategy == ".jetski-chat-input textarea insert=native submit=button"
    expression = conn.calls[0][1]["expression"]
    assert json.dumps(text) in expression
    assert conn.calls[0][1]["awaitPromise"] is True


def test_inject_text_sends_protocol_enter_after_success() -> None:
    conn = ScriptedConn(_page_value(FOUND))
    inject_text(conn, "hello")

    keys = [p for m, p in conn.calls if m == "Input.dispatchKeyEvent"]
    assert [k["type"] for k in keys] == ["keyDown", "keyUp"]
    assert all(k["windowsVirtualKeyCode"] == 13 and k["key"] == "Enter" for k in keys)


def test_redundant_enter_failure_does_not_fail_injection() -> None:
    def behavior(method: str, params: dict[str, Any]) -> dict[str, Any]:
        if method == "Input.dispatchKeyEvent":
            raise CommandTimeout(method, 3.0)
        return {"result": {"type": "object", "value": FOUND}}

    result = inject_text(ScriptedConn(behavior), "hello")
    assert result.found


def test_inject_text_not_found_skips_enter_and_keeps_dump() -> None:
    conn = ScriptedConn(_page_value(MISSING))
    result = inject_text(conn, "hello")

    assert not result.found
    assert result.inputs == ("monaco | placeholder=",)
    assert "visible inputs" in result.describe_failure()
    assert all(m == "Runtime.evaluate" for m, _ in conn.calls)


def test_injection_result_handles_unexpected_value() -> None:
    result = InjectionResult.from_page(None)
    assert not result.found
    assert result.strategy == "no_result"


def _targets(n: int) -> list[DebugTarget]:
    return [DebugTarget(id=f"t{i}", kind="page", title=f"Window {i}", url=f"http://w/{i}", ws_url=f"ws://t{i}") for i in range(1, n + 1)]


def _wire(
    monkeypatch: pytest.MonkeyPatch, behaviors: dict[str, Behavior | Exception]
) -> tuple[list[ScriptedConn], Callable[..., ScriptedConn]]:
    opened: list[ScriptedConn] = []
    monkeypatch.setattr(injector, "list_candidates", lambda port, config: _targets(len(behaviors)))

    def connect(ws_url: str, timeout: float) -> ScriptedConn:
        behavior = behaviors[ws_url]
        if isinstance(behavior, Exception):
            raise behavior
        conn = ScriptedConn(behavior)
        opened.append(conn)
        return conn

    return opened, connect


def test_send_text_succeeds_on_third_candidate(monkeypatch: pytest.MonkeyPatch) -> None:
    opened, connect = _wire(
        monkeypatch,
        {
            "ws://t1": CdpConnectionError("cannot open ws://t1"),
            "ws://t2": _raises(EvaluationException("ReferenceError: boom")),
            "ws://t3": _page_value(FOUND),
        },
    )
    result = send_text("hello", 9222, BridgeConfig(), connect=connect)

    assert result.found
    assert len(opened) == 2
    assert all(conn.closed for conn in opened)


def test_send_text_all_fail_lists_every_candidate(monkeypatch: pytest.MonkeyPatch) -> None:
    _, connect = _wire(
        monkeypatch,
        {
            "ws://t1": CdpConnectionError("cannot open ws://t1"),
            "ws://t2": _raises(EvaluationException("ReferenceError: boom")),
            "ws://t3": _page_value(MISSING),
        },
    )
    with pytest.raises(NoChatInputFound) as excinfo:
        send_text("hello", 9222, BridgeConfig(), connect=connect)

    message = str(excinfo.value)
    assert "[page] Window 1: cannot open ws://t1" in message
    assert "[page] Window 2: Page script threw: ReferenceError: boom" in message
    assert "[page] Window 3: No chat input selector matched" in message
    assert len(excinfo.value.diagnostics) == 3


def test_send_text_caps_diagnostics(monkeypatch: pytest.MonkeyPatch) -> None:
    _, connect = _wire(monkeypatch, {f"ws://t{i}": _page_value(MISSING) for i in range(1, 6)})
    with pytest.raises(NoChatInputFound) as excinfo:
        send_text("hello", 9222, BridgeConfig(diagnostic_limit=2), connect=connect)

    message = str(excinfo.value)
    assert "Window 2" in message
    assert "Window 3" not in message
    assert "(+3 more)" in message
    assert len(excinfo.value.diagnostics) == 5


def test_send_text_no_candidates(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(injector, "list_candidates", lambda port, config: [])
    with pytest.raises(NoChatInputFound, match="no debuggable"):
        send_text("hello", 9222, BridgeConfig())


def test_send_text_rejects_blank_text(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail(port: int, config: BridgeConfig) -> list[DebugTarget]:
        raise AssertionError("directory must not be queried")

    monkeypatch.setattr(injector, "list_candidates", fail)
    with pytest.raises(ValueError):
        send_text("   ", 9222, BridgeConfig())
