from __future__ import annotations

from typing import Any

import pytest

from mcp_servers.chat_bridge.errors import EvaluationException
from mcp_servers.chat_bridge.evaluator import RemoteEvaluator


class DummyConn:
    def __init__(self, response: dict[str, Any]) -> None:
        self.response = response
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        self.calls.append((method, params))
        return self.response


def test_evaluate_requests_value_and_promise() -> None:
    conn = DummyConn({"result": {"type": "number", "value": 123}})
    assert RemoteEvaluator(conn).evaluate("1 + 2") == 123

    method, params = conn.calls[0]
    assert method == "Runtime.evaluate"
    assert params == {"expression": "1 + 2", "returnByValue": True, "awaitPromise": True}


def test_evaluate_sync_script_does_not_await() -> None:
    conn = DummyConn({"result": {"type": "boolean", "value": True}})
    RemoteEvaluator(conn).evaluate("true", await_promise=False)
    assert conn.calls[0][1]["awaitPromise"] is False


def test_evaluate_raises_on_page_exception() -> None:
    conn = DummyConn(
        {
            "result": {"type": "object", "subtype": "error"},
            "exceptionDetails": {
                "text": "Uncaught",
                "exception": {"description": "TypeError: x is not a function"},
            },
        }
    )
    with pytest.raises(EvaluationException) as excinfo:
        RemoteEvaluator(conn).evaluate("x()")
    assert excinfo.value.description == "TypeError: x is not a function"


def test_evaluate_exception_without_description_uses_text() -> None:
    conn = DummyConn({"exceptionDetails": {"text": "SyntaxError"}})
    with pytest.raises(EvaluationException, match="SyntaxError"):
        RemoteEvaluator(conn).evaluate("(")


def test_evaluate_returns_not_ok_values_as_values() -> None:
    conn = DummyConn({"result": {"type": "object", "value": {"ok": False}}})
    assert RemoteEvaluator(conn).evaluate("({ok: false})") == {"ok": False}


@pytest.mark.parametrize(
    "remote",
    [{"type": "undefined"}, {"type": "object", "subtype": "null", "value": None}],
)
def test_evaluate_maps_undefined_and_null_to_none(remote: dict[str, Any]) -> None:
    assert RemoteEvaluator(DummyConn({"result": remote})).evaluate("void 0") is None


@pytest.mark.parametrize("reply", [{"result": "oops"}, {"result": None}, {}])
def test_evaluate_rejects_malformed_reply(reply: dict[str, Any]) -> None:
    with pytest.raises(EvaluationException, match="malformed"):
        RemoteEvaluator(DummyConn(reply)).evaluate("1")
