from __future__ import annotations

from typing import Any, Protocol

from .errors import EvaluationException


class CommandChannel(Protocol):
    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]: ...


class RemoteEvaluator:
    """Run a script in the page and return its value by value.

    A script that throws raises EvaluationException; a script that returns
    ``{ok: false}`` is a normal value and is returned as-is.
    """

    def __init__(self, conn: CommandChannel) -> None:
        self.conn = conn

    def evaluate(self, script: str, await_promise: bool = True) -> Any:
        result = self.conn.send(
            "Runtime.evaluate",
            {
                "expression": script,
                "returnByValue": True,
                "awaitPromise": await_promise,
            },
        )
        if not isinstance(result, dict):
            raise EvaluationException(f"malformed Runtime.evaluate reply: {result!r}")
        details = result.get("exceptionDetails")
        if details:
            exc = details.get("exception") or {}
            description = exc.get("description") or details.get("text") or "unknown exception"
            raise EvaluationException(str(description))
        value = result.get("result")
        if not isinstance(value, dict):
            raise EvaluationException(f"malformed Runtime.evaluate result: {value!r}")
        if value.get("type") == "undefined" or value.get("subtype") == "null":
            return None
        return value.get("value")
