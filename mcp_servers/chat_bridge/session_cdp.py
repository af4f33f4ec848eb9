"""
Low-level CDP connection to one debug target.

Commands are framed as ``{"id", "method", "params"}`` with a monotonically
increasing id and correlated to responses by id. Several commands may be in
flight: responses for other pending ids are parked on their PendingCommand
while the caller waits for its own. Responses for unknown ids (stale after a
timeout, or foreign) and CDP events are dropped.
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Any

import websocket

from .errors import CdpConnectionError, CommandTimeout, RemoteProtocolError

logger = logging.getLogger("mcp.chat_bridge.cdp")

# recv() granularity while waiting; the command deadline is enforced on top.
_RECV_SLICE = 0.5


@dataclass(slots=True)
class PendingCommand:
    id: int
    method: str
    issued_at: float
    result: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    done: bool = False


class CdpConnection:
    """One websocket to one target; not pooled, closed after each attempt."""

    def __init__(self, ws_url: str, timeout: float = 3.0):
        try:
            self.ws = websocket.create_connection(ws_url, timeout=timeout)
        except (OSError, websocket.WebSocketException) as exc:
            raise CdpConnectionError(f"cannot open {ws_url}: {exc}") from exc
        self.ws_url = ws_url
        self.timeout = timeout
        self.pending: dict[int, PendingCommand] = {}
        self._next_id = 1
        self._closed = False

    def __enter__(self) -> CdpConnection:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send CDP command and wait for its response."""
        return self.wait(self.issue(method, params))

    def issue(self, method: str, params: dict[str, Any] | None = None) -> int:
        """Write a command without waiting; returns its id."""
        if self._closed:
            raise CdpConnectionError(f"connection to {self.ws_url} is closed")
        msg_id = self._next_id
        self._next_id += 1
        self.pending[msg_id] = PendingCommand(id=msg_id, method=method, issued_at=time.monotonic())
        try:
            self.ws.send(json.dumps({"id": msg_id, "method": method, "params": params or {}}))
        except (OSError, websocket.WebSocketException) as exc:
            self.pending.pop(msg_id, None)
            raise CdpConnectionError(f"send {method} failed: {exc}") from exc
        return msg_id

    def wait(self, msg_id: int, timeout: float | None = None) -> dict[str, Any]:
        """Block until the command with ``msg_id`` resolves or times out."""
        command = self.pending.get(msg_id)
        if command is None:
            raise KeyError(f"no pending CDP command with id {msg_id}")
        limit = self.timeout if timeout is None else timeout
        deadline = command.issued_at + limit
        try:
            while not command.done:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.debug("timeout id=%s method=%s", msg_id, command.method)
                    raise CommandTimeout(command.method, limit)
                self._pump(min(_RECV_SLICE, remaining))
        finally:
            self.pending.pop(msg_id, None)
        if command.error is not None:
            raise RemoteProtocolError(command.method, command.error)
        return command.result

    def _pump(self, wait: float) -> None:
        try:
            self.ws.settimeout(wait)
            raw = self.ws.recv()
        except (TimeoutError, websocket.WebSocketTimeoutException):
            return
        except (OSError, websocket.WebSocketException) as exc:
            raise CdpConnectionError(f"receive failed: {exc}") from exc
        self._dispatch(raw)

    def _dispatch(self, raw: str | bytes) -> None:
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            return
        if not isinstance(data, dict) or "id" not in data:
            # CDP event
            return
        command = self.pending.get(data["id"])
        if command is None or command.done:
            return
        error = data.get("error")
        if error:
            command.error = str(error.get("message") if isinstance(error, dict) else error)
        else:
            result = data.get("result")
            command.result = result if isinstance(result, dict) else {}
        command.done = True

    def close(self) -> None:
        """Close the socket. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.pending.clear()
        with suppress(Exception):
            self.ws.close()
