"""
MCP server driving an IDE agent chat via Chrome DevTools Protocol.

This module provides the stdio entry point and JSON-RPC handling.
Tool dispatch is handled via registry pattern in server/registry.py.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import threading
from concurrent.futures import Future
from typing import Any

from .service import ChatBridgeService
from .server.definitions import get_all_tool_definitions
from .server.registry import create_default_registry

SUPPORTED_PROTOCOL_VERSIONS = ["2025-06-18", "2024-11-05"]
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[0]

logger = logging.getLogger("mcp.chat_bridge")

_MAX_LOGGED_TEXT = 80


def _write_message(payload: dict[str, Any]) -> None:
    """Write JSON-RPC message to stdout."""
    data = json.dumps(payload, ensure_ascii=False)
    sys.stdout.buffer.write((data + "\n").encode())
    sys.stdout.buffer.flush()


def _read_message() -> dict[str, Any] | None:
    """Read JSON-RPC message from stdin. Returns None at EOF."""
    while True:
        line = sys.stdin.buffer.readline()
        if not line:
            return None
        line = line.strip()
        if not line:
            continue
        msg = json.loads(line.decode())
        if os.environ.get("MCP_TRACE"):
            logger.info("recv %s", msg)
        return msg


class McpServer:
    """MCP Server with registry-based tool dispatch.

    Tool calls run on the service worker and answer when they finish, so a
    long ``chat_wait`` never holds up ``ping`` or ``tools/list``. Responses
    from both threads go through one write lock.
    """

    def __init__(self, service: ChatBridgeService | None = None) -> None:
        self.service = service or ChatBridgeService()
        self.registry = create_default_registry()
        self._write_lock = threading.Lock()

    def _send(self, payload: dict[str, Any]) -> None:
        """Write one response without interleaving with the worker thread."""
        with self._write_lock:
            _write_message(payload)

    def _send_error(self, request_id: Any, code: int, message: str) -> None:
        self._send({
            "jsonrpc": "2.0",
            "id": request_id,
            "error": {"code": code, "message": message},
        })

    def handle_initialize(self, request_id: Any, params: dict[str, Any] | None = None) -> None:
        """Handle MCP initialize request, negotiating the protocol version."""
        requested = (params or {}).get("protocolVersion")
        protocol = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        self._send(
            {
                "jsonrpc": "2.0",
                "id": request_id,
                "result": {
                    "protocolVersion": protocol,
                    "serverInfo": {"name": "chat-bridge", "version": "0.1.0"},
                    "capabilities": {
                        "logging": {},
                        "tools": {"listChanged": False},
                    },
                    "instructions": "",
                },
            }
        )

    def handle_list_tools(self, request_id: Any) -> None:
        """Handle tools/list request."""
        self._send({
            "jsonrpc": "2.0",
            "id": request_id,
            "result": {"tools": get_all_tool_definitions()},
        })

    def _log_call(self, name: str, arguments: dict[str, Any]) -> None:
        """Log tool call with message text truncated."""
        safe_args = dict(arguments)
        text = safe_args.get("text")
        if isinstance(text, str) and len(text) > _MAX_LOGGED_TEXT:
            safe_args["text"] = text[:_MAX_LOGGED_TEXT] + "…"
        logger.info("tool=%s args=%s", name, safe_args)

    def handle_call_tool(self, request_id: Any, name: str, arguments: dict[str, Any]) -> Future | None:
        """
        Queue a tool call on the service worker.

        Returns the future of the queued call, or None when the call was
        rejected up front (unknown tool, service not running).
        """
        self._log_call(name, arguments)
        if not self.registry.has(name):
            self._send_error(request_id, -32001, f"Unknown tool: {name}")
            return None
        try:
            return self.service.submit(self._run_tool, request_id, name, arguments)
        except RuntimeError as exc:
            logger.error("tool_call_rejected %s", exc)
            self._send_error(request_id, -32001, str(exc))
            return None

    def _run_tool(self, request_id: Any, name: str, arguments: dict[str, Any]) -> None:
        try:
            result = self.registry.dispatch(name, self.service, arguments)
        except Exception as exc:
            logger.exception("tool_call_failed")
            self._send_error(request_id, -32001, str(exc))
            return
        self._send({
            "jsonrpc": "2.0",
            "id": request_id,
            "result": {"content": result.to_content_list()},
        })

    def dispatch(self, message: dict[str, Any]) -> Future | None:
        """Dispatch incoming JSON-RPC message to appropriate handler."""
        if not message:
            return None

        method = message.get("method")
        request_id = message.get("id")
        params = message.get("params") or {}

        if method == "initialize":
            self.handle_initialize(request_id, params)
        elif method == "notifications/initialized":
            return None
        elif method in ("tools/list", "list_tools"):
            self.handle_list_tools(request_id)
        elif method in ("tools/call", "call_tool"):
            name = params.get("name")
            arguments = params.get("arguments") or {}
            return self.handle_call_tool(request_id, name or "", arguments)
        elif method == "ping":
            self._send({"jsonrpc": "2.0", "id": request_id, "result": {}})
        else:
            self._send_error(request_id, -32601, f"Method {method} not found")
        return None


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )
    with ChatBridgeService() as service:
        server = McpServer(service)
        while True:
            message = _read_message()
            if message is None:
                break
            server.dispatch(message)


if __name__ == "__main__":
    main()
