"""
Tool handlers.

All handlers follow the signature: (service, arguments) -> ToolResult
"""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any

from .types import HandlerFunc, ToolResult

if TYPE_CHECKING:
    from ..service import ChatBridgeService


def _port(args: dict[str, Any]) -> int | None:
    raw = args.get("port")
    if raw in (None, ""):
        return None
    try:
        port = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"port must be an integer, got {raw!r}") from exc
    if not 0 < port < 65536:
        raise ValueError(f"port out of range: {port}")
    return port


def _timeout(args: dict[str, Any]) -> float | None:
    raw = args.get("timeout")
    if raw in (None, ""):
        return None
    value = float(raw)
    if value <= 0:
        raise ValueError("timeout must be positive")
    return value


def handle_chat_send(service: ChatBridgeService, args: dict[str, Any]) -> ToolResult:
    result = service.send_text(str(args.get("text") or ""), _port(args))
    return ToolResult.json({"sent": True, "strategy": result.strategy})


def handle_chat_wait(service: ChatBridgeService, args: dict[str, Any]) -> ToolResult:
    finished = service.wait_for_completion(_port(args), _timeout(args))
    return ToolResult.json({"finished": finished})


def handle_chat_ask(service: ChatBridgeService, args: dict[str, Any]) -> ToolResult:
    return ToolResult.json(service.ask(str(args.get("text") or ""), _port(args), _timeout(args)))


def handle_chat_screenshot(service: ChatBridgeService, args: dict[str, Any]) -> ToolResult:
    data = service.capture_region(_port(args))
    return ToolResult.image(base64.b64encode(data).decode(), mime_type="image/jpeg")


def handle_chat_targets(service: ChatBridgeService, args: dict[str, Any]) -> ToolResult:
    targets = service.list_targets(_port(args))
    return ToolResult.json(
        {
            "targets": [
                {
                    "id": t.id,
                    "type": t.kind,
                    "title": t.title,
                    "url": t.url,
                    "candidate": t.is_candidate(),
                }
                for t in targets
            ],
            "count": len(targets),
        }
    )


ALL_HANDLERS: dict[str, HandlerFunc] = {
    "chat_send": handle_chat_send,
    "chat_wait": handle_chat_wait,
    "chat_ask": handle_chat_ask,
    "chat_screenshot": handle_chat_screenshot,
    "chat_targets": handle_chat_targets,
}
