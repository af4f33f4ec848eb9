"""
MCP tool definitions.

Each tool definition contains:
- name: Tool identifier
- description: AI-friendly description
- inputSchema: JSON Schema for tool arguments
"""

from __future__ import annotations

from typing import Any

_PORT = {
    "type": "integer",
    "description": "Remote debugging port of the IDE (default: MCP_CHAT_PORT or 9222)",
}

_TIMEOUT = {
    "type": "number",
    "description": "Seconds to wait for the agent to finish (default: MCP_CHAT_WAIT_TIMEOUT or 300)",
}


def _schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": properties,
        "additionalProperties": False,
    }
    if required:
        schema["required"] = required
    return schema


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "chat_send",
        "description": """Type a message into the IDE agent chat and submit it.

Searches every debuggable page/iframe/webview on the port for the chat input.
Fails with per-target diagnostics when no chat input is found.""",
        "inputSchema": _schema({"text": {"type": "string", "description": "Message to send"}, "port": _PORT}, ["text"]),
    },
    {
        "name": "chat_wait",
        "description": """Wait until the agent stops generating.

Returns {"finished": true} once the chat reports idle on two consecutive polls,
{"finished": false} when the timeout passes first.""",
        "inputSchema": _schema({"port": _PORT, "timeout": _TIMEOUT}),
    },
    {
        "name": "chat_ask",
        "description": "Send a message to the agent chat, then wait for the answer to complete (chat_send + chat_wait).",
        "inputSchema": _schema(
            {"text": {"type": "string", "description": "Message to send"}, "port": _PORT, "timeout": _TIMEOUT},
            ["text"],
        ),
    },
    {
        "name": "chat_screenshot",
        "description": "Capture a JPEG of the agent chat area.",
        "inputSchema": _schema({"port": _PORT}),
    },
    {
        "name": "chat_targets",
        "description": "List the debug targets on the port and whether each one is searched for the chat.",
        "inputSchema": _schema({"port": _PORT}),
    },
]


def get_all_tool_definitions() -> list[dict[str, Any]]:
    return list(TOOL_DEFINITIONS)
