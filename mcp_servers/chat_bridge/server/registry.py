"""
Tool registry with dispatch table for the MCP server.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .types import HandlerFunc, ToolResult

if TYPE_CHECKING:
    from ..service import ChatBridgeService

logger = logging.getLogger("mcp.chat_bridge.registry")


class ToolRegistry:
    """Registry mapping chat tool names to their handlers."""

    def __init__(self) -> None:
        self._handlers: dict[str, HandlerFunc] = {}

    def register_many(self, handlers: dict[str, HandlerFunc]) -> None:
        """Register multiple handlers at once."""
        self._handlers.update(handlers)

    def has(self, name: str) -> bool:
        """Check if handler exists."""
        return name in self._handlers

    def dispatch(self, name: str, service: ChatBridgeService, arguments: dict[str, Any]) -> ToolResult:
        """
        Dispatch tool call to its handler.

        Args:
            name: Tool name
            service: Shared chat bridge service
            arguments: Tool arguments

        Returns:
            ToolResult from handler

        Raises:
            KeyError: If tool not found
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise KeyError(f"Unknown tool: {name}")
        return handler(service, arguments)

    def __len__(self) -> int:
        return len(self._handlers)


def create_default_registry() -> ToolRegistry:
    """Create a registry with every chat tool handler registered."""
    from .handlers import ALL_HANDLERS

    registry = ToolRegistry()
    registry.register_many(ALL_HANDLERS)
    logger.info("Registered %d tool handlers", len(registry))
    return registry
