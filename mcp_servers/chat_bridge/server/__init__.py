from .definitions import get_all_tool_definitions
from .registry import ToolRegistry, create_default_registry
from .types import ToolContent, ToolResult

__all__ = [
    "ToolContent",
    "ToolRegistry",
    "ToolResult",
    "create_default_registry",
    "get_all_tool_definitions",
]
