"""
Error taxonomy for chat automation.

Per-candidate errors (connection, timeout, protocol, evaluation) are caught by
the candidate search and turned into diagnostic lines. Only the terminal
errors (directory unavailable, nothing found after every candidate) reach the
caller.
"""

from __future__ import annotations


class ChatBridgeError(Exception):
    pass


class DirectoryUnavailable(ChatBridgeError):
    """The debug endpoint could not be listed."""

    def __init__(self, port: int, reason: str) -> None:
        self.port = port
        self.reason = reason
        super().__init__(
            f"Cannot reach the remote debugging endpoint on port {port} ({reason}). "
            f"Start the IDE with --remote-debugging-port={port}"
        )


class CdpConnectionError(ChatBridgeError):
    pass


class CommandTimeout(ChatBridgeError):
    def __init__(self, method: str, timeout: float) -> None:
        self.method = method
        self.timeout = timeout
        super().__init__(f"CDP command {method} timed out after {timeout:g}s")


class RemoteProtocolError(ChatBridgeError):
    def __init__(self, method: str, message: str) -> None:
        self.method = method
        self.message = message
        super().__init__(f"CDP error in {method}: {message}")


class EvaluationException(ChatBridgeError):
    """The page script threw instead of returning a value."""

    def __init__(self, description: str) -> None:
        self.description = description
        super().__init__(f"Page script threw: {description}")


class _ExhaustedError(ChatBridgeError):
    headline = "No candidate succeeded"

    def __init__(self, diagnostics: list[str], limit: int = 3) -> None:
        self.diagnostics = list(diagnostics)
        shown = self.diagnostics[: max(1, limit)]
        if not shown:
            detail = "no debuggable page/iframe/webview targets are open"
        else:
            detail = "\n".join(shown)
            hidden = len(self.diagnostics) - len(shown)
            if hidden > 0:
                detail += f"\n(+{hidden} more)"
        super().__init__(f"{self.headline}:\n{detail}")


class NoChatInputFound(_ExhaustedError):
    headline = "Chat input not found in any debug target"


class NoChatRegionFound(_ExhaustedError):
    headline = "Chat region not found in any debug target"
