"""
Drive an IDE agent chat through the Chrome DevTools Protocol.

Provides:
- send_text: type a message into the chat and submit it
- wait_for_completion: poll until the agent stops generating
- capture_region: JPEG screenshot of the chat area
- ChatBridgeService: lifecycle-owning facade for command layers
"""
from __future__ import annotations

from .config import BridgeConfig
from .errors import (
    CdpConnectionError,
    ChatBridgeError,
    CommandTimeout,
    DirectoryUnavailable,
    EvaluationException,
    NoChatInputFound,
    NoChatRegionFound,
    RemoteProtocolError,
)
from .injector import InjectionResult, inject_text, send_text
from .poller import CompletionPoller, PollObservation, PollPhase, PollState, wait_for_completion
from .screenshot import ScreenshotRegion, capture_region
from .service import ChatBridgeService
from .targets import DebugTarget, list_candidates

__all__ = [
    "BridgeConfig",
    "CdpConnectionError",
    "ChatBridgeError",
    "ChatBridgeService",
    "CommandTimeout",
    "CompletionPoller",
    "DebugTarget",
    "DirectoryUnavailable",
    "EvaluationException",
    "InjectionResult",
    "NoChatInputFound",
    "NoChatRegionFound",
    "PollObservation",
    "PollPhase",
    "PollState",
    "RemoteProtocolError",
    "ScreenshotRegion",
    "capture_region",
    "inject_text",
    "list_candidates",
    "send_text",
    "wait_for_completion",
]
