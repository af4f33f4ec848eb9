"""
Chat input location, text injection and submission.

inject_text() runs the inject script against one open connection;
send_text() walks every debug target until one accepts the text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .candidates import CandidateFailure, ConnectionFactory, search_candidates
from .config import BridgeConfig
from .errors import ChatBridgeError, NoChatInputFound
from .evaluator import RemoteEvaluator
from .scripts import build_inject_script
from .session_cdp import CdpConnection
from .targets import DebugTarget, list_candidates

logger = logging.getLogger("mcp.chat_bridge.injector")


@dataclass(frozen=True, slots=True)
class InjectionResult:
    found: bool
    strategy: str
    error: str | None = None
    inputs: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_page(cls, value: Any) -> InjectionResult:
        if not isinstance(value, dict):
            return cls(found=False, strategy="no_result", error=f"unexpected script result: {value!r}")
        if value.get("found"):
            parts = [str(value.get("method") or "unknown")]
            if value.get("insert"):
                parts.append(f"insert={value['insert']}")
            if value.get("submit"):
                parts.append(f"submit={value['submit']}")
            return cls(found=True, strategy=" ".join(parts))
        inputs = tuple(str(item) for item in (value.get("inputs") or [])[:10])
        return cls(
            found=False,
            strategy="none",
            error=str(value.get("error") or "chat input not found"),
            inputs=inputs,
        )

    def describe_failure(self) -> str:
        reason = self.error or "chat input not found"
        if self.inputs:
            reason += f" (visible inputs: {'; '.join(self.inputs)})"
        return reason


def press_enter(conn: Any) -> None:
    """Dispatch a protocol-level Enter, bypassing page event handlers."""
    base = {
        "key": "Enter",
        "code": "Enter",
        "windowsVirtualKeyCode": 13,
        "nativeVirtualKeyCode": 13,
    }
    conn.send("Input.dispatchKeyEvent", {"type": "keyDown", "text": "\r", **base})
    conn.send("Input.dispatchKeyEvent", {"type": "keyUp", **base})


def inject_text(conn: Any, text: str) -> InjectionResult:
    value = RemoteEvaluator(conn).evaluate(build_inject_script(text), await_promise=True)
    result = InjectionResult.from_page(value)
    if result.found:
        try:
            press_enter(conn)
        except ChatBridgeError as exc:
            logger.debug("redundant_enter_failed %s", exc)
    return result


def _inject_attempt(text: str):
    def attempt(conn: CdpConnection, target: DebugTarget) -> InjectionResult:
        result = inject_text(conn, text)
        if not result.found:
            raise CandidateFailure(result.describe_failure())
        return result

    return attempt


def send_text(
    text: str,
    port: int | None = None,
    config: BridgeConfig | None = None,
    *,
    connect: ConnectionFactory = CdpConnection,
) -> InjectionResult:
    """Type ``text`` into the first chat input found and submit it.

    Raises:
        ValueError: text is empty.
        DirectoryUnavailable: the debug endpoint cannot be listed.
        NoChatInputFound: every candidate failed; diagnostics attached.
    """
    if not text or not text.strip():
        raise ValueError("text must not be empty")
    config = config or BridgeConfig.from_env()
    port = port or config.cdp_port

    targets = list_candidates(port, config)
    search = search_candidates(targets, _inject_attempt(text), config, connect=connect)
    if not search.found:
        logger.info("send_text failed port=%s candidates=%d", port, len(targets))
        raise NoChatInputFound(search.diagnostics, limit=config.diagnostic_limit)

    result = search.value
    logger.info("send_text ok target=%s strategy=%s", search.target.label, result.strategy)
    return result
