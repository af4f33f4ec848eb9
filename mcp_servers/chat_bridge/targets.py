"""
Debug target discovery.

Lists the surfaces exposed on the remote debugging port and keeps the ones
that can host the chat UI: pages, iframes and webviews with a debugger
endpoint. Directory order is preserved; callers try candidates left to right.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .config import BridgeConfig
from .errors import DirectoryUnavailable
from .http_client import HttpClientError, http_get_json

logger = logging.getLogger("mcp.chat_bridge.targets")

CANDIDATE_KINDS = frozenset({"page", "iframe", "webview"})
DEVTOOLS_PREFIXES = ("devtools://", "chrome-devtools://")


@dataclass(frozen=True, slots=True)
class DebugTarget:
    id: str
    kind: str
    title: str
    url: str
    ws_url: str | None = None

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> DebugTarget:
        kind = str(raw.get("type") or "other")
        if kind not in CANDIDATE_KINDS:
            kind = "other"
        return cls(
            id=str(raw.get("id") or ""),
            kind=kind,
            title=str(raw.get("title") or ""),
            url=str(raw.get("url") or ""),
            ws_url=raw.get("webSocketDebuggerUrl") or None,
        )

    @property
    def label(self) -> str:
        return f"[{self.kind}] {self.title or self.url or self.id}"

    def is_candidate(self) -> bool:
        if self.kind not in CANDIDATE_KINDS:
            return False
        if not self.ws_url:
            return False
        return not self.url.startswith(DEVTOOLS_PREFIXES)


def fetch_targets(port: int, config: BridgeConfig | None = None) -> list[DebugTarget]:
    """Return every target in the directory, unfiltered."""
    config = config or BridgeConfig.from_env()
    url = config.directory_url(port)
    try:
        payload = http_get_json(url, timeout=config.http_timeout)
    except HttpClientError as exc:
        raise DirectoryUnavailable(port, str(exc)) from exc
    if not isinstance(payload, list):
        raise DirectoryUnavailable(port, f"expected a JSON array from {url}")
    return [DebugTarget.from_raw(item) for item in payload if isinstance(item, dict)]


def list_candidates(port: int, config: BridgeConfig | None = None) -> list[DebugTarget]:
    targets = fetch_targets(port, config)
    candidates = [t for t in targets if t.is_candidate()]
    logger.debug("port=%s targets=%d candidates=%d", port, len(targets), len(candidates))
    return candidates
