from __future__ import annotations

import json
from typing import Any
from urllib.error import URLError
from urllib.request import Request, urlopen


class HttpClientError(Exception):
    pass


def _build_request(url: str) -> Request:
    return Request(url, headers={"User-Agent": "mcp-chat-bridge/1.0"})


def http_get_json(url: str, timeout: float = 2.0) -> Any:
    """Fetch and decode a JSON document from a local endpoint."""
    try:
        with urlopen(_build_request(url), timeout=timeout) as resp:
            raw = resp.read()
    except (TimeoutError, URLError, OSError) as exc:
        raise HttpClientError(str(exc)) from exc
    try:
        return json.loads(raw.decode(errors="replace"))
    except json.JSONDecodeError as exc:
        raise HttpClientError(f"invalid JSON: {exc}") from exc
