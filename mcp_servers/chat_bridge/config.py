from __future__ import annotations

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name) or default)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name) or default)
    except ValueError:
        return default


@dataclass
class BridgeConfig:
    cdp_port: int = 9222
    host: str = "127.0.0.1"
    http_timeout: float = 2.0
    command_timeout: float = 3.0
    poll_interval: float = 2.0
    idle_threshold: int = 2
    wait_timeout: float = 300.0
    jpeg_quality: int = 85
    max_image_dim: int = 1800
    diagnostic_limit: int = 3

    @classmethod
    def from_env(cls) -> BridgeConfig:
        quality = _env_int("MCP_CHAT_JPEG_QUALITY", 85)
        return cls(
            cdp_port=_env_int("MCP_CHAT_PORT", 9222),
            host=(os.environ.get("MCP_CHAT_HOST") or "127.0.0.1").strip(),
            http_timeout=_env_float("MCP_CHAT_HTTP_TIMEOUT", 2.0),
            command_timeout=_env_float("MCP_CHAT_COMMAND_TIMEOUT", 3.0),
            poll_interval=_env_float("MCP_CHAT_POLL_INTERVAL", 2.0),
            idle_threshold=max(1, _env_int("MCP_CHAT_IDLE_THRESHOLD", 2)),
            wait_timeout=_env_float("MCP_CHAT_WAIT_TIMEOUT", 300.0),
            jpeg_quality=max(1, min(quality, 100)),
            max_image_dim=_env_int("MCP_CHAT_MAX_IMAGE_DIM", 1800),
            diagnostic_limit=max(1, _env_int("MCP_CHAT_DIAGNOSTIC_LIMIT", 3)),
        )

    def directory_url(self, port: int | None = None) -> str:
        return f"http://{self.host}:{port or self.cdp_port}/json"
