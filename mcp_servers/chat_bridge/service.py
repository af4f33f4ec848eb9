"""
ChatBridgeService: the object command layers hold on to.

Constructed once, started and stopped explicitly, and passed by reference to
whatever handles incoming commands (a chat bot, the MCP stdio server). Slow
operations run on a single worker so callers never block and operations never
overlap on the same debug targets.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from .config import BridgeConfig
from .injector import InjectionResult, send_text
from .poller import wait_for_completion
from .screenshot import capture_region
from .targets import DebugTarget, fetch_targets

logger = logging.getLogger("mcp.chat_bridge.service")


class ChatBridgeService:
    def __init__(self, config: BridgeConfig | None = None) -> None:
        self.config = config or BridgeConfig.from_env()
        self._executor: ThreadPoolExecutor | None = None

    def __enter__(self) -> ChatBridgeService:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()

    @property
    def running(self) -> bool:
        return self._executor is not None

    def start(self) -> None:
        if self._executor is not None:
            logger.warning("chat bridge already running")
            return
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="chat-bridge")
        logger.info("chat bridge started port=%s", self.config.cdp_port)

    def stop(self, wait: bool = True) -> None:
        executor, self._executor = self._executor, None
        if executor is None:
            return
        executor.shutdown(wait=wait, cancel_futures=True)
        logger.info("chat bridge stopped")

    # ─────────────────────────────────────────────────────────────────────────
    # Blocking operations
    # ─────────────────────────────────────────────────────────────────────────

    def send_text(self, text: str, port: int | None = None) -> InjectionResult:
        return send_text(text, port or self.config.cdp_port, self.config)

    def wait_for_completion(self, port: int | None = None, timeout: float | None = None) -> bool:
        return wait_for_completion(port or self.config.cdp_port, timeout, self.config)

    def capture_region(self, port: int | None = None) -> bytes:
        return capture_region(port or self.config.cdp_port, self.config)

    def ask(self, text: str, port: int | None = None, timeout: float | None = None) -> dict[str, Any]:
        """Send ``text`` and wait for the agent to finish answering."""
        result = self.send_text(text, port)
        finished = self.wait_for_completion(port, timeout)
        return {"sent": True, "strategy": result.strategy, "finished": finished}

    def list_targets(self, port: int | None = None) -> list[DebugTarget]:
        return fetch_targets(port or self.config.cdp_port, self.config)

    # ─────────────────────────────────────────────────────────────────────────
    # Background submission
    # ─────────────────────────────────────────────────────────────────────────

    def submit(self, fn: Any, *args: Any) -> Future:
        """Run ``fn(*args)`` on the worker, after any operation already queued."""
        if self._executor is None:
            raise RuntimeError("ChatBridgeService is not started")
        return self._executor.submit(fn, *args)

    def submit_send_text(self, text: str, port: int | None = None) -> Future:
        return self.submit(self.send_text, text, port)

    def submit_wait_for_completion(self, port: int | None = None, timeout: float | None = None) -> Future:
        return self.submit(self.wait_for_completion, port, timeout)

    def submit_capture_region(self, port: int | None = None) -> Future:
        return self.submit(self.capture_region, port)

    def submit_ask(self, text: str, port: int | None = None, timeout: float | None = None) -> Future:
        return self.submit(self.ask, text, port, timeout)
