"""
Sequential trial over debug targets.

Each attempt gets its own fresh connection, closed on every exit path. The
first attempt that returns wins; every failure becomes a ``[kind] title:
reason`` diagnostic line and the search moves on. Nothing raised by an attempt
escapes the loop.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .config import BridgeConfig
from .errors import ChatBridgeError
from .session_cdp import CdpConnection
from .targets import DebugTarget

logger = logging.getLogger("mcp.chat_bridge.candidates")

T = TypeVar("T")

Attempt = Callable[[CdpConnection, DebugTarget], T]
ConnectionFactory = Callable[..., Any]


class CandidateFailure(ChatBridgeError):
    """The page answered, but not with what the attempt needs."""


@dataclass
class CandidateSearch(Generic[T]):
    target: DebugTarget | None = None
    value: T | None = None
    diagnostics: list[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.target is not None


def search_candidates(
    targets: Iterable[DebugTarget],
    attempt: Attempt[T],
    config: BridgeConfig,
    *,
    connect: ConnectionFactory = CdpConnection,
) -> CandidateSearch[T]:
    diagnostics: list[str] = []
    for target in targets:
        try:
            with connect(target.ws_url, timeout=config.command_timeout) as conn:
                value = attempt(conn, target)
        except (ChatBridgeError, KeyError, TypeError, ValueError) as exc:
            line = f"{target.label}: {exc}"
            diagnostics.append(line)
            logger.debug("candidate_failed %s", line)
            continue
        return CandidateSearch(target=target, value=value, diagnostics=diagnostics)
    return CandidateSearch(diagnostics=diagnostics)
