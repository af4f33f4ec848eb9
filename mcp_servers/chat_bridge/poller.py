"""
Completion polling for the agent response.

PollState is a pure state machine fed one observation per tick:

    POLLING --idle--> IDLE(n) --idle, n+1 >= threshold--> DONE
       ^                 |
       +---not idle------+            (overall timeout) --> TIMED_OUT

A tick with no chat-bearing surface leaves the idle counter untouched.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .candidates import CandidateFailure, ConnectionFactory, search_candidates
from .config import BridgeConfig
from .errors import DirectoryUnavailable
from .evaluator import RemoteEvaluator
from .scripts import STATE_PROBE
from .session_cdp import CdpConnection
from .targets import DebugTarget, list_candidates

logger = logging.getLogger("mcp.chat_bridge.poller")


class PollPhase(str, Enum):
    POLLING = "polling"
    IDLE = "idle"
    DONE = "done"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True, slots=True)
class PollObservation:
    has_chat: bool
    is_generating: bool
    is_idle: bool

    @classmethod
    def from_page(cls, value: Any) -> PollObservation:
        if not isinstance(value, dict):
            return cls(has_chat=False, is_generating=False, is_idle=False)
        return cls(
            has_chat=bool(value.get("hasChat")),
            is_generating=bool(value.get("isGenerating")),
            is_idle=bool(value.get("isIdle")),
        )


@dataclass
class PollState:
    idle_threshold: int = 2
    phase: PollPhase = PollPhase.POLLING
    consecutive_idle: int = 0
    ticks: int = 0

    @property
    def finished(self) -> bool:
        return self.phase in (PollPhase.DONE, PollPhase.TIMED_OUT)

    def observe(self, observation: PollObservation | None) -> PollPhase:
        if self.finished:
            return self.phase
        self.ticks += 1
        if observation is None or not observation.has_chat:
            return self.phase
        if observation.is_idle and not observation.is_generating:
            self.consecutive_idle += 1
            if self.consecutive_idle >= self.idle_threshold:
                self.phase = PollPhase.DONE
            else:
                self.phase = PollPhase.IDLE
        else:
            self.consecutive_idle = 0
            self.phase = PollPhase.POLLING
        return self.phase

    def expire(self) -> None:
        if self.phase is not PollPhase.DONE:
            self.phase = PollPhase.TIMED_OUT


def probe_state(conn: Any) -> PollObservation:
    return PollObservation.from_page(RemoteEvaluator(conn).evaluate(STATE_PROBE, await_promise=False))


def _probe_attempt(conn: CdpConnection, target: DebugTarget) -> PollObservation:
    observation = probe_state(conn)
    if not observation.has_chat:
        raise CandidateFailure("no chat surface")
    return observation


class CompletionPoller:
    """Poll the debug targets until the chat reports idle long enough."""

    def __init__(
        self,
        port: int,
        config: BridgeConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        connect: ConnectionFactory = CdpConnection,
    ) -> None:
        self.port = port
        self.config = config
        self.state = PollState(idle_threshold=config.idle_threshold)
        self._clock = clock
        self._sleep = sleep
        self._connect = connect

    def sample(self) -> PollObservation | None:
        """One tick: the first chat-bearing target is authoritative."""
        try:
            targets = list_candidates(self.port, self.config)
        except DirectoryUnavailable as exc:
            logger.debug("poll directory unavailable: %s", exc)
            return None
        search = search_candidates(targets, _probe_attempt, self.config, connect=self._connect)
        return search.value if search.found else None

    def _expired(self, started: float, limit: float) -> bool:
        return self._clock() - started >= limit

    def run(self, timeout: float | None = None) -> bool:
        """Tick until DONE or until ``timeout`` seconds pass.

        A sample that completes after the deadline is discarded, so a slow
        tick can never turn a timed-out wait into a success.
        """
        limit = self.config.wait_timeout if timeout is None else timeout
        self.state = PollState(idle_threshold=self.config.idle_threshold)
        started = self._clock()
        while not self._expired(started, limit):
            self._sleep(self.config.poll_interval)
            if self._expired(started, limit):
                break
            observation = self.sample()
            if self._expired(started, limit):
                logger.debug("poll sample arrived after deadline, discarded")
                break
            phase = self.state.observe(observation)
            logger.debug("poll tick=%d phase=%s idle=%d", self.state.ticks, phase.value, self.state.consecutive_idle)
            if phase is PollPhase.DONE:
                logger.info("agent finished after %d ticks", self.state.ticks)
                return True
        self.state.expire()
        logger.info("agent wait timed out after %.0fs", limit)
        return False


def wait_for_completion(
    port: int | None = None,
    timeout: float | None = None,
    config: BridgeConfig | None = None,
    *,
    connect: ConnectionFactory = CdpConnection,
) -> bool:
    """Return True once the agent is idle, False when ``timeout`` seconds pass first."""
    config = config or BridgeConfig.from_env()
    poller = CompletionPoller(port or config.cdp_port, config, connect=connect)
    return poller.run(timeout)
