"""
Clipped screenshot of the chat area.

The region probe returns the matched chat container plus its ancestor chain;
choose_region() picks the capture box:
- the match itself when it is at least MIN_ELEMENT_HEIGHT tall,
- else the nearest ancestor that is,
- and document.body when the pick is still under MIN_REGION_HEIGHT.
"""

from __future__ import annotations

import base64
import binascii
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from io import BytesIO
from typing import Any

from PIL import Image, UnidentifiedImageError

from .candidates import CandidateFailure, ConnectionFactory, search_candidates
from .config import BridgeConfig
from .errors import NoChatRegionFound
from .evaluator import RemoteEvaluator
from .scripts import REGION_PROBE
from .session_cdp import CdpConnection
from .targets import DebugTarget, list_candidates

logger = logging.getLogger("mcp.chat_bridge.screenshot")

MIN_ELEMENT_HEIGHT = 100
MIN_REGION_HEIGHT = 200


@dataclass(frozen=True, slots=True)
class ScreenshotRegion:
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_box(cls, box: dict[str, Any]) -> ScreenshotRegion:
        return cls(
            x=float(box.get("x") or 0),
            y=float(box.get("y") or 0),
            width=float(box.get("width") or 0),
            height=float(box.get("height") or 0),
        )

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def to_clip(self) -> dict[str, float]:
        return {
            "x": max(0.0, self.x),
            "y": max(0.0, self.y),
            "width": self.width,
            "height": self.height,
            "scale": 1,
        }


def choose_region(chain: Sequence[ScreenshotRegion], body: ScreenshotRegion | None) -> ScreenshotRegion | None:
    """Pick the capture box from a matched element and its ancestors (nearest first)."""
    if not chain:
        return body
    chosen = chain[0]
    if chosen.height < MIN_ELEMENT_HEIGHT:
        chosen = next((box for box in chain[1:] if box.height >= MIN_ELEMENT_HEIGHT), chosen)
    if chosen.height < MIN_REGION_HEIGHT and body is not None:
        chosen = body
    return chosen


def probe_region(conn: Any) -> ScreenshotRegion:
    value = RemoteEvaluator(conn).evaluate(REGION_PROBE, await_promise=False)
    if not isinstance(value, dict) or not value.get("found"):
        reason = value.get("error") if isinstance(value, dict) else None
        raise CandidateFailure(str(reason or "chat container not found"))
    chain = [ScreenshotRegion.from_box(box) for box in value.get("chain") or [] if isinstance(box, dict)]
    body = ScreenshotRegion.from_box(value["body"]) if isinstance(value.get("body"), dict) else None
    region = choose_region(chain, body)
    if region is None or region.is_empty():
        raise CandidateFailure(f"chat container {value.get('selector')!r} has no visible area")
    return region


def normalize_image(data: bytes, max_dim: int, quality: int) -> bytes:
    """Downscale so the longest side fits ``max_dim``; other images pass through."""
    try:
        img = Image.open(BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise CandidateFailure(f"screenshot is not a readable image: {exc}") from exc
    if max_dim <= 0 or max(img.size) <= max_dim:
        return data
    img.thumbnail((max_dim, max_dim), Image.LANCZOS)
    buffer = BytesIO()
    img.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def capture_clip(conn: Any, region: ScreenshotRegion, quality: int) -> bytes:
    result = conn.send(
        "Page.captureScreenshot",
        {
            "format": "jpeg",
            "quality": quality,
            "clip": region.to_clip(),
            "captureBeyondViewport": True,
        },
    )
    data = result.get("data")
    if not data:
        raise CandidateFailure("empty screenshot data")
    try:
        return base64.b64decode(data)
    except (binascii.Error, ValueError) as exc:
        raise CandidateFailure(f"invalid screenshot data: {exc}") from exc


def capture_region(
    port: int | None = None,
    config: BridgeConfig | None = None,
    *,
    connect: ConnectionFactory = CdpConnection,
) -> bytes:
    """Return JPEG bytes of the chat area from the first target that has one."""
    config = config or BridgeConfig.from_env()
    port = port or config.cdp_port

    def attempt(conn: CdpConnection, target: DebugTarget) -> bytes:
        region = probe_region(conn)
        logger.debug("region target=%s %s", target.label, region)
        raw = capture_clip(conn, region, config.jpeg_quality)
        return normalize_image(raw, config.max_image_dim, config.jpeg_quality)

    targets = list_candidates(port, config)
    search = search_candidates(targets, attempt, config, connect=connect)
    if not search.found:
        raise NoChatRegionFound(search.diagnostics, limit=config.diagnostic_limit)
    logger.info("capture ok target=%s bytes=%d", search.target.label, len(search.value))
    return search.value
