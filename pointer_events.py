"""Mouse and touch payloads from the canvas component, reduced to one event type.

Both adapters produce a `PointerEvent` in surface-local coordinates, so stroke
logic only ever sees down/move/up.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from canvas_surface import BrushSettings, CanvasSurface


class PointerPhase(str, Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"


@dataclass(frozen=True)
class PointerEvent:
    x: float
    y: float
    phase: PointerPhase


@dataclass(frozen=True)
class SurfaceRect:
    """On-screen bounding box of the canvas element (getBoundingClientRect)."""

    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> "SurfaceRect":
        payload = payload or {}
        return cls(
            left=_num(payload.get("left")) or 0.0,
            top=_num(payload.get("top")) or 0.0,
            width=_num(payload.get("width")) or 0.0,
            height=_num(payload.get("height")) or 0.0,
        )

    def to_local(self, client_x: float, client_y: float) -> tuple:
        return client_x - self.left, client_y - self.top


MOUSE_PHASES: Dict[str, PointerPhase] = {
    "mousedown": PointerPhase.DOWN,
    "mousemove": PointerPhase.MOVE,
    "mouseup": PointerPhase.UP,
    "mouseleave": PointerPhase.UP,
}

TOUCH_PHASES: Dict[str, PointerPhase] = {
    "touchstart": PointerPhase.DOWN,
    "touchmove": PointerPhase.MOVE,
    "touchend": PointerPhase.UP,
    "touchcancel": PointerPhase.UP,
}


def _num(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def from_mouse_event(payload: Mapping[str, Any], rect: SurfaceRect) -> Optional[PointerEvent]:
    phase = MOUSE_PHASES.get(str(payload.get("type", "")))
    if phase is None:
        return None
    cx, cy = _num(payload.get("clientX")), _num(payload.get("clientY"))
    if cx is None or cy is None:
        # mouseleave may arrive without coordinates; release still counts.
        if phase == PointerPhase.UP:
            return PointerEvent(0.0, 0.0, phase)
        return None
    x, y = rect.to_local(cx, cy)
    return PointerEvent(x, y, phase)


def _primary_touch(payload: Mapping[str, Any], phase: PointerPhase) -> Optional[Mapping[str, Any]]:
    touches = payload.get("touches") or []
    if phase == PointerPhase.UP and not touches:
        touches = payload.get("changedTouches") or []
    if not isinstance(touches, list) or not touches:
        return None
    first = touches[0]
    return first if isinstance(first, Mapping) else None


def from_touch_event(payload: Mapping[str, Any], rect: SurfaceRect) -> Optional[PointerEvent]:
    phase = TOUCH_PHASES.get(str(payload.get("type", "")))
    if phase is None:
        return None
    touch = _primary_touch(payload, phase)
    if touch is None:
        if phase == PointerPhase.UP:
            return PointerEvent(0.0, 0.0, phase)
        return None
    cx, cy = _num(touch.get("clientX")), _num(touch.get("clientY"))
    if cx is None or cy is None:
        return PointerEvent(0.0, 0.0, phase) if phase == PointerPhase.UP else None
    x, y = rect.to_local(cx, cy)
    return PointerEvent(x, y, phase)


def translate_event(payload: Any, rect: SurfaceRect) -> Optional[PointerEvent]:
    """Route a raw DOM event payload to the matching adapter."""
    if not isinstance(payload, Mapping):
        return None
    etype = str(payload.get("type", ""))
    if etype in MOUSE_PHASES:
        return from_mouse_event(payload, rect)
    if etype in TOUCH_PHASES:
        return from_touch_event(payload, rect)
    return None


def apply_pointer_event(surface: CanvasSurface, event: PointerEvent, brush: BrushSettings) -> None:
    if event.phase == PointerPhase.DOWN:
        surface.begin_stroke(event.x, event.y, brush)
    elif event.phase == PointerPhase.MOVE:
        surface.continue_stroke(event.x, event.y)
    else:
        surface.end_stroke()
