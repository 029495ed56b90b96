"""Per-session UI state for the drawing page.

`DrawingBoard` owns the surface, the brush selection, the prompt/response pair
and the in-flight flag. It makes no Streamlit calls, so the page can run
`submit` on a worker thread and tests can drive it directly.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Mapping, Optional

from ai_analysis import AnalysisResult, analyze_drawing
from canvas_surface import BrushSettings, CanvasSurface, Tool
from config import AppConfig
from image_utils import log_payload_size, to_data_url
from pointer_events import PointerEvent, SurfaceRect, apply_pointer_event, translate_event
from utils.logging_utils import LOGGER_NAME

LOGGER = logging.getLogger(LOGGER_NAME)

Analyzer = Callable[[str, str], AnalysisResult]

UNEXPECTED_ERROR_TEXT = "Failed to analyze drawing. Please try again."


def _as_nonce(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class DrawingBoard:
    def __init__(self, config: AppConfig, analyzer: Optional[Analyzer] = None):
        self.config = config
        self.analyzer: Analyzer = analyzer or (lambda data_url, prompt: analyze_drawing(data_url, prompt, config=config))
        self.surface: Optional[CanvasSurface] = None
        self.color = config.brush_color
        self.tool = Tool.BRUSH
        self.prompt = ""
        self.response = ""
        self.last_result: Optional[AnalysisResult] = None
        self._lock = threading.Lock()
        self._loading = False
        self._ack_nonce = 0

    # -------------------------
    # Tool selection
    # -------------------------
    @property
    def brush(self) -> BrushSettings:
        return BrushSettings(color=self.color, tool=self.tool, width=self.config.stroke_width)

    @property
    def is_eraser(self) -> bool:
        return self.tool == Tool.ERASER

    def select_color(self, color: str) -> None:
        self.color = color
        self.tool = Tool.BRUSH

    def select_brush(self) -> None:
        self.tool = Tool.BRUSH

    def select_eraser(self) -> None:
        self.tool = Tool.ERASER

    # -------------------------
    # Surface
    # -------------------------
    def on_viewport_change(self, width: int, height: int) -> None:
        width, height = max(1, int(width)), max(1, int(height))
        if self.surface is None:
            self.surface = CanvasSurface(width, height, self.config.background_color)
            return
        if self.surface.size != (width, height):
            self.surface.resize(width, height)
            LOGGER.info("Canvas resized", extra={"ctx": {"component": "canvas", "size": f"{width}x{height}"}})

    def handle_pointer(self, event: PointerEvent) -> None:
        if self.surface is None:
            return
        apply_pointer_event(self.surface, event, self.brush)

    @property
    def ack_nonce(self) -> int:
        """Nonce of the newest component entry already applied."""
        return self._ack_nonce

    def _entry_brush(self, entry: Mapping[str, Any]) -> BrushSettings:
        # Tool and color as they were when the stroke started in the browser.
        raw = entry.get("brush")
        if not isinstance(raw, Mapping):
            return self.brush
        try:
            tool = Tool(str(raw.get("tool")))
        except ValueError:
            tool = self.tool
        color = raw.get("color")
        if not isinstance(color, str) or not color.startswith("#"):
            color = self.color
        return BrushSettings(color=color, tool=tool, width=self.config.stroke_width)

    def _apply_entry(self, entry: Mapping[str, Any]) -> None:
        viewport = entry.get("viewport")
        if isinstance(viewport, Mapping):
            try:
                self.on_viewport_change(int(viewport.get("width")), int(viewport.get("height")))
            except (TypeError, ValueError):
                pass

        if self.surface is None:
            return
        rect = SurfaceRect.from_payload(entry.get("rect") if isinstance(entry.get("rect"), Mapping) else None)
        brush = self._entry_brush(entry)
        for raw in entry.get("events") or []:
            event = translate_event(raw, rect)
            if event is not None:
                apply_pointer_event(self.surface, event, brush)

    def ingest_canvas_message(self, value: Any) -> bool:
        """Apply the entries of a component message not seen before.

        Streamlit keeps only the newest component value between reruns, so the
        browser resends every entry newer than `ack_nonce` until the page
        echoes that nonce back. A message without "entries" is a single entry.
        Returns True when at least one entry was applied.
        """
        if not isinstance(value, Mapping):
            return False
        entries = value.get("entries")
        if entries is None:
            entries = [value]
        if not isinstance(entries, list):
            return False

        fresh = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                continue
            nonce = _as_nonce(entry.get("nonce"))
            if nonce is not None and nonce > self._ack_nonce:
                fresh.append((nonce, entry))

        applied = False
        for nonce, entry in sorted(fresh, key=lambda item: item[0]):
            if nonce <= self._ack_nonce:
                continue
            self._apply_entry(entry)
            self._ack_nonce = nonce
            applied = True
        return applied

    def clear(self) -> None:
        if self.surface is not None:
            self.surface.clear()
        self.response = ""
        self.last_result = None

    # -------------------------
    # Analysis
    # -------------------------
    @property
    def is_loading(self) -> bool:
        return self._loading

    def submit(self, prompt: Optional[str] = None) -> bool:
        """Run one analysis round trip. Returns False when nothing was sent."""
        if prompt is not None:
            self.prompt = prompt
        text = self.prompt or ""
        if not text.strip():
            return False
        if self.surface is None:
            return False

        with self._lock:
            if self._loading:
                return False
            self._loading = True

        try:
            png_bytes = self.surface.to_png_bytes()
            log_payload_size(png_bytes, "analysis")
            data_url = to_data_url(png_bytes)
            result = self.analyzer(data_url, text)
            self.last_result = result
            self.response = result.text
        except Exception as e:
            LOGGER.error("Analysis call raised", extra={"ctx": {"component": "board", "error": type(e).__name__}})
            self.last_result = AnalysisResult(success=False, text=UNEXPECTED_ERROR_TEXT)
            self.response = UNEXPECTED_ERROR_TEXT
        finally:
            with self._lock:
                self._loading = False
        return True
