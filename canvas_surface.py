"""Raster drawing surface backed by a Pillow image.

The surface is the single source of truth for what the user has drawn. The
browser only displays the PNG rendered from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from image_utils import canvas_has_ink, encode_png, hex_to_rgb, to_data_url


class Tool(str, Enum):
    BRUSH = "brush"
    ERASER = "eraser"


@dataclass(frozen=True)
class BrushSettings:
    color: str = "#FFFFFF"
    tool: Tool = Tool.BRUSH
    width: int = 5

    def active_color(self, background_color: str) -> str:
        # The eraser paints the background instead of clearing pixels.
        return background_color if self.tool == Tool.ERASER else self.color


@dataclass
class StrokeSession:
    x: float
    y: float
    brush: BrushSettings


class CanvasSurface:
    def __init__(self, width: int, height: int, background_color: str = "#000000"):
        self.background_color = background_color
        self._bg_rgb = hex_to_rgb(background_color)
        self.stroke: Optional[StrokeSession] = None
        self.image = self._blank(width, height)

    def _blank(self, width: int, height: int) -> Image.Image:
        return Image.new("RGB", (max(1, int(width)), max(1, int(height))), self._bg_rgb)

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def is_drawing(self) -> bool:
        return self.stroke is not None

    def resize(self, width: int, height: int) -> None:
        """Replace the buffer with a blank one. Prior strokes are not kept."""
        self.stroke = None
        self.image = self._blank(width, height)

    def clear(self) -> None:
        ImageDraw.Draw(self.image).rectangle([(0, 0), self.image.size], fill=self._bg_rgb)

    def begin_stroke(self, x: float, y: float, brush: BrushSettings) -> None:
        self.stroke = StrokeSession(float(x), float(y), brush)

    def continue_stroke(self, x: float, y: float) -> None:
        session = self.stroke
        if session is None:
            return
        x, y = float(x), float(y)
        brush = session.brush
        fill = hex_to_rgb(brush.active_color(self.background_color))
        width = max(1, int(brush.width))

        draw = ImageDraw.Draw(self.image)
        draw.line([(session.x, session.y), (x, y)], fill=fill, width=width, joint="curve")
        # Round caps on both ends so consecutive segments join without gaps.
        r = width / 2.0
        for cx, cy in ((session.x, session.y), (x, y)):
            draw.ellipse([cx - r, cy - r, cx + r, cy + r], fill=fill)

        session.x, session.y = x, y

    def end_stroke(self) -> None:
        self.stroke = None

    def pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        return self.image.getpixel((int(x), int(y)))

    def to_array(self) -> np.ndarray:
        return np.asarray(self.image)

    def is_blank(self) -> bool:
        return not canvas_has_ink(self.to_array(), self._bg_rgb)

    def to_png_bytes(self) -> bytes:
        return encode_png(self.image)

    def to_data_url(self) -> str:
        return to_data_url(self.to_png_bytes())
