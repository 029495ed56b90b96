import base64
import io
import logging
from typing import Tuple

import numpy as np
from PIL import Image

from utils.logging_utils import LOGGER_NAME

LOGGER = logging.getLogger(LOGGER_NAME)

PNG_MIME = "image/png"


def _human_mb(num_bytes: int) -> str:
    return f"{(num_bytes / (1024 * 1024)):.1f}MB"


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Convert '#RRGGBB' (or 'RRGGBB') to an RGB tuple."""
    s = (hex_color or "").strip().lstrip("#")
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) != 6:
        raise ValueError(f"Invalid hex color: {hex_color!r}")
    return int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16)


def encode_png(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG", optimize=True)
    return buf.getvalue()


def to_data_url(png_bytes: bytes, mime: str = PNG_MIME) -> str:
    return f"data:{mime};base64,{base64.b64encode(png_bytes).decode('utf-8')}"


def strip_data_url_prefix(data_url: str) -> str:
    """Return only the base-64 payload of a data URL.

    Strings without a comma are assumed to already be bare base-64.
    """
    s = (data_url or "").strip()
    if "," not in s:
        return s
    return s.split(",", 1)[1]


def canvas_has_ink(image_data: np.ndarray, bg_rgb: Tuple[int, int, int], min_pixels: int = 1) -> bool:
    """
    True when at least `min_pixels` pixels differ from the background.
    Uses per-channel max difference so anti-aliased edges still count.
    """
    if image_data is None:
        return False
    arr = np.asarray(image_data)
    if arr.dtype != np.uint8:
        arr = arr.astype(np.uint8)
    if arr.ndim != 3 or arr.shape[2] < 3:
        return False

    rgb = arr[:, :, :3]
    bg = np.array(bg_rgb, dtype=np.uint8)
    diff = np.max(np.abs(rgb.astype(np.int16) - bg.astype(np.int16)), axis=2)
    ink_pixels = int(np.count_nonzero(diff > 0))
    return ink_pixels >= min_pixels


def log_payload_size(png_bytes: bytes, purpose: str) -> None:
    LOGGER.info(
        "Encoded canvas snapshot",
        extra={"ctx": {"component": "image", "purpose": purpose, "size": _human_mb(len(png_bytes))}},
    )
