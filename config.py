import os
from dataclasses import dataclass
from typing import Mapping, Optional

import streamlit as st


class ConfigError(ValueError):
    """Raised when a required setting is missing or unusable."""


def _safe_secret(key: str, default: str | None = None) -> str | None:
    try:
        return st.secrets.get(key, default)
    except Exception:
        return default


# ============================================================
# DEFAULTS
# ============================================================
# Every value can be overridden in Streamlit Secrets or the environment.
DEFAULT_MODEL_NAME = "gpt-5-mini"
DEFAULT_CANVAS_BG_HEX = "#000000"
DEFAULT_BRUSH_HEX = "#FFFFFF"
DEFAULT_STROKE_WIDTH = 5
DEFAULT_CANVAS_HEIGHT = 320
# Vertical space kept for the header, toolbar and prompt panel around the canvas.
DEFAULT_CANVAS_RESERVED_PX = 260
DEFAULT_LOG_FILE = "doodle_lens_app.log"


def _setting(key: str, default: str, environ: Mapping[str, str]) -> str:
    value = _safe_secret(key)
    if value is None or str(value).strip() == "":
        value = environ.get(key, default)
    return str(value if value is not None else default).strip()


def _int_setting(key: str, default: int, environ: Mapping[str, str], lo: int = 1) -> int:
    raw = _setting(key, str(default), environ)
    try:
        return max(lo, int(raw))
    except ValueError:
        return default


def _hex_setting(key: str, default: str, environ: Mapping[str, str]) -> str:
    raw = _setting(key, default, environ)
    s = raw.lstrip("#")
    if len(s) != 6:
        return default
    try:
        int(s, 16)
    except ValueError:
        return default
    return f"#{s.upper()}"


@dataclass(frozen=True)
class AppConfig:
    api_key: str = ""
    model_name: str = DEFAULT_MODEL_NAME
    background_color: str = DEFAULT_CANVAS_BG_HEX
    brush_color: str = DEFAULT_BRUSH_HEX
    stroke_width: int = DEFAULT_STROKE_WIDTH
    canvas_height: int = DEFAULT_CANVAS_HEIGHT
    canvas_reserved_px: int = DEFAULT_CANVAS_RESERVED_PX
    log_file: str = DEFAULT_LOG_FILE

    @property
    def is_configured(self) -> bool:
        return bool((self.api_key or "").strip())

    def validate(self) -> None:
        """Fail fast on settings the analysis call cannot work without."""
        if not self.is_configured:
            raise ConfigError("OPENAI_API_KEY is not configured.")
        if not (self.model_name or "").strip():
            raise ConfigError("MODEL_NAME is empty.")


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    env = os.environ if environ is None else environ
    return AppConfig(
        api_key=_setting("OPENAI_API_KEY", "", env),
        model_name=_setting("MODEL_NAME", DEFAULT_MODEL_NAME, env) or DEFAULT_MODEL_NAME,
        background_color=_hex_setting("CANVAS_BG_HEX", DEFAULT_CANVAS_BG_HEX, env),
        brush_color=_hex_setting("BRUSH_HEX", DEFAULT_BRUSH_HEX, env),
        stroke_width=_int_setting("STROKE_WIDTH", DEFAULT_STROKE_WIDTH, env),
        canvas_height=_int_setting("CANVAS_HEIGHT", DEFAULT_CANVAS_HEIGHT, env, lo=120),
        canvas_reserved_px=_int_setting("CANVAS_RESERVED_PX", DEFAULT_CANVAS_RESERVED_PX, env, lo=0),
        log_file=_setting("DOODLE_LENS_LOG_FILE", DEFAULT_LOG_FILE, env) or DEFAULT_LOG_FILE,
    )
