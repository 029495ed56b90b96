import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import streamlit as st
from openai import OpenAI

from config import AppConfig, load_config
from image_utils import PNG_MIME, strip_data_url_prefix
from utils.logging_utils import LOGGER_NAME

LOGGER = logging.getLogger(LOGGER_NAME)

FALLBACK_ERROR_TEXT = "Please try again."


@dataclass(frozen=True)
class AnalysisResult:
    success: bool
    text: str


@st.cache_resource
def get_client(api_key: str) -> OpenAI:
    return OpenAI(api_key=api_key)


def build_content_parts(prompt: str, image_b64: str, mime_type: str = PNG_MIME) -> List[Dict[str, Any]]:
    """Prompt first, then the inline image."""
    return [
        {"type": "text", "text": prompt},
        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_b64}"}},
    ]


def _extract_text(response: Any) -> str:
    try:
        raw = response.choices[0].message.content
    except (AttributeError, IndexError, TypeError) as e:
        raise ValueError(f"Malformed response from AI ({type(e).__name__}).") from e
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError("Empty response from AI.")
    return raw


def failure_text(error: Optional[BaseException]) -> str:
    detail = str(error).strip() if error is not None else ""
    return f"Failed to analyze drawing: {detail or FALLBACK_ERROR_TEXT}"


def analyze_drawing(
    image_data_url: str,
    prompt: str,
    *,
    config: Optional[AppConfig] = None,
    client: Optional[OpenAI] = None,
) -> AnalysisResult:
    """Send the canvas snapshot and prompt to the model in a single request.

    Never raises: any failure, including a missing API key, comes back as
    ``AnalysisResult(success=False, text=...)`` with the error description.
    """
    cfg = config or load_config()
    try:
        cfg.validate()
        image_b64 = strip_data_url_prefix(image_data_url)
        if not image_b64:
            raise ValueError("No image data received.")
        api = client or get_client(cfg.api_key)
        response = api.chat.completions.create(
            model=cfg.model_name,
            messages=[{"role": "user", "content": build_content_parts(prompt, image_b64)}],
        )
        text = _extract_text(response)
        LOGGER.info(
            "Drawing analyzed",
            extra={"ctx": {"component": "openai", "model": cfg.model_name, "chars": len(text)}},
        )
        return AnalysisResult(success=True, text=text)
    except Exception as e:
        LOGGER.error(
            "Error analyzing drawing",
            extra={"ctx": {"component": "openai", "error": type(e).__name__, "detail": str(e)[:200]}},
        )
        return AnalysisResult(success=False, text=failure_text(e))
