from __future__ import annotations

import html
from dataclasses import dataclass

import streamlit as st


@dataclass(frozen=True)
class StatusTone:
    name: str
    icon: str


STATUS_TONES = {
    "info": StatusTone("info", "ℹ️"),
    "success": StatusTone("success", "✅"),
    "warning": StatusTone("warning", "⚠️"),
    "error": StatusTone("error", "🚨"),
}


def _tone(kind: str) -> StatusTone:
    return STATUS_TONES.get(kind, STATUS_TONES["info"])


PAGE_CSS = """
<style>
  .stApp { background: #000000; }
  .dl-toolbar, .dl-panel {
    background: #18181b; border-radius: 10px; padding: 0.6rem 0.9rem;
    box-shadow: 0 6px 18px rgba(0, 0, 0, 0.45);
  }
  .dl-hero h1 { color: #fafafa; font-size: 1.4rem; margin: 0 0 0.4rem 0; }
  .dl-hero p { color: #a1a1aa; margin: 0; }
  .dl-response {
    margin-top: 0.75rem; padding: 0.75rem; border-radius: 8px; background: #27272a;
    color: #d4d4d8; font-size: 0.9rem; white-space: pre-wrap;
  }
  .dl-response-error { border-left: 3px solid #f87171; }
  .dl-response-success { border-left: 3px solid #a1a1aa; }
</style>
"""


def inject_styles() -> None:
    st.markdown(PAGE_CSS, unsafe_allow_html=True)


def render_page_header(title: str, subtitle: str | None = None) -> None:
    subtitle_html = f"<p>{subtitle}</p>" if subtitle else ""
    st.markdown(
        f"<div class='dl-hero'><h1>{title}</h1>{subtitle_html}</div>",
        unsafe_allow_html=True,
    )


def render_response_panel(text: str, *, success: bool = True) -> None:
    """Show the model reply (or failure message) verbatim below the prompt."""
    if not text:
        return
    tone = _tone("success" if success else "error")
    body = html.escape(text)
    prefix = "" if success else f"{tone.icon} "
    # st.html skips Markdown parsing so the reply is shown as-is.
    st.html(f"<div class='dl-response dl-response-{tone.name}'>{prefix}{body}</div>")
