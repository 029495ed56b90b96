import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

import streamlit as st
from openai import OpenAI

from ai_analysis import AnalysisResult, analyze_drawing, get_client
from components import drawing_canvas
from components.ui import inject_styles, render_page_header, render_response_panel
from config import AppConfig, load_config
from drawing_board import DrawingBoard
from utils.logging_utils import setup_logging

CONFIG = load_config()
LOGGER = setup_logging(CONFIG.log_file)

# =========================
# --- PAGE CONFIG ---
# =========================
st.set_page_config(
    page_title="Doodle Lens",
    page_icon="🎨",
    layout="wide",
)

CANVAS_KEY = "drawing_canvas"
PROMPT_KEY = "prompt_input"

# =========================
# --- OPENAI CLIENT (CACHED) ---
# =========================
client: Optional[OpenAI] = None
AI_READY = False
if CONFIG.is_configured:
    try:
        client = get_client(CONFIG.api_key)
        AI_READY = True
    except Exception as e:
        LOGGER.error("OpenAI client init failed", extra={"ctx": {"component": "openai", "error": type(e).__name__}})


def _make_analyzer(config: AppConfig, api: Optional[OpenAI]) -> Callable[[str, str], AnalysisResult]:
    # Resolve the client here; the worker thread must not touch Streamlit caches.
    def _analyze(data_url: str, prompt: str) -> AnalysisResult:
        return analyze_drawing(data_url, prompt, config=config, client=api)

    return _analyze


# =========================
# --- SESSION STATE ---
# =========================
def _ss_init(k: str, v):
    if k not in st.session_state:
        st.session_state[k] = v


_ss_init("board", DrawingBoard(CONFIG, analyzer=_make_analyzer(CONFIG, client)))
board: DrawingBoard = st.session_state["board"]
_ss_init("brush_color", board.color)

# ============================================================
# PROGRESS INDICATORS
# ============================================================
def _run_ai_with_progress(task_fn, est_seconds: float = 8.0):
    with st.status("Analyzing…", expanded=False) as status:
        progress = st.progress(0)
        start = time.monotonic()

        with ThreadPoolExecutor(max_workers=1) as ex:
            fut = ex.submit(task_fn)
            while not fut.done():
                elapsed = time.monotonic() - start
                frac = min(0.95, max(0.02, elapsed / max(1e-6, est_seconds)))
                progress.progress(int(frac * 100))
                time.sleep(0.12)

            result = fut.result()

        progress.progress(100)
        status.update(label="✓ Done", state="complete", expanded=False)

    return result

# ============================================================
# CALLBACKS
# ============================================================
def _on_color_change():
    board.select_color(st.session_state["brush_color"])


def _on_clear():
    board.clear()


# ============================================================
# PAGE
# ============================================================
inject_styles()
render_page_header("Doodle Lens", "Draw something, then ask about it.")

if not AI_READY:
    st.warning("⚠️ OpenAI API Key missing or invalid in Streamlit Secrets or the environment. Analysis requests will fail.")

# --- Top controls ---
tool_row = st.columns([0.6, 1, 1, 1, 4])
with tool_row[0]:
    st.color_picker(
        "Color",
        key="brush_color",
        on_change=_on_color_change,
        label_visibility="collapsed",
    )
tool_row[1].button(
    "Eraser",
    icon=":material/ink_eraser:",
    type="primary" if board.is_eraser else "secondary",
    on_click=board.select_eraser,
    use_container_width=True,
    key="tool_eraser",
)
tool_row[2].button(
    "Brush",
    icon=":material/brush:",
    type="secondary" if board.is_eraser else "primary",
    on_click=board.select_brush,
    use_container_width=True,
    key="tool_brush",
)
tool_row[3].button("Clear", on_click=_on_clear, use_container_width=True, key="tool_clear")

# --- Canvas ---
# Apply the component's last message before rendering so the image is current.
board.ingest_canvas_message(st.session_state.get(CANVAS_KEY))
drawing_canvas(
    min_height=CONFIG.canvas_height,
    reserved_height=CONFIG.canvas_reserved_px,
    stroke_width=CONFIG.stroke_width,
    stroke_color=board.color,
    background_color=CONFIG.background_color,
    tool=board.tool.value,
    image_data_url=board.surface.to_data_url() if board.surface is not None else None,
    ack_nonce=board.ack_nonce,
    key=CANVAS_KEY,
)

# --- Bottom controls ---
prompt_row = st.columns([5, 1])
with prompt_row[0]:
    prompt = st.text_input(
        "Prompt",
        key=PROMPT_KEY,
        placeholder="Ask about your drawing...",
        label_visibility="collapsed",
    )
with prompt_row[1]:
    submitted = st.button(
        "Analyzing..." if board.is_loading else "Submit",
        disabled=board.is_loading,
        use_container_width=True,
        key="submit_btn",
    )

if submitted and prompt:
    _run_ai_with_progress(lambda: board.submit(prompt))

if board.is_loading:
    st.caption("A previous request is still running; its reply will appear here when it arrives.")

render_response_panel(
    board.response,
    success=board.last_result.success if board.last_result is not None else True,
)
