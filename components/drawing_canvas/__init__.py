import streamlit.components.v1 as components
from pathlib import Path

# Declare the component. Streamlit will serve index.html from this folder.
_component = components.declare_component(
    name="doodle_lens_drawing_canvas",
    path=str(Path(__file__).parent),
)


def drawing_canvas(
    *,
    min_height: int = 320,
    reserved_height: int = 260,
    stroke_width: int = 5,
    stroke_color: str = "#FFFFFF",
    background_color: str = "#000000",
    tool: str = "brush",  # "brush" or "eraser"
    image_data_url: str | None = None,
    ack_nonce: int = 0,
    key: str | None = None,
):
    """A raster canvas sized to the browser viewport that reports raw pointer input.

    - Width follows the Streamlit container. Height is the visible viewport height
      (window.visualViewport, so on-screen keyboards count) minus `reserved_height`,
      never below `min_height`.
    - `image_data_url` is the server-rendered surface to display.
    - `ack_nonce` is the newest entry the page has applied; the browser keeps
      resending later entries until they are acknowledged.

    Returns the latest message, or None before the first one:
      {"entries": [{"nonce": int,
                    "viewport": {"width", "height"},
                    "rect": {"left", "top", "width", "height"},  # at stroke start
                    "brush": {"color", "tool"},
                    "events": [{"type": "mousedown", "clientX", "clientY"} |
                               {"type": "touchmove", "touches": [...], "changedTouches": [...]}, ...]},
                   ...]}
    """
    return _component(
        min_height=int(min_height),
        reserved_height=int(reserved_height),
        stroke_width=int(stroke_width),
        stroke_color=str(stroke_color),
        background_color=str(background_color),
        tool=str(tool),
        image_data_url=image_data_url,
        ack_nonce=int(ack_nonce),
        # iframe height (kept in sync by the frontend via setFrameHeight)
        height=int(min_height),
        key=key,
        default=None,
    )
