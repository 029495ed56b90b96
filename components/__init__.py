from components.drawing_canvas import drawing_canvas

__all__ = ["drawing_canvas"]
