import threading
import unittest
from unittest import mock

from ai_analysis import AnalysisResult, analyze_drawing
from canvas_surface import Tool
from config import AppConfig
from drawing_board import UNEXPECTED_ERROR_TEXT, DrawingBoard
from pointer_events import PointerEvent, PointerPhase

CONFIG = AppConfig(api_key="sk-test", background_color="#000000", brush_color="#FFFFFF", stroke_width=5)


class RecordingAnalyzer:
    def __init__(self, result: AnalysisResult):
        self.result = result
        self.calls = []

    def __call__(self, data_url: str, prompt: str) -> AnalysisResult:
        self.calls.append((data_url, prompt))
        return self.result


def _stroke_message(nonce, points, viewport=(40, 40), kind="mouse"):
    events = []
    if kind == "mouse":
        events.append({"type": "mousedown", "clientX": points[0][0], "clientY": points[0][1]})
        events += [{"type": "mousemove", "clientX": x, "clientY": y} for x, y in points[1:]]
        events.append({"type": "mouseup", "clientX": points[-1][0], "clientY": points[-1][1]})
    else:
        events.append({"type": "touchstart", "touches": [{"clientX": points[0][0], "clientY": points[0][1]}]})
        events += [{"type": "touchmove", "touches": [{"clientX": x, "clientY": y}]} for x, y in points[1:]]
        events.append({"type": "touchend", "touches": [], "changedTouches": []})
    return {
        "nonce": nonce,
        "viewport": {"width": viewport[0], "height": viewport[1]},
        "rect": {"left": 0, "top": 0, "width": viewport[0], "height": viewport[1]},
        "events": events,
    }


class DrawingBoardSurfaceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.board = DrawingBoard(CONFIG, analyzer=RecordingAnalyzer(AnalysisResult(True, "ok")))

    def test_operations_before_first_viewport_are_silent_noops(self) -> None:
        self.assertIsNone(self.board.surface)
        self.assertFalse(self.board.submit("what is this?"))
        self.board.clear()
        self.assertFalse(self.board.ingest_canvas_message(None))
        self.assertEqual(self.board.analyzer.calls, [])

    def test_viewport_change_resizes_and_clears(self) -> None:
        self.board.ingest_canvas_message(_stroke_message(1, [(5, 20), (35, 20)]))
        self.assertFalse(self.board.surface.is_blank())

        self.board.on_viewport_change(80, 30)

        self.assertEqual(self.board.surface.size, (80, 30))
        self.assertTrue(self.board.surface.is_blank())

    def test_same_viewport_size_keeps_the_drawing(self) -> None:
        self.board.ingest_canvas_message(_stroke_message(1, [(5, 20), (35, 20)]))
        self.board.on_viewport_change(40, 40)
        self.assertFalse(self.board.surface.is_blank())

    def test_messages_are_applied_once_per_nonce(self) -> None:
        message = _stroke_message(7, [(5, 20), (35, 20)])
        self.assertTrue(self.board.ingest_canvas_message(message))
        self.board.surface.clear()

        self.assertFalse(self.board.ingest_canvas_message(message))
        self.assertTrue(self.board.surface.is_blank())

    def test_touch_message_draws_like_mouse(self) -> None:
        self.board.ingest_canvas_message(_stroke_message(1, [(5, 20), (35, 20)], kind="touch"))
        self.assertEqual(self.board.surface.pixel(20, 20), (255, 255, 255))
        self.assertFalse(self.board.surface.is_drawing)

    def test_eraser_ignores_selected_color(self) -> None:
        self.board.on_viewport_change(40, 40)
        self.board.select_color("#FF0000")
        self.board.select_eraser()

        self.board.ingest_canvas_message(_stroke_message(1, [(5, 20), (35, 20)]))

        self.assertTrue(self.board.surface.is_blank())

    def test_picking_a_color_switches_back_to_brush(self) -> None:
        self.board.select_eraser()
        self.board.select_color("#00FF00")
        self.assertEqual(self.board.tool, Tool.BRUSH)
        self.assertEqual(self.board.brush.color, "#00FF00")

    def test_clear_resets_surface_and_response(self) -> None:
        self.board.ingest_canvas_message(_stroke_message(1, [(5, 5), (35, 35)]))
        self.board.submit("what is this?")
        self.assertEqual(self.board.response, "ok")

        self.board.clear()

        self.assertTrue(self.board.surface.is_blank())
        self.assertEqual(self.board.response, "")
        self.assertIsNone(self.board.last_result)


class DrawingBoardAckTests(unittest.TestCase):
    def setUp(self) -> None:
        self.board = DrawingBoard(CONFIG, analyzer=RecordingAnalyzer(AnalysisResult(True, "ok")))

    def test_one_message_can_carry_several_strokes(self) -> None:
        message = {"entries": [_stroke_message(1, [(5, 10), (35, 10)]), _stroke_message(2, [(5, 30), (35, 30)])]}

        self.assertTrue(self.board.ingest_canvas_message(message))

        self.assertEqual(self.board.surface.pixel(20, 10), (255, 255, 255))
        self.assertEqual(self.board.surface.pixel(20, 30), (255, 255, 255))
        self.assertEqual(self.board.ack_nonce, 2)

    def test_acknowledged_entries_are_skipped_when_resent(self) -> None:
        first = _stroke_message(1, [(5, 10), (35, 10)])
        self.board.ingest_canvas_message({"entries": [first]})
        self.board.surface.clear()

        second = _stroke_message(2, [(5, 30), (35, 30)])
        self.assertTrue(self.board.ingest_canvas_message({"entries": [first, second]}))

        self.assertEqual(self.board.surface.pixel(20, 10), (0, 0, 0))
        self.assertEqual(self.board.surface.pixel(20, 30), (255, 255, 255))
        self.assertEqual(self.board.ack_nonce, 2)
        self.assertFalse(self.board.ingest_canvas_message({"entries": [first, second]}))

    def test_entries_are_applied_in_nonce_order(self) -> None:
        stroke = _stroke_message(2, [(5, 20), (35, 20)])
        resize = {"nonce": 3, "viewport": {"width": 60, "height": 50}, "events": []}

        self.board.ingest_canvas_message({"entries": [resize, stroke]})

        self.assertEqual(self.board.surface.size, (60, 50))
        self.assertTrue(self.board.surface.is_blank())
        self.assertEqual(self.board.ack_nonce, 3)

    def test_viewport_entry_reports_width_and_height(self) -> None:
        self.board.ingest_canvas_message({"entries": [{"nonce": 1, "viewport": {"width": 320, "height": 540}}]})
        self.assertEqual(self.board.surface.size, (320, 540))

        # On-screen keyboard shrinks the visible height.
        self.board.ingest_canvas_message({"entries": [{"nonce": 2, "viewport": {"width": 320, "height": 320}}]})
        self.assertEqual(self.board.surface.size, (320, 320))

    def test_stroke_keeps_the_brush_it_started_with(self) -> None:
        entry = _stroke_message(1, [(5, 20), (35, 20)])
        entry["brush"] = {"color": "#FF0000", "tool": "brush"}
        self.board.select_eraser()

        self.board.ingest_canvas_message({"entries": [entry]})

        self.assertEqual(self.board.surface.pixel(20, 20), (255, 0, 0))
        self.assertTrue(self.board.is_eraser)

    def test_stroke_uses_rect_recorded_at_stroke_start(self) -> None:
        entry = _stroke_message(1, [(15, 120), (45, 120)])
        # Page scrolled after the stroke began; events are relative to the starting rect.
        entry["rect"] = {"left": 10, "top": 100, "width": 40, "height": 40}

        self.board.ingest_canvas_message({"entries": [entry]})

        self.assertEqual(self.board.surface.pixel(20, 20), (255, 255, 255))

    def test_malformed_entries_are_ignored(self) -> None:
        self.assertFalse(self.board.ingest_canvas_message({"entries": "nope"}))
        self.assertFalse(self.board.ingest_canvas_message({"entries": [None, {"nonce": True}, {"nonce": "x"}]}))
        self.assertEqual(self.board.ack_nonce, 0)

    def test_handle_pointer_without_surface_is_a_noop(self) -> None:
        self.board.handle_pointer(PointerEvent(1.0, 1.0, PointerPhase.DOWN))
        self.assertIsNone(self.board.surface)

        self.board.on_viewport_change(40, 40)
        self.board.handle_pointer(PointerEvent(5.0, 20.0, PointerPhase.DOWN))
        self.board.handle_pointer(PointerEvent(35.0, 20.0, PointerPhase.MOVE))
        self.board.handle_pointer(PointerEvent(35.0, 20.0, PointerPhase.UP))
        self.assertEqual(self.board.surface.pixel(20, 20), (255, 255, 255))


class DrawingBoardSubmitTests(unittest.TestCase):
    def test_empty_prompt_never_calls_out_or_changes_response(self) -> None:
        analyzer = RecordingAnalyzer(AnalysisResult(True, "new"))
        board = DrawingBoard(CONFIG, analyzer=analyzer)
        board.on_viewport_change(10, 10)
        board.response = "previous"

        self.assertFalse(board.submit(""))
        self.assertFalse(board.submit("   "))

        self.assertEqual(analyzer.calls, [])
        self.assertEqual(board.response, "previous")

    def test_success_sets_response_to_exact_text(self) -> None:
        analyzer = RecordingAnalyzer(AnalysisResult(True, "A house with a red roof."))
        board = DrawingBoard(CONFIG, analyzer=analyzer)
        board.on_viewport_change(10, 10)

        self.assertTrue(board.submit("What did I draw?"))

        self.assertEqual(board.response, "A house with a red roof.")
        data_url, prompt = analyzer.calls[0]
        self.assertTrue(data_url.startswith("data:image/png;base64,"))
        self.assertEqual(prompt, "What did I draw?")
        self.assertFalse(board.is_loading)

    def test_failure_message_reaches_the_response(self) -> None:
        client = mock.MagicMock()
        client.chat.completions.create.side_effect = RuntimeError("quota exceeded")
        board = DrawingBoard(CONFIG, analyzer=lambda url, p: analyze_drawing(url, p, config=CONFIG, client=client))
        board.on_viewport_change(10, 10)

        with self.assertLogs("doodle_lens", level="ERROR"):
            board.submit("What did I draw?")

        self.assertIn("quota exceeded", board.response)
        self.assertFalse(board.last_result.success)

    def test_unexpected_analyzer_exception_resets_loading(self) -> None:
        def boom(data_url, prompt):
            raise RuntimeError("bug")

        board = DrawingBoard(CONFIG, analyzer=boom)
        board.on_viewport_change(10, 10)

        with self.assertLogs("doodle_lens", level="ERROR"):
            self.assertTrue(board.submit("hello"))

        self.assertEqual(board.response, UNEXPECTED_ERROR_TEXT)
        self.assertFalse(board.is_loading)
        self.assertTrue(board.submit("again"))

    def test_resubmitting_while_in_flight_has_no_effect(self) -> None:
        started = threading.Event()
        release = threading.Event()
        calls = []

        def slow(data_url, prompt):
            calls.append(prompt)
            started.set()
            release.wait(5)
            return AnalysisResult(True, "done")

        board = DrawingBoard(CONFIG, analyzer=slow)
        board.on_viewport_change(10, 10)
        worker = threading.Thread(target=board.submit, args=("first",))
        worker.start()
        try:
            self.assertTrue(started.wait(5))
            self.assertTrue(board.is_loading)
            self.assertFalse(board.submit("second"))
        finally:
            release.set()
            worker.join(5)

        self.assertEqual(calls, ["first"])
        self.assertEqual(board.response, "done")
        self.assertFalse(board.is_loading)

    def test_default_analyzer_uses_board_config(self) -> None:
        board = DrawingBoard(AppConfig(api_key=""))
        board.on_viewport_change(10, 10)

        with self.assertLogs("doodle_lens", level="ERROR"):
            board.submit("hello")

        self.assertIn("OPENAI_API_KEY", board.response)
        self.assertIsInstance(board.last_result, AnalysisResult)


if __name__ == "__main__":
    unittest.main()
