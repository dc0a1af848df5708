"""
Test suite for the keyboard editor, driven without a terminal.
"""

import readchar
from rich.panel import Panel

from grid_types import Vector
from gridsketch import GridConfig, State
from interactive_demo import InteractiveDemo
from sketch_controller import Mode


def make_demo() -> InteractiveDemo:
    return InteractiveDemo(State(GridConfig(width=20, height=10)))


def press(demo: InteractiveDemo, *keys: str) -> None:
    for key in keys:
        assert demo.handle_key(key)


class TestInteractiveDemo:
    """Tests for key handling in the interactive editor."""

    def test_starts_in_center(self) -> None:
        demo = make_demo()
        assert demo.cursor == Vector(10, 5)
        assert demo.controller.tool_name == "box"

    def test_draw_line_and_export(self) -> None:
        demo = make_demo()
        press(demo, "l", readchar.key.SPACE)
        assert demo.controller.mode == Mode.DRAW
        press(demo, readchar.key.RIGHT, readchar.key.RIGHT, readchar.key.RIGHT)
        press(demo, readchar.key.SPACE, "x")
        assert demo.controller.mode == Mode.NONE
        assert demo.exported == "+--+\n"

    def test_undo_redo_keys(self) -> None:
        demo = make_demo()
        press(demo, readchar.key.SPACE, readchar.key.DOWN, readchar.key.RIGHT, readchar.key.SPACE)
        assert demo.state.output_text() == "++\n++\n"

        press(demo, "u")
        assert demo.state.output_text() == ""
        press(demo, readchar.key.CTRL_Y)
        assert demo.state.output_text() == "++\n++\n"
        press(demo, readchar.key.CTRL_Z, "r")
        assert demo.state.output_text() == "++\n++\n"

    def test_typing_text(self) -> None:
        demo = make_demo()
        press(demo, "t", readchar.key.SPACE)
        assert demo.typing
        # Tool and command keys are typed while in text entry
        press(demo, "q", "u", readchar.key.ENTER, "x", readchar.key.BACKSPACE, "y")
        press(demo, readchar.key.ESC)
        assert not demo.typing
        assert demo.state.output_text(committed_only=True) == "qu\ny\n"

    def test_escape_forgets_caret(self) -> None:
        demo = make_demo()
        press(demo, "t", readchar.key.SPACE, "h", "i", readchar.key.ESC)
        # An unbound key afterwards must not retype the finished text
        press(demo, "z")
        assert demo.state.output_text() == "hi\n"
        assert demo.state.output_text(committed_only=True) == "hi\n"
        assert demo.state.pending_edits == []

    def test_cursor_is_clamped(self) -> None:
        demo = make_demo()
        press(demo, *[readchar.key.LEFT] * 15, *[readchar.key.UP] * 15)
        assert demo.cursor == Vector(1, 1)

    def test_clear(self) -> None:
        demo = make_demo()
        press(demo, "f", readchar.key.SPACE, readchar.key.SPACE, "c")
        assert demo.state.output_text() == ""
        press(demo, "u")
        assert demo.state.output_text() == "X\n"

    def test_toggle_lines(self) -> None:
        demo = make_demo()
        press(demo, "g")
        assert demo.use_lines
        press(demo, "G")
        assert not demo.use_lines

    def test_quit(self) -> None:
        demo = make_demo()
        assert not demo.handle_key("q")

    def test_generate_display(self) -> None:
        demo = make_demo()
        press(demo, "x")
        assert isinstance(demo.generate_display(), Panel)
