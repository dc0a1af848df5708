"""
Test suite for the tool controller.
"""

import pytest

from draw_tools import DrawFunction, DrawLine, DrawMove
from grid_types import Vector
from gridsketch import GridConfig, State
from sketch_controller import TOOLS, Controller, Mode

SMALL = GridConfig(width=20, height=10)

BOX_TEXT = "+---+\n|   |\n+---+\n"


class RecordingTool(DrawFunction):
    """Records the calls a controller makes."""

    def __init__(self, state: State) -> None:
        super().__init__(state)
        self.calls: list[tuple[str, Vector | None]] = []

    def start(self, position: Vector) -> None:
        self.calls.append(("start", position))

    def move(self, position: Vector) -> None:
        self.calls.append(("move", position))

    def end(self) -> None:
        self.calls.append(("end", None))


class TestToolSelection:
    """Tests for installing tools."""

    def test_default_tool_is_box(self) -> None:
        controller = Controller(State(SMALL))
        assert controller.tool_name == "box"
        assert controller.mode == Mode.NONE

    def test_every_tool_installs(self) -> None:
        controller = Controller(State(SMALL))
        for name in TOOLS:
            controller.select_tool(name)
            assert controller.tool_name == name

    def test_select_line(self) -> None:
        controller = Controller(State(SMALL))
        controller.select_tool("arrow")
        assert isinstance(controller.draw_function, DrawLine)
        assert controller.draw_function.is_arrow

    def test_unknown_tool_raises(self) -> None:
        controller = Controller(State(SMALL))
        with pytest.raises(ValueError, match="Unknown tool: 'circle'"):
            controller.select_tool("circle")
        assert controller.tool_name == "box"

    def test_switching_commits_typed_text(self) -> None:
        state = State(SMALL)
        controller = Controller(state)
        controller.select_tool("text")
        controller.start_draw(Vector(2, 2))
        controller.end_all()
        controller.handle_key("h")
        controller.handle_key("i")
        assert state.output_text(committed_only=True) == ""

        controller.select_tool("box")
        assert state.output_text(committed_only=True) == "hi\n"

    def test_touch_enables_snapping(self) -> None:
        controller = Controller(State(SMALL), touch_enabled=True)
        controller.select_tool("move")
        assert isinstance(controller.draw_function, DrawMove)
        assert controller.draw_function.snap


class TestGestures:
    """Tests for routing pointer gestures."""

    def test_clamp_keeps_margin(self) -> None:
        controller = Controller(State(SMALL))
        assert controller.clamp_cell(Vector(0, 0)) == Vector(1, 1)
        assert controller.clamp_cell(Vector(25, 15)) == Vector(18, 8)
        assert controller.clamp_cell(Vector(5, 5)) == Vector(5, 5)

    def test_draw_box(self) -> None:
        state = State(SMALL)
        controller = Controller(state)
        controller.start_draw(Vector(2, 2))
        assert controller.mode == Mode.DRAW
        controller.handle_move(Vector(6, 4))
        controller.end_all()
        assert controller.mode == Mode.NONE
        assert state.output_text() == BOX_TEXT

    def test_positions_are_clamped(self) -> None:
        state = State(SMALL)
        controller = Controller(state)
        controller.select_tool("freeform")
        controller.start_draw(Vector(-3, 0))
        controller.end_all()
        assert state.get_cell(Vector(1, 1)).value == "X"

    def test_duplicate_moves_dropped(self) -> None:
        controller = Controller(State(SMALL))
        tool = RecordingTool(controller.state)
        controller.draw_function = tool

        controller.start_draw(Vector(2, 2))
        controller.handle_move(Vector(2, 2))
        controller.handle_move(Vector(3, 2))
        controller.handle_move(Vector(3, 2))
        controller.handle_move(Vector(30, 2))
        controller.handle_move(Vector(19, 2))
        controller.end_all()

        assert tool.calls == [
            ("start", Vector(2, 2)),
            ("move", Vector(3, 2)),
            ("move", Vector(18, 2)),
            ("end", None),
        ]

    def test_moves_ignored_when_not_drawing(self) -> None:
        controller = Controller(State(SMALL))
        tool = RecordingTool(controller.state)
        controller.draw_function = tool
        controller.handle_move(Vector(3, 3))
        controller.end_all()
        assert tool.calls == []

    def test_get_cursor(self) -> None:
        controller = Controller(State(SMALL))
        assert controller.get_cursor(Vector(3, 3)) == "crosshair"
        controller.select_tool("select")
        assert controller.get_cursor(Vector(3, 3)) == "default"


class TestFileActions:
    """Tests for undo, redo, clear, import and export."""

    def drawn(self) -> Controller:
        controller = Controller(State(SMALL))
        controller.start_draw(Vector(2, 2))
        controller.handle_move(Vector(6, 4))
        controller.end_all()
        return controller

    def test_undo_redo(self) -> None:
        controller = self.drawn()
        controller.undo()
        assert controller.export_text() == ""
        controller.redo()
        assert controller.export_text() == BOX_TEXT

    def test_clear(self) -> None:
        controller = self.drawn()
        controller.clear()
        assert controller.export_text() == ""
        controller.undo()
        assert controller.export_text() == BOX_TEXT

    def test_import_replaces_diagram(self) -> None:
        controller = self.drawn()
        controller.import_text("+--->\n", Vector(10, 5))
        assert controller.export_text() == "+--->\n"
        assert controller.state.get_cell(Vector(7, 4)).value == "+"
        assert controller.state.get_cell(Vector(2, 2)).is_empty()

    def test_import_is_clamped(self) -> None:
        """Text centred near the edge loses what falls outside the drawable area."""
        controller = Controller(State(SMALL))
        controller.import_text("ab", Vector(0, 5))
        assert controller.state.get_cell(Vector(0, 4)).is_empty()
        assert controller.state.get_cell(Vector(1, 4)).value == "b"
        assert controller.export_text() == "b\n"


class TestTouchMove:
    """Tests for the snapping move tool at the grid edge."""

    def test_start_outside_grid_on_blank_diagram(self) -> None:
        state = State(SMALL)
        controller = Controller(state, touch_enabled=True)
        controller.select_tool("move")
        controller.start_draw(Vector(100, 100))
        controller.handle_move(Vector(-5, 100))
        controller.end_all()
        assert state.output_text() == ""
        assert len(state.undo_states) == 0

    def test_snaps_in_corner(self) -> None:
        state = State(SMALL)
        controller = Controller(state)
        controller.start_draw(Vector(15, 6))
        controller.handle_move(Vector(17, 8))
        controller.end_all()

        controller = Controller(state, touch_enabled=True)
        controller.select_tool("move")
        controller.start_draw(Vector(100, 100))
        controller.handle_move(Vector(12, 3))
        controller.end_all()
        assert state.output_text() == "+--+\n|  |\n|  |\n+--+\n"
