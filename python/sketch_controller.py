"""
Tool controller: routes cell-level gestures and key presses to the active
drawing tool, and exposes the file-level actions (undo, redo, clear,
import, export) a front end binds to its buttons.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from draw_tools import (
    DrawBox,
    DrawErase,
    DrawFreeform,
    DrawFunction,
    DrawLine,
    DrawMove,
    DrawSelect,
    DrawText,
)
from grid_types import Vector
from gridsketch import State

logger = logging.getLogger(__name__)


class Mode(Enum):
    """What the pointer is currently doing."""

    NONE = "none"
    DRAW = "draw"


# Tool name -> factory taking (state, touch_enabled)
TOOLS: dict[str, Callable[[State, bool], DrawFunction]] = {
    "box": lambda state, touch: DrawBox(state),
    "line": lambda state, touch: DrawLine(state, is_arrow=False),
    "arrow": lambda state, touch: DrawLine(state, is_arrow=True),
    "freeform": lambda state, touch: DrawFreeform(state, "X"),
    "erase": lambda state, touch: DrawErase(state),
    "move": lambda state, touch: DrawMove(state, snap=touch),
    "text": lambda state, touch: DrawText(state),
    "select": lambda state, touch: DrawSelect(state),
}


class Controller:
    """Handles user input and modifies state through the active tool."""

    def __init__(self, state: State, touch_enabled: bool = False) -> None:
        self.state = state
        self.touch_enabled = touch_enabled
        self.tool_name = "box"
        self.draw_function: DrawFunction = DrawBox(state)
        self.mode = Mode.NONE
        self.last_move_cell: Vector | None = None

    def select_tool(self, name: str) -> None:
        """Install the named tool, committing anything still in scratch."""
        if name not in TOOLS:
            raise ValueError(
                f"Unknown tool: '{name}'\n"
                f"  Available tools: {', '.join(TOOLS)}"
            )
        self.end_all()
        self.tool_name = name
        self.draw_function = TOOLS[name](self.state, self.touch_enabled)
        self.state.commit()
        logger.debug("select_tool: %s", name)

    def clamp_cell(self, position: Vector) -> Vector:
        """Keep a one cell margin, as drawing needs a full neighbourhood."""
        return Vector(
            min(max(1, position.x), self.state.width - 2),
            min(max(1, position.y), self.state.height - 2),
        )

    def start_draw(self, position: Vector) -> None:
        self.mode = Mode.DRAW
        cell = self.clamp_cell(position)
        self.last_move_cell = cell
        self.draw_function.start(cell)

    def handle_move(self, position: Vector) -> None:
        move_cell = self.clamp_cell(position)

        # Pass moves on to the tool, but drop duplicates
        if self.mode == Mode.DRAW and move_cell != self.last_move_cell:
            self.draw_function.move(move_cell)
        self.last_move_cell = move_cell

    def end_all(self) -> None:
        """End the current gesture, if any."""
        if self.mode == Mode.DRAW:
            self.draw_function.end()
        self.mode = Mode.NONE
        self.last_move_cell = None

    def get_cursor(self, position: Vector) -> str:
        return self.draw_function.get_cursor(self.clamp_cell(position))

    def handle_key(self, value: str) -> None:
        self.draw_function.handle_key(value)

    def undo(self) -> None:
        self.state.undo()

    def redo(self) -> None:
        self.state.redo()

    def clear(self) -> None:
        self.state.clear()

    def import_text(self, text: str, center: Vector) -> None:
        """Replace the diagram with the given text, centered on a cell."""
        self.state.clear()
        self.state.load_text(text, self.clamp_cell(center))
        self.state.commit()

    def export_text(self) -> str:
        return self.state.output_text()
