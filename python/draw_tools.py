"""
Drawing tools operating on a diagram State.

Each tool receives start/move/end calls for a pointer gesture (already
converted to grid cells) plus key presses, and edits the state through its
scratch/commit API. The move tool reconstructs the shape under the pointer
by walking the grid, since no shape objects exist.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from grid_types import (
    ALT_SPECIAL_VALUE,
    ALT_SPECIAL_VALUES,
    DIAGONALS,
    DIRECTIONS,
    ERASE_CHAR,
    KEY_BACKSPACE,
    KEY_COPY,
    KEY_CUT,
    KEY_PASTE,
    KEY_RETURN,
    SPECIAL_VALUE,
    Box,
    MappedValue,
    Vector,
)
from gridsketch import State

logger = logging.getLogger(__name__)


def draw_line(
    state: State,
    start: Vector,
    end: Vector,
    clockwise: bool,
    value: str = SPECIAL_VALUE,
) -> None:
    """
    Draw a right-angled line between two cells as scratch edits.

    Args:
        state: The diagram state
        start: First endpoint
        end: Second endpoint
        clockwise: True to run along start's row first and bend at end's
            column, False to run along start's column first
        value: Marker to draw; the erase marker leaves crossing lines intact
    """
    erasing = value in (ERASE_CHAR, " ")
    box = Box.from_corners(start, end)
    mid_x = end.x if clockwise else start.x
    mid_y = start.y if clockwise else end.y

    for x in range(box.start_x + 1, box.end_x + 1):
        position = Vector(x, mid_y)
        context = state.get_context(position)
        # Don't erase any lines that we cross
        if not erasing or not (context.up and context.down):
            state.draw_incremental(position, value)
    for y in range(box.start_y + 1, box.end_y + 1):
        position = Vector(mid_x, y)
        context = state.get_context(position)
        if not erasing or not (context.left and context.right):
            state.draw_incremental(position, value)

    state.draw(start, value)
    state.draw(end, value)
    state.draw(Vector(mid_x, mid_y), value)


class DrawFunction:
    """Common interface for drawing tools."""

    def __init__(self, state: State) -> None:
        self.state = state

    def start(self, position: Vector) -> None:
        """Start of a gesture."""

    def move(self, position: Vector) -> None:
        """Gesture moved to a new cell."""

    def end(self) -> None:
        """End of a gesture."""

    def get_cursor(self, position: Vector) -> str:
        return "crosshair"

    def handle_key(self, value: str) -> None:
        """A key was pressed: a single character or one of the KEY_* names."""


class DrawBox(DrawFunction):
    """Rubber-band box from the gesture start to the current cell."""

    def __init__(self, state: State) -> None:
        super().__init__(state)
        self.start_position: Vector | None = None
        self.end_position: Vector | None = None

    def start(self, position: Vector) -> None:
        self.start_position = position

    def move(self, position: Vector) -> None:
        if self.start_position is None:
            return
        self.end_position = position
        self.state.clear_draw()
        draw_line(self.state, self.start_position, position, True)
        draw_line(self.state, self.start_position, position, False)

    def end(self) -> None:
        self.state.commit()


class DrawLine(DrawFunction):
    """Right-angled line, optionally ending in an arrow."""

    def __init__(self, state: State, is_arrow: bool = False) -> None:
        super().__init__(state)
        self.is_arrow = is_arrow
        self.start_position: Vector | None = None

    def start(self, position: Vector) -> None:
        self.start_position = position

    def move(self, position: Vector) -> None:
        if self.start_position is None:
            return
        self.state.clear_draw()

        # Bend so that the line meets existing lines head on
        start_context = self.state.get_context(self.start_position)
        end_context = self.state.get_context(position)
        clockwise = (start_context.up and start_context.down) or (
            end_context.left and end_context.right
        )

        draw_line(self.state, self.start_position, position, clockwise)
        if self.is_arrow:
            self.state.draw(position, ALT_SPECIAL_VALUE)

    def end(self) -> None:
        self.state.commit()


class DrawFreeform(DrawFunction):
    """Paints a single character under the pointer."""

    def __init__(self, state: State, value: str = "X") -> None:
        super().__init__(state)
        self.value = value

    def start(self, position: Vector) -> None:
        self.state.draw(position, self.value)

    def move(self, position: Vector) -> None:
        self.state.draw(position, self.value)

    def end(self) -> None:
        self.state.commit()

    def handle_key(self, value: str) -> None:
        if len(value) == 1:
            self.value = value


class DrawErase(DrawFunction):
    """Erases the rectangle spanned by the gesture."""

    def __init__(self, state: State) -> None:
        super().__init__(state)
        self.start_position: Vector | None = None
        self.end_position: Vector | None = None

    def start(self, position: Vector) -> None:
        self.start_position = position
        self.move(position)

    def move(self, position: Vector) -> None:
        if self.start_position is None:
            return
        self.state.clear_draw()
        self.end_position = position
        box = Box.from_corners(self.start_position, position)
        for x in range(box.start_x, box.end_x + 1):
            for y in range(box.start_y, box.end_y + 1):
                self.state.draw(Vector(x, y), ERASE_CHAR)

    def end(self) -> None:
        self.state.commit()


class DrawText(DrawFunction):
    """
    Places a caret on click, then draws typed text from it.

    The typed text stays in scratch until something else commits, normally
    the controller switching tool or the next text placement.
    """

    def __init__(self, state: State) -> None:
        super().__init__(state)
        self.start_position: Vector | None = None
        self.end_position: Vector | None = None
        self.text = ""

    def start(self, position: Vector) -> None:
        self.state.commit()
        self.text = ""
        self.start_position = position
        # Highlights the starting cell
        current_value = self.state.get_cell(position).raw_value
        self.state.draw(position, ERASE_CHAR if current_value is None else current_value)

    def end(self) -> None:
        if self.start_position is not None:
            self.end_position = self.start_position
            self.start_position = None

    def get_cursor(self, position: Vector) -> str:
        return "pointer"

    def handle_key(self, value: str) -> None:
        if self.end_position is None:
            return
        if value == KEY_BACKSPACE:
            self.text = self.text[:-1]
        elif value == KEY_RETURN:
            self.text += "\n"
        elif len(value) == 1:
            self.text += value
        else:
            return

        self.state.clear_draw()
        x, y = 0, 0
        for char in self.text:
            if char == "\n":
                y += 1
                x = 0
                continue
            position = self.end_position + Vector(x, y)
            if self.state.in_margin(position):
                self.state.draw(position, char)
            x += 1


class DrawSelect(DrawFunction):
    """
    Rectangular selection supporting drag-to-move, copy, cut and paste.

    The selected area is shown by redrawing its cells as scratch values; the
    clipboard is a list of (offset from the selection's top-left, value).
    """

    def __init__(self, state: State) -> None:
        super().__init__(state)
        self.start_position: Vector | None = None
        self.end_position: Vector | None = None
        self.drag_start: Vector | None = None
        self.drag_end: Vector | None = None
        self.finished = True
        self.selected_cells: list[MappedValue] = []

    def has_selection(self) -> bool:
        return self.start_position is not None and self.end_position is not None

    def get_selected_box(self) -> Box | None:
        if self.start_position is None or self.end_position is None:
            return None
        return Box.from_corners(self.start_position, self.end_position)

    def erase_selected(self) -> None:
        box = self.get_selected_box()
        if box is None:
            return
        eraser = DrawErase(self.state)
        eraser.start(box.top_left())
        eraser.move(box.bottom_right())

    def start(self, position: Vector) -> None:
        box = self.get_selected_box()
        if box is not None and box.contains(position):
            # Dragging the existing selection
            self.drag_start = position
            self.copy_area()
            self.drag_move(position)
        else:
            self.start_position = position
            self.end_position = None
            self.finished = False
            self.move(position)

    def copy_area(self) -> None:
        box = self.get_selected_box()
        if box is None:
            return
        top_left = box.top_left()
        self.selected_cells = [
            (position - top_left, cell.raw_value)
            for position, cell in self.state.pending_edits
            if cell.raw_value is not None and cell.raw_value != ERASE_CHAR
        ]
        logger.debug("copy_area: %d cells", len(self.selected_cells))

    def move(self, position: Vector) -> None:
        if self.drag_start is not None:
            self.drag_move(position)
            return
        if self.finished or self.start_position is None:
            return

        self.end_position = position
        self.state.clear_draw()
        box = Box.from_corners(self.start_position, position)
        for x in range(box.start_x, box.end_x + 1):
            for y in range(box.start_y, box.end_y + 1):
                current = Vector(x, y)
                current_value = self.state.get_cell(current).raw_value
                self.state.draw(current, ERASE_CHAR if current_value is None else current_value)

    def drag_move(self, position: Vector) -> None:
        box = self.get_selected_box()
        if self.drag_start is None or box is None:
            return
        self.drag_end = position
        self.state.clear_draw()
        self.erase_selected()
        self.draw_selected(self.drag_end - self.drag_start + box.top_left())

    def draw_selected(self, start_position: Vector) -> None:
        # Cells landing outside the drawable area are dropped
        for offset, value in self.selected_cells:
            position = offset + start_position
            if self.state.in_margin(position):
                self.state.draw(position, value)

    def end(self) -> None:
        if self.drag_start is not None:
            self.state.commit()
            self.start_position = None
            self.end_position = None
        self.drag_start = None
        self.drag_end = None
        self.finished = True

    def get_cursor(self, position: Vector) -> str:
        box = self.get_selected_box()
        if box is not None and box.contains(position):
            return "pointer"
        return "default"

    def handle_key(self, value: str) -> None:
        if self.has_selection():
            if value in (KEY_COPY, KEY_CUT):
                self.copy_area()
            if value == KEY_CUT:
                self.erase_selected()
                self.state.commit()
        if value == KEY_PASTE and self.start_position is not None:
            self.draw_selected(self.start_position)
            self.state.commit()


# =============================================================================
# Shape Reshaping
# =============================================================================


@dataclass(frozen=True)
class ShapeEnd:
    """
    A far end of a shape segment reachable from a move start point.

    The segment runs from the start along one axis to midpoint (when the
    shape turns a corner) and then on to position. Arrow flags record which
    of the three points carried an arrow so it can be restored after moving.
    """

    position: Vector
    clockwise: bool  # Horizontal run first
    midpoint: Vector | None = None
    start_is_arrow: bool = False
    midpoint_is_arrow: bool = False
    end_is_arrow: bool = False


class MoveState(Enum):
    """Phase of a move gesture."""

    IDLE = "idle"
    TRACING = "tracing"
    REDRAWING = "redrawing"


def follow_line(state: State, start: Vector, direction: Vector) -> list[Vector]:
    """
    Follow a line from start in the given direction.

    Returns the line 'junctions' passed along the way: cells where a side
    T-junction meets the line, plus the last structural cell before the line
    ends (a corner, end T-junction or dead end). A line that goes nowhere
    yields no junctions.

    Args:
        state: The diagram state
        start: Cell to start walking from (not itself reported)
        direction: One of DIRECTIONS

    Returns:
        Junction positions in walk order
    """
    end_position = start
    junctions: list[Vector] = []
    while True:
        next_end = end_position + direction
        if not state.in_margin(next_end) or not state.get_cell(next_end).is_special():
            if end_position != start:
                junctions.append(end_position)
            return junctions

        end_position = next_end
        if state.get_context(end_position).sum() == 3:
            junctions.append(end_position)


def _is_arrow(state: State, position: Vector) -> bool:
    return state.get_cell(position).raw_value in ALT_SPECIAL_VALUES


def find_shape_ends(state: State, start: Vector) -> list[ShapeEnd]:
    """
    Find the far ends of every line segment attached to start.

    From each junction found along the four directions, either the junction
    is itself a dead end, or the walk turns once (never straight on or back)
    to find the segment's far end. Moving start then means redrawing every
    segment from the new start to these ends.

    Returns:
        Discovered ends; empty when start is not structural or isolated
    """
    if not state.get_cell(start).is_special():
        return []

    start_is_arrow = _is_arrow(state, start)
    ends: list[ShapeEnd] = []
    for direction in DIRECTIONS:
        clockwise = direction.x != 0
        for midpoint in follow_line(state, start, direction):
            midpoint_is_arrow = _is_arrow(state, midpoint)

            # A straight line with no turns
            if state.get_context(midpoint).sum() == 1:
                ends.append(
                    ShapeEnd(
                        position=midpoint,
                        clockwise=clockwise,
                        start_is_arrow=start_is_arrow,
                        end_is_arrow=midpoint_is_arrow,
                    )
                )
                continue

            for turn in DIRECTIONS:
                if turn == direction or turn == direction.scale(-1):
                    continue
                second_ends = follow_line(state, midpoint, turn)
                if not second_ends:
                    continue
                # Only the first junction of the second leg matters
                second_end = second_ends[0]
                ends.append(
                    ShapeEnd(
                        position=second_end,
                        clockwise=clockwise,
                        midpoint=midpoint,
                        start_is_arrow=start_is_arrow,
                        midpoint_is_arrow=midpoint_is_arrow,
                        end_is_arrow=_is_arrow(state, second_end),
                    )
                )
    return ends


def snap_to_nearest(state: State, position: Vector) -> Vector:
    """
    Find the most connected structural cell at or next to position.

    Looks one cell in each direction including diagonally; returns position
    unchanged when it is already structural or nothing nearby qualifies.
    """
    if state.get_cell(position).is_special():
        return position

    best_position = position
    best_context_sum = 0
    for direction in DIRECTIONS + DIAGONALS:
        candidate = position + direction
        if not state.in_margin(candidate) or not state.get_cell(candidate).is_special():
            continue
        context_sum = state.get_context(candidate).sum()
        if context_sum > best_context_sum:
            best_position = candidate
            best_context_sum = context_sum
    return best_position


class DrawMove(DrawFunction):
    """
    Drags a line end, corner or box edge, resizing the attached shape.

    At gesture start the shape is traced from the grid (find_shape_ends);
    every move erases the traced segments and redraws them from the new
    position, restoring any arrows; the gesture end commits once.
    """

    def __init__(self, state: State, snap: bool = False) -> None:
        super().__init__(state)
        self.snap = snap
        self.start_position: Vector | None = None
        self.ends: list[ShapeEnd] = []
        self.phase = MoveState.IDLE

    def start(self, position: Vector) -> None:
        self.phase = MoveState.TRACING
        self.start_position = snap_to_nearest(self.state, position) if self.snap else position
        self.ends = find_shape_ends(self.state, self.start_position)
        logger.debug(
            "move start at (%d, %d): %d ends",
            self.start_position.x,
            self.start_position.y,
            len(self.ends),
        )
        # Redraw the new lines after we have cleared the existing ones
        self.move(self.start_position)

    def move(self, position: Vector) -> None:
        if self.start_position is None:
            return
        self.phase = MoveState.REDRAWING
        self.state.clear_draw()
        for shape_end in self.ends:
            draw_line(self.state, self.start_position, shape_end.position, shape_end.clockwise, ERASE_CHAR)
        for shape_end in self.ends:
            draw_line(self.state, position, shape_end.position, shape_end.clockwise)
        for shape_end in self.ends:
            if shape_end.start_is_arrow:
                self.state.draw(position, ALT_SPECIAL_VALUE)
            if shape_end.end_is_arrow:
                self.state.draw(shape_end.position, ALT_SPECIAL_VALUE)
            if shape_end.midpoint_is_arrow:
                mid_x = shape_end.position.x if shape_end.clockwise else position.x
                mid_y = position.y if shape_end.clockwise else shape_end.position.y
                self.state.draw(Vector(mid_x, mid_y), ALT_SPECIAL_VALUE)

    def end(self) -> None:
        self.state.commit()
        self.start_position = None
        self.ends = []
        self.phase = MoveState.IDLE

    def get_cursor(self, position: Vector) -> str:
        if self.state.get_cell(position).is_special():
            return "pointer"
        return "default"
