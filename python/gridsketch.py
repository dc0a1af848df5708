"""
Diagram state engine: a fixed grid of character cells with scratch/commit
editing, bounded undo/redo history and context-sensitive glyph resolution.

Shapes are never stored. A line or box is just a run of structural marker
cells, and the glyph each one displays as is derived from its neighbours.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Iterator

from grid_types import (
    ALT_SPECIAL_VALUE,
    ALT_SPECIAL_VALUES,
    DIR_DOWN,
    DIR_LEFT,
    DIR_RIGHT,
    DIR_UP,
    ERASE_CHAR,
    SPECIAL_ARROW_DOWN,
    SPECIAL_ARROW_LEFT,
    SPECIAL_ARROW_RIGHT,
    SPECIAL_ARROW_UP,
    SPECIAL_LINE_H,
    SPECIAL_LINE_V,
    SPECIAL_VALUE,
    SPECIAL_VALUES,
    Box,
    Cell,
    CellContext,
    ChangeSet,
    PendingEdit,
    Vector,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridConfig:
    """Fixed grid bounds and history capacity."""

    width: int = 400
    height: int = 200
    max_undo: int = 50

    def __post_init__(self) -> None:
        problems = []
        if self.width < 3:
            problems.append(f"    width={self.width} (must be at least 3)")
        if self.height < 3:
            problems.append(f"    height={self.height} (must be at least 3)")
        if self.max_undo < 1:
            problems.append(f"    max_undo={self.max_undo} (must be at least 1)")
        if problems:
            raise ValueError(
                "Invalid grid configuration\n"
                + "\n".join(problems)
                + "\n  Drawing needs a one cell margin on every side of the grid"
            )


# =============================================================================
# Glyph Resolution
# =============================================================================


def resolve_glyph(state: State, position: Vector) -> str | None:
    """
    Return the character a cell displays as.

    Ordinary text passes through verbatim. A structural marker is turned into
    a line, corner or arrow glyph based purely on which neighbours are also
    structural.

    Args:
        state: The diagram state
        position: The cell to resolve

    Returns:
        The display character, or None for an empty cell
    """
    value = state.get_cell(position).raw_value
    is_special = value in SPECIAL_VALUES
    is_alt_special = value in ALT_SPECIAL_VALUES
    if not is_special and not is_alt_special:
        return value

    context = state.get_context(position)

    if is_special and context.left and context.right and not context.up and not context.down:
        return SPECIAL_LINE_H
    if is_special and not context.left and not context.right and context.up and context.down:
        return SPECIAL_LINE_V
    if context.sum() == 4:
        return SPECIAL_LINE_H

    if is_alt_special and context.sum() == 3:
        # Point away from the single missing neighbour
        if not context.left:
            return SPECIAL_ARROW_LEFT
        if not context.up:
            return SPECIAL_ARROW_UP
        if not context.down:
            return SPECIAL_ARROW_DOWN
        if not context.right:
            return SPECIAL_ARROW_RIGHT

    if context.sum() == 3:
        state.extend_context(position, context)
        # T-junctions feeding into a parallel run
        if not context.right and context.left_up and context.left_down:
            return SPECIAL_LINE_V
        if not context.left and context.right_up and context.right_down:
            return SPECIAL_LINE_V
        if not context.down and context.left_up and context.right_up:
            return SPECIAL_LINE_H
        if not context.up and context.right_down and context.left_down:
            return SPECIAL_LINE_H

        left_up_empty = state.get_cell(position + DIR_LEFT + DIR_UP).is_empty()
        right_up_empty = state.get_cell(position + DIR_RIGHT + DIR_UP).is_empty()
        if context.up and context.left and context.right and (
            not left_up_empty or not right_up_empty
        ):
            return SPECIAL_LINE_H
        left_down_empty = state.get_cell(position + DIR_LEFT + DIR_DOWN).is_empty()
        right_down_empty = state.get_cell(position + DIR_RIGHT + DIR_DOWN).is_empty()
        if context.down and context.left and context.right and (
            not left_down_empty or not right_down_empty
        ):
            return SPECIAL_LINE_H
        return SPECIAL_VALUE

    if is_alt_special and context.sum() == 1:
        # Point away from the only neighbour
        if context.left:
            return SPECIAL_ARROW_RIGHT
        if context.up:
            return SPECIAL_ARROW_DOWN
        if context.down:
            return SPECIAL_ARROW_UP
        if context.right:
            return SPECIAL_ARROW_LEFT

    return value


def to_marker(char: str) -> str:
    """Translate a serialized glyph back to the abstract marker it came from."""
    if char in SPECIAL_VALUES:
        return SPECIAL_VALUE
    if char in ALT_SPECIAL_VALUES:
        return ALT_SPECIAL_VALUE
    return char


def text_center(lines: list[str]) -> Vector:
    """Center of a block of text lines, halves rounded up."""
    return Vector(
        max(((len(line) + 1) // 2 for line in lines), default=0),
        (len(lines) + 1) // 2,
    )


# =============================================================================
# State
# =============================================================================


class State:
    """
    Holds the entire diagram as a 2D array of cells and provides the edit
    transaction model on top of it.

    Edits are first written as scratch values and only become durable on
    commit(). Each commit records the values it overwrote as one change set,
    which undo() and redo() replay through the same draw/commit path.

    Positions are assumed to lie within the grid; the input layer clamps them
    to a one cell margin so neighbour lookups never leave the grid.
    """

    def __init__(self, config: GridConfig | None = None) -> None:
        self.config = config if config is not None else GridConfig()
        self.cells: list[list[Cell]] = [
            [Cell() for _ in range(self.config.width)]
            for _ in range(self.config.height)
        ]
        self.pending_edits: list[PendingEdit] = []
        self.undo_states: deque[ChangeSet] = deque(maxlen=self.config.max_undo)
        self.redo_states: deque[ChangeSet] = deque(maxlen=self.config.max_undo)
        self.dirty = True

    @property
    def width(self) -> int:
        return self.config.width

    @property
    def height(self) -> int:
        return self.config.height

    def in_margin(self, position: Vector) -> bool:
        """True when the cell and its whole neighbourhood lie within the grid."""
        return 1 <= position.x < self.width - 1 and 1 <= position.y < self.height - 1

    def get_cell(self, position: Vector) -> Cell:
        return self.cells[position.y][position.x]

    def get_context(self, position: Vector) -> CellContext:
        return CellContext(
            left=self.get_cell(position + DIR_LEFT).is_special(),
            right=self.get_cell(position + DIR_RIGHT).is_special(),
            up=self.get_cell(position + DIR_UP).is_special(),
            down=self.get_cell(position + DIR_DOWN).is_special(),
        )

    def extend_context(self, position: Vector, context: CellContext) -> None:
        """Fill in the diagonal flags of an existing context."""
        context.left_up = self.get_cell(position + DIR_LEFT + DIR_UP).is_special()
        context.right_up = self.get_cell(position + DIR_RIGHT + DIR_UP).is_special()
        context.left_down = self.get_cell(position + DIR_LEFT + DIR_DOWN).is_special()
        context.right_down = self.get_cell(position + DIR_RIGHT + DIR_DOWN).is_special()

    def get_draw_value(self, position: Vector) -> str | None:
        return resolve_glyph(self, position)

    def iter_positions(self) -> Iterator[tuple[Vector, Cell]]:
        for y, row in enumerate(self.cells):
            for x, cell in enumerate(row):
                yield Vector(x, y), cell

    # -------------------------------------------------------------------------
    # Scratch editing
    # -------------------------------------------------------------------------

    def draw(self, position: Vector, value: str | None) -> None:
        """Set the scratch value of a cell, recording it for the next commit."""
        cell = self.get_cell(position)
        self.pending_edits.append((position, cell))
        cell.scratch = value
        self.dirty = True

    def draw_incremental(self, position: Vector, value: str | None) -> None:
        """Like draw(), but only if the cell doesn't already show this value."""
        if self.get_cell(position).raw_value != value:
            self.draw(position, value)

    def clear_draw(self) -> None:
        """Discard every uncommitted edit."""
        for _, cell in self.pending_edits:
            cell.scratch = None
        self.pending_edits.clear()
        self.dirty = True

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def commit(self, into_redo: bool = False) -> None:
        """
        Freeze all scratch values into committed state.

        Structural cells are stored as their resolved glyph so that later
        context queries and serialization see what the user saw. The values
        overwritten become one change set on the undo stack (or the redo
        stack when into_redo is set). A new undoable edit invalidates the
        redo history.
        """
        if into_redo:
            self._commit_to(self.redo_states)
        elif self._commit_to(self.undo_states):
            self.redo_states.clear()

    def _commit_to(self, stack: deque[ChangeSet]) -> bool:
        old_values: ChangeSet = []
        seen: set[Vector] = set()
        unique_edits: list[PendingEdit] = []
        for position, cell in self.pending_edits:
            if position not in seen:
                seen.add(position)
                unique_edits.append((position, cell))
        self.pending_edits.clear()

        for position, cell in unique_edits:
            old_values.append((position, cell.value if cell.value is not None else " "))

            new_value = cell.raw_value
            if new_value == ERASE_CHAR or new_value == " ":
                new_value = None
            if cell.is_special():
                new_value = self.get_draw_value(position)
            cell.scratch = None
            cell.value = new_value

        self.dirty = True
        if not old_values:
            return False

        # A full deque drops its oldest change set on append
        stack.append(old_values)
        logger.debug(
            "commit: %d cells into %s (depth=%d)",
            len(old_values),
            "redo" if stack is self.redo_states else "undo",
            len(stack),
        )
        return True

    def _replay(self, change_set: ChangeSet) -> None:
        for position, value in change_set:
            self.draw(position, value)

    def undo(self) -> None:
        """Undo the last committed change set. No-op without history."""
        if not self.undo_states:
            return
        self._replay(self.undo_states.pop())
        self._commit_to(self.redo_states)
        logger.debug("undo: %d undo, %d redo", len(self.undo_states), len(self.redo_states))

    def redo(self) -> None:
        """Redo the last undone change set. No-op without history."""
        if not self.redo_states:
            return
        self._replay(self.redo_states.pop())
        self._commit_to(self.undo_states)
        logger.debug("redo: %d undo, %d redo", len(self.undo_states), len(self.redo_states))

    def clear(self) -> None:
        """Erase the whole diagram as a single undoable edit."""
        erased = 0
        for position, cell in self.iter_positions():
            if cell.raw_value is not None:
                self.draw(position, ERASE_CHAR)
                erased += 1
        self.commit()
        logger.info("clear: erased %d cells", erased)

    # -------------------------------------------------------------------------
    # Text import/export
    # -------------------------------------------------------------------------

    def content_box(self, committed_only: bool = False) -> Box | None:
        """Tightest box around every non-empty cell, or None for a blank diagram."""
        xs: list[int] = []
        ys: list[int] = []
        for y, row in enumerate(self.cells):
            for x, cell in enumerate(row):
                value = cell.value if committed_only else cell.raw_value
                if value is not None:
                    xs.append(x)
                    ys.append(y)
        if not xs:
            return None
        return Box(min(xs), min(ys), max(xs), max(ys))

    def output_text(self, box: Box | None = None, committed_only: bool = False) -> str:
        """
        Serialize the diagram (or a region of it) as plain text.

        Args:
            box: Region to output; defaults to the tight bounding box of content
            committed_only: Read committed values only, ignoring scratch edits

        Returns:
            One line per row with trailing whitespace trimmed, or "" when blank
        """
        if box is None:
            box = self.content_box(committed_only)
            if box is None:
                return ""

        lines = []
        for y in range(box.start_y, box.end_y + 1):
            chars = []
            for x in range(box.start_x, box.end_x + 1):
                position = Vector(x, y)
                if committed_only:
                    value = self.get_cell(position).value
                else:
                    value = self.get_draw_value(position)
                chars.append(" " if value is None or value == ERASE_CHAR else value)
            lines.append("".join(chars).rstrip() + "\n")
        return "".join(lines)

    def load_text(self, text: str, offset: Vector) -> None:
        """
        Draw text into the diagram centered on the given offset.

        Serialized line and arrow glyphs are turned back into structural
        markers so the loaded diagram edits like a freshly drawn one. Nothing
        is committed.
        """
        lines = text.splitlines()
        middle = text_center(lines)
        skipped = 0
        for j, line in enumerate(lines):
            for i, char in enumerate(line):
                if char == " ":
                    continue
                position = Vector(i, j) + offset - middle
                if not self.in_margin(position):
                    skipped += 1
                    continue
                self.draw(position, to_marker(char))
        if skipped:
            logger.warning("load_text: skipped %d characters outside the drawable area", skipped)
        logger.info("load_text: %d lines centered at (%d, %d)", len(lines), offset.x, offset.y)


def from_text(text: str, config: GridConfig | None = None, offset: Vector | None = None) -> State:
    """
    Build a committed State holding the given diagram text.

    The text's top-left character is placed at offset (default (1, 1)) rather
    than centered. The load starts the history: there is nothing to undo.
    """
    state = State(config)
    if offset is None:
        offset = Vector(1, 1)
    state.load_text(text, offset + text_center(text.splitlines()))
    state.commit()
    state.undo_states.clear()
    return state
