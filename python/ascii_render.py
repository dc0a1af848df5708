"""
Terminal rendering for gridsketch diagrams.

Provides two display styles:
1. Text rendering - each cell shows its resolved glyph, as it would export
2. Line rendering - structural cells drawn with unicode box-drawing characters

Cells being edited (scratch values) and the cursor are highlighted with ANSI
colors.
"""

from __future__ import annotations

import logging
from typing import Callable

import simple_chalk as chalk  # type: ignore[import-untyped]

from grid_types import (
    ERASE_CHAR,
    SPECIAL_ARROW_DOWN,
    SPECIAL_ARROW_LEFT,
    SPECIAL_ARROW_RIGHT,
    SPECIAL_ARROW_UP,
    Box,
    Vector,
)
from gridsketch import State

logger = logging.getLogger(__name__)


# (left, right, up, down) -> box-drawing character
LINE_GLYPHS: dict[tuple[bool, bool, bool, bool], str] = {
    (False, False, False, False): "·",
    (True, False, False, False): "─",
    (False, True, False, False): "─",
    (True, True, False, False): "─",
    (False, False, True, False): "│",
    (False, False, False, True): "│",
    (False, False, True, True): "│",
    (False, True, False, True): "┌",
    (True, False, False, True): "┐",
    (False, True, True, False): "└",
    (True, False, True, False): "┘",
    (True, True, False, True): "┬",
    (True, True, True, False): "┴",
    (False, True, True, True): "├",
    (True, False, True, True): "┤",
    (True, True, True, True): "┼",
}

ARROW_GLYPHS = {
    SPECIAL_ARROW_LEFT: "←",
    SPECIAL_ARROW_RIGHT: "→",
    SPECIAL_ARROW_UP: "↑",
    SPECIAL_ARROW_DOWN: "↓",
}


def line_glyph(state: State, position: Vector) -> str:
    """Box-drawing character for a structural cell, from its neighbours."""
    resolved = state.get_draw_value(position)
    if resolved in ARROW_GLYPHS:
        return ARROW_GLYPHS[resolved]
    context = state.get_context(position)
    return LINE_GLYPHS[(context.left, context.right, context.up, context.down)]


def render_region(state: State, cursor: Vector | None = None, padding: int = 1) -> Box | None:
    """
    Choose the region to render: the content plus the cursor, padded.

    Returns:
        The region clipped to the grid, or None when there is nothing to show
    """
    box = state.content_box()
    points: list[Vector] = []
    if box is not None:
        points += [box.top_left(), box.bottom_right()]
    if cursor is not None:
        points.append(cursor)
    if not points:
        return None

    region = Box(
        max(0, min(p.x for p in points) - padding),
        max(0, min(p.y for p in points) - padding),
        min(state.width - 1, max(p.x for p in points) + padding),
        min(state.height - 1, max(p.y for p in points) + padding),
    )
    logger.debug(
        "render_region: (%d, %d)-(%d, %d)",
        region.start_x,
        region.start_y,
        region.end_x,
        region.end_y,
    )
    return region


def render(
    state: State,
    box: Box | None = None,
    cursor: Vector | None = None,
    use_lines: bool = False,
    color: bool = True,
) -> str:
    """
    Render a diagram region to a string.

    Args:
        state: The diagram state
        box: Region to render (default: content and cursor, padded by one cell)
        cursor: Optional cell to highlight
        use_lines: Draw structural cells as unicode lines instead of text glyphs
        color: Emit ANSI colors; False gives plain text

    Returns:
        Rendered rows joined by newlines
    """
    if box is None:
        box = render_region(state, cursor)
        if box is None:
            return ""

    def plain(s: str) -> str:
        return s

    rows: list[str] = []
    for y in range(box.start_y, box.end_y + 1):
        row: list[str] = []
        for x in range(box.start_x, box.end_x + 1):
            position = Vector(x, y)
            cell = state.get_cell(position)
            value = state.get_draw_value(position)
            char = " " if value is None or value == ERASE_CHAR else value
            if use_lines and cell.is_special():
                char = line_glyph(state, position)

            colorize: Callable[[str], str] = plain
            if color:
                if position == cursor:
                    colorize = chalk.yellowBright
                    if char == " ":
                        char = "_"
                elif cell.has_scratch():
                    # Part of a visible edit
                    colorize = chalk.blue
                elif cell.is_special():
                    colorize = chalk.cyan
            elif position == cursor and char == " ":
                char = "_"
            row.append(colorize(char))
        rows.append("".join(row))
    return "\n".join(rows)
