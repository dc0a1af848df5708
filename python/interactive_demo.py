"""
Interactive terminal editor for gridsketch.
Move a cursor with the arrow keys and draw with the tools from the keyboard.
"""

import logging
import sys

import readchar
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from ascii_render import render
from grid_types import (
    KEY_BACKSPACE,
    KEY_COPY,
    KEY_CUT,
    KEY_PASTE,
    KEY_RETURN,
    Vector,
)
from gridsketch import GridConfig, State
from sketch_controller import Controller, Mode

TOOL_KEYS = {
    "b": "box",
    "l": "line",
    "a": "arrow",
    "f": "freeform",
    "e": "erase",
    "m": "move",
    "t": "text",
    "s": "select",
}

CURSOR_KEYS = {
    readchar.key.UP: Vector(0, -1),
    readchar.key.DOWN: Vector(0, 1),
    readchar.key.LEFT: Vector(-1, 0),
    readchar.key.RIGHT: Vector(1, 0),
}


class InteractiveDemo:
    """Keyboard driven editor around a Controller."""

    def __init__(self, state: State) -> None:
        self.state = state
        self.controller = Controller(state)
        self.cursor = Vector(state.width // 2, state.height // 2)
        self.console = Console()
        self.status_message = "Ready"
        self.use_lines = False
        self.typing = False
        self.exported: str | None = None

    def generate_display(self) -> Panel:
        """Generate the current display with diagram and status."""
        diagram = render(self.state, cursor=self.cursor, use_lines=self.use_lines)

        status = Text()
        status.append("Tool: ", style="bold")
        status.append(f"{self.controller.tool_name}")
        if self.controller.mode == Mode.DRAW:
            status.append(" (drawing)", style="bold blue")
        if self.typing:
            status.append(" (typing, Esc to finish)", style="bold blue")
        status.append("   Cursor: ", style="bold")
        status.append(f"({self.cursor.x}, {self.cursor.y})\n\n")

        status.append(Text.from_ansi(diagram))
        status.append("\n\n")
        if self.exported is not None:
            status.append("Exported:\n", style="bold cyan")
            status.append(self.exported or "(empty)\n")
            status.append("\n")

        status.append("Keys:\n", style="bold cyan")
        status.append("  Arrows - Move cursor      Space - Start/end drawing\n")
        status.append("  B Box  L Line  A Arrow  F Freeform  E Erase  M Move  T Text  S Select\n")
        status.append("  U Undo  R Redo  C Clear  X Export  G Toggle lines  Q Quit\n")
        status.append("  Y Copy  K Cut  P Paste (select tool)\n\n")

        status.append("─" * 40 + "\n", style="dim")
        status.append("Status: ", style="bold")
        status.append(self.status_message)

        return Panel(status, title="gridsketch", border_style="green")

    def move_cursor(self, delta: Vector) -> None:
        self.cursor = self.controller.clamp_cell(self.cursor + delta)
        self.controller.handle_move(self.cursor)

    def toggle_draw(self) -> None:
        """Space: start a gesture at the cursor, or end the current one."""
        if self.controller.mode == Mode.DRAW:
            self.controller.end_all()
            self.status_message = f"Finished {self.controller.tool_name}"
            return

        self.controller.start_draw(self.cursor)
        if self.controller.tool_name == "text":
            # Text places a caret immediately, then takes typed keys
            self.controller.end_all()
            self.typing = True
            self.status_message = "Type text, Esc to finish"
        else:
            self.status_message = f"Drawing {self.controller.tool_name}, Space to finish"

    def handle_typing(self, key: str) -> None:
        if key == readchar.key.ESC:
            self.typing = False
            # A fresh text tool commits and forgets the caret
            self.controller.select_tool("text")
            self.status_message = "Text committed"
        elif key in (readchar.key.ENTER, readchar.key.LF):
            self.controller.handle_key(KEY_RETURN)
        elif key == readchar.key.BACKSPACE:
            self.controller.handle_key(KEY_BACKSPACE)
        elif len(key) == 1 and key.isprintable():
            self.controller.handle_key(key)

    def handle_key(self, key: str) -> bool:
        """
        Handle a single key press.

        Returns:
            False when the editor should quit
        """
        if key in CURSOR_KEYS:
            self.move_cursor(CURSOR_KEYS[key])
        elif key == readchar.key.CTRL_Z:
            self.controller.undo()
            self.status_message = "Undone"
        elif key == readchar.key.CTRL_Y:
            self.controller.redo()
            self.status_message = "Redone"
        elif self.typing:
            self.handle_typing(key)
        elif key == readchar.key.SPACE:
            self.toggle_draw()
        elif key == readchar.key.CTRL_V:
            self.controller.handle_key(KEY_PASTE)
        else:
            return self.handle_command(key)
        return True

    def handle_command(self, key: str) -> bool:
        command = key.lower()
        if command == "q":
            self.status_message = "Quitting..."
            return False
        if command in TOOL_KEYS:
            self.controller.select_tool(TOOL_KEYS[command])
            self.status_message = f"Selected {TOOL_KEYS[command]} tool"
        elif command == "u":
            self.controller.undo()
            self.status_message = "Undone"
        elif command == "r":
            self.controller.redo()
            self.status_message = "Redone"
        elif command == "c":
            self.controller.clear()
            self.status_message = "Cleared (undo to restore)"
        elif command == "x":
            self.exported = self.controller.export_text()
            self.status_message = "Exported diagram"
        elif command == "g":
            self.use_lines = not self.use_lines
            self.status_message = "Line display " + ("on" if self.use_lines else "off")
        elif command == "y":
            self.controller.handle_key(KEY_COPY)
            self.status_message = "Copied selection"
        elif command == "k":
            self.controller.handle_key(KEY_CUT)
            self.status_message = "Cut selection"
        elif command == "p":
            self.controller.handle_key(KEY_PASTE)
            self.status_message = "Pasted"
        else:
            # Anything else goes to the tool, e.g. the freeform brush
            self.controller.handle_key(key)
            self.status_message = f"Key {key!r} sent to {self.controller.tool_name}"
        return True

    def run(self) -> None:
        """Run the interactive editor until Q is pressed."""
        with Live(self.generate_display(), console=self.console, refresh_per_second=4) as live:
            try:
                while True:
                    live.update(self.generate_display())
                    key = readchar.readkey()
                    if not self.handle_key(key):
                        live.update(self.generate_display())
                        break
            except KeyboardInterrupt:
                self.status_message = "Interrupted by user"
                live.update(self.generate_display())


LAYOUTS = dict(
    flow="""
+-------+      +--------+
| start |----->|  end   |
+-------+      +--------+
""",
    tee="""
+------+------+
|      |      |
+------+      v
""",
)


def main(text: str) -> None:
    """Run the editor with the given text loaded in the middle of the grid."""
    state = State(GridConfig(width=120, height=60))
    demo = InteractiveDemo(state)
    demo.controller.import_text(text, demo.cursor)
    demo.run()
    print(state.output_text())


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "sublime":
        # Running from IDE - just render the sample layouts
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")

        for name, layout in LAYOUTS.items():
            state = State(GridConfig(width=40, height=12))
            controller = Controller(state)
            controller.import_text(layout, Vector(20, 6))
            print(f"== {name}")
            print(render(state, color=False))
            print(render(state, use_lines=True, color=False))
            print()
    elif len(sys.argv) > 1 and sys.argv[1] in LAYOUTS:
        main(LAYOUTS[sys.argv[1]])
    elif len(sys.argv) > 1:
        with open(sys.argv[1], encoding="utf-8") as f:
            main(f.read())
    else:
        main(LAYOUTS["flow"])
