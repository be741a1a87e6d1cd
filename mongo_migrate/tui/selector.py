"""Interactive checkbox list for choosing collections to migrate."""

from collections.abc import Sequence
from enum import Enum

import structlog
from rich.console import Console
from rich.markup import escape

from ..constants import SELECTOR_PAGE_SIZE, SELECTOR_PREVIEW_LIMIT
from ..core.exceptions import SelectionCancelled
from ..utils import format_item_list
from .terminal import CTRL_C, RawTerminal

logger = structlog.get_logger()

UP_KEYS = frozenset({"\x1b[A", "\x1bOA"})
DOWN_KEYS = frozenset({"\x1b[B", "\x1bOB"})
TOGGLE_KEY = " "
TOGGLE_ALL_KEYS = frozenset({"a", "A"})
CONFIRM_KEYS = frozenset({"\r", "\n"})
QUIT_KEYS = frozenset({"q", "Q", CTRL_C})

EMPTY_SELECTION_WARNING = "Please select at least one collection"


class SelectorAction(Enum):
    """Outcome of a single key press."""

    CONTINUE = "continue"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class SelectionState:
    """Cursor, scroll window and toggled names for the selector."""

    def __init__(self, items: Sequence[str], page_size: int = SELECTOR_PAGE_SIZE):
        if not items:
            raise ValueError("Nothing to select from")
        self.items = list(items)
        self.page_size = page_size
        self.cursor = 0
        self.offset = 0
        self.selected: set[str] = set()
        self.warning: str | None = None

    @property
    def current(self) -> str:
        return self.items[self.cursor]

    @property
    def all_selected(self) -> bool:
        return len(self.selected) == len(self.items)

    def visible_range(self) -> range:
        return range(self.offset, min(self.offset + self.page_size, len(self.items)))

    def move(self, delta: int) -> None:
        self.cursor = max(0, min(len(self.items) - 1, self.cursor + delta))
        # Keep the cursor inside the visible window
        if self.cursor < self.offset:
            self.offset = self.cursor
        elif self.cursor >= self.offset + self.page_size:
            self.offset = self.cursor - self.page_size + 1
        self.offset = max(0, min(self.offset, len(self.items) - self.page_size))

    def toggle(self) -> None:
        self.selected.symmetric_difference_update({self.current})

    def toggle_all(self) -> None:
        if self.all_selected:
            self.selected.clear()
        else:
            self.selected.update(self.items)

    def ordered_selection(self) -> list[str]:
        """Selected names in list order."""
        return [item for item in self.items if item in self.selected]

    def handle_key(self, key: str) -> SelectorAction:
        self.warning = None

        if key in QUIT_KEYS:
            return SelectorAction.CANCELLED
        if key in UP_KEYS:
            self.move(-1)
        elif key in DOWN_KEYS:
            self.move(1)
        elif key == TOGGLE_KEY:
            self.toggle()
        elif key in TOGGLE_ALL_KEYS:
            self.toggle_all()
        elif key in CONFIRM_KEYS:
            if self.selected:
                return SelectorAction.CONFIRMED
            self.warning = EMPTY_SELECTION_WARNING
        return SelectorAction.CONTINUE


class InteractiveSelector:
    """Keyboard-driven multi-select over collection names.

    Controls: arrows navigate, space toggles, ``a`` toggles all, enter
    confirms, ``q`` or Ctrl+C quits. The terminal is returned to its previous
    mode before ``select`` returns or raises.
    """

    def __init__(
        self,
        terminal: RawTerminal | None = None,
        console: Console | None = None,
        page_size: int = SELECTOR_PAGE_SIZE,
    ):
        self.terminal = terminal or RawTerminal()
        self.console = console or Console()
        self.page_size = page_size
        self.logger = logger.bind(component="selector")

    async def select(self, items: Sequence[str]) -> list[str]:
        """Let the user toggle ``items`` and return the confirmed subset in list order.

        Raises:
            SelectionCancelled: On quit, Ctrl+C or closed input
        """
        state = SelectionState(items, self.page_size)

        with self.terminal.raw_mode():
            self.render(state)
            while True:
                try:
                    keys = await self.terminal.read_keys()
                except EOFError:
                    raise SelectionCancelled("Selection cancelled: input closed") from None

                for key in keys:
                    action = state.handle_key(key)
                    if action is SelectorAction.CANCELLED:
                        raise SelectionCancelled("Selection cancelled by user")
                    if action is SelectorAction.CONFIRMED:
                        selection = state.ordered_selection()
                        self.logger.debug("Selection confirmed", count=len(selection))
                        return selection
                self.render(state)

    def render(self, state: SelectionState) -> None:
        console = self.console
        console.clear()
        console.print("\n[cyan]Select collections to migrate:[/cyan]\n")
        console.print("[yellow]Controls:[/yellow]")
        console.print("  ↑/↓   - Navigate")
        console.print("  Space - Toggle selection")
        console.print("  a     - Toggle all collections")
        console.print("  Enter - Confirm selection")
        console.print("  q     - Quit")
        console.print()

        total = len(state.items)
        window = state.visible_range()
        paged = total > state.page_size
        if paged:
            page = state.cursor // state.page_size + 1
            pages = -(-total // state.page_size)
            console.print(f"[dim]Page {page}/{pages} ({state.cursor + 1}/{total})[/dim]")
            if window.start > 0:
                console.print("[dim]  ↑ More items above...[/dim]")

        for index in window:
            item = state.items[index]
            pointer = "▶" if index == state.cursor else " "
            if item in state.selected:
                console.print(f"{pointer} [green]\\[x] {escape(item)}[/green]")
            else:
                console.print(f"{pointer} [ ] {escape(item)}", markup=False)

        if paged and window.stop < total:
            console.print("[dim]  ↓ More items below...[/dim]")

        console.print()
        console.print(f"[blue]Selected: {len(state.selected)}/{total} collections[/blue]")
        if state.selected:
            preview = format_item_list(state.ordered_selection(), SELECTOR_PREVIEW_LIMIT)
            console.print(f"[dim]\\[{escape(preview)}][/dim]")
        if state.warning:
            console.print(f"\n[red]{state.warning}[/red]")
