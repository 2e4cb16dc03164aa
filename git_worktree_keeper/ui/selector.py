"""Interactive worktree and branch selector for git-worktree-keeper."""

from enum import Enum
from typing import Callable, Generic, Optional, Protocol, Sequence, TypeVar, Union

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Static

from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.naming import DEFAULT_TASK_BRANCH_PATTERN, is_task_branch

logger = get_logger(__name__)

T = TypeVar("T")


class Outcome(Enum):
    """Selector states that are not a chosen item."""

    PENDING = "pending"
    CANCELLED = "cancelled"


PENDING = Outcome.PENDING
CANCELLED = Outcome.CANCELLED


def filter_task_worktrees(
    records: Sequence[WorktreeRecord], pattern: str = DEFAULT_TASK_BRANCH_PATTERN
) -> list[WorktreeRecord]:
    """Keep worktrees on task branches, never the main or the current one."""
    return [
        record
        for record in records
        if not record.is_main and not record.is_current and is_task_branch(record.branch, pattern)
    ]


def describe_worktree(record: WorktreeRecord) -> str:
    """Selector label for a worktree."""
    label = record.path
    if record.branch:
        label += f" ({record.branch})"
    if record.is_current:
        label += " [current]"
    return label


class SelectorModel(Generic[T]):
    """Cursor over a fixed list of items, with no UI attached.

    The cursor stops at both ends of the list.
    """

    def __init__(self, items: Sequence[T]):
        self.items = list(items)
        self.cursor = 0
        self.outcome: Union[T, Outcome] = PENDING

    @property
    def done(self) -> bool:
        return self.outcome is not PENDING

    @property
    def current(self) -> Optional[T]:
        if not self.items:
            return None
        return self.items[self.cursor]

    def next(self) -> None:
        if self.cursor < len(self.items) - 1:
            self.cursor += 1

    def previous(self) -> None:
        if self.cursor > 0:
            self.cursor -= 1

    def select(self) -> None:
        if self.items:
            self.outcome = self.items[self.cursor]

    def cancel(self) -> None:
        self.outcome = CANCELLED

    def result(self) -> Optional[T]:
        """The chosen item, or None if cancelled or still pending."""
        if isinstance(self.outcome, Outcome):
            return None
        return self.outcome


class SelectorApp(App):
    """Full-screen list that returns the highlighted item on enter."""

    DEFAULT_CSS = """
    #selector-title {
        padding: 1 2 0 2;
        text-style: bold;
    }

    #selector-list {
        padding: 1 2;
    }
    """

    BINDINGS = [
        Binding("up", "cursor_up", "Up", show=False),
        Binding("k", "cursor_up", "Up"),
        Binding("down", "cursor_down", "Down", show=False),
        Binding("j", "cursor_down", "Down"),
        Binding("enter", "select", "Select"),
        Binding("q", "cancel", "Quit"),
        Binding("escape", "cancel", "Quit", show=False),
    ]

    def __init__(self, title: str, items: Sequence, label: Callable[[object], str] = str):
        super().__init__()
        self.selector_title = title
        self.model: SelectorModel = SelectorModel(items)
        self.label = label

    def compose(self) -> ComposeResult:
        yield Static(self.selector_title, id="selector-title")
        yield Static(self._render_items(), id="selector-list")
        yield Footer()

    def _render_items(self) -> Text:
        text = Text()
        for index, item in enumerate(self.model.items):
            if index == self.model.cursor:
                text.append(f"> {self.label(item)}\n", style="bold magenta")
            else:
                text.append(f"  {self.label(item)}\n")
        return text

    def _refresh_list(self) -> None:
        self.query_one("#selector-list", Static).update(self._render_items())

    def action_cursor_up(self) -> None:
        self.model.previous()
        self._refresh_list()

    def action_cursor_down(self) -> None:
        self.model.next()
        self._refresh_list()

    def action_select(self) -> None:
        self.model.select()
        self.exit(self.model.result())

    def action_cancel(self) -> None:
        self.model.cancel()
        self.exit(None)


class Selector(Protocol):
    """Lets the user pick one item, or returns None when they cancel."""

    def choose(self, title: str, items: Sequence[T],
               label: Callable[[T], str] = str) -> Optional[T]:
        ...


class TextualSelector:
    """Runs a SelectorApp in the terminal."""

    def choose(self, title: str, items: Sequence[T],
               label: Callable[[T], str] = str) -> Optional[T]:
        if not items:
            return None
        app = SelectorApp(title, items, label=label)
        choice = app.run()
        logger.debug(f"Selector returned {choice!r}")
        return choice
