"""Yes/no prompting for git-worktree-keeper."""

from typing import Iterable, Optional, Protocol

from rich.console import Console
from rich.prompt import Confirm


class Prompter(Protocol):
    """Anything that can ask the user a yes/no question."""

    def confirm(self, message: str, default: bool = False) -> bool:
        ...


class ConsolePrompter:
    """Asks on the terminal through rich."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def confirm(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, default=default, console=self.console)


class ScriptedPrompter:
    """Answers from a fixed list, for non-interactive runs.

    Once the answers run out, ``default`` is used. Every question asked is
    kept in ``asked``.
    """

    def __init__(self, answers: Iterable[bool] = (), default: bool = False):
        self.answers = list(answers)
        self.default = default
        self.asked: list[str] = []

    def confirm(self, message: str, default: bool = False) -> bool:
        self.asked.append(message)
        if self.answers:
            return self.answers.pop(0)
        return self.default
