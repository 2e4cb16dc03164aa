"""Interactive pieces of git-worktree-keeper."""

from .prompts import ConsolePrompter, Prompter, ScriptedPrompter
from .selector import (
    CANCELLED,
    PENDING,
    Selector,
    SelectorApp,
    SelectorModel,
    TextualSelector,
    describe_worktree,
    filter_task_worktrees,
)

__all__ = [
    "CANCELLED",
    "PENDING",
    "ConsolePrompter",
    "Prompter",
    "ScriptedPrompter",
    "Selector",
    "SelectorApp",
    "SelectorModel",
    "TextualSelector",
    "describe_worktree",
    "filter_task_worktrees",
]
