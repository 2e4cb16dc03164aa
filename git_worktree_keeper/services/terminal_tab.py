"""Terminal tab title updates (iTerm2 escape sequences)"""

import os
import sys
from typing import Optional, TextIO

from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.naming import identifier_from_branch

logger = get_logger(__name__)

TERM_PROGRAM_ENV = "TERM_PROGRAM"
ITERM_MARKER = "iTerm"


def is_iterm2() -> bool:
    """True when running inside iTerm2."""
    return ITERM_MARKER in os.environ.get(TERM_PROGRAM_ENV, "")


def format_tab_name(repo_name: str, identifier: str) -> str:
    """``"repo 123"``, or whichever half is non-empty."""
    parts = [part.strip() for part in (repo_name, identifier) if part and part.strip()]
    return " ".join(parts)


class TerminalTabService:
    """Sets and clears the terminal tab title while working in a worktree."""

    def __init__(self, enabled: bool, stream: Optional[TextIO] = None):
        self.enabled = enabled
        self.stream = stream

    @property
    def active(self) -> bool:
        return self.enabled and is_iterm2()

    def _write(self, sequence: str) -> bool:
        # stderr stays on the terminal when stdout is captured by the shell function
        stream = self.stream or sys.stderr
        try:
            stream.write(sequence)
            stream.flush()
        except OSError as e:
            logger.warning(f"Could not update terminal tab title: {e}")
            return False
        return True

    def update(self, repo_name: str, branch_or_identifier: str) -> bool:
        """Show ``repo identifier`` in the tab title; no-op unless active."""
        if not self.active:
            return False
        title = format_tab_name(repo_name, identifier_from_branch(branch_or_identifier))
        logger.debug(f"Setting tab title to '{title}'")
        return self._write(f"\033]0;{title}\007")

    def reset(self) -> bool:
        """Clear the tab title; no-op unless active."""
        if not self.active:
            return False
        return self._write("\033]0;\007")
