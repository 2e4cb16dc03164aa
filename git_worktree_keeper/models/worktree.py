"""Worktree data models."""

import os
from dataclasses import dataclass


@dataclass
class WorktreeRecord:
    """One worktree as currently registered with git.

    Records are rebuilt from ``git worktree list`` on every read and are
    never cached between commands.
    """

    path: str  # Absolute path
    branch: str  # Empty for a detached HEAD
    commit_sha: str = ""
    is_main: bool = False  # Is this the main working tree?
    is_current: bool = False  # Does the running process live inside it?
    is_detached: bool = False
    is_orphaned: bool = False  # Directory missing?

    @property
    def name(self) -> str:
        """Directory name of the worktree."""
        return os.path.basename(self.path.rstrip(os.sep))

    def __str__(self) -> str:
        """String representation of worktree."""
        status = "orphaned" if self.is_orphaned else "active"
        main_marker = " (main)" if self.is_main else ""
        current_marker = " [current]" if self.is_current else ""
        branch = self.branch or "(detached)"
        return f"{branch} @ {self.path}{main_marker}{current_marker} [{status}]"
