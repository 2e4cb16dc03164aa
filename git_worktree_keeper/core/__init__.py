"""Worktree lifecycle operations."""

from .cleaner import CleanCandidate, CleanReport, WorktreeCleaner
from .creator import WorktreeCreator
from .locator import WorktreeLocator, find_worktree
from .remover import RemovalResult, WorktreeRemover

__all__ = [
    "CleanCandidate",
    "CleanReport",
    "RemovalResult",
    "WorktreeCleaner",
    "WorktreeCreator",
    "WorktreeLocator",
    "WorktreeRemover",
    "find_worktree",
]
