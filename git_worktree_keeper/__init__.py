"""
git-worktree-keeper - Task-scoped Git worktrees with safe teardown
"""

from .__version__ import __version__
from .core import WorktreeCreator, WorktreeRemover
from .cli.main import main

__all__ = ["WorktreeCreator", "WorktreeRemover", "main", "__version__"]
