"""Git-related services for git-worktree-keeper."""

from .commands import open_repo, run_git, working_directory
from .inspector import RepositoryInspector, parse_worktree_porcelain
from .merge_detector import MergeDetector
from .worktrees import WorktreeService

__all__ = [
    "RepositoryInspector",
    "WorktreeService",
    "MergeDetector",
    "open_repo",
    "parse_worktree_porcelain",
    "run_git",
    "working_directory",
]
