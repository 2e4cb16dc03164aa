"""Worktree and branch mutations for git-worktree-keeper."""

from typing import Optional, Union, TYPE_CHECKING

import git

from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.services.git.commands import open_repo, run_git

if TYPE_CHECKING:
    from git_worktree_keeper.config import Config

logger = get_logger(__name__)


class WorktreeService:
    """Service for adding and removing git worktrees and their branches."""

    def __init__(self, repo_path: str, config: Union["Config", dict]):
        """Initialize the worktree service.

        Args:
            repo_path: Path to the git repository
            config: Configuration dictionary or Config object
        """
        self.repo_path = repo_path
        self.timeout = config.get("command_timeout", 60.0)

    def _get_repo(self) -> git.Repo:
        """Open a fresh git.Repo for this call."""
        return open_repo(self.repo_path)

    def add_worktree(self, path: str, branch: str, base: Optional[str] = None,
                     create_branch: bool = True) -> None:
        """Add a worktree at ``path``.

        Args:
            path: Target directory, must not exist yet
            branch: Branch to check out (created from ``base`` when ``create_branch``)
            base: Start point for a new branch; for an existing remote branch
                pass ``origin/x`` here with ``create_branch=True`` to get a
                local tracking branch
            create_branch: Create ``branch`` instead of checking out an existing one
        """
        if create_branch:
            args = ["worktree", "add", "-b", branch, path]
            if base:
                args.append(base)
        else:
            args = ["worktree", "add", path, branch]

        run_git(self._get_repo(), "worktree add", *args, timeout=self.timeout)
        logger.info(f"Added worktree at {path} on branch {branch}")

    def remove_worktree(self, path: str, force: bool = False) -> None:
        """Remove the worktree at ``path``.

        Args:
            path: Path to the worktree directory
            force: Remove even if the working tree is dirty or locked
        """
        args = ["worktree", "remove", path]
        if force:
            args.append("--force")

        run_git(self._get_repo(), "worktree remove", *args, timeout=self.timeout)
        logger.info(f"Removed worktree at {path}")

    def delete_branch(self, branch: str) -> None:
        """Force-delete a local branch (``git branch -D``)."""
        run_git(self._get_repo(), "branch -D", "branch", "-D", branch, timeout=self.timeout)
        logger.info(f"Deleted branch {branch}")

    def prune_worktrees(self) -> None:
        """Prune metadata of worktrees whose directories are gone."""
        run_git(self._get_repo(), "worktree prune", "worktree", "prune", timeout=self.timeout)
        logger.info("Pruned orphaned worktree metadata")
