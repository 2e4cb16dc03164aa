"""Creation of task worktrees and their branches."""

import os
import shutil
from typing import Optional, Union, TYPE_CHECKING

from rich.console import Console

from git_worktree_keeper.exceptions import (
    AlreadyExistsError,
    CancelledError,
    GitWorktreeKeeperError,
    InvalidIdentifierError,
    WorktreeNotFoundError,
)
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.naming import derive_branch, worktree_dir_name
from git_worktree_keeper.services.env_files import EnvFileService
from git_worktree_keeper.services.git.inspector import RepositoryInspector
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.services.package_setup import PackageSetupService
from git_worktree_keeper.services.terminal_tab import TerminalTabService

if TYPE_CHECKING:
    from git_worktree_keeper.config import Config
    from git_worktree_keeper.ui.prompts import Prompter
    from git_worktree_keeper.ui.selector import Selector

logger = get_logger(__name__)

PROTECTED_BRANCHES = ("main", "master")


class WorktreeCreator:
    """Creates a worktree next to the main one and prepares it for work.

    Git state is all-or-nothing: if adding the worktree fails, any branch or
    directory the attempt created is removed again. The follow-up steps
    (env files, package setup, tab title) only ever produce warnings.
    """

    def __init__(
        self,
        inspector: RepositoryInspector,
        worktree_service: WorktreeService,
        config: Union["Config", dict],
        prompter: "Prompter",
        env_files: Optional[EnvFileService] = None,
        package_setup: Optional[PackageSetupService] = None,
        terminal_tab: Optional[TerminalTabService] = None,
        selector: Optional["Selector"] = None,
        console: Optional[Console] = None,
    ):
        self.inspector = inspector
        self.worktree_service = worktree_service
        self.config = config
        self.prompter = prompter
        self.env_files = env_files or EnvFileService(config)
        self.package_setup = package_setup or PackageSetupService()
        self.terminal_tab = terminal_tab or TerminalTabService(config.get("update_terminal_tab", False))
        self.selector = selector
        self.console = console or Console(stderr=True)
        self.main_branch = config.get("main_branch", "main")
        self.remote_name = config.get("remote_name", "origin")
        self.warnings: list[str] = []

    # Public operations

    def create(self, identifier: str, base_branch: Optional[str] = None,
               copy_envs: Optional[bool] = None) -> WorktreeRecord:
        """Create a worktree and a new branch for an issue number or branch name.

        Args:
            identifier: ``"123"`` (branch ``123/impl``) or a branch name
            base_branch: Start point, defaults to the configured main branch
            copy_envs: True/False to force the env-file decision, None to
                fall back to the config and then to asking

        Raises:
            InvalidIdentifierError: empty identifier
            AlreadyExistsError: the target directory, worktree or branch exists
            VcsCommandFailedError: git refused to add the worktree
        """
        branch = derive_branch(identifier)
        identifier = identifier.strip()
        main_path = self.inspector.main_worktree_path()
        repo_name = os.path.basename(main_path.rstrip(os.sep))
        path = self._sibling_path(main_path, worktree_dir_name(repo_name, identifier))

        self._ensure_path_free(path)
        if self.inspector.branch_exists(branch):
            raise AlreadyExistsError(branch, AlreadyExistsError.BRANCH)

        base = base_branch or self.main_branch
        self.console.print(f"Creating worktree for [cyan]{identifier}[/cyan] based on {base}...")
        self._add_with_rollback(path, branch, base=base, create_branch=True)
        self.console.print(f"[green]✓[/green] Created worktree at {path}")

        record = self._record_for(path, branch)
        self._prepare(record, main_path, repo_name, identifier, copy_envs)
        return record

    def checkout(self, branch: str, copy_envs: Optional[bool] = None) -> WorktreeRecord:
        """Create a worktree for an existing local or remote branch.

        ``origin/x`` and ``x`` both end up on a local branch ``x``; a remote
        only branch gets a local tracking branch.

        Raises:
            InvalidIdentifierError: empty name or no such branch
            AlreadyExistsError: the target directory exists or the branch is
                already checked out in another worktree
        """
        branch = (branch or "").strip()
        if not branch:
            raise InvalidIdentifierError(branch, "branch name must not be empty")

        remote_prefix = f"{self.remote_name}/"
        local_name = branch[len(remote_prefix):] if branch.startswith(remote_prefix) else branch

        main_path = self.inspector.main_worktree_path()
        repo_name = os.path.basename(main_path.rstrip(os.sep))
        path = self._sibling_path(main_path, worktree_dir_name(repo_name, local_name))
        self._ensure_path_free(path)

        for record in self.inspector.list_worktrees():
            if record.branch == local_name:
                raise AlreadyExistsError(record.path, AlreadyExistsError.WORKTREE)

        if self.inspector.branch_exists(local_name):
            create_branch, base = False, None
        elif self.inspector.branch_exists(f"{remote_prefix}{local_name}", include_remote=True):
            create_branch, base = True, f"{remote_prefix}{local_name}"
        else:
            raise InvalidIdentifierError(
                branch, "branch does not exist in the repository (see 'git branch -a')"
            )

        self.console.print(f"Creating worktree for branch [cyan]{local_name}[/cyan]...")
        self._add_with_rollback(path, local_name, base=base, create_branch=create_branch)
        self.console.print(f"[green]✓[/green] Created worktree at {path}")

        record = self._record_for(path, local_name)
        self._prepare(record, main_path, repo_name, local_name, copy_envs)
        return record

    def select_checkout_branch(self) -> str:
        """Let the user pick a branch to check out.

        The current branch and the main/master branches (local or remote)
        are not offered.

        Raises:
            WorktreeNotFoundError: no branch left to offer
            CancelledError: the user quit the selector
        """
        current = self.inspector.current_branch()
        excluded = {current}
        for name in {*PROTECTED_BRANCHES, self.main_branch}:
            excluded.update({name, f"{self.remote_name}/{name}"})

        candidates = [b for b in self.inspector.list_all_branches() if b not in excluded]
        if not candidates:
            raise WorktreeNotFoundError(message="No branches available for checkout")
        if self.selector is None:
            raise InvalidIdentifierError("", "a branch name is required when not running interactively")

        choice = self.selector.choose("Select a branch to checkout:", candidates)
        if choice is None:
            raise CancelledError()
        return choice

    # Helpers

    @staticmethod
    def _sibling_path(main_path: str, dir_name: str) -> str:
        return os.path.join(os.path.dirname(main_path.rstrip(os.sep)), dir_name)

    def _ensure_path_free(self, path: str) -> None:
        target = os.path.realpath(path)
        registered = {os.path.realpath(r.path) for r in self.inspector.list_worktrees()}
        if os.path.exists(path) or target in registered:
            raise AlreadyExistsError(path, AlreadyExistsError.WORKTREE)

    def _record_for(self, path: str, branch: str) -> WorktreeRecord:
        target = os.path.realpath(path)
        for record in self.inspector.list_worktrees():
            if os.path.realpath(record.path) == target:
                return record
        return WorktreeRecord(path=os.path.abspath(path), branch=branch)

    def _add_with_rollback(self, path: str, branch: str, base: Optional[str],
                           create_branch: bool) -> None:
        try:
            self.worktree_service.add_worktree(path, branch, base=base, create_branch=create_branch)
        except (GitWorktreeKeeperError, KeyboardInterrupt):
            self._rollback(path, branch if create_branch else None)
            raise

    def _rollback(self, path: str, created_branch: Optional[str]) -> None:
        """Undo whatever a failed ``git worktree add`` left behind.

        Only called after the target directory and branch were checked to
        be absent, so anything found now was created by the attempt.
        Failures here are logged and never mask the original error.
        """
        logger.info(f"Rolling back partial worktree at {path}")
        try:
            registered = {os.path.realpath(r.path) for r in self.inspector.list_worktrees()}
            if os.path.realpath(path) in registered:
                self.worktree_service.remove_worktree(path, force=True)
            if os.path.exists(path):
                shutil.rmtree(path, ignore_errors=True)
            self.worktree_service.prune_worktrees()
            if created_branch and self.inspector.branch_exists(created_branch):
                self.worktree_service.delete_branch(created_branch)
        except GitWorktreeKeeperError as e:
            logger.warning(f"Rollback of {path} was incomplete: {e}")

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)
        self.console.print(f"[yellow]⚠ {message}[/yellow]")

    def _prepare(self, record: WorktreeRecord, source_root: str, repo_name: str,
                 identifier: str, copy_envs: Optional[bool]) -> None:
        """Post-creation steps, in order; none of them can fail the command."""
        try:
            self._handle_env_files(source_root, record.path, copy_envs)
        except (GitWorktreeKeeperError, OSError) as e:
            self._warn(f"Failed to handle env files: {e}")

        if not self.package_setup.setup(record.path):
            self._warn("Package setup failed")

        if self.terminal_tab.active and not self.terminal_tab.update(repo_name, identifier):
            self._warn("Could not update terminal tab title")

    def _handle_env_files(self, source_root: str, dest_root: str,
                          copy_envs: Optional[bool]) -> None:
        env_files = self.env_files.discover(source_root)
        if not env_files:
            return

        decision = copy_envs if copy_envs is not None else self.config.get("copy_envs")
        if decision is None:
            self.console.print(f"\nFound {len(env_files)} untracked environment file(s):")
            for path in env_files:
                self.console.print(f"  • {path}")
            decision = self.prompter.confirm("Copy them to the new worktree?", default=False)
        elif decision:
            self.console.print("\nCopying environment files:")
            for path in env_files:
                self.console.print(f"  • {path}")

        if decision:
            self.env_files.copy(env_files, source_root, dest_root)
            self.console.print("[green]✓[/green] Environment files copied successfully")
