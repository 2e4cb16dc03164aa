"""Safe removal of task worktrees."""

import os
from dataclasses import dataclass, field
from typing import Optional, Union, TYPE_CHECKING

from rich.console import Console

from git_worktree_keeper.exceptions import (
    CancelledError,
    GitWorktreeKeeperError,
    InvalidIdentifierError,
    UnsafeRemovalError,
    WorktreeNotFoundError,
)
from git_worktree_keeper.core.locator import find_worktree
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.safety import SafetyVerdict
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.services.git.inspector import RepositoryInspector
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.services.safety_service import SafetyEvaluator
from git_worktree_keeper.services.terminal_tab import TerminalTabService
from git_worktree_keeper.ui.selector import describe_worktree, filter_task_worktrees

if TYPE_CHECKING:
    from git_worktree_keeper.config import Config
    from git_worktree_keeper.ui.prompts import Prompter
    from git_worktree_keeper.ui.selector import Selector

logger = get_logger(__name__)


@dataclass
class RemovalResult:
    """What ``WorktreeRemover.remove`` did."""

    record: WorktreeRecord
    branch_deleted: bool = False
    warnings: list[str] = field(default_factory=list)
    verdict: Optional[SafetyVerdict] = None  # None when --force skipped the checks


class WorktreeRemover:
    """Removes a worktree after checking that no work would be lost."""

    def __init__(
        self,
        inspector: RepositoryInspector,
        worktree_service: WorktreeService,
        config: Union["Config", dict],
        prompter: "Prompter",
        selector: Optional["Selector"] = None,
        evaluator: Optional[SafetyEvaluator] = None,
        terminal_tab: Optional[TerminalTabService] = None,
        console: Optional[Console] = None,
    ):
        self.inspector = inspector
        self.worktree_service = worktree_service
        self.config = config
        self.prompter = prompter
        self.selector = selector
        self.evaluator = evaluator or SafetyEvaluator(config)
        self.terminal_tab = terminal_tab or TerminalTabService(config.get("update_terminal_tab", False))
        self.console = console or Console(stderr=True)
        self.auto_remove_branch = config.get("auto_remove_branch", False)
        self.main_branch = config.get("main_branch", "main")

    def resolve(self, identifier: Optional[str] = None) -> WorktreeRecord:
        """Find the worktree to remove, asking the selector when no identifier is given.

        Raises:
            WorktreeNotFoundError: unknown identifier or no task worktrees
            InvalidIdentifierError: the main worktree or the one we run in
            CancelledError: the selector was cancelled
        """
        records = self.inspector.list_worktrees()

        if identifier is not None and identifier.strip():
            repo_name = os.path.basename(records[0].path.rstrip(os.sep)) if records else ""
            record = find_worktree(records, identifier, repo_name)
            if record is None:
                raise WorktreeNotFoundError(identifier)
        else:
            candidates = filter_task_worktrees(records)
            if not candidates:
                raise WorktreeNotFoundError(message="No task worktrees found")
            if self.selector is None:
                raise InvalidIdentifierError("", "an identifier is required when not running interactively")
            record = self.selector.choose("Select a worktree to remove:", candidates,
                                          label=describe_worktree)
            if record is None:
                raise CancelledError()
            identifier = record.branch or record.name

        if record.is_main:
            raise InvalidIdentifierError(identifier, "refusing to remove the main worktree")
        if record.is_current:
            raise InvalidIdentifierError(
                identifier, "cannot remove the worktree you are in; change directory first"
            )
        return record

    def check(self, record: WorktreeRecord) -> SafetyVerdict:
        """Evaluate removal safety, confirming warnings with the user.

        Raises:
            UnsafeRemovalError: uncommitted changes
            CancelledError: the user declined to continue past the warnings
        """
        verdict = self.evaluator.assess(self.inspector, record, self.main_branch)

        if verdict.blocking:
            raise UnsafeRemovalError(verdict.blocking, record.path)

        if verdict.warnings:
            self.console.print("\n[yellow]⚠ Safety check warnings:[/yellow]")
            for reason in verdict.reasons:
                self.console.print(f"  • {reason.description}")
            if record.is_orphaned:
                self.console.print(
                    f"[dim]  {record.path} no longer exists; branch {record.branch} will be deleted[/dim]"
                )
            if verdict.possibly_stale:
                self.console.print(
                    "[dim]  Could not reach the remote; merge status is based on local data[/dim]"
                )
            if not self.prompter.confirm("Do you want to continue?", default=False):
                raise CancelledError()

        return verdict

    def remove(self, identifier: Optional[str] = None, force: bool = False) -> RemovalResult:
        """Remove the worktree for ``identifier`` (or one picked interactively).

        With ``force`` the safety checks and the confirmation are skipped
        and git is told to discard local changes.
        """
        record = self.resolve(identifier)
        self.console.print(f"Checking worktree for [cyan]{record.branch or record.name}[/cyan]...")

        # An orphaned worktree has nothing left on disk, but its branch does
        deletes_branch = self.auto_remove_branch and bool(record.branch)
        verdict = None
        if not force and (not record.is_orphaned or deletes_branch):
            verdict = self.check(record)

        if record.is_orphaned:
            logger.info(f"{record.path} no longer exists, pruning its metadata")
            self.worktree_service.prune_worktrees()
        else:
            self.console.print(f"Removing worktree at {record.path}...")
            self.worktree_service.remove_worktree(record.path, force=force)
        self.console.print(f"[green]✓[/green] Successfully removed worktree at {record.path}")

        result = RemovalResult(record=record, verdict=verdict)

        if self.auto_remove_branch and record.branch:
            try:
                self.worktree_service.delete_branch(record.branch)
                result.branch_deleted = True
                self.console.print(f"[green]✓[/green] Deleted branch {record.branch}")
            except GitWorktreeKeeperError as e:
                message = f"Failed to delete branch {record.branch}: {e}"
                logger.warning(message)
                result.warnings.append(message)
                self.console.print(f"[yellow]⚠ {message}[/yellow]")

        if self.terminal_tab.active and not self.terminal_tab.reset():
            result.warnings.append("Could not reset terminal tab title")

        return result
