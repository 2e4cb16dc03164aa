"""Bulk removal of finished worktrees (``gw clean``)."""

from dataclasses import dataclass, field
from typing import Optional, Union, TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from git_worktree_keeper.exceptions import CancelledError, GitWorktreeKeeperError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.safety import SafetyVerdict
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.services.git.inspector import RepositoryInspector
from git_worktree_keeper.services.git.worktrees import WorktreeService
from git_worktree_keeper.services.safety_service import SafetyEvaluator

if TYPE_CHECKING:
    from git_worktree_keeper.config import Config
    from git_worktree_keeper.ui.prompts import Prompter

logger = get_logger(__name__)


@dataclass
class CleanCandidate:
    """A worktree considered by ``gw clean`` and why it can or cannot go."""

    record: WorktreeRecord
    verdict: Optional[SafetyVerdict] = None
    error: Optional[str] = None

    @property
    def removable(self) -> bool:
        return self.error is None and self.verdict is not None and self.verdict.is_clean

    @property
    def reasons(self) -> list[str]:
        if self.error:
            return [self.error]
        if self.verdict is None:
            return []
        return [reason.description for reason in self.verdict.reasons]


@dataclass
class CleanReport:
    candidates: list[CleanCandidate] = field(default_factory=list)
    removed: list[WorktreeRecord] = field(default_factory=list)
    failed: list[tuple[WorktreeRecord, str]] = field(default_factory=list)

    @property
    def removable(self) -> list[CleanCandidate]:
        return [c for c in self.candidates if c.removable]


class WorktreeCleaner:
    """Removes every worktree with nothing to lose.

    Only worktrees whose verdict has neither blocking reasons nor warnings
    are removed; anything else is listed with its reasons and left alone.
    ``force`` only skips the confirmation, never the safety checks.
    """

    def __init__(
        self,
        inspector: RepositoryInspector,
        worktree_service: WorktreeService,
        config: Union["Config", dict],
        prompter: "Prompter",
        evaluator: Optional[SafetyEvaluator] = None,
        console: Optional[Console] = None,
    ):
        self.inspector = inspector
        self.worktree_service = worktree_service
        self.prompter = prompter
        self.evaluator = evaluator or SafetyEvaluator(config)
        self.console = console or Console(stderr=True)
        self.main_branch = config.get("main_branch", "main")
        self.auto_remove_branch = config.get("auto_remove_branch", False)

    def _candidates(self) -> list[WorktreeRecord]:
        skipped = {self.main_branch, "main", "master"}
        return [
            record
            for record in self.inspector.list_worktrees()
            if not record.is_main
            and not record.is_current
            and not record.is_orphaned
            and record.branch
            and record.branch not in skipped
        ]

    def evaluate(self) -> CleanReport:
        """Assess every candidate worktree, fetching from the remote once."""
        self.console.print("Checking worktrees...")
        report = CleanReport()
        records = self._candidates()
        if not records:
            return report

        refreshed = self.inspector.fetch_integration_branch(self.main_branch)
        for record in records:
            candidate = CleanCandidate(record=record)
            try:
                candidate.verdict = self.evaluator.assess(
                    self.inspector, record, self.main_branch, refreshed=refreshed
                )
            except GitWorktreeKeeperError as e:
                logger.warning(f"Could not check {record.path}: {e}")
                candidate.error = f"could not be checked: {e}"
            report.candidates.append(candidate)
        return report

    def display(self, report: CleanReport) -> None:
        table = Table()
        table.add_column("Worktree")
        table.add_column("Branch")
        table.add_column("Status")
        for candidate in report.candidates:
            if candidate.removable:
                status = "[green]removable[/green]"
            else:
                status = "[red]" + ", ".join(candidate.reasons) + "[/red]"
            table.add_row(candidate.record.name, candidate.record.branch, status)
        self.console.print(table)

    def clean(self, force: bool = False, dry_run: bool = False) -> CleanReport:
        """Evaluate, show and (unless ``dry_run``) remove clean worktrees.

        Raises:
            CancelledError: the user declined the removal
        """
        report = self.evaluate()
        if report.candidates:
            self.display(report)

        removable = report.removable
        if not removable:
            self.console.print("\nNo worktrees to remove.")
            return report
        if dry_run:
            self.console.print("\nDry-run mode: no changes made.")
            return report

        if not force:
            noun = "worktree" if len(removable) == 1 else "worktrees"
            if not self.prompter.confirm(f"Remove {len(removable)} {noun}?", default=False):
                raise CancelledError()

        for candidate in removable:
            record = candidate.record
            try:
                self.worktree_service.remove_worktree(record.path)
            except GitWorktreeKeeperError as e:
                logger.warning(f"Failed to remove {record.path}: {e}")
                report.failed.append((record, str(e)))
                self.console.print(f"[red]✗[/red] {record.name}: {e}")
                continue
            report.removed.append(record)
            self.console.print(f"[green]✓[/green] Removed {record.name}")

            if self.auto_remove_branch:
                try:
                    self.worktree_service.delete_branch(record.branch)
                except GitWorktreeKeeperError as e:
                    self.console.print(f"[yellow]⚠ Failed to delete branch {record.branch}: {e}[/yellow]")

        self.console.print(
            f"\nRemoved {len(report.removed)} worktree(s)"
            + (f", {len(report.failed)} failed" if report.failed else "")
        )
        return report
