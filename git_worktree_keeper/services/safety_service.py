"""Service for deciding whether a worktree can be removed safely"""

from typing import Optional, Union, TYPE_CHECKING

from git_worktree_keeper.exceptions import VcsCommandFailedError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.safety import (
    MergeCheck,
    ReasonCode,
    SafetySignals,
    SafetyVerdict,
)
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.services.git.commands import working_directory
from git_worktree_keeper.services.git.merge_detector import describe_method

if TYPE_CHECKING:
    from git_worktree_keeper.config import Config
    from git_worktree_keeper.services.git.inspector import RepositoryInspector

logger = get_logger(__name__)


class SafetyEvaluator:
    """Turns repository signals into a removal verdict.

    Only uncommitted changes block removal. Everything else is a warning the
    user may confirm past, or override with --force.
    """

    def __init__(self, config: Union["Config", dict]):
        self.main_branch = config.get("main_branch", "main")

    @staticmethod
    def evaluate(signals: SafetySignals) -> SafetyVerdict:
        """Pure decision function: signals in, verdict out."""
        blocking = set()
        warnings = set()

        if signals.has_uncommitted_changes:
            blocking.add(ReasonCode.DIRTY_WORKTREE)

        merged = signals.is_merged
        if not merged:
            if not signals.has_upstream:
                warnings.add(ReasonCode.UNPUSHED_ASSUMED)
            elif signals.ahead > 0:
                warnings.add(ReasonCode.UNPUSHED_COMMITS)
            if not blocking:
                warnings.add(ReasonCode.NOT_MERGED)

        unpushed = not merged and (not signals.has_upstream or signals.ahead > 0)

        return SafetyVerdict(
            has_uncommitted_changes=signals.has_uncommitted_changes,
            has_unpushed_commits=unpushed,
            is_merged_to_main=merged,
            has_upstream=signals.has_upstream,
            blocking=frozenset(blocking),
            warnings=frozenset(warnings),
            possibly_stale=signals.possibly_stale,
        )

    def gather(
        self,
        inspector: "RepositoryInspector",
        record: WorktreeRecord,
        integration_branch: Optional[str] = None,
        refreshed: Optional[bool] = None,
    ) -> SafetySignals:
        """Collect the raw signals for one worktree.

        Runs from inside the worktree directory; the previous working
        directory is restored however this returns.

        Args:
            inspector: Inspector for the repository
            record: Worktree to check
            integration_branch: Defaults to the configured main branch
            refreshed: Result of an earlier fetch; when None, fetch now
        """
        with working_directory(record.path):
            try:
                dirty = not inspector.status_clean(record.path)
            except VcsCommandFailedError as e:
                # Unknown state must never look safe
                logger.warning(f"Could not check status of {record.path}, assuming dirty: {e}")
                dirty = True

            if not record.branch:
                logger.debug(f"{record.path} has a detached HEAD, nothing to compare")
            return self._branch_signals(inspector, record.branch, integration_branch, dirty, refreshed)

    def gather_branch(
        self,
        inspector: "RepositoryInspector",
        branch: str,
        integration_branch: Optional[str] = None,
        refreshed: Optional[bool] = None,
    ) -> SafetySignals:
        """Collect the branch-level signals when there is no directory to look at.

        Used for worktrees whose directory is already gone: nothing can be
        uncommitted, but the branch may still hold unpushed or unmerged work.
        """
        return self._branch_signals(inspector, branch, integration_branch, False, refreshed)

    def _branch_signals(
        self,
        inspector: "RepositoryInspector",
        branch: str,
        integration_branch: Optional[str],
        dirty: bool,
        refreshed: Optional[bool],
    ) -> SafetySignals:
        integration_branch = integration_branch or self.main_branch
        if refreshed is None:
            refreshed = inspector.fetch_integration_branch(integration_branch)

        if not branch:
            return SafetySignals(
                has_uncommitted_changes=dirty,
                has_upstream=False,
                possibly_stale=not refreshed,
            )

        has_upstream = inspector.has_upstream(branch)
        ahead, behind = inspector.ahead_behind(branch) if has_upstream else (0, 0)
        merge: MergeCheck = inspector.is_merged_to_integration_branch(
            branch, integration_branch, refreshed=refreshed
        )

        signals = SafetySignals(
            has_uncommitted_changes=dirty,
            has_upstream=has_upstream,
            ahead=ahead,
            behind=behind,
            is_merged=merge.merged,
            merge_method=merge.method,
            possibly_stale=merge.possibly_stale,
        )
        logger.info(f"{branch}: {describe_method(merge.method)}")
        logger.debug(f"Safety signals for {branch}: {signals}")
        return signals

    def assess(
        self,
        inspector: "RepositoryInspector",
        record: WorktreeRecord,
        integration_branch: Optional[str] = None,
        refreshed: Optional[bool] = None,
    ) -> SafetyVerdict:
        """Gather signals for ``record`` and evaluate them.

        An orphaned record only has its branch checked.
        """
        if record.is_orphaned:
            signals = self.gather_branch(inspector, record.branch, integration_branch, refreshed)
        else:
            signals = self.gather(inspector, record, integration_branch, refreshed)
        verdict = self.evaluate(signals)
        logger.info(
            f"Verdict for {record.branch or record.path}: "
            f"blocking={sorted(r.value for r in verdict.blocking)} "
            f"warnings={sorted(r.value for r in verdict.warnings)}"
        )
        return verdict
