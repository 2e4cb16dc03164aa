"""Removal safety models and reason codes."""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional


class ReasonCode(Enum):
    """Why removing a worktree might lose work."""

    DIRTY_WORKTREE = "DIRTY_WORKTREE"
    UNPUSHED_ASSUMED = "UNPUSHED_ASSUMED"
    UNPUSHED_COMMITS = "UNPUSHED_COMMITS"
    NOT_MERGED = "NOT_MERGED"

    @property
    def description(self) -> str:
        """Human readable explanation shown to the user."""
        return REASON_DESCRIPTIONS[self]


REASON_DESCRIPTIONS = {
    ReasonCode.DIRTY_WORKTREE: "You have uncommitted changes",
    ReasonCode.UNPUSHED_ASSUMED: "Branch has no upstream; commits may not have been pushed",
    ReasonCode.UNPUSHED_COMMITS: "You have unpushed commits",
    ReasonCode.NOT_MERGED: "Branch is not merged to the integration branch",
}


@dataclass(frozen=True)
class MergeCheck:
    """Result of a merge-membership query."""

    merged: bool
    method: Optional[str] = None  # Which check proved the merge
    possibly_stale: bool = False  # Based on un-refreshed local state


@dataclass(frozen=True)
class SafetySignals:
    """Raw inspector outputs consumed by the safety evaluator.

    ``ahead`` is only meaningful when ``has_upstream`` is True.
    """

    has_uncommitted_changes: bool
    has_upstream: bool
    ahead: int = 0
    behind: int = 0
    is_merged: bool = False
    merge_method: Optional[str] = None
    possibly_stale: bool = False


@dataclass(frozen=True)
class SafetyVerdict:
    """Aggregated decision on whether a worktree may be removed."""

    has_uncommitted_changes: bool
    has_unpushed_commits: bool
    is_merged_to_main: bool
    has_upstream: bool
    blocking: FrozenSet[ReasonCode] = field(default_factory=frozenset)
    warnings: FrozenSet[ReasonCode] = field(default_factory=frozenset)
    possibly_stale: bool = False

    @property
    def can_proceed(self) -> bool:
        """True when removal may go ahead without --force."""
        return not self.blocking

    @property
    def is_clean(self) -> bool:
        """True when there is nothing to block or warn about."""
        return not self.blocking and not self.warnings

    @property
    def reasons(self) -> list[ReasonCode]:
        """Blocking reasons first, then warnings, in a stable order."""
        ordered = list(ReasonCode)
        return [r for r in ordered if r in self.blocking] + [
            r for r in ordered if r in self.warnings
        ]
