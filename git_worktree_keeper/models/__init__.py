"""Data models for git-worktree-keeper."""

from .worktree import WorktreeRecord
from .safety import MergeCheck, ReasonCode, SafetySignals, SafetyVerdict

__all__ = ["WorktreeRecord", "MergeCheck", "ReasonCode", "SafetySignals", "SafetyVerdict"]
