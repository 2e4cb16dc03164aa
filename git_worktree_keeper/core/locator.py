"""Maps identifiers to existing worktrees."""

import os
from typing import Optional, Sequence

from git_worktree_keeper.exceptions import WorktreeNotFoundError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.worktree import WorktreeRecord
from git_worktree_keeper.naming import derive_branch, derive_slug, is_issue_number, worktree_dir_name
from git_worktree_keeper.services.git.inspector import RepositoryInspector

logger = get_logger(__name__)


def find_worktree(
    records: Sequence[WorktreeRecord], identifier: str, repo_name: str
) -> Optional[WorktreeRecord]:
    """Find the worktree an identifier refers to.

    Tried in order: the derived branch or the identifier itself as branch
    name, a branch starting with ``identifier/`` (issue numbers only), then
    the directory name itself or the sibling name the creator would have
    used.
    """
    identifier = identifier.strip()
    if not identifier:
        return None

    branch = derive_branch(identifier)
    for record in records:
        if record.branch in (branch, identifier):
            return record

    if is_issue_number(identifier):
        for record in records:
            if record.branch and record.branch.startswith(f"{identifier}/"):
                return record

    expected = {identifier, worktree_dir_name(repo_name, identifier), f"{repo_name}-{identifier}"}
    for record in records:
        if not record.is_main and record.name in expected:
            return record

    return None


class WorktreeLocator:
    """Resolves worktree paths for the shell integration."""

    def __init__(self, inspector: RepositoryInspector):
        self.inspector = inspector

    def locate(self, identifier: str) -> WorktreeRecord:
        """Return the worktree for ``identifier``.

        Raises:
            WorktreeNotFoundError: when nothing matches
        """
        records = self.inspector.list_worktrees()
        repo_name = os.path.basename(records[0].path.rstrip(os.sep)) if records else ""
        record = find_worktree(records, identifier, repo_name)
        if record is None:
            raise WorktreeNotFoundError(identifier, f"Worktree not found for: {identifier}")
        logger.debug(f"Located {identifier} at {record.path}")
        return record

    def print_path(self, identifier: str) -> str:
        """Absolute path for ``identifier``, for ``gw shell-integration --print-path``.

        Falls back to the sibling directory when it exists but git no longer
        lists it (e.g. after a manual move of the metadata).
        """
        try:
            return self.locate(identifier).path
        except WorktreeNotFoundError:
            main_path = self.inspector.main_worktree_path()
            repo_name = os.path.basename(main_path.rstrip(os.sep))
            parent = os.path.dirname(main_path.rstrip(os.sep))
            for name in (f"{repo_name}-{identifier}", f"{repo_name}-{derive_slug(identifier)}"):
                candidate = os.path.join(parent, name)
                if os.path.isdir(candidate):
                    return candidate
            raise
