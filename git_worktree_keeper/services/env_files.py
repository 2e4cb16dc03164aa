"""Discovery and copying of untracked .env files"""

import os
import shutil
from typing import Iterable, Union, TYPE_CHECKING

from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.services.git.commands import open_repo, run_git

if TYPE_CHECKING:
    from git_worktree_keeper.config import Config

logger = get_logger(__name__)

ENV_FILE_PREFIX = ".env"
SKIPPED_DIRS = frozenset({".git", "node_modules", "vendor", "dist", "build"})
ENV_FILE_MODE = 0o600


class EnvFileService:
    """Finds untracked ``.env*`` files in a worktree and copies them to another."""

    def __init__(self, config: Union["Config", dict]):
        self.timeout = config.get("command_timeout", 60.0)

    def _tracked_files(self, repo_root: str) -> set[str]:
        # -z keeps non-ASCII paths unquoted
        output = run_git(open_repo(repo_root), "ls-files", "ls-files", "-z", cwd=repo_root,
                         timeout=self.timeout)
        return {os.path.normpath(path) for path in output.split("\0") if path}

    def discover(self, repo_root: str) -> list[str]:
        """Return relative paths of untracked ``.env*`` files under ``repo_root``.

        Dependency and build directories are not searched.
        """
        candidates = []
        for dirpath, dirnames, filenames in os.walk(repo_root):
            dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRS)
            for filename in sorted(filenames):
                if filename.startswith(ENV_FILE_PREFIX):
                    full_path = os.path.join(dirpath, filename)
                    candidates.append(os.path.relpath(full_path, repo_root))

        if not candidates:
            return []

        tracked = self._tracked_files(repo_root)
        untracked = [path for path in candidates if os.path.normpath(path) not in tracked]
        logger.debug(f"Found {len(untracked)} untracked env files in {repo_root}")
        return untracked

    def copy(self, paths: Iterable[str], source_root: str, dest_root: str) -> list[str]:
        """Copy relative ``paths`` from ``source_root`` into ``dest_root``.

        Parent directories are created as needed and every copy is made
        readable by the owner only.

        Returns:
            The relative paths that were copied
        """
        copied = []
        for rel_path in paths:
            src = os.path.join(source_root, rel_path)
            dest = os.path.join(dest_root, rel_path)
            os.makedirs(os.path.dirname(dest), exist_ok=True)
            shutil.copyfile(src, dest)
            os.chmod(dest, ENV_FILE_MODE)
            logger.info(f"Copied {rel_path}")
            copied.append(rel_path)
        return copied
