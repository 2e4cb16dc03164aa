"""Package manager detection and dependency installation for new worktrees"""

import os
import subprocess
from dataclasses import dataclass
from typing import Optional

from rich.console import Console

from git_worktree_keeper.logging_config import get_logger

console = Console(stderr=True)
logger = get_logger(__name__)


@dataclass(frozen=True)
class PackageManager:
    """A package manager, the file that reveals it and its install command."""

    name: str
    marker_file: str
    install_cmd: tuple[str, ...]
    javascript: bool = False


PACKAGE_MANAGERS: tuple[PackageManager, ...] = (
    PackageManager("npm", "package-lock.json", ("npm", "install"), javascript=True),
    PackageManager("yarn", "yarn.lock", ("yarn", "install"), javascript=True),
    PackageManager("pnpm", "pnpm-lock.yaml", ("pnpm", "install"), javascript=True),
    PackageManager("cargo", "Cargo.toml", ("cargo", "build")),
    PackageManager("go", "go.mod", ("go", "mod", "download")),
    PackageManager("pip", "requirements.txt", ("pip", "install", "-r", "requirements.txt")),
    PackageManager("bundler", "Gemfile", ("bundle", "install")),
)

JAVASCRIPT_MANIFEST = "package.json"


def detect_package_manager(directory: str) -> Optional[PackageManager]:
    """Detect the package manager used in ``directory``.

    A ``package.json`` selects npm, yarn or pnpm by lock file (npm when no
    lock file is present). Otherwise the first other marker found wins.
    """
    def has(name: str) -> bool:
        return os.path.isfile(os.path.join(directory, name))

    if has(JAVASCRIPT_MANIFEST):
        javascript = [pm for pm in PACKAGE_MANAGERS if pm.javascript]
        for pm in javascript:
            if has(pm.marker_file):
                return pm
        return javascript[0]

    for pm in PACKAGE_MANAGERS:
        if not pm.javascript and has(pm.marker_file):
            return pm
    return None


class PackageSetupService:
    """Runs the detected install command inside a fresh worktree."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def setup(self, worktree_path: str) -> bool:
        """Install dependencies in ``worktree_path``.

        Returns:
            True when nothing needed installing or the install succeeded,
            False when the install command failed or could not be started
        """
        pm = detect_package_manager(worktree_path)
        if pm is None:
            logger.info("No package manager detected, skipping setup")
            return True

        console.print(f"Detected [cyan]{pm.name}[/cyan], running setup...")
        try:
            subprocess.run(list(pm.install_cmd), cwd=worktree_path, check=True, timeout=self.timeout)
        except FileNotFoundError:
            logger.warning(f"{pm.install_cmd[0]} is not installed, skipping setup")
            return False
        except subprocess.CalledProcessError as e:
            logger.warning(f"{pm.name} setup failed with exit code {e.returncode}")
            return False
        except subprocess.TimeoutExpired:
            logger.warning(f"{pm.name} setup timed out after {self.timeout:g}s")
            return False

        console.print(f"[green]✓ {pm.name} setup completed[/green]")
        return True
