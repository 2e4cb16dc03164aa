"""Configuration handling for git-worktree-keeper"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional, Union

from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)

CONFIG_FILE_NAME = ".gwrc"
CONFIG_PATH_ENV = "GW_CONFIG"

# Keys accepted in the config file, mapped to Config field names
_FILE_KEYS = {
    "auto_cd": "auto_cd",
    "copy_envs": "copy_envs",
    "auto_remove_branch": "auto_remove_branch",
    "update_iterm2_tab": "update_terminal_tab",
    "update_terminal_tab": "update_terminal_tab",
    "main_branch": "main_branch",
    "remote": "remote_name",
}


@dataclass
class Config:
    """Configuration for git-worktree-keeper with validation."""

    # Lifecycle behaviour
    auto_cd: bool = True
    copy_envs: Optional[bool] = None  # None = not configured, prompt the user
    auto_remove_branch: bool = False
    update_terminal_tab: bool = False

    # Repository layout
    main_branch: str = "main"
    remote_name: str = "origin"

    # Git command timeouts in seconds
    fetch_timeout: float = 10.0
    command_timeout: float = 60.0

    # Output
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_main_branch()
        self._validate_remote_name()
        self._validate_timeouts()

    def _validate_main_branch(self):
        """Validate main_branch is not empty."""
        if not self.main_branch or not self.main_branch.strip():
            raise ValueError("main_branch cannot be empty")
        self.main_branch = self.main_branch.strip()

    def _validate_remote_name(self):
        """Validate remote_name is not empty."""
        if not self.remote_name or not self.remote_name.strip():
            raise ValueError("remote_name cannot be empty")
        self.remote_name = self.remote_name.strip()

    def _validate_timeouts(self):
        """Validate timeouts are positive."""
        for name in ("fetch_timeout", "command_timeout"):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)


def get_config_path() -> Path:
    """Return the config file path, honouring the GW_CONFIG override."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_FILE_NAME


def _parse_value(field_name: str, raw: str) -> Union[bool, str]:
    if field_name in ("main_branch", "remote_name"):
        return raw.strip().strip('"').strip("'")
    return raw.strip().lower() == "true"


def load_config(path: Optional[Union[str, Path]] = None, **overrides) -> Config:
    """Load configuration from a ``key = value`` file.

    A missing file yields the defaults. Unknown keys and malformed lines are
    skipped. Keyword overrides (typically from the command line) win over the
    file; ``None`` overrides are ignored.

    Args:
        path: Config file path, defaults to ``get_config_path()``
        **overrides: Config field values that take precedence over the file

    Returns:
        Loaded Config
    """
    config_path = Path(path) if path is not None else get_config_path()
    values: dict = {}

    if config_path.is_file():
        logger.debug(f"Loading config from {config_path}")
        for line in config_path.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            key, sep, raw = line.partition("=")
            if not sep:
                continue
            # Allow trailing comments after the value
            raw = raw.split("#", 1)[0]
            field_name = _FILE_KEYS.get(key.strip())
            if field_name is None:
                logger.debug(f"Ignoring unknown config key '{key.strip()}'")
                continue
            values[field_name] = _parse_value(field_name, raw)
    else:
        logger.debug(f"No config file at {config_path}, using defaults")

    values.update({k: v for k, v in overrides.items() if v is not None})
    return Config.from_dict(values)
