"""Fixed paths, names and identifiers shared across the package."""

from __future__ import annotations

import re
from pathlib import Path

EXECUTABLE_NAME = "claude"
CONFIG_DIR_ENV = "CLAUDE_CONFIG_DIR"

CLAUDE_HOME_DIRNAME = ".claude"
IDENTITIES_DIRNAME = "identities"
STATE_FILENAME = "identity-manager-state.json"

IDENTITY_NAME_PATTERN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]*", re.ASCII)
MAX_IDENTITY_NAME_LENGTH = 64
RESERVED_NAMES: frozenset[str] = frozenset(
    {"identities", "state", "config", "cache", "logs", "settings"}
)

LAUNCH_SCRIPT_PREFIX = "claude-launch-"
LAUNCH_SCRIPT_CLEANUP_DELAY_SECONDS = 5.0
LAUNCH_SHELL = "/bin/zsh"
CLEANUP_SHELL = "/bin/sh"

APPLICATION_DIRS: tuple[str, ...] = (
    "/Applications",
    "/System/Applications",
    "/System/Applications/Utilities",
    "~/Applications",
)


def claude_home(home: Path | None = None) -> Path:
    return (home or Path.home()) / CLAUDE_HOME_DIRNAME


def default_identities_dir(home: Path | None = None) -> Path:
    return claude_home(home) / IDENTITIES_DIRNAME


def state_file_path(home: Path | None = None) -> Path:
    """Caller-side UI state file; reserved and never touched by the store."""
    return claude_home(home) / STATE_FILENAME


def executable_candidates(name: str = EXECUTABLE_NAME, home: Path | None = None) -> list[Path]:
    user_home = home or Path.home()
    return [
        Path("/usr/local/bin") / name,
        Path("/opt/homebrew/bin") / name,
        user_home / ".local" / "bin" / name,
        user_home / CLAUDE_HOME_DIRNAME / "local" / name,
    ]
