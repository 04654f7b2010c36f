"""External process seam and log-safe command rendering."""

from __future__ import annotations

import shlex
import subprocess
from typing import Any, Protocol

DEFAULT_LOG_TRUNCATE_LIMIT = 400


class CommandRunner(Protocol):
    def __call__(self, args: list[str], **kwargs: Any) -> subprocess.CompletedProcess[str]: ...


def truncate_log(value: str, limit: int = DEFAULT_LOG_TRUNCATE_LIMIT) -> str:
    """Truncate log text to the specified limit with ellipsis."""
    value = value.strip()
    if len(value) <= limit:
        return value
    return value[: max(0, limit - 3)] + "..."


def command_for_log(args: list[str]) -> str:
    """Return a shell-safe command string bounded for logging."""
    if not args:
        return ""
    return truncate_log(" ".join(shlex.quote(part) for part in args))


def output_text(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
