"""Deterministic error model and exit code contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    STORE_ERROR = 5
    LAUNCH_ERROR = 6
    VALIDATION_ERROR = 7
    DEPENDENCY_MISSING = 8


@dataclass
class IdentityManagerError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


class InvalidNameError(IdentityManagerError):
    def __init__(self, name: str, *, hint: str = "") -> None:
        super().__init__(
            f"Invalid identity name: '{name}'",
            code=ExitCode.VALIDATION_ERROR,
            hint=hint
            or (
                "Names must start with a letter or number and contain only letters, "
                "numbers, underscores, or hyphens."
            ),
        )
        self.name = name


class AlreadyExistsError(IdentityManagerError):
    def __init__(self, name: str) -> None:
        super().__init__(
            f"An identity named '{name}' already exists",
            code=ExitCode.STORE_ERROR,
            hint="Choose a different name.",
        )
        self.name = name


class NotFoundError(IdentityManagerError):
    def __init__(self, name: str) -> None:
        super().__init__(
            f"Identity '{name}' not found",
            code=ExitCode.STORE_ERROR,
            hint="Run `list` to see the available identities.",
        )
        self.name = name


class PathConflictError(IdentityManagerError):
    def __init__(self, path: str) -> None:
        super().__init__(
            f"Path exists but is not a directory: {path}",
            code=ExitCode.STORE_ERROR,
            hint="Move or remove the file so the identities directory can be created.",
        )
        self.path = path


class ExecutableNotFoundError(IdentityManagerError):
    def __init__(self, executable: str = "claude") -> None:
        super().__init__(
            f"{executable} executable not found",
            code=ExitCode.DEPENDENCY_MISSING,
            hint=f"Install {executable} and make sure it is available in your PATH.",
        )
        self.executable = executable


class IdentityDirectoryMissingError(IdentityManagerError):
    def __init__(self, name: str) -> None:
        super().__init__(
            f"Identity directory for '{name}' does not exist",
            code=ExitCode.STORE_ERROR,
            hint="The identity was removed outside the manager; refresh the list.",
        )
        self.name = name


class TerminalNotInstalledError(IdentityManagerError):
    def __init__(self, display_name: str) -> None:
        super().__init__(
            f"{display_name} is not installed on this system",
            code=ExitCode.DEPENDENCY_MISSING,
            hint="Install it or pick another terminal with `set-terminal`.",
        )
        self.display_name = display_name


class ScriptCreationFailedError(IdentityManagerError):
    def __init__(self, detail: str = "") -> None:
        super().__init__(
            "Failed to create the terminal launch script",
            code=ExitCode.LAUNCH_ERROR,
            hint=detail,
        )
        self.detail = detail


class LaunchFailedError(IdentityManagerError):
    def __init__(self, detail: str) -> None:
        super().__init__(
            f"Failed to launch claude: {detail}",
            code=ExitCode.LAUNCH_ERROR,
            hint="Check that the terminal may be controlled by automation in System Settings.",
        )
        self.detail = detail


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
