from __future__ import annotations

import pytest

from claudeidentity.errors import (
    AlreadyExistsError,
    ExecutableNotFoundError,
    ExitCode,
    IdentityDirectoryMissingError,
    IdentityManagerError,
    InvalidNameError,
    LaunchFailedError,
    NotFoundError,
    PathConflictError,
    ScriptCreationFailedError,
    TerminalNotInstalledError,
    user_facing_error,
)
from claudeidentity.logging import LOG_LEVELS, configure_logging


def test_exit_codes_are_deterministic() -> None:
    assert int(ExitCode.SUCCESS) == 0
    assert int(ExitCode.INVALID_ARGS) == 2
    assert int(ExitCode.STORE_ERROR) == 5
    assert int(ExitCode.DEPENDENCY_MISSING) == 8


def test_identity_manager_error_string_contains_hint() -> None:
    err = IdentityManagerError("claude not found", code=ExitCode.DEPENDENCY_MISSING, hint="Install it")
    assert "Install it" in str(err)


def test_user_facing_error_template() -> None:
    text = user_facing_error("Invalid identity name", hint="Use letters and digits")
    assert text.startswith("Error:")
    assert "Next step" in text
    assert user_facing_error("Boom") == "Error: Boom."


@pytest.mark.parametrize(
    ("error", "code", "attribute", "value"),
    [
        (InvalidNameError("bad/name"), ExitCode.VALIDATION_ERROR, "name", "bad/name"),
        (AlreadyExistsError("work"), ExitCode.STORE_ERROR, "name", "work"),
        (NotFoundError("work"), ExitCode.STORE_ERROR, "name", "work"),
        (PathConflictError("/tmp/x"), ExitCode.STORE_ERROR, "path", "/tmp/x"),
        (ExecutableNotFoundError(), ExitCode.DEPENDENCY_MISSING, "executable", "claude"),
        (IdentityDirectoryMissingError("work"), ExitCode.STORE_ERROR, "name", "work"),
        (TerminalNotInstalledError("iTerm2"), ExitCode.DEPENDENCY_MISSING, "display_name", "iTerm2"),
        (ScriptCreationFailedError("no osascript"), ExitCode.LAUNCH_ERROR, "detail", "no osascript"),
        (LaunchFailedError("not allowed"), ExitCode.LAUNCH_ERROR, "detail", "not allowed"),
    ],
)
def test_taxonomy_carries_code_and_subject(
    error: IdentityManagerError, code: ExitCode, attribute: str, value: str
) -> None:
    assert isinstance(error, IdentityManagerError)
    assert error.code == code
    assert getattr(error, attribute) == value
    assert error.message


def test_launch_failed_message_includes_tool_output() -> None:
    err = LaunchFailedError("Not authorized to send Apple events to Terminal.")
    assert "Not authorized" in err.message


def test_invalid_name_accepts_custom_hint() -> None:
    err = InvalidNameError("state", hint="'state' is reserved.")
    assert err.hint == "'state' is reserved."


def test_logging_levels() -> None:
    logger = configure_logging("WARN")
    assert logger.level == LOG_LEVELS["WARN"]
