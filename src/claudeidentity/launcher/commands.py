"""Shell command and automation script builders for terminal launches."""

from __future__ import annotations

from pathlib import Path

from claudeidentity.constants import CONFIG_DIR_ENV, LAUNCH_SHELL
from claudeidentity.launcher.terminals import LaunchMechanism, TerminalApp


def single_quote(value: str) -> str:
    """Wrap ``value`` in single quotes, escaping embedded quotes for POSIX shells."""
    return "'" + value.replace("'", "'\"'\"'") + "'"


def applescript_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_shell_command(
    executable: str | Path,
    identity_dir: str | Path,
    working_directory: str | Path | None = None,
) -> str:
    config_dir = single_quote(str(identity_dir))
    command = f"env {CONFIG_DIR_ENV}={config_dir} {single_quote(str(executable))}"
    if working_directory is not None and str(working_directory):
        return f"cd {single_quote(str(working_directory))} && {command}"
    return command


def build_do_script(application: str, command: str) -> str:
    return "\n".join(
        [
            f'tell application "{application}"',
            "    activate",
            f"    do script {applescript_string(command)}",
            "end tell",
        ]
    )


def build_write_text_script(application: str, command: str) -> str:
    return "\n".join(
        [
            f'tell application "{application}"',
            "    activate",
            "    if (count of windows) = 0 then",
            "        create window with default profile",
            "    end if",
            "    tell current window",
            "        create tab with default profile",
            "        tell current session",
            f"            write text {applescript_string(command)}",
            "        end tell",
            "    end tell",
            "end tell",
        ]
    )


def build_automation_script(terminal: TerminalApp, command: str) -> str:
    profile = terminal.profile
    if profile.mechanism == LaunchMechanism.DO_SCRIPT:
        return build_do_script(terminal.value, command)
    if profile.mechanism == LaunchMechanism.WRITE_TEXT:
        return build_write_text_script(terminal.value, command)
    raise ValueError(f"{terminal.value} is not driven by automation scripts")


def build_launch_script(command: str, *, shell: str = LAUNCH_SHELL) -> str:
    return f"#!{shell}\n{command}\n"


def build_open_command(
    terminal: TerminalApp,
    script_path: str | Path,
    *,
    shell: str = LAUNCH_SHELL,
) -> list[str]:
    profile = terminal.profile
    return [
        "open",
        "-n",
        "-a",
        profile.application_name,
        "--args",
        *profile.script_arguments(shell=shell, script=str(script_path)),
    ]
