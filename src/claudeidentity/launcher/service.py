"""Launches claude for an identity inside a terminal emulator."""

from __future__ import annotations

import logging as py_logging
import os
import subprocess
import tempfile
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from claudeidentity.constants import (
    CLEANUP_SHELL,
    LAUNCH_SCRIPT_CLEANUP_DELAY_SECONDS,
    LAUNCH_SCRIPT_PREFIX,
    LAUNCH_SHELL,
)
from claudeidentity.errors import (
    ExecutableNotFoundError,
    IdentityDirectoryMissingError,
    LaunchFailedError,
    ScriptCreationFailedError,
    TerminalNotInstalledError,
)
from claudeidentity.identity.models import Identity
from claudeidentity.identity.store import IdentityStore
from claudeidentity.launcher.commands import (
    build_automation_script,
    build_launch_script,
    build_open_command,
    build_shell_command,
)
from claudeidentity.launcher.locator import ExecutableLocator
from claudeidentity.launcher.terminals import (
    ApplicationProbe,
    InstallProbe,
    LaunchMechanism,
    TerminalApp,
)
from claudeidentity.process import CommandRunner, command_for_log, output_text

logger = py_logging.getLogger(__name__)

CleanupScheduler = Callable[[float, Path], None]
ProcessSpawner = Callable[..., object]

_CLEANUP_SCRIPT = 'sleep "$1"; rm -f "$2"'


@dataclass(frozen=True)
class LaunchRequest:
    identity_name: str
    terminal: TerminalApp
    mechanism: LaunchMechanism
    executable: Path
    command: str
    working_directory: Path | None = None
    script_path: Path | None = None


def cleanup_command(delay: float, path: Path) -> list[str]:
    return [
        CLEANUP_SHELL,
        "-c",
        _CLEANUP_SCRIPT,
        "claude-launch-cleanup",
        f"{max(delay, 0.0):.3f}",
        str(path),
    ]


def schedule_cleanup(
    delay: float,
    path: Path,
    *,
    spawn: ProcessSpawner = subprocess.Popen,
) -> None:
    """Remove ``path`` after ``delay`` seconds from a detached shell.

    The shell runs in its own session, so the removal still happens after the
    launching interpreter has exited.
    """
    args = cleanup_command(delay, path)
    try:
        spawn(
            args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            close_fds=True,
            start_new_session=True,
        )
    except OSError:
        logger.warning("launch-cleanup spawn-failed path=%s", path, exc_info=True)
        return
    logger.debug("launch-cleanup scheduled path=%s delay=%s", path, delay)


def remove_script_quietly(path: Path) -> None:
    try:
        path.unlink()
    except OSError:
        logger.debug("launch-cleanup failed path=%s", path, exc_info=True)


class TerminalLauncher:
    def __init__(
        self,
        store: IdentityStore,
        locator: ExecutableLocator,
        *,
        default_terminal: TerminalApp = TerminalApp.TERMINAL,
        install_probe: InstallProbe | None = None,
        runner: CommandRunner = subprocess.run,
        script_dir: str | Path | None = None,
        cleanup_scheduler: CleanupScheduler = schedule_cleanup,
        cleanup_delay: float = LAUNCH_SCRIPT_CLEANUP_DELAY_SECONDS,
        shell: str = LAUNCH_SHELL,
    ) -> None:
        self._store = store
        self._locator = locator
        self.default_terminal = default_terminal
        self._runner = runner
        self._install_probe = install_probe or ApplicationProbe(runner=runner)
        self._script_dir = Path(script_dir) if script_dir is not None else None
        self._cleanup_scheduler = cleanup_scheduler
        self._cleanup_delay = cleanup_delay
        self._shell = shell
        self._dispatchers: dict[
            LaunchMechanism, Callable[[TerminalApp, str], Path | None]
        ] = {
            LaunchMechanism.DO_SCRIPT: self._run_automation,
            LaunchMechanism.WRITE_TEXT: self._run_automation,
            LaunchMechanism.SHELL_SCRIPT: self._run_shell_script,
        }

    def is_installed(self, terminal: TerminalApp) -> bool:
        return self._install_probe(terminal)

    def installed_terminals(self) -> list[TerminalApp]:
        return [terminal for terminal in TerminalApp if self.is_installed(terminal)]

    def launch(
        self,
        identity: Identity | str,
        working_directory: str | Path | None = None,
        terminal: TerminalApp | None = None,
    ) -> LaunchRequest:
        name = identity.name if isinstance(identity, Identity) else identity

        executable = self._locator.locate()
        if executable is None:
            logger.error("launch-abort identity=%s reason=executable-missing", name)
            raise ExecutableNotFoundError(self._locator.executable_name)

        if not self._store.exists(name):
            logger.error("launch-abort identity=%s reason=directory-missing", name)
            raise IdentityDirectoryMissingError(name)
        identity_dir = self._store.path_for(name)

        selected = terminal or self.default_terminal
        if not self.is_installed(selected):
            logger.error(
                "launch-abort identity=%s reason=terminal-missing terminal=%s",
                name,
                selected.value,
            )
            raise TerminalNotInstalledError(selected.display_name)

        workdir = Path(working_directory).expanduser() if working_directory else None
        command = build_shell_command(executable, identity_dir, workdir)
        mechanism = selected.profile.mechanism
        logger.info(
            "launch-dispatch identity=%s terminal=%s mechanism=%s workdir=%s",
            name,
            selected.value,
            mechanism.value,
            workdir or "-",
        )
        script_path = self._dispatchers[mechanism](selected, command)
        return LaunchRequest(
            identity_name=name,
            terminal=selected,
            mechanism=mechanism,
            executable=executable,
            command=command,
            working_directory=workdir,
            script_path=script_path,
        )

    def _run_automation(self, terminal: TerminalApp, command: str) -> None:
        script = build_automation_script(terminal, command)
        args = ["osascript", "-e", script]
        try:
            result = self._runner(args, capture_output=True, text=True, check=False)
        except OSError as exc:
            logger.error("launch-automation unavailable terminal=%s error=%s", terminal.value, exc)
            raise ScriptCreationFailedError(str(exc)) from exc
        if result.returncode != 0:
            message = (
                output_text(result.stderr).strip()
                or f"osascript exited with code {result.returncode}"
            )
            logger.error("launch-automation failed terminal=%s message=%s", terminal.value, message)
            raise LaunchFailedError(message)
        return None

    def _write_script(self, command: str) -> Path:
        directory = self._script_dir or Path(tempfile.gettempdir())
        path = directory / f"{LAUNCH_SCRIPT_PREFIX}{uuid.uuid4()}.sh"
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o700)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(build_launch_script(command, shell=self._shell))
            os.chmod(path, 0o700)
        except OSError as exc:
            logger.error("launch-script write-failed path=%s error=%s", path, exc)
            remove_script_quietly(path)
            raise ScriptCreationFailedError(str(exc)) from exc
        return path

    def _run_shell_script(self, terminal: TerminalApp, command: str) -> Path:
        script_path = self._write_script(command)
        args = build_open_command(terminal, script_path, shell=self._shell)
        logger.debug("launch-open command=%s", command_for_log(args))
        try:
            result = self._runner(args, capture_output=True, text=True, check=False)
        except OSError as exc:
            remove_script_quietly(script_path)
            raise LaunchFailedError(str(exc)) from exc
        if result.returncode != 0:
            remove_script_quietly(script_path)
            message = (
                output_text(result.stderr).strip() or f"open exited with code {result.returncode}"
            )
            logger.error("launch-open failed terminal=%s message=%s", terminal.value, message)
            raise LaunchFailedError(message)
        self._cleanup_scheduler(self._cleanup_delay, script_path)
        return script_path
