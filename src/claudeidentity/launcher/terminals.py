"""Supported terminal emulators and their install probes."""

from __future__ import annotations

import logging as py_logging
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from claudeidentity.constants import APPLICATION_DIRS
from claudeidentity.process import CommandRunner, command_for_log, output_text

logger = py_logging.getLogger(__name__)


class TerminalApp(str, Enum):
    TERMINAL = "Terminal"
    ITERM = "iTerm"
    WARP = "Warp"
    ALACRITTY = "Alacritty"
    KITTY = "kitty"
    WEZTERM = "WezTerm"

    @classmethod
    def parse(cls, value: str | None, default: TerminalApp | None = None) -> TerminalApp:
        fallback = default or cls.TERMINAL
        if not value:
            return fallback
        normalized = value.strip().lower()
        for member in cls:
            if member.value.lower() == normalized or member.name.lower() == normalized:
                return member
        return fallback

    @property
    def profile(self) -> TerminalProfile:
        return TERMINAL_PROFILES[self]

    @property
    def display_name(self) -> str:
        return self.profile.display_name


class LaunchMechanism(str, Enum):
    DO_SCRIPT = "do-script"
    WRITE_TEXT = "write-text"
    SHELL_SCRIPT = "shell-script"


@dataclass(frozen=True)
class TerminalProfile:
    display_name: str
    bundle_identifier: str
    app_bundle: str
    mechanism: LaunchMechanism
    # Arguments passed after `open --args`; "{shell}" and "{script}" are substituted.
    script_args: tuple[str, ...] = ()

    @property
    def application_name(self) -> str:
        return self.app_bundle.removesuffix(".app")

    def script_arguments(self, *, shell: str, script: str) -> list[str]:
        return [item.format(shell=shell, script=script) for item in self.script_args]


TERMINAL_PROFILES: dict[TerminalApp, TerminalProfile] = {
    TerminalApp.TERMINAL: TerminalProfile(
        display_name="Terminal",
        bundle_identifier="com.apple.Terminal",
        app_bundle="Terminal.app",
        mechanism=LaunchMechanism.DO_SCRIPT,
    ),
    TerminalApp.ITERM: TerminalProfile(
        display_name="iTerm2",
        bundle_identifier="com.googlecode.iterm2",
        app_bundle="iTerm.app",
        mechanism=LaunchMechanism.WRITE_TEXT,
    ),
    TerminalApp.WARP: TerminalProfile(
        display_name="Warp",
        bundle_identifier="dev.warp.Warp-Stable",
        app_bundle="Warp.app",
        mechanism=LaunchMechanism.DO_SCRIPT,
    ),
    TerminalApp.ALACRITTY: TerminalProfile(
        display_name="Alacritty",
        bundle_identifier="org.alacritty",
        app_bundle="Alacritty.app",
        mechanism=LaunchMechanism.SHELL_SCRIPT,
        script_args=("-e", "{shell}", "{script}"),
    ),
    TerminalApp.KITTY: TerminalProfile(
        display_name="Kitty",
        bundle_identifier="net.kovidgoyal.kitty",
        app_bundle="kitty.app",
        mechanism=LaunchMechanism.SHELL_SCRIPT,
        script_args=("{shell}", "{script}"),
    ),
    TerminalApp.WEZTERM: TerminalProfile(
        display_name="WezTerm",
        bundle_identifier="com.github.wez.wezterm",
        app_bundle="WezTerm.app",
        mechanism=LaunchMechanism.SHELL_SCRIPT,
        script_args=("start", "--", "{shell}", "{script}"),
    ),
}

InstallProbe = Callable[[TerminalApp], bool]


class ApplicationProbe:
    """Checks whether a terminal application is installed.

    The standard application folders are searched for the app bundle first;
    when that finds nothing, Spotlight is asked for the bundle identifier.
    """

    def __init__(
        self,
        *,
        runner: CommandRunner = subprocess.run,
        application_dirs: Sequence[str | Path] = APPLICATION_DIRS,
    ) -> None:
        self._runner = runner
        self._application_dirs = [Path(item).expanduser() for item in application_dirs]

    def find_bundle(self, terminal: TerminalApp) -> Path | None:
        for base in self._application_dirs:
            candidate = base / terminal.profile.app_bundle
            if candidate.exists():
                return candidate
        return None

    def _spotlight_lookup(self, terminal: TerminalApp) -> bool:
        query = f"kMDItemCFBundleIdentifier == '{terminal.profile.bundle_identifier}'"
        command = ["mdfind", query]
        try:
            result = self._runner(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                check=False,
            )
        except OSError:
            logger.debug("terminal-probe lookup-unavailable command=%s", command_for_log(command))
            return False
        if result.returncode != 0:
            return False
        return bool(output_text(result.stdout).strip())

    def __call__(self, terminal: TerminalApp) -> bool:
        bundle = self.find_bundle(terminal)
        if bundle is not None:
            logger.debug("terminal-probe terminal=%s bundle=%s", terminal.value, bundle)
            return True
        installed = self._spotlight_lookup(terminal)
        logger.debug("terminal-probe terminal=%s spotlight=%s", terminal.value, installed)
        return installed


def terminal_choices() -> tuple[str, ...]:
    return tuple(member.value for member in TerminalApp)
