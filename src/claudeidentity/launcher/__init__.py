"""Executable discovery and terminal launch strategies."""

from .locator import ExecutableLocator
from .service import LaunchRequest, TerminalLauncher
from .terminals import (
    TERMINAL_PROFILES,
    ApplicationProbe,
    LaunchMechanism,
    TerminalApp,
    TerminalProfile,
)

__all__ = [
    "ApplicationProbe",
    "ExecutableLocator",
    "LaunchMechanism",
    "LaunchRequest",
    "TERMINAL_PROFILES",
    "TerminalApp",
    "TerminalLauncher",
    "TerminalProfile",
]
