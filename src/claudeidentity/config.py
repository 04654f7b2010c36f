"""XDG config loading/saving for caller-side preferences."""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from pathlib import Path
from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from claudeidentity.launcher.terminals import TerminalApp

DEFAULT_CONFIG_PATH = Path("~/.config/claudeidentity/config.toml").expanduser()
DEFAULT_LOG_LEVEL: Literal["DEBUG", "INFO", "WARN", "ERROR"] = "INFO"
IDENTITY_ROOT_ENV = "CLAUDE_IDENTITY_ROOT"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARN", "ERROR"}


class AppConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    preferred_terminal: TerminalApp = TerminalApp.TERMINAL
    last_working_directory: str = ""
    identities_root: str = ""
    log_level: Literal["DEBUG", "INFO", "WARN", "ERROR"] = DEFAULT_LOG_LEVEL

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip().upper()
            return "WARN" if normalized == "WARNING" else normalized
        return value

    def identities_dir(self) -> Path | None:
        root = os.getenv(IDENTITY_ROOT_ENV, "").strip() or self.identities_root
        if not root:
            return None
        return Path(root).expanduser()


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


def _sanitize(raw: dict[str, object]) -> AppConfig:
    cfg = AppConfig()

    preferred_terminal = raw.get("preferred_terminal", cfg.preferred_terminal.value)
    if isinstance(preferred_terminal, str):
        cfg.preferred_terminal = TerminalApp.parse(preferred_terminal)

    last_working_directory = raw.get("last_working_directory", cfg.last_working_directory)
    if isinstance(last_working_directory, str):
        cfg.last_working_directory = last_working_directory

    identities_root = raw.get("identities_root", cfg.identities_root)
    if isinstance(identities_root, str):
        cfg.identities_root = identities_root

    log_level = raw.get("log_level", cfg.log_level)
    if isinstance(log_level, str):
        normalized = log_level.strip().upper()
        if normalized == "WARNING":
            normalized = "WARN"
        if normalized in _VALID_LOG_LEVELS:
            cfg.log_level = cast(Literal["DEBUG", "INFO", "WARN", "ERROR"], normalized)

    return cfg


def load_config(path: str | Path | None = None) -> AppConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return AppConfig()
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()
    return _sanitize(raw)


def save_config(config: AppConfig, path: str | Path | None = None) -> Path:
    resolved = get_config_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)
    lines = [
        f"preferred_terminal = {_toml_scalar(config.preferred_terminal.value)}",
        f"last_working_directory = {_toml_scalar(config.last_working_directory)}",
        f"identities_root = {_toml_scalar(config.identities_root)}",
        f"log_level = {_toml_scalar(config.log_level)}",
    ]
    resolved.write_text("\n".join(lines) + "\n", encoding="utf-8")
    with suppress(OSError):
        resolved.chmod(0o600)
    return resolved


def set_preferred_terminal(terminal: TerminalApp, path: str | Path | None = None) -> AppConfig:
    config = load_config(path)
    config.preferred_terminal = terminal
    save_config(config, path)
    return config


def set_last_working_directory(directory: str | Path, path: str | Path | None = None) -> AppConfig:
    config = load_config(path)
    config.last_working_directory = str(directory)
    save_config(config, path)
    return config
