from __future__ import annotations

import stat
from pathlib import Path

import pytest
from pydantic import ValidationError

from claudeidentity.config import (
    AppConfig,
    load_config,
    save_config,
    set_last_working_directory,
    set_preferred_terminal,
)
from claudeidentity.launcher.terminals import TerminalApp


def test_load_defaults_when_config_missing(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "config.toml")
    assert cfg.preferred_terminal == TerminalApp.TERMINAL
    assert cfg.last_working_directory == ""
    assert cfg.identities_root == ""
    assert cfg.log_level == "INFO"


def test_config_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    original = AppConfig(
        preferred_terminal=TerminalApp.WEZTERM,
        last_working_directory='/Users/me/code/"quoted"\\dir',
        identities_root="~/identities",
        log_level="DEBUG",
    )

    saved = save_config(original, path)
    loaded = load_config(path)

    assert saved == path
    assert loaded == original
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


def test_corrupt_toml_falls_back_to_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("preferred_terminal = [unterminated", encoding="utf-8")
    assert load_config(path) == AppConfig()


def test_invalid_fields_are_sanitized(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        "\n".join(
            [
                'preferred_terminal = "Hyper"',
                "last_working_directory = 42",
                'log_level = "verbose"',
                'identities_root = "/srv/identities"',
            ]
        ),
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.preferred_terminal == TerminalApp.TERMINAL
    assert cfg.last_working_directory == ""
    assert cfg.log_level == "INFO"
    assert cfg.identities_root == "/srv/identities"


def test_terminal_and_log_level_are_case_insensitive(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('preferred_terminal = "ITERM"\nlog_level = "warning"\n', encoding="utf-8")

    cfg = load_config(path)

    assert cfg.preferred_terminal == TerminalApp.ITERM
    assert cfg.log_level == "WARN"


def test_assignment_is_validated() -> None:
    cfg = AppConfig()
    with pytest.raises(ValidationError):
        cfg.log_level = "LOUD"  # type: ignore[assignment]


def test_identities_dir_prefers_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg = AppConfig(identities_root=str(tmp_path / "from-config"))
    monkeypatch.delenv("CLAUDE_IDENTITY_ROOT", raising=False)
    assert cfg.identities_dir() == tmp_path / "from-config"

    monkeypatch.setenv("CLAUDE_IDENTITY_ROOT", str(tmp_path / "from-env"))
    assert cfg.identities_dir() == tmp_path / "from-env"


def test_environment_root_is_not_persisted(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "config.toml"
    monkeypatch.setenv("CLAUDE_IDENTITY_ROOT", str(tmp_path / "from-env"))

    save_config(AppConfig(), path)

    assert "from-env" not in path.read_text(encoding="utf-8")
    assert load_config(path).identities_root == ""


def test_identities_dir_unset_means_default_store(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CLAUDE_IDENTITY_ROOT", raising=False)
    assert AppConfig().identities_dir() is None


def test_set_preferred_terminal_persists(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.toml"

    updated = set_preferred_terminal(TerminalApp.KITTY, path)

    assert updated.preferred_terminal == TerminalApp.KITTY
    assert load_config(path).preferred_terminal == TerminalApp.KITTY


def test_set_last_working_directory_keeps_other_fields(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    set_preferred_terminal(TerminalApp.ALACRITTY, path)

    set_last_working_directory(tmp_path / "project", path)
    loaded = load_config(path)

    assert loaded.last_working_directory == str(tmp_path / "project")
    assert loaded.preferred_terminal == TerminalApp.ALACRITTY
