from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from claudeidentity.coordinator import LaunchCoordinator, build_coordinator
from claudeidentity.errors import (
    AlreadyExistsError,
    IdentityDirectoryMissingError,
    InvalidNameError,
    NotFoundError,
)
from claudeidentity.identity.store import IdentityStore
from claudeidentity.launcher import ExecutableLocator, TerminalApp, TerminalLauncher


def _cp(returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def _coordinator(tmp_path: Path, *, calls: list[list[str]] | None = None) -> LaunchCoordinator:
    executable = tmp_path / "bin" / "claude"
    executable.parent.mkdir(parents=True)
    executable.write_text("#!/bin/sh\n", encoding="utf-8")
    executable.chmod(0o755)

    def runner(cmd: list[str], **kwargs: object) -> subprocess.CompletedProcess:
        if calls is not None:
            calls.append(cmd)
        return _cp(0)

    store = IdentityStore(tmp_path / "identities")
    locator = ExecutableLocator(candidates=[executable], runner=runner)
    launcher = TerminalLauncher(
        store,
        locator,
        install_probe=lambda terminal: terminal != TerminalApp.WARP,
        runner=runner,
    )
    return LaunchCoordinator(store, launcher, locator)


def test_refresh_lists_identities_sorted(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)
    for name in ["zeta", "Alpha", "beta"]:
        (tmp_path / "identities" / name).mkdir(parents=True)

    names = [identity.name for identity in coordinator.refresh()]

    assert names == ["Alpha", "beta", "zeta"]
    assert [identity.name for identity in coordinator.identities] == names


def test_identifiers_are_stable_across_refreshes(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)
    created = coordinator.create_identity("work")

    first = coordinator.refresh()
    second = coordinator.refresh()

    assert first[0].identity_id == created.identity_id
    assert second[0].identity_id == created.identity_id


def test_create_trims_whitespace_and_selects(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)

    identity = coordinator.create_identity("  work  ")

    assert identity.name == "work"
    assert coordinator.selected == identity
    assert (tmp_path / "identities" / "work").is_dir()


def test_create_rejects_invalid_and_duplicate_names(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)
    coordinator.create_identity("work")

    with pytest.raises(InvalidNameError):
        coordinator.create_identity("cache")
    with pytest.raises(AlreadyExistsError):
        coordinator.create_identity("work")


def test_rename_keeps_identifier_and_reselects(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)
    original = coordinator.create_identity("work")
    coordinator.create_identity("other")

    renamed = coordinator.rename_identity(original, "client-a")

    assert renamed.identity_id == original.identity_id
    assert renamed.created_at == coordinator.find("client-a").created_at
    assert coordinator.selected == original
    assert coordinator.selected.name == "client-a"
    assert [identity.name for identity in coordinator.identities] == ["client-a", "other"]


def test_rename_to_same_name_is_noop(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)
    original = coordinator.create_identity("work")

    result = coordinator.rename_identity("work", " work ")

    assert result.identity_id == original.identity_id
    assert result.name == "work"
    assert (tmp_path / "identities" / "work").is_dir()


def test_delete_clears_selection_and_refreshes(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)
    coordinator.create_identity("keep")
    doomed = coordinator.create_identity("doomed")
    assert coordinator.selected == doomed

    coordinator.delete_identity(doomed)

    assert coordinator.selected is None
    assert [identity.name for identity in coordinator.identities] == ["keep"]
    with pytest.raises(NotFoundError):
        coordinator.delete_identity("doomed")


def test_external_deletion_clears_stale_selection(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)
    coordinator.create_identity("work")
    shutil.rmtree(tmp_path / "identities" / "work")

    coordinator.refresh()

    assert coordinator.selected is None
    assert coordinator.identities == []


def test_launch_stale_identity_reports_missing_directory(tmp_path: Path) -> None:
    calls: list[list[str]] = []
    coordinator = _coordinator(tmp_path, calls=calls)
    identity = coordinator.create_identity("work")
    shutil.rmtree(identity.directory)

    with pytest.raises(IdentityDirectoryMissingError):
        coordinator.launch(identity)

    assert calls == []


def test_launch_delegates_to_launcher(tmp_path: Path) -> None:
    calls: list[list[str]] = []
    coordinator = _coordinator(tmp_path, calls=calls)
    identity = coordinator.create_identity("work")

    request = coordinator.launch(identity, directory=tmp_path, terminal=TerminalApp.ITERM)

    assert request.terminal == TerminalApp.ITERM
    assert calls[-1][0] == "osascript"


def test_name_availability_checks(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)
    coordinator.create_identity("work")

    assert coordinator.is_valid_new_name("fresh") is True
    assert coordinator.is_valid_new_name(" work ") is False
    assert coordinator.is_valid_new_name("logs") is False
    assert coordinator.is_valid_rename("work", "work") is True
    assert coordinator.is_valid_rename("work", "renamed") is True
    assert coordinator.is_valid_rename("other", "work") is False


def test_select_by_name(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)
    (tmp_path / "identities" / "external").mkdir(parents=True)

    assert coordinator.select("external").name == "external"
    with pytest.raises(NotFoundError):
        coordinator.select("ghost")


def test_status_helpers(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)

    assert coordinator.executable_available is True
    assert TerminalApp.WARP not in coordinator.installed_terminals()


def test_build_coordinator_wires_shared_store(tmp_path: Path) -> None:
    coordinator = build_coordinator(
        tmp_path / "identities",
        default_terminal=TerminalApp.KITTY,
        runner=lambda *args, **kwargs: _cp(1),
        install_probe=lambda terminal: False,
    )

    assert coordinator.store.base_dir == tmp_path / "identities"
    assert coordinator.launcher.default_terminal == TerminalApp.KITTY
    assert coordinator.installed_terminals() == []


def test_name_occupied_by_stray_file_is_not_available(tmp_path: Path) -> None:
    coordinator = _coordinator(tmp_path)
    coordinator.create_identity("work")
    (tmp_path / "identities" / "stray").write_text("not an identity", encoding="utf-8")

    assert coordinator.is_valid_new_name("stray") is False
    assert coordinator.is_valid_rename("work", "stray") is False
    with pytest.raises(AlreadyExistsError):
        coordinator.create_identity("stray")
