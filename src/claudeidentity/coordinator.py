"""Facade the presentation layer talks to.

The coordinator keeps an advisory cache of the identity list and a selected
identity. Both are rebuilt from ``IdentityStore.discover`` after every
mutation; the filesystem stays the source of truth.
"""

from __future__ import annotations

import logging as py_logging
import subprocess
from dataclasses import replace
from pathlib import Path

from claudeidentity.errors import InvalidNameError, NotFoundError
from claudeidentity.identity.models import Identity
from claudeidentity.identity.names import is_valid_name, validation_message
from claudeidentity.identity.store import IdentityStore
from claudeidentity.launcher.locator import ExecutableLocator
from claudeidentity.launcher.service import LaunchRequest, TerminalLauncher
from claudeidentity.launcher.terminals import InstallProbe, TerminalApp
from claudeidentity.process import CommandRunner

logger = py_logging.getLogger(__name__)


class LaunchCoordinator:
    def __init__(
        self,
        store: IdentityStore,
        launcher: TerminalLauncher,
        locator: ExecutableLocator,
    ) -> None:
        self.store = store
        self.launcher = launcher
        self.locator = locator
        self._identities: list[Identity] = []
        self.selected: Identity | None = None

    @property
    def identities(self) -> list[Identity]:
        return list(self._identities)

    @property
    def executable_available(self) -> bool:
        return self.locator.is_available

    def installed_terminals(self) -> list[TerminalApp]:
        return self.launcher.installed_terminals()

    def find(self, name: str) -> Identity | None:
        for identity in self._identities:
            if identity.name == name:
                return identity
        return None

    def refresh(self, *, carry_ids: dict[str, str] | None = None) -> list[Identity]:
        known = {identity.name: identity.identity_id for identity in self._identities}
        if carry_ids:
            known.update(carry_ids)
        discovered = self.store.discover()
        self._identities = [
            replace(identity, identity_id=known[identity.name])
            if identity.name in known
            else identity
            for identity in discovered
        ]
        if self.selected is not None:
            self.selected = self.find(self.selected.name)
        logger.debug("coordinator-refresh count=%s", len(self._identities))
        return self.identities

    def _resolve(self, identity: Identity | str) -> Identity:
        name = identity.name if isinstance(identity, Identity) else identity
        cached = self.find(name)
        if cached is not None:
            return cached
        if isinstance(identity, Identity):
            return identity
        # Not cached yet; the store decides whether it exists.
        return self.store.get(name)

    def is_valid_new_name(self, name: str) -> bool:
        candidate = name.strip()
        return is_valid_name(candidate) and not self.store.is_occupied(candidate)

    def is_valid_rename(self, old_name: str, new_name: str) -> bool:
        candidate = new_name.strip()
        if candidate == old_name:
            return True
        if not is_valid_name(candidate):
            return False
        return not self.store.is_occupied(candidate, ignore=old_name)

    def create_identity(self, name: str) -> Identity:
        candidate = name.strip()
        if not is_valid_name(candidate):
            raise InvalidNameError(candidate, hint=validation_message(candidate))
        created = self.store.create(candidate)
        self.refresh(carry_ids={created.name: created.identity_id})
        self.selected = self.find(candidate)
        return self.selected or created

    def rename_identity(self, identity: Identity | str, new_name: str) -> Identity:
        current = self._resolve(identity)
        candidate = new_name.strip()
        if candidate == current.name:
            return current
        if not is_valid_name(candidate):
            raise InvalidNameError(candidate, hint=validation_message(candidate))
        renamed = self.store.rename(current.name, candidate, identity_id=current.identity_id)
        self._identities = [item for item in self._identities if item.name != current.name]
        self.refresh(carry_ids={renamed.name: renamed.identity_id})
        self.selected = self.find(candidate)
        return self.selected or renamed

    def delete_identity(self, identity: Identity | str) -> None:
        current = self._resolve(identity)
        self.store.delete(current.name)
        if self.selected is not None and self.selected == current:
            self.selected = None
        self.refresh()

    def select(self, name: str) -> Identity:
        found = self.find(name)
        if found is None:
            self.refresh()
            found = self.find(name)
        if found is None:
            raise NotFoundError(name)
        self.selected = found
        return found

    def launch(
        self,
        identity: Identity | str,
        directory: str | Path | None = None,
        terminal: TerminalApp | None = None,
    ) -> LaunchRequest:
        return self.launcher.launch(identity, working_directory=directory, terminal=terminal)


def build_coordinator(
    base_dir: str | Path | None = None,
    *,
    default_terminal: TerminalApp = TerminalApp.TERMINAL,
    runner: CommandRunner | None = None,
    install_probe: InstallProbe | None = None,
) -> LaunchCoordinator:
    """Construct the store, locator and launcher once and wire them together."""
    command_runner = runner or subprocess.run
    store = IdentityStore(base_dir)
    locator = ExecutableLocator(runner=command_runner)
    launcher = TerminalLauncher(
        store,
        locator,
        default_terminal=default_terminal,
        install_probe=install_probe,
        runner=command_runner,
    )
    return LaunchCoordinator(store, launcher, locator)
