"""Directory-backed identity registry.

Every identity is one subdirectory of the base directory. There is no index
file: a directory that exists is an identity, and listing the base directory
is the only way to enumerate them.
"""

from __future__ import annotations

import errno
import logging as py_logging
import os
import shutil
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from claudeidentity.constants import default_identities_dir
from claudeidentity.errors import (
    AlreadyExistsError,
    ExitCode,
    IdentityManagerError,
    InvalidNameError,
    NotFoundError,
    PathConflictError,
)
from claudeidentity.identity.models import Identity
from claudeidentity.identity.names import is_valid_name, validation_message

logger = py_logging.getLogger(__name__)

_TOMBSTONE_PREFIX = ".deleting-"

StatFunction = Callable[[Path], os.stat_result]
Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _stat_path(path: Path) -> os.stat_result:
    return os.stat(path)


class IdentityStore:
    def __init__(
        self,
        base_dir: str | Path | None = None,
        *,
        stat: StatFunction = _stat_path,
        clock: Clock = _utc_now,
    ) -> None:
        raw = Path(base_dir) if base_dir is not None else default_identities_dir()
        self.base_dir = raw.expanduser().absolute()
        self._stat = stat
        self._clock = clock

    def ensure_base_dir(self) -> Path:
        if not self.base_dir.exists():
            logger.info("identity-store create-base path=%s", self.base_dir)
            try:
                self.base_dir.mkdir(parents=True, exist_ok=True)
            except FileExistsError as exc:
                raise PathConflictError(str(self.base_dir)) from exc
        elif not self.base_dir.is_dir():
            logger.error("identity-store base-conflict path=%s", self.base_dir)
            raise PathConflictError(str(self.base_dir))
        return self.base_dir

    def path_for(self, name: str) -> Path:
        if not name or name in {".", ".."} or "/" in name or os.sep in name:
            raise InvalidNameError(name, hint="Identity names must be a single path component.")
        if os.altsep and os.altsep in name:
            raise InvalidNameError(name, hint="Identity names must be a single path component.")
        return self.base_dir / name

    def exists(self, name: str) -> bool:
        try:
            return self.path_for(name).is_dir()
        except InvalidNameError:
            return False

    def is_occupied(self, name: str, *, ignore: str | None = None) -> bool:
        """Report whether any entry (directory, file or dangling link) sits at ``name``.

        ``ignore`` names an existing identity whose own entry does not count,
        so a case-only rename passes on case-insensitive filesystems.
        """
        target = self.path_for(name)
        if not os.path.lexists(target):
            return False
        if ignore is not None and ignore != name and self.exists(ignore):
            return not _same_entry(self.path_for(ignore), target)
        return True

    def _created_at(self, path: Path) -> datetime:
        try:
            info = self._stat(path)
        except OSError:
            logger.debug("identity-discover metadata-unavailable path=%s", path, exc_info=True)
            return self._clock()
        timestamp = getattr(info, "st_birthtime", None)
        if timestamp is None:
            timestamp = info.st_mtime
        try:
            return datetime.fromtimestamp(timestamp, timezone.utc)
        except (OverflowError, OSError, ValueError):
            return self._clock()

    def discover(self) -> list[Identity]:
        base = self.ensure_base_dir()
        identities: list[Identity] = []
        for entry in base.iterdir():
            if entry.name.startswith("."):
                continue
            try:
                if not entry.is_dir():
                    continue
            except OSError:
                logger.debug("identity-discover skip-unreadable path=%s", entry, exc_info=True)
                continue
            identities.append(
                Identity(name=entry.name, directory=entry, created_at=self._created_at(entry))
            )
        identities.sort(key=lambda item: (item.name.casefold(), item.name))
        logger.debug("identity-discover count=%s base=%s", len(identities), base)
        return identities

    def get(self, name: str) -> Identity:
        path = self.path_for(name)
        if not path.is_dir():
            raise NotFoundError(name)
        return Identity(name=name, directory=path, created_at=self._created_at(path))

    def create(self, name: str) -> Identity:
        if not is_valid_name(name):
            raise InvalidNameError(name, hint=validation_message(name))
        self.ensure_base_dir()
        target = self.path_for(name)
        if target.exists():
            raise AlreadyExistsError(name)
        try:
            target.mkdir(parents=True, exist_ok=False)
        except FileExistsError as exc:
            raise AlreadyExistsError(name) from exc
        logger.info("identity-create name=%s path=%s", name, target)
        return Identity(name=name, directory=target, created_at=self._clock())

    def rename(self, old_name: str, new_name: str, *, identity_id: str | None = None) -> Identity:
        if not is_valid_name(new_name):
            raise InvalidNameError(new_name, hint=validation_message(new_name))
        self.ensure_base_dir()
        source = self.path_for(old_name)
        target = self.path_for(new_name)
        if not source.is_dir():
            raise NotFoundError(old_name)
        if target.exists() and (old_name == new_name or not _same_entry(source, target)):
            raise AlreadyExistsError(new_name)
        created_at = self._created_at(source)
        try:
            source.rename(target)
        except FileNotFoundError as exc:
            raise NotFoundError(old_name) from exc
        except OSError as exc:
            if exc.errno in (errno.EEXIST, errno.ENOTEMPTY):
                raise AlreadyExistsError(new_name) from exc
            raise IdentityManagerError(
                f"Failed to rename identity '{old_name}' to '{new_name}'",
                code=ExitCode.STORE_ERROR,
                hint=str(exc),
            ) from exc
        logger.info("identity-rename old=%s new=%s", old_name, new_name)
        if identity_id is None:
            return Identity(name=new_name, directory=target, created_at=created_at)
        return Identity(
            name=new_name,
            directory=target,
            created_at=created_at,
            identity_id=identity_id,
        )

    def delete(self, name: str) -> None:
        self.ensure_base_dir()
        target = self.path_for(name)
        if not target.is_dir():
            raise NotFoundError(name)
        # Hide the identity with one rename so a failed tree removal never
        # leaves a partially deleted directory under a live name.
        tombstone = self.base_dir / f"{_TOMBSTONE_PREFIX}{uuid.uuid4().hex}"
        try:
            target.rename(tombstone)
        except FileNotFoundError as exc:
            raise NotFoundError(name) from exc
        except OSError as exc:
            raise IdentityManagerError(
                f"Failed to delete identity '{name}'",
                code=ExitCode.STORE_ERROR,
                hint=str(exc),
            ) from exc
        try:
            shutil.rmtree(tombstone)
        except OSError as exc:
            logger.warning("identity-delete leftover name=%s path=%s", name, tombstone)
            raise IdentityManagerError(
                f"Identity '{name}' was removed but its files could not be cleaned up",
                code=ExitCode.STORE_ERROR,
                hint=f"Delete {tombstone} manually.",
            ) from exc
        logger.info("identity-delete name=%s", name)


def _same_entry(first: Path, second: Path) -> bool:
    try:
        return os.path.samefile(first, second)
    except OSError:
        return False
