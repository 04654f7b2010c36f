"""Discovery of the claude executable."""

from __future__ import annotations

import logging as py_logging
import os
import subprocess
from collections.abc import Sequence
from pathlib import Path

from claudeidentity.constants import EXECUTABLE_NAME, executable_candidates
from claudeidentity.process import CommandRunner, output_text

logger = py_logging.getLogger(__name__)


def is_executable_file(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


class ExecutableLocator:
    def __init__(
        self,
        executable_name: str = EXECUTABLE_NAME,
        *,
        home: Path | None = None,
        candidates: Sequence[str | Path] | None = None,
        runner: CommandRunner = subprocess.run,
    ) -> None:
        self.executable_name = executable_name
        self._home = home
        self._candidates = [Path(item) for item in candidates] if candidates is not None else None
        self._runner = runner

    def candidate_paths(self, executable_name: str | None = None) -> list[Path]:
        if self._candidates is not None:
            return list(self._candidates)
        return executable_candidates(executable_name or self.executable_name, self._home)

    def _which(self, name: str) -> Path | None:
        try:
            result = self._runner(
                ["which", name],
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                check=False,
            )
        except OSError:
            logger.debug("executable-lookup which-unavailable name=%s", name, exc_info=True)
            return None
        if result.returncode != 0:
            return None
        resolved = output_text(result.stdout).strip()
        if not resolved:
            return None
        path = Path(resolved)
        if not is_executable_file(path):
            logger.debug("executable-lookup which-result-not-executable path=%s", path)
            return None
        return path

    def locate(self, executable_name: str | None = None) -> Path | None:
        name = executable_name or self.executable_name
        for candidate in self.candidate_paths(name):
            if is_executable_file(candidate):
                logger.debug("executable-lookup name=%s source=candidate path=%s", name, candidate)
                return candidate
        found = self._which(name)
        if found is None:
            logger.info("executable-lookup name=%s result=missing", name)
        else:
            logger.debug("executable-lookup name=%s source=path path=%s", name, found)
        return found

    @property
    def is_available(self) -> bool:
        return self.locate() is not None
