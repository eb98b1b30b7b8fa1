"""Workspace — External code formatter.

Rewritten artifacts are handed to the project's formatter (prettier by
default).  Formatting is cosmetic: a missing executable, a timeout or a
non-zero exit is logged and never fails the pipeline.

Security: the command is passed to ``subprocess.run`` as a list, never
through a shell.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from modforge.config import FormatterConfig
from modforge.logging import get_logger

log = get_logger(__name__)


class Formatter:
    def __init__(self, config: FormatterConfig | None = None, cwd: Path | None = None) -> None:
        self._config = config or FormatterConfig()
        self._cwd = cwd

    def format(self, path: Path) -> bool:
        """Run the formatter on *path*. Returns True when it succeeded."""
        if not self._config.enabled or not self._config.command:
            return False

        command = [*self._config.command, str(path)]
        try:
            proc = subprocess.run(
                command,
                cwd=self._cwd,
                capture_output=True,
                text=True,
                timeout=self._config.timeout_seconds,
            )
        except FileNotFoundError:
            log.warning("formatter_not_found", command=command[0])
            return False
        except subprocess.TimeoutExpired:
            log.warning(
                "formatter_timeout", path=str(path), timeout=self._config.timeout_seconds
            )
            return False

        if proc.returncode != 0:
            log.warning(
                "formatter_failed",
                path=str(path),
                return_code=proc.returncode,
                stderr=proc.stderr.strip()[:500],
            )
            return False
        log.debug("artifact_formatted", path=str(path))
        return True
