"""Process execution capability used for git introspection."""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Protocol
from collections.abc import Sequence

logger = logging.getLogger(__name__)

# Exit code reported when the executable itself cannot be started.
COMMAND_NOT_FOUND = 127


class ProcessRunner(Protocol):
    """Structural protocol for anything able to run a command."""

    def execute(
        self, command: str | Sequence[str], cwd: Path | str | None = None
    ) -> tuple[int, str]: ...


class ProcessExecutor:
    """Run commands synchronously and capture their standard output.

    A non-zero exit code is returned to the caller rather than raised: for
    version-control queries it means "information unavailable".
    """

    def __init__(self, executable: str = "git") -> None:
        self.executable = executable

    def is_available(self) -> bool:
        return shutil.which(self.executable) is not None

    def execute(
        self, command: str | Sequence[str], cwd: Path | str | None = None
    ) -> tuple[int, str]:
        args = shlex.split(command) if isinstance(command, str) else list(command)
        try:
            completed = subprocess.run(
                args,
                cwd=str(cwd) if cwd is not None else None,
                capture_output=True,
                text=True,
                check=False,
            )
        except (FileNotFoundError, NotADirectoryError, PermissionError) as exc:
            logger.debug("Unable to run %s: %s", shlex.join(args), exc)
            return COMMAND_NOT_FOUND, ""

        if completed.returncode != 0:
            logger.debug(
                "%s exited with %s: %s",
                shlex.join(args),
                completed.returncode,
                completed.stderr.strip(),
            )
        return completed.returncode, completed.stdout
