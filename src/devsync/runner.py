"""Thin wrapper around external processes."""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)

NOT_FOUND_EXIT_CODE = 127
TIMEOUT_EXIT_CODE = 124


@dataclass(frozen=True, slots=True)
class CommandOutput:
    exit_code: int
    stdout: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner:
    """Runs external commands and reports only their exit status.

    Output is inherited from the terminal unless ``capture`` is used, so
    editors, pagers and ``ssh`` sessions stay interactive.
    """

    def run(self, args: Sequence[str], *, cwd: Path | None = None, timeout: float | None = None) -> int:
        logger.debug("run %s (cwd=%s)", " ".join(args), cwd)
        try:
            completed = subprocess.run(list(args), cwd=cwd, check=False, timeout=timeout)
        except FileNotFoundError:
            logger.debug("executable not found: %s", args[0])
            return NOT_FOUND_EXIT_CODE
        except subprocess.TimeoutExpired:
            logger.debug("timed out after %ss: %s", timeout, args[0])
            return TIMEOUT_EXIT_CODE
        return completed.returncode

    def capture(
        self, args: Sequence[str], *, cwd: Path | None = None, timeout: float | None = None
    ) -> CommandOutput:
        logger.debug("capture %s (cwd=%s)", " ".join(args), cwd)
        try:
            completed = subprocess.run(
                list(args), cwd=cwd, check=False, capture_output=True, text=True, timeout=timeout
            )
        except FileNotFoundError:
            return CommandOutput(NOT_FOUND_EXIT_CODE)
        except subprocess.TimeoutExpired:
            return CommandOutput(TIMEOUT_EXIT_CODE)
        return CommandOutput(completed.returncode, completed.stdout)

    def shell(self, command: str, *, cwd: Path | None = None) -> int:
        """Run a shell pipeline such as ``rg ... | fzf ...``."""

        logger.debug("shell %s (cwd=%s)", command, cwd)
        completed = subprocess.run(command, cwd=cwd, shell=True, check=False)
        return completed.returncode

    def which(self, name: str) -> bool:
        return shutil.which(name) is not None
