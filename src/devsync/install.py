"""Self-install of the ``j`` executable into a system-wide location."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from .config import Settings
from .errors import CommandFailed, PermissionDenied, SourceMissing
from .filesystem import format_time, is_newer, mtime
from .runner import CommandRunner

logger = logging.getLogger(__name__)

INSTALL_LOCATION = Path("/usr/local/bin/j")
EXECUTABLE_NAME = "j"


@dataclass(frozen=True, slots=True)
class InstallResult:
    source: Path
    destination: Path
    backup: Path | None


class Installer:
    """Copies the running executable to ``install_location`` using ``sudo``."""

    def __init__(
        self,
        settings: Settings,
        runner: CommandRunner,
        *,
        install_location: Path = INSTALL_LOCATION,
        platform: str | None = None,
    ) -> None:
        self.settings = settings
        self.runner = runner
        self.install_location = install_location
        self.platform = platform or sys.platform

    def source_executable(self, current: Path) -> Path:
        # Installing from the installed copy would copy a file onto itself.
        if current == self.install_location:
            return self.settings.repo_root / EXECUTABLE_NAME
        return current

    def install(self, current: Path) -> InstallResult:
        source = self.source_executable(current)
        if not source.exists():
            raise SourceMissing(EXECUTABLE_NAME, source)

        install_dir = self.install_location.parent
        if not install_dir.exists():
            exit_code = self.runner.run(["sudo", "mkdir", "-p", str(install_dir)])
            if exit_code != 0:
                raise PermissionDenied(EXECUTABLE_NAME, install_dir)

        backup: Path | None = None
        if self.install_location.exists():
            backup = self.install_location.with_name(self.install_location.name + ".backup")
            exit_code = self.runner.run(["sudo", "cp", str(self.install_location), str(backup)])
            if exit_code != 0:
                logger.warning("could not back up %s (exit code %s)", self.install_location, exit_code)
                backup = None

        exit_code = self.runner.run(["sudo", "cp", str(source), str(self.install_location)])
        if exit_code != 0:
            raise PermissionDenied(EXECUTABLE_NAME, self.install_location)

        exit_code = self.runner.run(["sudo", "chmod", "+x", str(self.install_location)])
        if exit_code != 0:
            raise CommandFailed(f"chmod {self.install_location}", exit_code)

        if self.platform == "darwin":
            # Gatekeeper refuses copied binaries with quarantine attributes or a stale signature.
            self.runner.run(["sudo", "xattr", "-c", str(self.install_location)])
            self.runner.run(["sudo", "codesign", "-s", "-", "-f", str(self.install_location)])

        return InstallResult(source=source, destination=self.install_location, backup=backup)

    def stale_install_warning(self, current: Path) -> str | None:
        """Return a warning when the repository build is newer than the installed one."""

        if current != self.install_location or not self.install_location.exists():
            return None
        repo_build = self.settings.repo_root / EXECUTABLE_NAME
        if not is_newer(repo_build, self.install_location):
            return None
        return (
            "Your j build has been updated! Run 'j install' to update the installed version. "
            f"(Source modified: {format_time(mtime(repo_build))})"
        )
