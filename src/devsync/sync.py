"""Export and import of configuration packages."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from .config import Settings
from .errors import (
    CopyFailed,
    DestinationConflict,
    PermissionDenied,
    SourceMissing,
    SyncError,
    UnknownPackage,
)
from .filesystem import (
    Copier,
    ensure_parent,
    format_time,
    is_newer,
    kind,
    move_aside,
    mtime,
    remove_path,
    snapshot,
)
from .models import Direction, EntryKind, ExportSummary, Package, SyncRequest, SyncResult
from .registry import SHELL_PACKAGE, Registry
from .runner import CommandRunner

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


def _always_yes(_question: str) -> bool:
    return True


class SyncEngine:
    """Copies packages between the repository and their system locations.

    ``confirm`` is asked before an import that would not clearly pull a newer
    copy into the repository. With ``backup`` enabled, an export preserves any
    system destination it is about to overwrite or replace at ``<dest>.backup``.
    Imports never write backups into the repository.
    """

    def __init__(
        self,
        settings: Settings,
        registry: Registry,
        copier: Copier,
        runner: CommandRunner,
        *,
        confirm: Confirm = _always_yes,
        backup: bool = True,
    ) -> None:
        self.settings = settings
        self.registry = registry
        self.copier = copier
        self.runner = runner
        self.confirm = confirm
        self.backup = backup

    def resolve(self, name: str) -> Package:
        package = self.registry.lookup(name)
        if package is None:
            raise UnknownPackage(name)
        return package

    def endpoints(self, package: Package, direction: Direction) -> tuple[Path, Path]:
        """Return ``(source, destination)`` for ``direction``."""

        repo = package.repo_source(self.settings.repo_root)
        if direction is Direction.EXPORT:
            return repo, package.system_path
        return package.system_path, repo

    def export(self, name: str, *, force: bool = False) -> SyncResult:
        return self.run(SyncRequest(self.resolve(name), Direction.EXPORT, force))

    def import_(self, name: str, *, force: bool = False) -> SyncResult:
        return self.run(SyncRequest(self.resolve(name), Direction.IMPORT, force))

    def run(self, request: SyncRequest) -> SyncResult:
        return self.sync(request.package, request.direction, force=request.force)

    def sync(self, package: Package, direction: Direction, *, force: bool = False) -> SyncResult:
        source, destination = self.endpoints(package, direction)
        logger.info("%s %s: %s -> %s", direction.value, package.name, source, destination)

        if kind(source) is EntryKind.MISSING:
            raise SourceMissing(package.name, source)

        if self._needs_confirmation(direction, force, source, destination):
            if not self.confirm(self._staleness_question(source, destination)):
                logger.info("import of %s cancelled", package.name)
                return SyncResult(package, direction, source, destination, cancelled=True)

        result = self._transfer(package, direction, source, destination)

        if package.name == SHELL_PACKAGE and direction is Direction.EXPORT:
            reloaded = self._reload_shell(destination)
            result = SyncResult(
                package,
                direction,
                source,
                destination,
                backup=result.backup,
                replaced_conflict=result.replaced_conflict,
                shell_reloaded=reloaded,
            )
        return result

    def export_all(self) -> ExportSummary:
        """Export every package, skipping missing sources instead of aborting."""

        packages = self.registry.all()
        summary = ExportSummary(total=len(packages))
        for package in packages:
            source, destination = self.endpoints(package, Direction.EXPORT)
            if kind(source) is EntryKind.MISSING:
                logger.warning("skipping %s: source %s does not exist", package.name, source)
                summary.skipped.append(package.name)
                summary.errors[package.name] = f"source does not exist: {source}"
                continue
            try:
                result = self._transfer(package, Direction.EXPORT, source, destination)
            except SyncError as exc:
                logger.warning("export of %s failed: %s", package.name, exc)
                summary.failed.append(package.name)
                summary.errors[package.name] = str(exc)
                continue
            summary.succeeded.append(package.name)
            summary.results.append(result)
        return summary

    # ------------------------------------------------------------------
    # Internal helpers

    @staticmethod
    def _needs_confirmation(direction: Direction, force: bool, source: Path, destination: Path) -> bool:
        """Only an import that does not clearly pull a newer copy is gated."""

        if direction is not Direction.IMPORT or force:
            return False
        if kind(destination) is EntryKind.MISSING:
            return False
        return not is_newer(source, destination)

    def _staleness_question(self, source: Path, destination: Path) -> str:
        logger.warning("system copy %s is not newer than repository copy %s", source, destination)
        return "\n".join(
            [
                f"System config: {format_time(mtime(source))}",
                f"Repo config:   {format_time(mtime(destination))}",
                "System config is not newer than repo config.",
                "Proceed?",
            ]
        )

    def _transfer(self, package: Package, direction: Direction, source: Path, destination: Path) -> SyncResult:
        try:
            ensure_parent(destination)
        except PermissionError as exc:
            raise PermissionDenied(package.name, destination.parent) from exc
        except OSError as exc:
            raise CopyFailed(package.name, source, destination, str(exc)) from exc

        source_kind = kind(source)
        destination_kind = kind(destination)
        # Import destinations are inside the repository; no backups are written there.
        keep_backup = self.backup and direction is Direction.EXPORT
        backup: Path | None = None
        replaced = False

        if destination_kind is not EntryKind.MISSING and destination_kind is not source_kind:
            logger.info("replacing conflicting %s at %s", destination_kind.value, destination)
            try:
                if keep_backup:
                    backup = move_aside(destination)
                else:
                    remove_path(destination)
            except OSError as exc:
                raise DestinationConflict(package.name, destination, str(exc)) from exc
            replaced = True
        elif destination_kind is not EntryKind.MISSING and keep_backup:
            try:
                backup = snapshot(destination)
            except PermissionError as exc:
                raise PermissionDenied(package.name, destination) from exc
            except OSError as exc:
                raise CopyFailed(package.name, source, destination, f"backup failed: {exc}") from exc
            logger.debug("backed up %s to %s", destination, backup)

        try:
            self.copier.copy(source, destination)
        except PermissionError as exc:
            raise PermissionDenied(package.name, destination) from exc
        except OSError as exc:
            raise CopyFailed(package.name, source, destination, str(exc)) from exc

        return SyncResult(
            package,
            direction,
            source,
            destination,
            backup=backup,
            replaced_conflict=replaced,
        )

    def _reload_shell(self, config_dir: Path) -> bool:
        config_file = config_dir / "config.fish"
        exit_code = self.runner.run(["fish", "-c", f"source {config_file}"])
        if exit_code != 0:
            logger.warning("could not reload fish config (exit code %s)", exit_code)
            return False
        return True
