"""Filesystem probe and copy helpers for devsync."""

from __future__ import annotations

import shutil
import time
from pathlib import Path
from typing import Protocol

from .models import EntryKind
from .runner import CommandRunner

BACKUP_SUFFIX = ".backup"


class CopyError(OSError):
    """Raised when an external copy command exits non-zero."""

    def __init__(self, command: str, exit_code: int) -> None:
        super().__init__(f"{command} exited with code {exit_code}")
        self.command = command
        self.exit_code = exit_code


def exists(path: Path) -> bool:
    """Return ``True`` if ``path`` (following symlinks) exists."""

    return path.exists()


def kind(path: Path) -> EntryKind:
    """Classify ``path`` without raising for missing entries."""

    if path.is_dir():
        return EntryKind.DIRECTORY
    if path.exists():
        return EntryKind.FILE
    return EntryKind.MISSING


def mtime(path: Path) -> float | None:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def is_newer(a: Path, b: Path) -> bool:
    """Return ``True`` iff ``a`` exists and ``b`` is missing or older.

    A missing ``a`` is never newer, whatever ``b`` is.
    """

    a_time = mtime(a)
    if a_time is None:
        return False
    b_time = mtime(b)
    if b_time is None:
        return True
    return a_time > b_time


def format_time(timestamp: float | None) -> str:
    if timestamp is None:
        return "unknown"
    return time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(timestamp))


def ensure_parent(path: Path) -> None:
    """Ensure the parent directory exists."""

    path.parent.mkdir(parents=True, exist_ok=True)


def remove_path(path: Path) -> None:
    """Delete ``path`` whether it is a file, directory, or symlink."""

    if not path.exists() and not path.is_symlink():
        return
    if path.is_symlink() or path.is_file():
        path.unlink()
        return
    shutil.rmtree(path)


def backup_path(path: Path) -> Path:
    return path.with_name(path.name + BACKUP_SUFFIX)


def snapshot(path: Path) -> Path:
    """Copy ``path`` to its ``.backup`` sibling, replacing an older snapshot."""

    backup = backup_path(path)
    remove_path(backup)
    if path.is_dir():
        shutil.copytree(path, backup, symlinks=True, copy_function=shutil.copy2)
    else:
        shutil.copy2(path, backup)
    return backup


def move_aside(path: Path) -> Path:
    """Move ``path`` to its ``.backup`` sibling so a new entry can take its place."""

    backup = backup_path(path)
    remove_path(backup)
    path.rename(backup)
    return backup


class Copier(Protocol):
    """Copies a file or merges a directory tree onto ``destination``."""

    def copy(self, source: Path, destination: Path) -> None: ...


class RsyncCopier:
    """Copies through ``rsync -a`` for directories and ``cp`` for files.

    Files missing from the source are left alone at the destination.
    """

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def copy(self, source: Path, destination: Path) -> None:
        if source.is_dir():
            args = ["rsync", "-a", f"{source}/", str(destination)]
        else:
            args = ["cp", str(source), str(destination)]
        exit_code = self.runner.run(args)
        if exit_code != 0:
            raise CopyError(args[0], exit_code)


class ShutilCopier:
    """In-process equivalent of :class:`RsyncCopier`.

    Entries already present at the destination are replaced, symlinks
    included; entries only present at the destination are kept.
    """

    def copy(self, source: Path, destination: Path) -> None:
        if source.is_dir():
            destination.mkdir(parents=True, exist_ok=True)
            self._merge(source, destination)
        else:
            shutil.copy2(source, destination)

    def _merge(self, source: Path, destination: Path) -> None:
        for child in source.iterdir():
            target = destination / child.name
            if child.is_symlink():
                remove_path(target)
                target.symlink_to(child.readlink())
            elif child.is_dir():
                if target.is_symlink() or (target.exists() and not target.is_dir()):
                    remove_path(target)
                target.mkdir(exist_ok=True)
                self._merge(child, target)
            else:
                if target.is_symlink() or target.is_dir():
                    remove_path(target)
                shutil.copy2(child, target)
        shutil.copystat(source, destination)


def default_copier(runner: CommandRunner) -> Copier:
    if runner.which("rsync"):
        return RsyncCopier(runner)
    return ShutilCopier()
