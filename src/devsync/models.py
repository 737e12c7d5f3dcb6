"""Shared models and enums for devsync."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class EntryKind(str, Enum):
    """Kinds of paths seen by the filesystem probe."""

    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


class Direction(str, Enum):
    """Copy direction for a sync operation."""

    EXPORT = "export"
    IMPORT = "import"


@dataclass(frozen=True, slots=True)
class Package:
    """A named configuration bundle and where it lives on both sides."""

    name: str
    repo_path: Path
    system_path: Path

    def repo_source(self, repo_root: Path) -> Path:
        return repo_root / self.repo_path


@dataclass(frozen=True, slots=True)
class SyncRequest:
    """One export or import, built from CLI arguments and consumed once."""

    package: Package
    direction: Direction
    force: bool = False


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Outcome of a single package sync."""

    package: Package
    direction: Direction
    source: Path
    destination: Path
    backup: Path | None = None
    replaced_conflict: bool = False
    cancelled: bool = False
    shell_reloaded: bool | None = None


@dataclass(slots=True)
class ExportSummary:
    """Aggregate outcome of ``export --all``."""

    total: int
    succeeded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    results: list[SyncResult] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def successful_count(self) -> int:
        return len(self.succeeded)

    @property
    def unsuccessful(self) -> list[str]:
        return self.skipped + self.failed

    @property
    def ok(self) -> bool:
        return not self.skipped and not self.failed


@dataclass(frozen=True, slots=True)
class Remote:
    """A remote machine reachable over SSH."""

    name: str
    host: str
    user: str = "root"

    @property
    def target(self) -> str:
        return f"{self.user}@{self.host}"
