"""Exception types raised by devsync."""

from __future__ import annotations

from pathlib import Path


class DevsyncError(RuntimeError):
    """Raised when devsync encounters an unrecoverable state."""


class ConfigError(DevsyncError):
    """Raised when persisted configuration cannot be parsed or validated."""


class RegistryError(DevsyncError):
    """Raised when the package table violates its invariants."""


class UnknownPackage(DevsyncError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown package '{name}'")
        self.name = name


class SyncError(DevsyncError):
    """Base class for failures while syncing a single package."""

    def __init__(self, package: str, message: str) -> None:
        super().__init__(f"{package}: {message}")
        self.package = package


class SourceMissing(SyncError):
    def __init__(self, package: str, path: Path) -> None:
        super().__init__(package, f"source path does not exist: {path}")
        self.path = path


class CopyFailed(SyncError):
    def __init__(self, package: str, source: Path, destination: Path, detail: str | None = None) -> None:
        message = f"failed to copy {source} to {destination}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(package, message)
        self.source = source
        self.destination = destination


class DestinationConflict(SyncError):
    def __init__(self, package: str, destination: Path, detail: str) -> None:
        super().__init__(package, f"could not replace conflicting destination {destination}: {detail}")
        self.destination = destination


class PermissionDenied(SyncError):
    def __init__(self, package: str, path: Path) -> None:
        super().__init__(package, f"permission denied writing {path}. Re-run with elevated privileges.")
        self.path = path


class CommandFailed(DevsyncError):
    """Raised when a required external command exits non-zero."""

    def __init__(self, action: str, exit_code: int) -> None:
        super().__init__(f"{action} failed (exit code {exit_code})")
        self.action = action
        self.exit_code = exit_code


class UnknownRemote(DevsyncError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Remote '{name}' not found. Use 'j remote list' to see configured remotes.")
        self.name = name
