"""Core package for the devsync project."""

from .cli import app, run
from .config import Settings
from .errors import (
    CommandFailed,
    ConfigError,
    CopyFailed,
    DestinationConflict,
    DevsyncError,
    PermissionDenied,
    RegistryError,
    SourceMissing,
    SyncError,
    UnknownPackage,
    UnknownRemote,
)
from .models import Direction, EntryKind, ExportSummary, Package, Remote, SyncRequest, SyncResult
from .registry import Registry
from .sync import SyncEngine

__all__ = [
    "Settings",
    "Registry",
    "SyncEngine",
    "Package",
    "Remote",
    "Direction",
    "EntryKind",
    "SyncRequest",
    "SyncResult",
    "ExportSummary",
    "DevsyncError",
    "ConfigError",
    "RegistryError",
    "UnknownPackage",
    "UnknownRemote",
    "SyncError",
    "SourceMissing",
    "CopyFailed",
    "DestinationConflict",
    "PermissionDenied",
    "CommandFailed",
    "app",
    "run",
]
