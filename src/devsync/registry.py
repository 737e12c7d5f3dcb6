"""The fixed table of syncable configuration packages."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from .errors import RegistryError
from .models import Package

# (name, path inside the repository, path relative to $HOME)
DEFAULT_PACKAGES: tuple[tuple[str, str, str], ...] = (
    ("nvim", "nvim", ".config/nvim"),
    ("starship", "starship.toml", ".config/starship.toml"),
    ("fish", "fish", ".config/fish"),
    ("tmux", ".tmux.conf", ".tmux.conf"),
    ("ghostty", "ghostty-config", ".config/ghostty/config"),
    ("git", "git-config", ".config/git/config"),
)

SHELL_PACKAGE = "fish"


class Registry:
    """Ordered, immutable collection of packages."""

    def __init__(self, packages: Iterable[Package]) -> None:
        self._packages = tuple(packages)
        self._validate()

    @classmethod
    def default(cls, home: Path | None = None) -> "Registry":
        home = home if home is not None else Path.home()
        return cls(
            Package(name=name, repo_path=Path(repo_path), system_path=home / system_path)
            for name, repo_path, system_path in DEFAULT_PACKAGES
        )

    def lookup(self, name: str) -> Package | None:
        for package in self._packages:
            if package.name == name:
                return package
        return None

    def all(self) -> tuple[Package, ...]:
        return self._packages

    def names(self) -> list[str]:
        return [package.name for package in self._packages]

    def __len__(self) -> int:
        return len(self._packages)

    def _validate(self) -> None:
        names: set[str] = set()
        system_paths: set[Path] = set()
        for package in self._packages:
            if not package.name:
                raise RegistryError("Package names must not be empty")
            if package.name in names:
                raise RegistryError(f"Duplicate package name '{package.name}'")
            if str(package.repo_path) in ("", "."):
                raise RegistryError(f"Package '{package.name}' must define a repository path")
            if package.repo_path.is_absolute():
                raise RegistryError(f"Package '{package.name}' repository path must be relative")
            if not package.system_path.is_absolute():
                raise RegistryError(f"Package '{package.name}' system path must be absolute")
            if package.system_path in system_paths:
                raise RegistryError(f"Package '{package.name}' reuses system path '{package.system_path}'")
            names.add(package.name)
            system_paths.add(package.system_path)
