from __future__ import annotations

from pathlib import Path

import pytest

from devsync.errors import RegistryError
from devsync.models import Package
from devsync.registry import DEFAULT_PACKAGES, Registry


def test_lookup_returns_registered_triples(tmp_path: Path) -> None:
    registry = Registry.default(home=tmp_path)

    for name, repo_path, system_path in DEFAULT_PACKAGES:
        package = registry.lookup(name)
        assert package == Package(name, Path(repo_path), tmp_path / system_path)


def test_lookup_unknown_returns_none(tmp_path: Path) -> None:
    registry = Registry.default(home=tmp_path)

    assert registry.lookup("nonexistent-package") is None
    assert registry.lookup("") is None
    assert registry.lookup("NVIM") is None


def test_all_preserves_order(tmp_path: Path) -> None:
    registry = Registry.default(home=tmp_path)

    assert registry.names() == ["nvim", "starship", "fish", "tmux", "ghostty", "git"]
    assert len(registry) == len(DEFAULT_PACKAGES)


def test_rejects_duplicate_names(tmp_path: Path) -> None:
    with pytest.raises(RegistryError, match="Duplicate package name"):
        Registry(
            [
                Package("fish", Path("fish"), tmp_path / "a"),
                Package("fish", Path("fish2"), tmp_path / "b"),
            ]
        )


def test_rejects_aliased_system_paths(tmp_path: Path) -> None:
    with pytest.raises(RegistryError, match="reuses system path"):
        Registry(
            [
                Package("a", Path("a"), tmp_path / "same"),
                Package("b", Path("b"), tmp_path / "same"),
            ]
        )


@pytest.mark.parametrize(
    "package",
    [
        Package("empty", Path(""), Path("/tmp/x")),
        Package("absolute", Path("/etc/x"), Path("/tmp/x")),
        Package("relative-system", Path("x"), Path("x")),
        Package("", Path("x"), Path("/tmp/x")),
    ],
)
def test_rejects_invalid_paths(package: Package) -> None:
    with pytest.raises(RegistryError):
        Registry([package])
