"""Neovim plugins managed as git submodules of the configuration repository."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import Settings
from .errors import CommandFailed, DevsyncError
from .filesystem import remove_path
from .runner import CommandRunner

logger = logging.getLogger(__name__)


def plugin_name_from_url(url: str) -> str:
    name = url.rstrip("/").rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    if not name:
        raise ValueError(f"Invalid git URL '{url}'")
    return name


class PluginManager:
    def __init__(self, settings: Settings, runner: CommandRunner) -> None:
        self.settings = settings
        self.runner = runner

    def plugin_path(self, name: str) -> Path:
        return self.settings.plugins_path / name

    def submodule_path(self, name: str) -> str:
        return self.plugin_path(name).relative_to(self.settings.repo_root).as_posix()

    def install(self, url: str, name: str | None = None) -> Path:
        name = name or plugin_name_from_url(url)
        path = self.plugin_path(name)
        if path.exists():
            raise DevsyncError(f"Plugin '{name}' already exists at {path}")

        self.settings.plugins_path.mkdir(parents=True, exist_ok=True)
        exit_code = self.runner.run(
            ["git", "submodule", "add", url, self.submodule_path(name)],
            cwd=self.settings.repo_root,
        )
        if exit_code != 0:
            raise CommandFailed(f"git submodule add {url}", exit_code)
        return path

    def list_plugins(self) -> list[str]:
        directory = self.settings.plugins_path
        if not directory.is_dir():
            return []
        return sorted(child.name for child in directory.iterdir() if child.is_dir())

    def update(self, name: str) -> None:
        self._require(name)
        exit_code = self.runner.run(
            ["git", "submodule", "update", "--remote", self.submodule_path(name)],
            cwd=self.settings.repo_root,
        )
        if exit_code != 0:
            raise CommandFailed(f"update of plugin '{name}'", exit_code)

    def remove(self, name: str) -> bool:
        """Remove the plugin submodule. Returns ``False`` if cleanup was partial."""

        self._require(name)
        root = self.settings.repo_root
        submodule = self.submodule_path(name)
        deinit = self.runner.run(["git", "submodule", "deinit", "-f", submodule], cwd=root)
        removed = self.runner.run(["git", "rm", "-f", submodule], cwd=root)
        remove_path(root / ".git" / "modules" / submodule)

        if deinit != 0 or removed != 0:
            logger.warning("some cleanup commands failed while removing plugin %s", name)
            return False
        return True

    def _require(self, name: str) -> None:
        path = self.plugin_path(name)
        if not path.exists():
            raise DevsyncError(f"Plugin '{name}' not found at {path}")
