"""Environment-driven settings and derived paths for devsync."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict

ROOT_ENV = "DEVTOOLS_ROOT"
REMOTE_ROOT_ENV = "NIXOS_CONFIGS_ROOT"
EDITOR_ENV = "EDITOR"
EXPLORER_ENV = "FILE_EXPLORER"
MACHINE_TYPE_ENV = "MACHINE_TYPE"

DEFAULT_EDITOR = "nvim"
DEFAULT_EXPLORER = "nnn"
DEFAULT_MACHINE_TYPE = "personal"
REMOTES_FILENAME = ".remotes.toml"
LEGACY_REMOTES_FILENAME = ".remotes"


def _expand_path(raw: str | os.PathLike[str]) -> Path:
    """Return a ``Path`` with env vars and ``~`` expanded."""

    return Path(os.path.expandvars(str(raw))).expanduser()


def _home(environ: Mapping[str, str]) -> Path:
    home = environ.get("HOME")
    return Path(home) if home else Path.home()


class Settings(BaseModel):
    """Roots and tool overrides, read once from the environment.

    Nothing here touches the filesystem; callers check existence lazily.
    """

    model_config = ConfigDict(frozen=True)

    repo_root: Path
    remote_config_root: Path
    editor: str = DEFAULT_EDITOR
    file_explorer: str = DEFAULT_EXPLORER
    machine_type: str = DEFAULT_MACHINE_TYPE

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, *, argv0: str | None = None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``).

        When ``DEVTOOLS_ROOT`` is unset the repository root falls back to the
        directory holding the running executable, which is wrong if the
        binary was moved elsewhere.
        """

        env = os.environ if environ is None else environ
        raw_root = env.get(ROOT_ENV)
        if raw_root:
            repo_root = _expand_path(raw_root)
        else:
            executable = argv0 if argv0 is not None else sys.argv[0]
            repo_root = Path(executable).parent

        raw_remote = env.get(REMOTE_ROOT_ENV)
        if raw_remote:
            remote_root = _expand_path(raw_remote)
        else:
            remote_root = _home(env) / "Projects" / "nixos-configs"

        return cls(
            repo_root=repo_root,
            remote_config_root=remote_root,
            editor=env.get(EDITOR_ENV) or DEFAULT_EDITOR,
            file_explorer=env.get(EXPLORER_ENV) or DEFAULT_EXPLORER,
            machine_type=env.get(MACHINE_TYPE_ENV) or DEFAULT_MACHINE_TYPE,
        )

    @property
    def logs_root(self) -> Path:
        return self.repo_root / "logs"

    @property
    def daily_path(self) -> Path:
        return self.logs_root / "dailies"

    @property
    def til_path(self) -> Path:
        return self.logs_root / "til"

    @property
    def public_logs_root(self) -> Path:
        return self.repo_root / "public_logs"

    @property
    def public_til_path(self) -> Path:
        return self.public_logs_root / "til"

    @property
    def remotes_path(self) -> Path:
        return self.remote_config_root / REMOTES_FILENAME

    @property
    def legacy_remotes_path(self) -> Path:
        return self.remote_config_root / LEGACY_REMOTES_FILENAME

    @property
    def plugins_path(self) -> Path:
        return self.repo_root / "nvim" / "pack" / "plugins" / "start"

    @property
    def project_plan_path(self) -> Path:
        subdir = "work" if self.machine_type == "work" else "projects"
        return self.logs_root / subdir
