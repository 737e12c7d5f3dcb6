"""Registry of remote machines and the SSH helpers that reach them."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Iterable

from tomli_w import dump as toml_dump

from .config import Settings
from .errors import CommandFailed, ConfigError, DevsyncError, UnknownRemote
from .models import Remote
from .runner import CommandRunner

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT = 3
REMOTE_CONFIG = "/etc/nixos/configuration.nix"
REMOTE_HARDWARE_CONFIG = "/etc/nixos/hardware-configuration.nix"


class RemoteStore:
    """Tracks known remotes in a TOML file."""

    def __init__(self, path: Path, remotes: list[Remote] | None = None) -> None:
        self.path = path
        self._remotes: list[Remote] = remotes or []

    @classmethod
    def load(cls, path: Path, legacy_path: Path | None = None) -> "RemoteStore":
        """Load ``path``, falling back to a comma-separated ``legacy_path``.

        Remotes read from the legacy file are written to ``path`` on the next
        :meth:`save`; the legacy file itself is never modified.
        """

        if not path.exists():
            if legacy_path is not None and legacy_path.exists():
                return cls(path, _read_legacy(legacy_path))
            return cls(path, [])

        try:
            with path.open("rb") as handle:
                data = tomllib.load(handle)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Could not parse remotes file '{path}': {exc}") from exc

        remotes: list[Remote] = []
        for item in data.get("remotes", []):
            try:
                remotes.append(Remote(name=item["name"], host=item["host"], user=item.get("user", "root")))
            except (KeyError, TypeError) as exc:
                raise ConfigError(f"Malformed remote entry in '{path}': {item!r}") from exc
        return cls(path, remotes)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"remotes": [self._remote_to_dict(remote) for remote in self._remotes]}
        with self.path.open("wb") as handle:
            toml_dump(payload, handle)

    def find(self, name: str) -> Remote | None:
        for remote in self._remotes:
            if remote.name == name:
                return remote
        return None

    def require(self, name: str) -> Remote:
        remote = self.find(name)
        if remote is None:
            raise UnknownRemote(name)
        return remote

    def add(self, name: str, host: str, user: str = "root") -> Remote:
        if self.find(name) is not None:
            raise DevsyncError(f"Remote '{name}' already exists")
        remote = Remote(name=name, host=host, user=user)
        self._remotes.append(remote)
        return remote

    def remotes(self) -> Iterable[Remote]:
        return tuple(self._remotes)

    @staticmethod
    def _remote_to_dict(remote: Remote) -> dict[str, str]:
        return {"name": remote.name, "host": remote.host, "user": remote.user}


def _read_legacy(path: Path) -> list[Remote]:
    # One ``name,host,user`` per line; anything else is skipped.
    remotes: list[Remote] = []
    for line in path.read_text().splitlines():
        parts = line.split(",")
        if len(parts) != 3:
            continue
        name, host, user = parts
        remotes.append(Remote(name=name, host=host, user=user))
    logger.info("read %d remotes from legacy file %s", len(remotes), path)
    return remotes


class RemoteShell:
    """Runs ``ssh`` and ``scp`` against configured remotes."""

    def __init__(
        self,
        settings: Settings,
        runner: CommandRunner,
        store: RemoteStore,
        *,
        connect_timeout: int = CONNECT_TIMEOUT,
    ) -> None:
        self.settings = settings
        self.runner = runner
        self.store = store
        self.connect_timeout = connect_timeout

    def _ssh_options(self, *, batch: bool = False) -> list[str]:
        options = ["-o", f"ConnectTimeout={self.connect_timeout}"]
        if batch:
            options += ["-o", "BatchMode=yes"]
        return options

    def reachable(self, remote: Remote) -> bool:
        args = ["ssh", *self._ssh_options(batch=True), remote.target, "true"]
        return self.runner.capture(args).ok

    def find_live(self, exclude: str | None = None) -> Remote | None:
        for remote in self.store.remotes():
            if remote.name == exclude:
                continue
            if self.reachable(remote):
                return remote
        return None

    def connect(self, name: str) -> int:
        remote = self.store.require(name)
        return self.runner.run(["ssh", *self._ssh_options(), remote.target])

    def machine_dir(self, name: str) -> Path:
        return self.settings.remote_config_root / "machines" / name

    def pull(self, name: str) -> Path:
        """Copy the remote's NixOS configuration into the machine directory."""

        remote = self.store.require(name)
        destination = self.machine_dir(name)
        destination.mkdir(parents=True, exist_ok=True)

        exit_code = self._scp(remote, REMOTE_CONFIG, destination / "configuration.nix")
        if exit_code != 0:
            raise CommandFailed(f"pulling {REMOTE_CONFIG} from {remote.target}", exit_code)

        exit_code = self._scp(remote, REMOTE_HARDWARE_CONFIG, destination / "hardware-configuration.nix")
        if exit_code != 0:
            logger.warning("failed to pull %s from %s (may not exist)", REMOTE_HARDWARE_CONFIG, remote.target)
        return destination

    def _scp(self, remote: Remote, remote_path: str, local_path: Path) -> int:
        return self.runner.run(
            ["scp", *self._ssh_options(), f"{remote.target}:{remote_path}", str(local_path)]
        )
