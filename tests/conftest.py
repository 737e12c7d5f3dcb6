from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest

from devsync.config import Settings
from devsync.runner import CommandOutput, CommandRunner


class RecordingRunner(CommandRunner):
    """Records every command instead of running it.

    ``results`` maps a command prefix (tuple of leading args) to an exit code;
    the longest matching prefix wins and unmatched commands succeed.
    """

    def __init__(
        self,
        results: dict[tuple[str, ...], int] | None = None,
        *,
        outputs: dict[tuple[str, ...], str] | None = None,
        available: Sequence[str] = (),
    ) -> None:
        self.results = results or {}
        self.outputs = outputs or {}
        self.available = set(available)
        self.calls: list[tuple[list[str], Path | None]] = []
        self.shell_calls: list[str] = []

    def _lookup(self, table: dict, args: Sequence[str], default):
        best = None
        for prefix in table:
            if tuple(args[: len(prefix)]) == prefix and (best is None or len(prefix) > len(best)):
                best = prefix
        return table[best] if best is not None else default

    def run(self, args, *, cwd=None, timeout=None) -> int:
        self.calls.append((list(args), cwd))
        return self._lookup(self.results, args, 0)

    def capture(self, args, *, cwd=None, timeout=None) -> CommandOutput:
        self.calls.append((list(args), cwd))
        return CommandOutput(self._lookup(self.results, args, 0), self._lookup(self.outputs, args, ""))

    def shell(self, command, *, cwd=None) -> int:
        self.shell_calls.append(command)
        return self._lookup(self.results, (command.split()[0],), 0)

    def which(self, name: str) -> bool:
        return name in self.available

    def commands(self) -> list[list[str]]:
        return [args for args, _cwd in self.calls]


@pytest.fixture
def fake_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    return home


@pytest.fixture
def repo_root(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    root.mkdir()
    monkeypatch.setenv("DEVTOOLS_ROOT", str(root))
    return root


@pytest.fixture
def settings(repo_root: Path, fake_home: Path) -> Settings:
    return Settings(
        repo_root=repo_root,
        remote_config_root=fake_home / "Projects" / "nixos-configs",
        editor="true-editor",
    )


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()
