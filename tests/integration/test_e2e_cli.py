from __future__ import annotations

import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from devsync.cli import app
from devsync.filesystem import ShutilCopier

cli_runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(monkeypatch: pytest.MonkeyPatch, repo_root: Path, fake_home: Path, runner) -> None:
    monkeypatch.setattr("devsync.cli._runner", lambda: runner)
    monkeypatch.setattr("devsync.cli.default_copier", lambda _runner: ShutilCopier())


def _populate_repo(repo_root: Path) -> None:
    (repo_root / "nvim" / "lua").mkdir(parents=True)
    (repo_root / "nvim" / "init.lua").write_text("require('core')\n")
    (repo_root / "nvim" / "lua" / "core.lua").write_text("vim.o.number = true\n")
    (repo_root / "starship.toml").write_text("add_newline = false\n")
    (repo_root / "fish").mkdir()
    (repo_root / "fish" / "config.fish").write_text("set -g fish_greeting\n")
    (repo_root / ".tmux.conf").write_text("set -g mouse on\n")
    (repo_root / "ghostty-config").write_text("font-size = 13\n")
    (repo_root / "git-config").write_text("[user]\n\tname = dev\n")


def test_export_all_then_import_round_trip(repo_root: Path, fake_home: Path, runner) -> None:
    _populate_repo(repo_root)

    result = cli_runner.invoke(app, ["export", "--all"])
    assert result.exit_code == 0
    assert "6/6 packages successful" in result.stdout
    assert (fake_home / ".config" / "nvim" / "lua" / "core.lua").exists()
    assert (fake_home / ".config" / "ghostty" / "config").read_text() == "font-size = 13\n"
    # Batch export never reloads the shell.
    assert not any(args[0] == "fish" for args in runner.commands())

    system_starship = fake_home / ".config" / "starship.toml"
    system_starship.write_text("add_newline = true\n")
    os.utime(repo_root / "starship.toml", (1_000, 1_000))

    result = cli_runner.invoke(app, ["import", "starship"])
    assert result.exit_code == 0
    assert "Imported starship successfully" in result.stdout
    assert (repo_root / "starship.toml").read_text() == "add_newline = true\n"
    assert not list(repo_root.rglob("*.backup"))


def test_export_replaces_directory_with_file_and_back(repo_root: Path, fake_home: Path) -> None:
    (repo_root / ".tmux.conf").write_text("set -g mouse on\n")
    system = fake_home / ".tmux.conf"
    system.mkdir()
    (system / "stray").write_text("x\n")

    result = cli_runner.invoke(app, ["--force", "export", "tmux"])

    assert result.exit_code == 0
    assert system.is_file()
    assert (fake_home / ".tmux.conf.backup" / "stray").exists()

    result = cli_runner.invoke(app, ["export", "tmux"])
    assert result.exit_code == 0
    assert system.read_text() == "set -g mouse on\n"
