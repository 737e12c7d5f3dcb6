from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from devsync.config import Settings
from devsync.errors import CommandFailed, ConfigError, DevsyncError, UnknownRemote
from devsync.models import Remote
from devsync.remotes import RemoteShell, RemoteStore


def test_store_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "configs" / ".remotes.toml"
    store = RemoteStore.load(path)
    store.add("alien", "192.168.1.20")
    store.add("pi", "pi.local", "pi")
    store.save()

    data = tomllib.loads(path.read_text())
    assert data["remotes"][0] == {"name": "alien", "host": "192.168.1.20", "user": "root"}

    reloaded = RemoteStore.load(path)
    assert list(reloaded.remotes()) == [Remote("alien", "192.168.1.20"), Remote("pi", "pi.local", "pi")]


def test_store_rejects_duplicates(tmp_path: Path) -> None:
    store = RemoteStore(tmp_path / ".remotes.toml")
    store.add("alien", "10.0.0.2")

    with pytest.raises(DevsyncError, match="already exists"):
        store.add("alien", "10.0.0.3")


def test_store_require_unknown(tmp_path: Path) -> None:
    with pytest.raises(UnknownRemote, match="j remote list"):
        RemoteStore(tmp_path / ".remotes.toml").require("ghost")


def test_store_malformed(tmp_path: Path) -> None:
    path = tmp_path / ".remotes.toml"
    path.write_text('[[remotes]]\nhost = "x"\n')

    with pytest.raises(ConfigError, match="Malformed remote entry"):
        RemoteStore.load(path)


def test_store_reads_legacy_file(tmp_path: Path) -> None:
    legacy = tmp_path / ".remotes"
    legacy.write_text("alien,192.168.1.20,root\nbroken line\npi,pi.local,pi\n")
    path = tmp_path / ".remotes.toml"

    store = RemoteStore.load(path, legacy_path=legacy)
    assert list(store.remotes()) == [Remote("alien", "192.168.1.20"), Remote("pi", "pi.local", "pi")]

    store.add("nas", "10.0.0.9")
    store.save()

    assert [remote.name for remote in RemoteStore.load(path, legacy_path=legacy).remotes()] == ["alien", "pi", "nas"]
    assert legacy.read_text().startswith("alien,192.168.1.20,root\n")


def test_store_prefers_toml_over_legacy(tmp_path: Path) -> None:
    legacy = tmp_path / ".remotes"
    legacy.write_text("old,10.0.0.1,root\n")
    path = tmp_path / ".remotes.toml"
    path.write_text('[[remotes]]\nname = "new"\nhost = "10.0.0.2"\n')

    assert list(RemoteStore.load(path, legacy_path=legacy).remotes()) == [Remote("new", "10.0.0.2")]


@pytest.fixture
def shell(settings: Settings, runner, tmp_path: Path) -> RemoteShell:
    store = RemoteStore(tmp_path / ".remotes.toml", [Remote("alien", "10.0.0.2"), Remote("pi", "pi.local", "pi")])
    return RemoteShell(settings, runner, store)


def test_reachable_uses_timeouts(shell: RemoteShell, runner) -> None:
    assert shell.reachable(Remote("alien", "10.0.0.2")) is True
    assert runner.commands() == [
        ["ssh", "-o", "ConnectTimeout=3", "-o", "BatchMode=yes", "root@10.0.0.2", "true"]
    ]


def test_find_live_skips_unreachable_and_excluded(shell: RemoteShell, runner) -> None:
    runner.results[("ssh", "-o", "ConnectTimeout=3", "-o", "BatchMode=yes", "root@10.0.0.2")] = 255

    assert shell.find_live() == Remote("pi", "pi.local", "pi")
    assert shell.find_live(exclude="pi") is None


def test_connect(shell: RemoteShell, runner) -> None:
    runner.results[("ssh",)] = 130

    assert shell.connect("pi") == 130
    assert runner.commands() == [["ssh", "-o", "ConnectTimeout=3", "pi@pi.local"]]


def test_pull_copies_configuration(shell: RemoteShell, runner, settings: Settings) -> None:
    runner.results[("scp", "-o", "ConnectTimeout=3", "root@10.0.0.2:/etc/nixos/hardware-configuration.nix")] = 1

    destination = shell.pull("alien")

    assert destination == settings.remote_config_root / "machines" / "alien"
    assert destination.is_dir()
    assert runner.commands()[0] == [
        "scp",
        "-o",
        "ConnectTimeout=3",
        "root@10.0.0.2:/etc/nixos/configuration.nix",
        str(destination / "configuration.nix"),
    ]


def test_pull_main_config_failure(shell: RemoteShell, runner) -> None:
    runner.results[("scp",)] = 1

    with pytest.raises(CommandFailed):
        shell.pull("alien")
