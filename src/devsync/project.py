"""Helpers for working inside a project checkout."""

from __future__ import annotations

import shlex
import tomllib
from pathlib import Path

from .config import Settings
from .errors import ConfigError, DevsyncError
from .journal import open_in_editor
from .runner import CommandRunner

MISE_FILENAME = "mise.toml"
FZF_CANCELLED = 130


def read_project_name(directory: Path) -> str | None:
    """Return ``[env] PROJECT_NAME`` from ``mise.toml`` in ``directory``."""

    mise_file = directory / MISE_FILENAME
    if not mise_file.is_file():
        return None
    try:
        with mise_file.open("rb") as handle:
            data = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Could not parse '{mise_file}': {exc}") from exc

    value = (data.get("env") or {}).get("PROJECT_NAME")
    return str(value) if value else None


def project_plan_template(project: str, topic: str) -> str:
    return (
        f"# {project} - {topic}\n\n"
        "## Overview\n\n"
        "## Diagrams\n\n```mermaid\ngraph TD\n    A[Start] --> B[End]\n```\n\n"
        "## Notes\n\n"
    )


class ProjectTools:
    def __init__(self, settings: Settings, runner: CommandRunner, *, cwd: Path | None = None) -> None:
        self.settings = settings
        self.runner = runner
        self.cwd = cwd or Path.cwd()

    def search(self, pattern: str | None = None, directory: str = ".") -> bool:
        """Grep with ripgrep and pick a hit with fzf. Returns ``False`` on failure."""

        rg = ["rg", "--line-number", "--column", "--no-heading", "--color=always", pattern or ".", directory]
        command = (
            f"{shlex.join(rg)} | fzf --ansi --delimiter=: "
            "--preview 'bat --color=always --highlight-line {2} {1}' "
            "--preview-window 'right:60%:+{2}/2' "
            "--bind 'ctrl-o:execute(nvim {1} +{2})' "
            "--bind 'enter:execute(nvim {1} +{2})'"
        )
        return self._finished(self.runner.shell(command, cwd=self.cwd))

    def files(self, directory: str = ".") -> bool:
        if self.runner.which("fd"):
            finder = ["fd", "--type", "f", "--hidden", "--exclude", ".git", ".", directory]
        elif self.runner.run(["git", "rev-parse", "--is-inside-work-tree"], cwd=self.cwd) == 0:
            finder = ["git", "-C", directory, "ls-files", "--cached", "--others", "--exclude-standard"]
        else:
            finder = ["find", directory, "-type", "f", "-not", "-path", "*/.git/*"]
        command = (
            f"{shlex.join(finder)} | fzf --preview 'bat --color=always {{}}' "
            "--preview-window 'right:60%' --bind 'enter:execute(nvim {})'"
        )
        return self._finished(self.runner.shell(command, cwd=self.cwd))

    def explore(self) -> bool:
        return self.runner.run(shlex.split(self.settings.file_explorer), cwd=self.cwd) == 0

    def plan(self, topic: str) -> tuple[Path, bool]:
        project = read_project_name(self.cwd)
        if project is None:
            raise DevsyncError(
                f"PROJECT_NAME not found in {self.cwd / MISE_FILENAME}. "
                'Add it under [env], e.g. PROJECT_NAME = "your-project-name"'
            )

        path = self.settings.project_plan_path / f"{project}_{topic}.md"
        created = False
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(project_plan_template(project, topic))
            created = True
        open_in_editor(self.runner, self.settings.editor, path)
        return path, created

    @staticmethod
    def _finished(exit_code: int) -> bool:
        return exit_code in (0, FZF_CANCELLED)
