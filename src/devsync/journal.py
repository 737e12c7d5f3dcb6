"""Daily plans and TIL notes kept in the logs submodule."""

from __future__ import annotations

import logging
import shlex
import shutil
from datetime import date
from pathlib import Path

from .config import Settings
from .errors import CommandFailed, DevsyncError, SourceMissing
from .gitsync import has_staged_changes
from .runner import CommandRunner

logger = logging.getLogger(__name__)

DEFAULT_PLAN_COUNT = 7


def today_string() -> str:
    return date.today().isoformat()


def is_valid_date(text: str) -> bool:
    """Return ``True`` for ``YYYY-MM-DD`` between 2000 and 2100."""

    parts = text.split("-")
    if len(parts) != 3:
        return False
    year, month, day = parts
    if (len(year), len(month), len(day)) != (4, 2, 2):
        return False
    if not (year.isdigit() and month.isdigit() and day.isdigit()):
        return False
    return 2000 <= int(year) <= 2100 and 1 <= int(month) <= 12 and 1 <= int(day) <= 31


def plan_template(day: str) -> str:
    return f"# {day}\n\n## Goals\n- [ ] \n- [ ] \n- [ ] \n\n## Notes\n\n\n## Done\n- \n"


def til_template(topic: str, day: str | None = None) -> str:
    return f"# TIL: {topic}\n\n## {day or today_string()}\n- \n"


def open_in_editor(runner: CommandRunner, editor: str, path: Path) -> int:
    return runner.run([*shlex.split(editor), str(path)])


class Journal:
    """Creates, lists and publishes markdown notes under the logs root."""

    def __init__(self, settings: Settings, runner: CommandRunner) -> None:
        self.settings = settings
        self.runner = runner

    # Plans ------------------------------------------------------------

    def plan_path(self, day: str) -> Path:
        return self.settings.daily_path / f"{day}.md"

    def edit_plan(self, day: str | None = None) -> tuple[Path, bool]:
        """Open the plan for ``day`` in the editor, creating it from the template.

        Returns the plan path and whether it was newly created.
        """

        day = day or today_string()
        path = self.plan_path(day)
        created = _write_if_missing(path, plan_template(day))
        open_in_editor(self.runner, self.settings.editor, path)
        return path, created

    def view_plan(self, day: str | None = None) -> Path:
        day = day or today_string()
        path = self.plan_path(day)
        if not path.exists():
            raise DevsyncError(f"No plan found for {day}")
        viewer = ["bat", "--style=plain"] if self.runner.which("bat") else ["less"]
        self.runner.run([*viewer, str(path)])
        return path

    def list_plans(self, count: int = DEFAULT_PLAN_COUNT) -> list[tuple[str, Path]]:
        directory = self.settings.daily_path
        directory.mkdir(parents=True, exist_ok=True)
        plans = sorted(directory.glob("*.md"), key=lambda item: item.stat().st_mtime, reverse=True)
        return [(plan.stem, plan) for plan in plans[:count]]

    def save_logs(self) -> bool:
        """Commit and push the logs repository. Returns ``False`` if nothing changed."""

        logs = self.settings.logs_root
        self.runner.run(["git", "add", "."], cwd=logs)
        if not has_staged_changes(self.runner, logs):
            return False

        exit_code = self.runner.run(["git", "commit", "-m", f"logs for {today_string()}"], cwd=logs)
        if exit_code != 0:
            raise CommandFailed("git commit", exit_code)
        exit_code = self.runner.run(["git", "push"], cwd=logs)
        if exit_code != 0:
            raise CommandFailed("git push", exit_code)
        return True

    # TIL --------------------------------------------------------------

    def til_file(self, topic: str, *, public: bool = False) -> Path:
        root = self.settings.public_til_path if public else self.settings.til_path
        return root / f"{topic}.md"

    def edit_til(self, topic: str) -> tuple[Path, bool]:
        path = self.til_file(topic)
        created = _write_if_missing(path, til_template(topic))
        open_in_editor(self.runner, self.settings.editor, path)
        return path, created

    def list_tils(self, *, public: bool = False) -> list[str]:
        directory = self.settings.public_til_path if public else self.settings.til_path
        if not public:
            directory.mkdir(parents=True, exist_ok=True)
        if not directory.is_dir():
            return []
        return sorted(path.stem for path in directory.glob("*.md"))

    def search_tils(self, pattern: str) -> bool:
        """Search TIL notes with ripgrep. Returns ``True`` when something matched."""

        directory = self.settings.til_path
        directory.mkdir(parents=True, exist_ok=True)
        exit_code = self.runner.run(
            ["rg", "-i", "--color=always", "--glob", "*.md", pattern, str(directory)]
        )
        return exit_code == 0

    def export_til(self, topic: str) -> Path:
        """Open a TIL for polishing, then publish it to the public logs."""

        private = self.til_file(topic)
        if not private.exists():
            raise SourceMissing(f"til {topic}", private)

        open_in_editor(self.runner, self.settings.editor, private)

        public = self.til_file(topic, public=True)
        public.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(private, public)
        logger.info("exported TIL %s to %s", topic, public)
        return public


def _write_if_missing(path: Path, content: str) -> bool:
    if path.exists():
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return True
