"""Pull and push the configuration repository and its owned submodules."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from .config import Settings
from .errors import CommandFailed
from .runner import CommandRunner

logger = logging.getLogger(__name__)

OWNED_SUBMODULES = ("logs", "public_logs")


@dataclass(slots=True)
class SaveReport:
    message: str
    committed: bool = False
    pushed_submodules: list[str] = field(default_factory=list)
    failed_submodules: list[str] = field(default_factory=list)


def default_commit_message(today: date | None = None) -> str:
    today = today or date.today()
    return f"updates {today.isoformat()}"


def has_staged_changes(runner: CommandRunner, cwd: Path) -> bool:
    return runner.run(["git", "diff", "--cached", "--quiet"], cwd=cwd) != 0


class GitSync:
    def __init__(self, settings: Settings, runner: CommandRunner) -> None:
        self.settings = settings
        self.runner = runner

    def load(self) -> bool:
        """Pull the repository, then refresh submodules.

        Returns ``False`` when the submodule refresh reported a problem.
        """

        root = self.settings.repo_root
        exit_code = self.runner.run(["git", "pull"], cwd=root)
        if exit_code != 0:
            raise CommandFailed("git pull", exit_code)

        exit_code = self.runner.run(
            ["git", "submodule", "update", "--init", "--recursive", "--remote"],
            cwd=root,
        )
        if exit_code != 0:
            logger.warning("some submodules may not have updated correctly (exit code %s)", exit_code)
            return False
        return True

    def save(self, message: str | None = None) -> SaveReport:
        report = SaveReport(message=message or default_commit_message())

        for name in OWNED_SUBMODULES:
            path = self.settings.repo_root / name
            if not path.exists():
                continue
            if self._save_submodule(path, report.message):
                report.pushed_submodules.append(name)
            else:
                report.failed_submodules.append(name)

        root = self.settings.repo_root
        self.runner.run(["git", "add", "."], cwd=root)
        if has_staged_changes(self.runner, root):
            exit_code = self.runner.run(["git", "commit", "-m", report.message], cwd=root)
            if exit_code != 0:
                raise CommandFailed("git commit", exit_code)
            report.committed = True
        else:
            logger.info("no changes to commit in main repository")

        exit_code = self.runner.run(["git", "push"], cwd=root)
        if exit_code != 0:
            raise CommandFailed("git push", exit_code)
        return report

    def _save_submodule(self, path: Path, message: str) -> bool:
        if self.runner.run(["git", "checkout", "main"], cwd=path) != 0:
            self.runner.run(["git", "checkout", "-b", "main"], cwd=path)

        status = self.runner.capture(["git", "status", "--short"], cwd=path)
        if status.stdout.strip():
            self.runner.run(["git", "add", "."], cwd=path)
            self.runner.run(["git", "commit", "-m", message], cwd=path)

        exit_code = self.runner.run(["git", "push", "-u", "origin", "main"], cwd=path)
        if exit_code != 0:
            logger.warning("failed to push %s (exit code %s)", path.name, exit_code)
            return False
        return True
