from __future__ import annotations

import sys
from pathlib import Path

from devsync.runner import NOT_FOUND_EXIT_CODE, TIMEOUT_EXIT_CODE, CommandRunner


def test_run_reports_exit_code(tmp_path: Path) -> None:
    runner = CommandRunner()

    assert runner.run([sys.executable, "-c", "raise SystemExit(3)"], cwd=tmp_path) == 3
    assert runner.run(["devsync-no-such-binary"]) == NOT_FOUND_EXIT_CODE


def test_run_timeout() -> None:
    runner = CommandRunner()

    assert runner.run([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2) == TIMEOUT_EXIT_CODE


def test_capture_returns_stdout(tmp_path: Path) -> None:
    output = CommandRunner().capture([sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path)

    assert output.ok
    assert Path(output.stdout.strip()).resolve() == tmp_path.resolve()
    assert CommandRunner().capture(["devsync-no-such-binary"]).exit_code == NOT_FOUND_EXIT_CODE


def test_which() -> None:
    runner = CommandRunner()

    assert runner.which(Path(sys.executable).name) or runner.which("sh")
    assert not runner.which("devsync-no-such-binary")
