"""Logging setup for the ``j`` command."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

DEFAULT_LEVEL = "WARNING"


def setup_logging(verbose: bool = False, *, console: Console | None = None) -> None:
    """Send log records to stderr through rich.

    Args:
        verbose: If True, overrides ``LOG_LEVEL`` to DEBUG.
        console: Console to render through; defaults to a stderr console.

    Environment variables:
        LOG_LEVEL: DEBUG, INFO, WARNING or ERROR. Default: WARNING.
    """

    if verbose:
        level = logging.DEBUG
    else:
        env_level = os.getenv("LOG_LEVEL", DEFAULT_LEVEL).upper()
        level = getattr(logging, env_level, logging.WARNING)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        show_time=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger("devsync")
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
