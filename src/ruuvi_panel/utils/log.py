"""Logging setup — stdlib loggers rendered through Rich on stderr."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False) -> None:
    """Route the ``ruuvi_panel`` loggers (and httpx, when verbose) to Rich on stderr.

    Safe to call more than once: a previously installed Rich handler is
    replaced, not duplicated.
    """
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    levels = {
        "ruuvi_panel": logging.DEBUG if verbose else logging.WARNING,
        "httpx": logging.INFO if verbose else logging.WARNING,
    }
    for name, level in levels.items():
        logger = logging.getLogger(name)
        for existing in list(logger.handlers):
            if isinstance(existing, RichHandler):
                logger.removeHandler(existing)
        logger.addHandler(handler)
        logger.setLevel(level)
