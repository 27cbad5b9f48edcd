"""Logging configuration for texwatch CLI."""

import logging
from enum import IntEnum
from typing import TextIO

from rich.console import Console
from rich.logging import RichHandler


class LogLevel(IntEnum):
    """Log level enumeration."""

    QUIET = logging.WARNING
    NORMAL = logging.INFO
    VERBOSE = logging.DEBUG


def configure_logging(
    verbosity: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    stream: TextIO | None = None,
    debug: bool = False,
) -> Console:
    """Configure logging based on CLI options.

    Args:
        verbosity: Number of -v flags (0=normal, 1=verbose, 2+=debug with paths)
        quiet: Only show warnings and errors (takes precedence over debug/verbosity)
        no_color: Disable colored output
        stream: Output stream for logs (default: stderr)
        debug: Same as -vv, ignored if quiet is set

    Returns:
        Configured Rich console for output

    Note:
        Watcher progress ("Tracking", "Change detected", build results) is
        logged at INFO, so the default level shows it and -q hides it.
    """
    if quiet:
        level = LogLevel.QUIET
    elif debug or verbosity >= 1:
        level = LogLevel.VERBOSE
    else:
        level = LogLevel.NORMAL

    console = Console(
        file=stream,
        stderr=stream is None,
        force_terminal=not no_color,
        no_color=no_color,
    )

    show_details = debug or verbosity >= 2
    handler = RichHandler(
        console=console,
        show_time=show_details,
        show_path=show_details,
    )

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )

    return console
