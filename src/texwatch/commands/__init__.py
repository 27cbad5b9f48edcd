"""CLI command implementations for texwatch.

This package contains the implementation of each CLI command,
separated from the CLI framework setup in cli.py.
"""

from .build import build, clean
from .init import init
from .status import status, stop
from .watch import watch

__all__ = [
    "build",
    "clean",
    "init",
    "status",
    "stop",
    "watch",
]
