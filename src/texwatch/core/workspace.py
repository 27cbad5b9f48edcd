"""Workspace directory utilities."""

import os
from pathlib import Path

from ..constants import CONTAINER_WORKSPACE, DOCKERENV_MARKER, TEXWATCH_DIR, WORKSPACE_ENV_VAR


def in_container() -> bool:
    """Return True when running inside a container with a mounted workspace."""
    return Path(DOCKERENV_MARKER).exists() and Path(CONTAINER_WORKSPACE).is_dir()


_override: Path | None = None


def set_workspace_override(path: Path | None) -> None:
    """Set the workspace given on the command line. Called by CLI main callback."""
    global _override
    _override = path


def get_workspace_root(explicit: Path | None = None) -> Path:
    """Resolve the workspace root directory.

    Precedence: explicit path (or the CLI --workspace option), then
    $TEXWATCH_WORKSPACE, then /workspace when running in a container,
    then the current directory.

    Args:
        explicit: Optional path given on the command line

    Returns:
        Absolute path to the workspace root
    """
    explicit = explicit or _override
    if explicit is not None:
        return explicit.resolve()
    env_value = os.environ.get(WORKSPACE_ENV_VAR)
    if env_value:
        return Path(env_value).resolve()
    if in_container():
        return Path(CONTAINER_WORKSPACE)
    return Path.cwd()


def get_texwatch_dir(workspace: Path) -> Path:
    """Get .texwatch directory path."""
    return workspace / TEXWATCH_DIR


def resolve_path(workspace: Path, value: str) -> Path:
    """Resolve a configured path against the workspace root."""
    path = Path(value)
    return path if path.is_absolute() else workspace / path
