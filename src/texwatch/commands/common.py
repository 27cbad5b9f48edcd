"""Helpers shared by command implementations."""

from pathlib import Path

import typer

from ..config import TexwatchConfig, load_config
from ..constants import EXIT_CONFIG_ERROR
from ..core import get_workspace_root
from ..errors import ConfigurationError
from ..output import OutputContext


def load_workspace(ctx: OutputContext) -> tuple[Path, TexwatchConfig]:
    """Resolve the workspace and load its config, exiting on configuration errors."""
    workspace = get_workspace_root()
    if not workspace.is_dir():
        ctx.error(f"Workspace not found: {workspace}")
        raise typer.Exit(EXIT_CONFIG_ERROR)
    try:
        config = load_config(workspace)
    except ConfigurationError as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_CONFIG_ERROR) from None
    return workspace, config
