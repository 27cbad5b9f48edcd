"""texwatch CLI: LaTeX build environment with an auto-rebuild watcher."""

from pathlib import Path

import typer

from texwatch import __version__

from .commands import build, clean, init, status, stop, watch
from .core import set_workspace_override
from .logging import configure_logging
from .output import OutputContext, set_output_context


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"texwatch {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="texwatch",
    help="Build a multi-file LaTeX document and rebuild it when sources change",
    no_args_is_help=True,
)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase verbosity (-v, -vv)",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Only show warnings and errors",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in JSON format for automation",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Disable colored output",
    ),
    workspace: Path | None = typer.Option(
        None,
        "--workspace",
        "-w",
        help="Workspace root (default: $TEXWATCH_WORKSPACE, /workspace in a container, or cwd)",
    ),
) -> None:
    """texwatch - compile and watch a LaTeX document."""
    console = configure_logging(
        verbosity=verbose,
        quiet=quiet,
        no_color=no_color,
    )
    set_output_context(OutputContext(console=console, json_mode=json_output))
    set_workspace_override(workspace)


app.command()(init)
app.command()(build)
app.command()(watch)
app.command()(status)
app.command()(stop)
app.command()(clean)


def run() -> None:
    """Entry point for the texwatch console script."""
    app()
