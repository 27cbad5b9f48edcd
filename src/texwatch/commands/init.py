"""Init command implementation."""

import shutil

import typer

from ..config import get_config_path, load_config, write_config_template
from ..core import get_workspace_root
from ..output import get_output_context


def init() -> None:
    """Create a texwatch config in the workspace and check the toolchain."""
    ctx = get_output_context()
    workspace = get_workspace_root()
    config_path = get_config_path(workspace)

    if not config_path.exists():
        write_config_template(workspace)
        ctx.console.print(f"[green]Created config template:[/green] {config_path}")
    else:
        ctx.console.print(f"[yellow]Config already exists:[/yellow] {config_path}")

    latex = load_config(workspace).latex
    all_ok = True
    for tool in (latex.latexmk, latex.engine, latex.bibtex, latex.dvipdf):
        if shutil.which(tool):
            ctx.console.print(f"[green]✓[/green] {tool}")
        else:
            ctx.console.print(f"[red]✗[/red] {tool}: not found in PATH")
            all_ok = False

    if not all_ok:
        ctx.console.print("\n[yellow]Warning: Some tools are missing[/yellow]")
        raise typer.Exit(2)

    ctx.console.print("\n[bold green]texwatch initialized successfully![/bold green]")
