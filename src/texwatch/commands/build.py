"""Build and clean command implementations."""

import typer

from ..constants import EXIT_BUILD_FAILED
from ..core import BuildSession
from ..errors import BuildFailure, FallbackFailure
from ..output import get_output_context
from ..services import LatexBuilder, compile_full
from ..services import clean as clean_outputs
from .common import load_workspace


def build(
    full: bool = typer.Option(
        False,
        "--full",
        help="Run only the full multi-pass compile",
    ),
    clean: bool = typer.Option(
        False,
        "--clean",
        help="With --full: remove intermediate files first",
    ),
) -> None:
    """Compile the document once, retrying from clean on failure."""
    ctx = get_output_context()
    workspace, config = load_workspace(ctx)
    builder = LatexBuilder(workspace, config.latex)

    if full:
        try:
            result = compile_full(workspace, config.latex, clean_first=clean)
        except BuildFailure as e:
            ctx.error(str(e))
            raise typer.Exit(EXIT_BUILD_FAILED) from None
        if not result.success:
            ctx.error(result.message or "Full compilation failed")
            raise typer.Exit(EXIT_BUILD_FAILED)
        ctx.success(f"PDF: {result.artifact}", {"artifact": str(result.artifact)})
        return

    try:
        outcome = BuildSession().execute(builder.build, builder.recover)
    except FallbackFailure as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_BUILD_FAILED) from None

    final = outcome.fallback if outcome.recovered else outcome.primary
    if final is None or not final.artifact_present:
        ctx.error("Compilation completed but PDF not found in build directory")
        raise typer.Exit(EXIT_BUILD_FAILED)
    ctx.build_outcome(outcome)


def clean(
    all_files: bool = typer.Option(
        False,
        "--all",
        help="Also remove generated outputs and empty the build directory",
    ),
) -> None:
    """Remove LaTeX intermediate files."""
    ctx = get_output_context()
    workspace, config = load_workspace(ctx)
    try:
        clean_outputs(workspace, config.latex, full=all_files)
    except BuildFailure as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_BUILD_FAILED) from None
    ctx.success("Removed generated files" if all_files else "Removed intermediate files")
