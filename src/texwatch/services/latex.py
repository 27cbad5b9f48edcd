"""LaTeX toolchain runner for texwatch.

Two build strategies are provided:
- compile_incremental: latexmk driven build (fast, reuses intermediate files)
- compile_full: explicit engine/bibliography/DVI passes, optionally from clean
"""

import logging
import os
import re
import shlex
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from ..config import LatexConfig
from ..core.workspace import resolve_path
from ..errors import BuildFailure
from ..models import BuildResult

logger = logging.getLogger(__name__)

# Log patterns meaning another engine pass is needed
UNRESOLVED_PATTERNS = (
    re.compile(r"LaTeX Warning.*undefined"),
    re.compile(r"LaTeX Warning.*Citation"),
    re.compile(r"Rerun to get cross-references right"),
)
BIBLIOGRAPHY_PATTERN = re.compile(r"\\bibdata|\\citation")


@dataclass
class ToolResult:
    """Captured output of one toolchain command."""

    args: list[str]
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def latex_env(config: LatexConfig) -> dict[str, str]:
    """Build the environment for toolchain commands.

    Exports the configured locale as LANG/LC_ALL and prepends the configured
    search paths to TEXINPUTS (the trailing empty entry keeps system paths).
    """
    env = dict(os.environ)
    if config.locale:
        env["LANG"] = config.locale
        env["LC_ALL"] = config.locale
    if config.texinputs:
        existing = env.get("TEXINPUTS", "")
        env["TEXINPUTS"] = ":".join([*config.texinputs, existing])
    return env


def run_tool(
    args: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    timeout: int | None = None,
) -> ToolResult:
    """Run a toolchain command and capture its output.

    Raises:
        BuildFailure: If the command is missing or times out
    """
    logger.debug(f"$ {shlex.join(args)} (cwd={cwd})")
    try:
        result = subprocess.run(
            args,
            cwd=cwd,
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise BuildFailure(f"{args[0]} timed out after {timeout} seconds") from e
    except FileNotFoundError:
        raise BuildFailure(f"Command not found: {args[0]}") from None
    return ToolResult(args, result.returncode, result.stdout, result.stderr)


def references_resolved(log_path: Path) -> bool:
    """Return False if the engine log asks for another pass."""
    if not log_path.exists():
        return True
    text = log_path.read_text(errors="replace")
    return not any(pattern.search(text) for pattern in UNRESOLVED_PATTERNS)


def needs_bibliography(aux_path: Path) -> bool:
    """Return True if the aux file references bibliography data or citations."""
    if not aux_path.exists():
        return False
    return BIBLIOGRAPHY_PATTERN.search(aux_path.read_text(errors="replace")) is not None


def publish_pdf(workspace: Path, config: LatexConfig) -> Path | None:
    """Copy the built PDF from the build dir to the workspace root.

    Returns:
        Path of the published PDF, or None if the build produced none
    """
    built = resolve_path(workspace, config.build_dir) / f"{config.stem}.pdf"
    if not built.is_file():
        return None
    target = workspace / built.name
    shutil.copyfile(built, target)
    return target


def compile_incremental(workspace: Path, config: LatexConfig) -> BuildResult:
    """Build the document with latexmk.

    Raises:
        BuildFailure: If latexmk is missing or times out
    """
    logger.info(f"Compiling {config.main}...")
    start = time.monotonic()
    build_dir = resolve_path(workspace, config.build_dir)
    build_dir.mkdir(parents=True, exist_ok=True)

    args = [
        config.latexmk,
        *config.latexmk_args,
        f"-outdir={build_dir}",
        "-interaction=nonstopmode",
        config.main,
    ]
    result = run_tool(args, workspace, latex_env(config), config.timeout)
    duration = time.monotonic() - start
    if not result.ok:
        return BuildResult(
            success=False,
            exit_code=result.exit_code,
            duration=duration,
            message=f"{config.latexmk} exited with code {result.exit_code}",
        )
    return BuildResult(
        success=True,
        artifact=publish_pdf(workspace, config),
        exit_code=0,
        duration=duration,
    )


def clean(
    workspace: Path, config: LatexConfig, full: bool = False, keep_published: bool = False
) -> None:
    """Remove intermediate files.

    Args:
        workspace: Workspace root
        config: Toolchain configuration
        full: Also remove generated outputs and empty the build dir
        keep_published: Leave the PDF published to the workspace root in place

    Raises:
        BuildFailure: If latexmk is missing
    """
    build_dir = resolve_path(workspace, config.build_dir)
    flag = "-C" if full else "-c"
    result = run_tool(
        [config.latexmk, flag, f"-outdir={build_dir}", config.main],
        workspace,
        latex_env(config),
        config.timeout,
    )
    if not result.ok:
        logger.warning(f"latexmk {flag} exited with code {result.exit_code}")

    if not keep_published:
        (workspace / f"{config.stem}.pdf").unlink(missing_ok=True)
    if full and build_dir.is_dir():
        for child in build_dir.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()


def _engine_pass(
    workspace: Path, build_dir: Path, config: LatexConfig, env: dict[str, str], n: int
) -> None:
    args = [
        config.engine,
        f"-output-directory={build_dir}",
        "-interaction=nonstopmode",
        config.main,
    ]
    result = run_tool(args, workspace, env, config.timeout)
    if not result.ok:
        logger.warning(f"LaTeX compilation #{n} had warnings/errors (continuing)")


def _run_bibliography(
    workspace: Path, build_dir: Path, config: LatexConfig, env: dict[str, str]
) -> None:
    copied = 0
    for pattern in ("*.bib", "*.bst"):
        for source in workspace.glob(pattern):
            shutil.copyfile(source, build_dir / source.name)
            copied += 1
    if not copied:
        logger.warning("No .bib/.bst files found")

    result = run_tool([config.bibtex, config.stem], build_dir, env, config.timeout)
    if result.ok:
        logger.info(f"{config.bibtex} completed successfully")
    else:
        logger.warning(f"{config.bibtex} failed, continuing without bibliography")


def compile_full(workspace: Path, config: LatexConfig, clean_first: bool = True) -> BuildResult:
    """Build the document with explicit passes until references resolve.

    Raises:
        BuildFailure: If a required tool is missing or times out
    """
    logger.info(f"=== Full compilation of {config.main} ===")
    start = time.monotonic()
    env = latex_env(config)
    build_dir = resolve_path(workspace, config.build_dir)

    if clean_first:
        logger.info("Cleaning all intermediate files...")
        # Published PDF survives until a new one replaces it
        clean(workspace, config, full=True, keep_published=True)
    build_dir.mkdir(parents=True, exist_ok=True)

    _engine_pass(workspace, build_dir, config, env, 1)

    if needs_bibliography(build_dir / f"{config.stem}.aux"):
        logger.info(f"Running {config.bibtex}...")
        _run_bibliography(workspace, build_dir, config, env)
    else:
        logger.info(f"No bibliography found, skipping {config.bibtex}")

    log_path = build_dir / f"{config.stem}.log"
    for n in range(2, config.max_passes + 1):
        logger.info(f"LaTeX compilation #{n}...")
        _engine_pass(workspace, build_dir, config, env, n)
        if references_resolved(log_path):
            logger.info(f"All references resolved after {n} compilations")
            break
        if n == config.max_passes:
            logger.warning(
                f"Reached maximum compilations ({config.max_passes}). "
                "Some references may still be unresolved."
            )

    if config.images_dir:
        images = resolve_path(workspace, config.images_dir)
        if images.is_dir():
            shutil.copytree(images, build_dir / images.name, dirs_exist_ok=True)
        else:
            logger.debug(f"No images directory found at {images}")

    dvi = build_dir / f"{config.stem}.dvi"
    pdf = build_dir / f"{config.stem}.pdf"
    if not dvi.is_file():
        return BuildResult(
            success=False, duration=time.monotonic() - start, message="DVI file not generated"
        )
    result = run_tool([config.dvipdf, dvi.name], build_dir, env, config.timeout)
    if not result.ok and not pdf.is_file():
        return BuildResult(
            success=False,
            exit_code=result.exit_code,
            duration=time.monotonic() - start,
            message="DVI to PDF conversion failed",
        )

    artifact = publish_pdf(workspace, config)
    logger.info("=== Compilation completed successfully ===")
    return BuildResult(
        success=artifact is not None,
        artifact=artifact,
        exit_code=0,
        duration=time.monotonic() - start,
        message="" if artifact else "Failed to copy PDF to workspace",
    )


class LatexBuilder:
    """Binds the toolchain to a workspace as zero-argument build actions."""

    def __init__(self, workspace: Path, config: LatexConfig) -> None:
        self.workspace = workspace
        self.config = config

    def build(self) -> BuildResult:
        """Primary build action: incremental latexmk compile."""
        return compile_incremental(self.workspace, self.config)

    def recover(self) -> BuildResult:
        """Fallback build action: clean, then full multi-pass compile."""
        return compile_full(self.workspace, self.config, clean_first=True)
