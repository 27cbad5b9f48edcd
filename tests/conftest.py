"""Shared test fixtures for texwatch tests."""

import os
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
from typer.testing import CliRunner

from texwatch.core import set_workspace_override


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_workspace_override(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep --workspace and $TEXWATCH_WORKSPACE from leaking between tests."""
    monkeypatch.delenv("TEXWATCH_WORKSPACE", raising=False)
    yield
    set_workspace_override(None)


@pytest.fixture
def workspace(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a document workspace with one chapter and a bibliography.

    Changes cwd to the workspace for the duration of the test.
    """
    chapters = tmp_path / "chapters"
    chapters.mkdir()
    (chapters / "a.tex").write_text("\\section{A}\n")
    (tmp_path / "paper.tex").write_text("\\documentclass{article}\n")
    (tmp_path / "paper.bib").write_text("@book{x, title={X}}\n")

    original_cwd = os.getcwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(original_cwd)


Touch = Callable[[Path, int], None]


@pytest.fixture
def touch() -> Touch:
    """Return a helper that sets a file's modification time to an exact value (ns)."""

    def _touch(path: Path, mtime_ns: int) -> None:
        os.utime(path, ns=(mtime_ns, mtime_ns))

    return _touch
