"""CLI integration tests for texwatch."""

import json
import os
import signal
from pathlib import Path
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from texwatch.cli import app
from texwatch.core import InstanceLock, Watcher, WatcherStopped, get_current_lock
from texwatch.errors import LockContention
from texwatch.models import BuildResult, Lock


def invoke(runner: CliRunner, workspace: Path, *args: str):
    return runner.invoke(app, ["--no-color", "--workspace", str(workspace), *args])


def lock_file(workspace: Path) -> Path:
    return workspace / ".texwatch" / "watch.lock"


class TestVersionAndHelp:
    """Tests for --version and --help."""

    def test_version_shows_version(self, runner: CliRunner) -> None:
        """--version should display version string."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "texwatch 0.1.0" in result.stdout

    def test_help_shows_commands(self, runner: CliRunner) -> None:
        """--help should list all available commands."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("init", "build", "watch", "status", "stop", "clean"):
            assert command in result.stdout


class TestInit:
    """Tests for texwatch init."""

    def test_creates_config(self, runner: CliRunner, workspace: Path) -> None:
        """init writes the config template when tools are present."""
        with patch("texwatch.commands.init.shutil.which", return_value="/usr/bin/tool"):
            result = invoke(runner, workspace, "init")
        assert result.exit_code == 0
        assert (workspace / ".texwatch" / "config.toml").exists()

    def test_does_not_overwrite_config(self, runner: CliRunner, workspace: Path) -> None:
        """Existing config is kept."""
        config = workspace / ".texwatch" / "config.toml"
        config.parent.mkdir()
        config.write_text('[project]\nname = "thesis"\n')
        with patch("texwatch.commands.init.shutil.which", return_value="/usr/bin/tool"):
            result = invoke(runner, workspace, "init")
        assert "Config already exists" in result.output
        assert config.read_text() == '[project]\nname = "thesis"\n'

    def test_missing_tools_exit_2(self, runner: CliRunner, workspace: Path) -> None:
        """Missing toolchain is reported with exit code 2."""
        with patch("texwatch.commands.init.shutil.which", return_value=None):
            result = invoke(runner, workspace, "init")
        assert result.exit_code == 2
        assert "not found in PATH" in result.output


class TestBuild:
    """Tests for texwatch build."""

    def test_build_success(self, runner: CliRunner, workspace: Path) -> None:
        """Successful build exits 0 and reports the PDF."""
        pdf = workspace / "paper.pdf"
        pdf.write_bytes(b"%PDF")
        builder = MagicMock()
        builder.build.return_value = BuildResult(success=True, artifact=pdf)
        with patch("texwatch.commands.build.LatexBuilder", return_value=builder):
            result = invoke(runner, workspace, "build")
        assert result.exit_code == 0
        builder.recover.assert_not_called()

    def test_build_recovers_with_fallback(self, runner: CliRunner, workspace: Path) -> None:
        """Failed build is retried from clean."""
        pdf = workspace / "paper.pdf"
        pdf.write_bytes(b"%PDF")
        builder = MagicMock()
        builder.build.return_value = BuildResult(success=False, message="exit 12")
        builder.recover.return_value = BuildResult(success=True, artifact=pdf)
        with patch("texwatch.commands.build.LatexBuilder", return_value=builder):
            result = invoke(runner, workspace, "build")
        assert result.exit_code == 0
        builder.recover.assert_called_once_with()

    def test_both_builds_failing_exit_1(self, runner: CliRunner, workspace: Path) -> None:
        """FallbackFailure exits with code 1."""
        builder = MagicMock()
        builder.build.return_value = BuildResult(success=False)
        builder.recover.return_value = BuildResult(success=False, message="DVI file not generated")
        with patch("texwatch.commands.build.LatexBuilder", return_value=builder):
            result = invoke(runner, workspace, "build")
        assert result.exit_code == 1
        assert "DVI file not generated" in result.output

    def test_full_build(self, runner: CliRunner, workspace: Path) -> None:
        """--full runs the multi-pass compile with the --clean flag passed through."""
        pdf = workspace / "paper.pdf"
        with patch(
            "texwatch.commands.build.compile_full",
            return_value=BuildResult(success=True, artifact=pdf),
        ) as full:
            result = invoke(runner, workspace, "build", "--full", "--clean")
        assert result.exit_code == 0
        assert full.call_args.kwargs["clean_first"] is True

    def test_invalid_config_exit_2(self, runner: CliRunner, workspace: Path) -> None:
        """Broken config exits with code 2."""
        config = workspace / ".texwatch" / "config.toml"
        config.parent.mkdir()
        config.write_text("[watch\n")
        result = invoke(runner, workspace, "build")
        assert result.exit_code == 2


class TestWatch:
    """Tests for texwatch watch."""

    def test_signal_releases_lock(self, runner: CliRunner, workspace: Path) -> None:
        """A termination signal exits 0 and removes the lock file."""
        seen: list[Lock | None] = []

        def stop(self: Watcher, max_cycles: int | None = None) -> None:
            seen.append(get_current_lock(lock_file(workspace)))
            raise WatcherStopped(signal.SIGTERM)

        with patch.object(Watcher, "run", stop):
            result = invoke(runner, workspace, "watch")

        assert result.exit_code == 0
        assert seen[0] is not None
        assert seen[0].pid == os.getpid()
        assert not lock_file(workspace).exists()

    def test_signal_right_after_acquire_releases_lock(
        self, runner: CliRunner, workspace: Path
    ) -> None:
        """A signal arriving as soon as the lock is taken still removes the lock file."""
        real_acquire = InstanceLock.acquire

        def acquire_then_signal(self: InstanceLock) -> Lock:
            lock = real_acquire(self)
            os.kill(os.getpid(), signal.SIGTERM)
            return lock

        with patch.object(InstanceLock, "acquire", acquire_then_signal):
            result = invoke(runner, workspace, "watch")

        assert result.exit_code == 0
        assert not lock_file(workspace).exists()

    def test_build_first(self, runner: CliRunner, workspace: Path) -> None:
        """--build-first compiles once before polling."""
        with (
            patch.object(Watcher, "build_now") as build_now,
            patch.object(Watcher, "run", side_effect=WatcherStopped(signal.SIGINT)),
        ):
            result = invoke(runner, workspace, "watch", "--build-first")
        assert result.exit_code == 0
        build_now.assert_called_once()

    def test_missing_directory_exit_2(self, runner: CliRunner, workspace: Path) -> None:
        """Missing watched directory is fatal and still releases the lock."""
        (workspace / "chapters" / "a.tex").unlink()
        (workspace / "chapters").rmdir()
        result = invoke(runner, workspace, "watch")
        assert result.exit_code == 2
        assert "Watched directory not found" in result.output
        assert not lock_file(workspace).exists()

    def test_lock_contention_exit_3(self, runner: CliRunner, workspace: Path) -> None:
        """Unterminable previous watcher exits with code 3."""
        with patch.object(
            InstanceLock, "acquire", side_effect=LockContention("did not exit")
        ):
            result = invoke(runner, workspace, "watch")
        assert result.exit_code == 3

    def test_release_failure_exit_1(self, runner: CliRunner, workspace: Path) -> None:
        """Failure to release the lock on shutdown exits with code 1."""
        with (
            patch.object(Watcher, "run", side_effect=WatcherStopped(signal.SIGTERM)),
            patch.object(InstanceLock, "release", return_value=False),
        ):
            result = invoke(runner, workspace, "watch")
        assert result.exit_code == 1


class TestStatusAndStop:
    """Tests for texwatch status and texwatch stop."""

    def test_status_without_watcher(self, runner: CliRunner, workspace: Path) -> None:
        """No lock file means no watcher."""
        result = invoke(runner, workspace, "status")
        assert result.exit_code == 0
        assert "No watcher running" in result.output

    def test_status_json_with_live_watcher(self, runner: CliRunner, workspace: Path) -> None:
        """Live lock owner is reported as running."""
        path = lock_file(workspace)
        path.parent.mkdir()
        path.write_text(Lock(pid=os.getpid()).model_dump_json())
        result = runner.invoke(app, ["--json", "--workspace", str(workspace), "status"])
        data = json.loads(result.stdout)
        assert data["running"] is True
        assert data["pid"] == os.getpid()

    def test_status_reports_stale_lock(self, runner: CliRunner, workspace: Path) -> None:
        """Lock from a dead process is reported as stale."""
        path = lock_file(workspace)
        path.parent.mkdir()
        path.write_text(Lock(pid=99999).model_dump_json())
        with patch("texwatch.core.lock_manager._is_pid_running", return_value=False):
            result = invoke(runner, workspace, "status")
        assert "Stale lock" in result.output

    def test_stop_terminates_watcher(self, runner: CliRunner, workspace: Path) -> None:
        """stop signals the owner and removes the lock."""
        path = lock_file(workspace)
        path.parent.mkdir()
        path.write_text(Lock(pid=99999).model_dump_json())
        with (
            patch("texwatch.core.lock_manager._is_pid_running", return_value=True),
            patch("texwatch.commands.status.terminate_owner") as terminate,
        ):
            result = invoke(runner, workspace, "stop")
        assert result.exit_code == 0
        assert terminate.call_args.args[0].pid == 99999
        assert not path.exists()

    def test_stop_without_watcher(self, runner: CliRunner, workspace: Path) -> None:
        """stop with no running watcher is a no-op."""
        result = invoke(runner, workspace, "stop")
        assert result.exit_code == 0
        assert "No watcher running" in result.output


class TestClean:
    """Tests for texwatch clean."""

    def test_clean_all(self, runner: CliRunner, workspace: Path) -> None:
        """--all requests a full clean."""
        with patch("texwatch.commands.build.clean_outputs") as clean:
            result = invoke(runner, workspace, "clean", "--all")
        assert result.exit_code == 0
        assert clean.call_args.kwargs["full"] is True
