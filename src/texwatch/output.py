"""Output formatting for texwatch CLI."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from rich.console import Console

from .models import BuildOutcome, Lock


@dataclass
class OutputContext:
    """Context for output formatting."""

    console: Console
    json_mode: bool = False

    def print(self, message: str, style: str | None = None) -> None:
        """Print message respecting output mode."""
        if not self.json_mode:
            self.console.print(message, style=style)

    def print_json(self, data: dict[str, Any]) -> None:
        """Print JSON data."""
        if self.json_mode:
            print(json.dumps(data, indent=2, default=str))

    def result(self, data: dict[str, Any], message: str = "") -> None:
        """Print result in appropriate format."""
        if self.json_mode:
            self.print_json(data)
        elif message:
            self.console.print(message)

    def error(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print error in appropriate format."""
        if self.json_mode:
            self.print_json({"error": message, **(data or {})})
        else:
            self.console.print(f"[red]Error: {message}[/red]")

    def success(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print success message in appropriate format."""
        if self.json_mode:
            self.print_json({"success": message, **(data or {})})
        else:
            self.console.print(f"[green]{message}[/green]")

    def lock_status(self, lock: Lock | None, running: bool, lock_path: Path) -> None:
        """Report the watcher lock and whether its owner is alive."""
        if lock is None:
            self.result({"running": False, "lock_file": str(lock_path)}, "No watcher running")
            return

        data = {
            "running": running,
            "pid": lock.pid,
            "command": lock.command,
            "started_at": lock.started_at.isoformat(),
            "lock_file": str(lock_path),
        }
        if running:
            message = (
                f"[green]Watcher running[/green] (PID {lock.pid}, "
                f"since {lock.started_at.strftime('%Y-%m-%d %H:%M')})"
            )
        else:
            message = f"[yellow]Stale lock[/yellow] from PID {lock.pid} (process not running)"
        self.result(data, message)

    def build_outcome(self, outcome: BuildOutcome) -> None:
        """Report a finished build session.

        Once the primary build fails, the fallback result is the one reported.
        """
        final = outcome.primary
        if outcome.fallback is not None and not outcome.primary.success:
            final = outcome.fallback
        duration = outcome.primary.duration + (
            outcome.fallback.duration if outcome.fallback else 0.0
        )
        data = {
            "success": outcome.success,
            "recovered": outcome.recovered,
            "artifact": str(final.artifact) if final.artifact else None,
            "duration": round(duration, 2),
        }
        if self.json_mode:
            self.print_json(data)
            return
        if not outcome.success:
            self.console.print(f"[red]Build failed: {final.message or 'no PDF produced'}[/red]")
            return
        note = " [dim](recovered by full rebuild)[/dim]" if outcome.recovered else ""
        self.console.print(f"[green]PDF: {final.artifact}[/green] in {duration:.1f}s{note}")


# Global output context (set by cli.py main callback)
_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Get the current output context.

    Returns a default OutputContext if not yet initialized by CLI.
    """
    if _ctx is None:
        return OutputContext(Console())
    return _ctx


def set_output_context(ctx: OutputContext) -> None:
    """Set the global output context. Called by CLI main callback."""
    global _ctx
    _ctx = ctx
