"""Status and stop commands for the running watcher."""

import typer

from ..constants import EXIT_LOCK_CONTENTION
from ..core import get_current_lock, is_stale_lock, resolve_path, terminate_owner
from ..errors import LockContention
from ..output import get_output_context
from .common import load_workspace


def status() -> None:
    """Show whether a watcher is running in this workspace."""
    ctx = get_output_context()
    workspace, config = load_workspace(ctx)
    lock_path = resolve_path(workspace, config.watch.lock_file)
    lock = get_current_lock(lock_path)
    ctx.lock_status(lock, lock is not None and not is_stale_lock(lock), lock_path)


def stop() -> None:
    """Terminate the watcher running in this workspace."""
    ctx = get_output_context()
    workspace, config = load_workspace(ctx)
    lock_path = resolve_path(workspace, config.watch.lock_file)
    lock = get_current_lock(lock_path)

    if lock is None or is_stale_lock(lock):
        lock_path.unlink(missing_ok=True)
        ctx.result({"stopped": False}, "No watcher running")
        return

    try:
        terminate_owner(lock, config.watch.takeover_grace)
    except LockContention as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_LOCK_CONTENTION) from None
    lock_path.unlink(missing_ok=True)
    ctx.success(f"Stopped watcher (PID {lock.pid})", {"stopped": True, "pid": lock.pid})
