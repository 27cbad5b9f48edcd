"""Watch command implementation."""

import logging
import os

import typer

from ..constants import EXIT_CONFIG_ERROR, EXIT_LOCK_CONTENTION
from ..core import InstanceLock, Watcher, WatcherStopped, WatchSet, resolve_path
from ..errors import ConfigurationError, LockContention
from ..output import get_output_context
from ..services import LatexBuilder
from .common import load_workspace

logger = logging.getLogger(__name__)


def watch(
    build_first: bool = typer.Option(
        False,
        "--build-first",
        help="Compile once before watching",
    ),
) -> None:
    """Watch sources and rebuild the document when they change."""
    ctx = get_output_context()
    workspace, config = load_workspace(ctx)
    watch_cfg = config.watch
    builder = LatexBuilder(workspace, config.latex)
    auxiliary = resolve_path(workspace, watch_cfg.auxiliary) if watch_cfg.auxiliary else None
    instance = InstanceLock(
        resolve_path(workspace, watch_cfg.lock_file),
        command="watch",
        grace=watch_cfg.takeover_grace,
    )

    try:
        with Watcher.handle_signals():
            instance.acquire()
            logger.info(f"Watch process started (PID: {os.getpid()})")
            watch_set = WatchSet.scan(
                resolve_path(workspace, watch_cfg.directory),
                watch_cfg.extension,
                auxiliary,
            )
            watcher = Watcher(
                watch_set,
                builder.build,
                builder.recover,
                poll_interval=watch_cfg.poll_interval,
                debounce_interval=watch_cfg.debounce_interval,
            )
            if build_first:
                watcher.build_now()
            watcher.run()
    except LockContention as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_LOCK_CONTENTION) from None
    except ConfigurationError as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_CONFIG_ERROR) from None
    except WatcherStopped as e:
        logger.debug(str(e))
    finally:
        # No-op when the lock was never acquired
        released = instance.release()
        if instance.lock is not None:
            logger.info("Watch stopped")

    if not released:
        raise typer.Exit(1)
