"""Instance lock for the rebuild watcher.

Provides PID-based file locking so that only one watcher runs per workspace.
A lock held by a dead process is reclaimed. A lock held by a live process is
taken over: the previous owner is sent SIGTERM and given a short grace period
to exit before the lock is reclaimed.

Uses atomic file creation (O_CREAT | O_EXCL) to prevent TOCTOU races.
"""

import contextlib
import logging
import os
import signal
import time
from pathlib import Path
from types import TracebackType

from ..constants import TAKEOVER_GRACE
from ..errors import LockContention
from ..models import Lock

logger = logging.getLogger(__name__)

MAX_LOCK_RETRIES = 3  # Max retries when clearing stale or contended locks
_LIVENESS_CHECK_INTERVAL = 0.05


def _is_pid_running(pid: int) -> bool:
    """Check if a process with given PID is running."""
    try:
        os.kill(pid, 0)  # Signal 0 doesn't kill, just checks
    except ProcessLookupError:
        return False
    except PermissionError:
        return True  # Exists, owned by another user
    return True


def get_current_lock(lock_path: Path) -> Lock | None:
    """Get current lock if it exists and is valid.

    Args:
        lock_path: Path to the lock file

    Returns:
        Lock if valid lock exists, None otherwise
    """
    if not lock_path.exists():
        return None

    try:
        return Lock.model_validate_json(lock_path.read_text())
    except Exception:
        # Corrupted lock file - treat as no lock
        return None


def is_stale_lock(lock: Lock) -> bool:
    """Check if lock is stale (owning process is dead)."""
    return not _is_pid_running(lock.pid)


def _wait_for_exit(pid: int, grace: float) -> bool:
    """Wait up to grace seconds for pid to exit. Returns True if it exited."""
    deadline = time.monotonic() + grace
    while _is_pid_running(pid):
        if time.monotonic() >= deadline:
            return False
        time.sleep(_LIVENESS_CHECK_INTERVAL)
    return True


def terminate_owner(lock: Lock, grace: float = TAKEOVER_GRACE) -> None:
    """Terminate the watcher process named in a lock.

    Sends SIGTERM, waits for the grace period, then escalates to SIGKILL.
    A process that already exited is not an error.

    Args:
        lock: Lock naming the process to terminate
        grace: Seconds to wait after each signal

    Raises:
        LockContention: If the process cannot be signalled or does not exit
    """
    for sig in (signal.SIGTERM, signal.SIGKILL):
        try:
            os.kill(lock.pid, sig)
        except ProcessLookupError:
            return
        except PermissionError as e:
            raise LockContention(
                f"Watcher already running (PID {lock.pid}) and cannot be terminated: {e}"
            ) from e
        if _wait_for_exit(lock.pid, grace):
            return
        logger.warning(f"Watcher (PID {lock.pid}) still running after {sig.name}")

    raise LockContention(f"Watcher already running (PID {lock.pid}) and did not exit")


def _try_atomic_create(lock_path: Path, lock: Lock) -> bool:
    """Attempt atomic lock file creation.

    Returns:
        True if lock was created, False if file already exists
    """
    try:
        fd = os.open(str(lock_path), os.O_CREAT | os.O_EXCL | os.O_WRONLY)
    except FileExistsError:
        return False
    try:
        os.write(fd, lock.model_dump_json(indent=2).encode())
    finally:
        os.close(fd)
    return True


def acquire_lock(
    lock_path: Path,
    command: str = "watch",
    grace: float = TAKEOVER_GRACE,
) -> Lock:
    """Acquire the instance lock, taking it over from any previous owner.

    Args:
        lock_path: Path to the lock file
        command: Command acquiring the lock
        grace: Seconds to wait for a previous owner to exit

    Returns:
        Lock object written to lock_path

    Raises:
        LockContention: If a live previous owner cannot be terminated
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = Lock(pid=os.getpid(), command=command)

    for _ in range(MAX_LOCK_RETRIES):
        if _try_atomic_create(lock_path, lock):
            return lock

        existing = get_current_lock(lock_path)
        if existing is None:
            logger.debug(f"Removing unreadable lock file {lock_path}")
        elif existing.pid == os.getpid():
            lock_path.write_text(lock.model_dump_json(indent=2))
            return lock
        elif is_stale_lock(existing):
            logger.debug(f"Reclaiming stale lock from PID {existing.pid}")
        else:
            logger.warning(f"Watch process already running (PID: {existing.pid})")
            logger.warning("Terminating old process...")
            terminate_owner(existing, grace)

        with contextlib.suppress(FileNotFoundError):
            lock_path.unlink()

    raise LockContention(f"Failed to acquire {lock_path} after multiple attempts")


def release_lock(lock_path: Path) -> bool:
    """Release lock if owned by current process.

    Args:
        lock_path: Path to the lock file

    Returns:
        True if the lock is no longer ours on disk, False if removal failed
    """
    existing = get_current_lock(lock_path)
    if existing is None or existing.pid != os.getpid():
        return True
    try:
        lock_path.unlink(missing_ok=True)
    except OSError as e:
        logger.error(f"Failed to release lock {lock_path}: {e}")
        return False
    return True


class InstanceLock:
    """Scoped instance lock with a release that runs at most once.

    Example:
        >>> with InstanceLock(Path(".texwatch/watch.lock")) as lock:
        ...     run_watcher()
        >>> lock.released_cleanly
        True
    """

    def __init__(
        self,
        lock_path: Path,
        command: str = "watch",
        grace: float = TAKEOVER_GRACE,
    ) -> None:
        self.lock_path = lock_path
        self.command = command
        self.grace = grace
        self.lock: Lock | None = None
        self.released = False
        self.released_cleanly = True

    def acquire(self) -> Lock:
        """Acquire the lock, terminating any live previous owner."""
        self.lock = acquire_lock(self.lock_path, self.command, self.grace)
        self.released = False
        return self.lock

    def release(self) -> bool:
        """Release the lock. Later calls are no-ops returning the first result."""
        if self.released or self.lock is None:
            return self.released_cleanly
        self.released = True
        self.released_cleanly = release_lock(self.lock_path)
        return self.released_cleanly

    def __enter__(self) -> "InstanceLock":
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
