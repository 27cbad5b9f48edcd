"""Watch set: tracked source paths and their last-observed timestamps."""

import logging
from dataclasses import dataclass
from pathlib import Path

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class WatchedPath:
    """A tracked file and its last-observed modification time (ns)."""

    path: Path
    mtime: int | None
    recursive: bool = True


def read_mtime(path: Path) -> int | None:
    """Return modification time in nanoseconds, or None if path cannot be read."""
    try:
        return path.stat().st_mtime_ns
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.debug(f"Cannot stat {path}: {e}")
        return None


class WatchSet:
    """Mapping of watched paths to their recorded timestamps.

    The watched directory is scanned recursively for files with the tracked
    extension. The optional auxiliary file is tracked when it exists. Paths
    that disappear keep their stale entry and never trigger again.
    """

    def __init__(self, root: Path, extension: str, auxiliary: Path | None = None) -> None:
        self.root = root
        self.extension = extension
        self.auxiliary = auxiliary
        self.entries: dict[Path, WatchedPath] = {}

    @classmethod
    def scan(cls, root: Path, extension: str, auxiliary: Path | None = None) -> "WatchSet":
        """Build the initial watch set.

        Raises:
            ConfigurationError: If the watched directory does not exist
        """
        if not root.is_dir():
            raise ConfigurationError(f"Watched directory not found: {root}")

        watch_set = cls(root, extension, auxiliary)
        for path, recursive in watch_set.current_paths():
            mtime = read_mtime(path)
            if mtime is None:
                continue
            watch_set.entries[path] = WatchedPath(path, mtime, recursive)
            logger.info(f"Tracking: {path}")
        if not watch_set.entries:
            logger.warning(f"No *{extension} files found under {root}")
        return watch_set

    def current_paths(self) -> list[tuple[Path, bool]]:
        """List tracked paths present on disk, in a stable order."""
        paths = [
            (p, True) for p in sorted(self.root.rglob(f"*{self.extension}")) if p.is_file()
        ]
        if self.auxiliary is not None and self.auxiliary.is_file():
            paths.append((self.auxiliary, False))
        return paths

    def changes(self) -> list[tuple[Path, int]]:
        """Return (path, current mtime) for every path that differs from its record.

        Files that appeared since the last scan count as changed.
        """
        changed = []
        for path, recursive in self.current_paths():
            mtime = read_mtime(path)
            if mtime is None:
                continue
            entry = self.entries.get(path)
            if entry is None:
                self.entries[path] = WatchedPath(path, None, recursive)
                changed.append((path, mtime))
            elif entry.mtime != mtime:
                changed.append((path, mtime))
        return changed

    def record(self, path: Path, mtime: int) -> None:
        """Record the latest observed timestamp for path."""
        entry = self.entries.get(path)
        if entry is None:
            self.entries[path] = WatchedPath(path, mtime, path != self.auxiliary)
        else:
            entry.mtime = mtime

    def refresh(self) -> list[Path]:
        """Record current timestamps for all tracked paths.

        Returns:
            Paths whose timestamp changed since it was last recorded
        """
        changed = self.changes()
        for path, mtime in changed:
            self.record(path, mtime)
        return [path for path, _ in changed]

    def timestamp(self, path: Path) -> int | None:
        """Return the recorded timestamp for path, if tracked."""
        entry = self.entries.get(path)
        return entry.mtime if entry else None

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, path: object) -> bool:
        return path in self.entries
