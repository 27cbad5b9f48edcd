"""Core watcher logic for texwatch.

- lock_manager: single-instance enforcement via a PID lock file
- watch_set: tracked paths and their recorded timestamps
- build_session: one build attempt with fallback escalation
- watcher: the polling loop tying the above together
"""

from .build_session import BuildAction, BuildSession
from .lock_manager import (
    InstanceLock,
    acquire_lock,
    get_current_lock,
    is_stale_lock,
    release_lock,
    terminate_owner,
)
from .watch_set import WatchedPath, WatchSet
from .watcher import Watcher, WatcherStopped
from .workspace import (
    get_texwatch_dir,
    get_workspace_root,
    in_container,
    resolve_path,
    set_workspace_override,
)

__all__ = [
    "BuildAction",
    "BuildSession",
    "InstanceLock",
    "WatchSet",
    "WatchedPath",
    "Watcher",
    "WatcherStopped",
    "acquire_lock",
    "get_current_lock",
    "get_texwatch_dir",
    "get_workspace_root",
    "in_container",
    "is_stale_lock",
    "release_lock",
    "resolve_path",
    "set_workspace_override",
    "terminate_owner",
]
