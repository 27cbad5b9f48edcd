"""texwatch: LaTeX build environment with an auto-rebuild watcher."""

__version__ = "0.1.0"
