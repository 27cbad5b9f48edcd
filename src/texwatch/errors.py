"""texwatch errors."""


class TexwatchError(Exception):
    """Base exception for texwatch errors."""


class ConfigurationError(TexwatchError):
    """Raised when configuration is invalid or the watched directory is missing."""


class BuildFailure(TexwatchError):
    """Raised when the primary build fails."""


class FallbackFailure(TexwatchError):
    """Raised when both the primary and the fallback build fail."""


class LockContention(TexwatchError):
    """Raised when a live watcher holds the instance lock and cannot be terminated."""
