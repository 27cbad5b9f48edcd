"""Constants for texwatch."""

# Watch loop timing (seconds)
POLL_INTERVAL = 1.0
DEBOUNCE_INTERVAL = 0.5
TAKEOVER_GRACE = 0.5  # Wait after signalling a previous watcher

# Directory and file names
TEXWATCH_DIR = ".texwatch"
CONFIG_FILE = "config.toml"
LOCK_FILE = "watch.lock"

# Container workspace detection
DOCKERENV_MARKER = "/.dockerenv"
CONTAINER_WORKSPACE = "/workspace"
WORKSPACE_ENV_VAR = "TEXWATCH_WORKSPACE"

# Exit codes
EXIT_BUILD_FAILED = 1
EXIT_CONFIG_ERROR = 2
EXIT_LOCK_CONTENTION = 3
