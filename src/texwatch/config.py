"""Configuration management for texwatch."""

import tomllib
from pathlib import Path

import tomli_w
from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import (
    CONFIG_FILE,
    DEBOUNCE_INTERVAL,
    LOCK_FILE,
    POLL_INTERVAL,
    TAKEOVER_GRACE,
    TEXWATCH_DIR,
)
from .errors import ConfigurationError


class ProjectConfig(BaseModel):
    """Project-level configuration."""

    name: str = "paper"


class WatchConfig(BaseModel):
    """Configuration for the rebuild watcher."""

    directory: str = Field(default="chapters", description="Watched root directory")
    extension: str = Field(default=".tex", description="Tracked file extension")
    auxiliary: str | None = Field(
        default="paper.bib", description="Single extra file to watch (e.g. bibliography)"
    )
    poll_interval: float = Field(default=POLL_INTERVAL, gt=0)
    debounce_interval: float = Field(default=DEBOUNCE_INTERVAL, ge=0)
    lock_file: str = Field(default=f"{TEXWATCH_DIR}/{LOCK_FILE}")
    takeover_grace: float = Field(default=TAKEOVER_GRACE, ge=0)

    @field_validator("extension")
    @classmethod
    def _dotted_extension(cls, value: str) -> str:
        if not value:
            raise ValueError("extension must not be empty")
        return value if value.startswith(".") else f".{value}"


class LatexConfig(BaseModel):
    """Configuration for the LaTeX toolchain."""

    main: str = "paper.tex"
    build_dir: str = "build"
    latexmk: str = "latexmk"
    latexmk_args: list[str] = Field(default_factory=lambda: ["-pdfdvi"])
    engine: str = "uplatex"
    bibtex: str = "pbibtex"
    dvipdf: str = "dvipdfmx"
    max_passes: int = Field(default=10, ge=2)
    locale: str | None = "ja_JP.UTF-8"
    texinputs: list[str] = Field(default_factory=lambda: ["./chapters//", "./packages//"])
    images_dir: str | None = "images"
    timeout: int | None = Field(default=None, description="Per-tool timeout in seconds")

    @property
    def stem(self) -> str:
        """Job name of the main document (file name without extension)."""
        return Path(self.main).stem


class TexwatchConfig(BaseModel):
    """Root configuration for texwatch."""

    project: ProjectConfig = Field(default_factory=ProjectConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    latex: LatexConfig = Field(default_factory=LatexConfig)


def get_config_path(workspace: Path) -> Path:
    """Get path to the workspace config file."""
    return workspace / TEXWATCH_DIR / CONFIG_FILE


def load_config(workspace: Path) -> TexwatchConfig:
    """Load config from .texwatch/config.toml.

    Args:
        workspace: Workspace root directory

    Returns:
        Loaded configuration, or defaults if config.toml doesn't exist

    Raises:
        ConfigurationError: If the file cannot be parsed or fails validation
    """
    config_path = get_config_path(workspace)
    if not config_path.exists():
        return TexwatchConfig()
    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigurationError(f"Cannot read {config_path}: {e}") from e
    try:
        return TexwatchConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}:\n{e}") from e


def write_config_template(workspace: Path) -> Path:
    """Write default config.toml template.

    Args:
        workspace: Workspace root directory

    Returns:
        Path to the written config file
    """
    config_path = get_config_path(workspace)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    defaults = TexwatchConfig()
    template = {
        "project": {"name": defaults.project.name},
        "watch": defaults.watch.model_dump(exclude_none=True),
        "latex": defaults.latex.model_dump(exclude_none=True),
    }
    with open(config_path, "wb") as f:
        tomli_w.dump(template, f)
    return config_path
