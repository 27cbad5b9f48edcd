"""Build result and session state models."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """States of a single build session."""

    IDLE = "idle"
    DEBOUNCING = "debouncing"
    BUILDING = "building"
    RECOVERING = "recovering"


class BuildResult(BaseModel):
    """Result of one build action invocation."""

    success: bool
    artifact: Path | None = Field(default=None, description="Published PDF, if any")
    exit_code: int | None = None
    duration: float = 0.0
    message: str = ""

    @property
    def artifact_present(self) -> bool:
        """Return True if the artifact exists on disk."""
        return self.artifact is not None and self.artifact.is_file()


class BuildOutcome(BaseModel):
    """Summary of a finished build session."""

    trigger: Path | None = None
    primary: BuildResult
    fallback: BuildResult | None = None
    transitions: list[SessionState] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        """Return True if either build attempt succeeded."""
        if self.primary.success:
            return True
        return self.fallback is not None and self.fallback.success

    @property
    def recovered(self) -> bool:
        """Return True if the fallback build rescued a failed primary build."""
        return not self.primary.success and self.success
