"""Lock model for single-instance watcher enforcement."""

from datetime import datetime

from pydantic import BaseModel, Field


class Lock(BaseModel):
    """Instance lock written to the configured lock file.

    Attributes:
        pid: Process ID of the watcher holding the lock.
        command: Command that acquired the lock.
        started_at: When the lock was acquired.
    """

    pid: int = Field(description="Process ID holding the lock")
    command: str = Field(default="watch", description="Command that acquired lock")
    started_at: datetime = Field(default_factory=datetime.now)
