"""Pydantic data models for texwatch.

- Instance lock contents (Lock)
- Build results and session summaries (BuildResult, BuildOutcome)
- Build session states (SessionState)
"""

from .build import BuildOutcome, BuildResult, SessionState
from .lock import Lock

__all__ = [
    "BuildOutcome",
    "BuildResult",
    "Lock",
    "SessionState",
]
