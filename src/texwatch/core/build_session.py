"""Build session: one build attempt with fallback escalation."""

import logging
import time
from collections.abc import Callable
from pathlib import Path

from ..errors import BuildFailure, FallbackFailure
from ..models import BuildOutcome, BuildResult, SessionState

logger = logging.getLogger(__name__)

BuildAction = Callable[[], BuildResult]

# Allowed state transitions within one session
_TRANSITIONS: dict[SessionState, set[SessionState]] = {
    SessionState.IDLE: {SessionState.DEBOUNCING, SessionState.BUILDING},
    SessionState.DEBOUNCING: {SessionState.BUILDING},
    SessionState.BUILDING: {SessionState.IDLE, SessionState.RECOVERING},
    SessionState.RECOVERING: {SessionState.IDLE},
}


def _invoke(action: BuildAction) -> BuildResult:
    """Run a build action, converting toolchain and filesystem errors into a failed result."""
    start = time.monotonic()
    try:
        result = action()
    except (BuildFailure, OSError) as e:
        logger.debug(f"Build action raised {type(e).__name__}: {e}")
        return BuildResult(success=False, message=str(e), duration=time.monotonic() - start)
    return result


class BuildSession:
    """A single build attempt moving through Idle → Building → (Recovering) → Idle.

    The primary action runs first. The fallback runs exactly once, and only
    when the primary fails.
    """

    def __init__(self, trigger: Path | None = None) -> None:
        self.trigger = trigger
        self.state = SessionState.IDLE
        self.transitions: list[SessionState] = [SessionState.IDLE]
        self.outcome: BuildOutcome | None = None

    @property
    def active(self) -> bool:
        """Return True while debouncing, building or recovering."""
        return self.state is not SessionState.IDLE

    def transition(self, new_state: SessionState) -> None:
        """Move to new_state.

        Raises:
            RuntimeError: If the transition is not allowed
        """
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid session transition {self.state.value} -> {new_state.value}")
        logger.debug(f"Session {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.transitions.append(new_state)

    def execute(self, build: BuildAction, fallback: BuildAction | None = None) -> BuildOutcome:
        """Run the primary build, escalating to the fallback on failure.

        Returns:
            BuildOutcome describing both attempts

        Raises:
            FallbackFailure: If the primary and the fallback both fail
        """
        self.transition(SessionState.BUILDING)
        primary = _invoke(build)
        self.outcome = BuildOutcome(trigger=self.trigger, primary=primary)

        if primary.success:
            if primary.artifact_present:
                logger.info(f"Compilation successful - PDF: {primary.artifact}")
            else:
                logger.warning("Compilation completed but PDF not found in build directory")
            self._finish()
            return self.outcome

        logger.error(f"Compilation failed{_detail(primary)}")
        if fallback is None:
            self._finish()
            raise FallbackFailure(f"Build failed and no fallback configured{_detail(primary)}")

        self.transition(SessionState.RECOVERING)
        logger.info("Retrying with a full clean compile...")
        recovery = _invoke(fallback)
        self.outcome.fallback = recovery
        self._finish()

        if not recovery.success:
            raise FallbackFailure(f"Retry failed{_detail(recovery)}")
        logger.info("Retry successful")
        return self.outcome

    def _finish(self) -> None:
        self.transition(SessionState.IDLE)
        if self.outcome is not None:
            self.outcome.transitions = list(self.transitions)


def _detail(result: BuildResult) -> str:
    return f": {result.message}" if result.message else ""
