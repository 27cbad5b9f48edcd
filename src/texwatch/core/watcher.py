"""Polling rebuild watcher.

Observes a WatchSet, debounces bursts of saves, and runs at most one build
session at a time. A failed build escalates to the fallback build. Neither a
failed build nor a failed fallback stops the loop; only a termination signal
does.
"""

import contextlib
import logging
import signal
import time
from collections.abc import Callable, Iterator
from pathlib import Path
from types import FrameType

from ..constants import DEBOUNCE_INTERVAL, POLL_INTERVAL
from ..errors import FallbackFailure
from ..models import BuildOutcome, SessionState
from .build_session import BuildAction, BuildSession
from .watch_set import WatchSet

logger = logging.getLogger(__name__)


class WatcherStopped(Exception):
    """Raised from a signal handler to unwind the poll loop."""

    def __init__(self, signum: int) -> None:
        super().__init__(f"Received {signal.Signals(signum).name}")
        self.signum = signum


def _raise_stopped(signum: int, frame: FrameType | None) -> None:
    raise WatcherStopped(signum)


class Watcher:
    """Single-threaded poll loop owning the watch set and build session state."""

    def __init__(
        self,
        watch_set: WatchSet,
        build_action: BuildAction,
        fallback_action: BuildAction | None = None,
        poll_interval: float = POLL_INTERVAL,
        debounce_interval: float = DEBOUNCE_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.watch_set = watch_set
        self.build_action = build_action
        self.fallback_action = fallback_action
        self.poll_interval = poll_interval
        self.debounce_interval = debounce_interval
        self.sleep = sleep
        self.session: BuildSession | None = None
        self.outcomes: list[BuildOutcome] = []
        self.cycles = 0

    @property
    def state(self) -> SessionState:
        """Current session state (Idle when no session is active)."""
        return self.session.state if self.session else SessionState.IDLE

    def poll_once(self) -> BuildOutcome | None:
        """Run one poll cycle.

        Returns:
            Outcome of the build started this cycle, or None
        """
        self.cycles += 1
        for path, mtime in self.watch_set.changes():
            if self.session is not None:
                logger.debug("Skipping compilation (already in progress)")
                self.watch_set.record(path, mtime)
                continue

            self.watch_set.record(path, mtime)
            logger.info(f"Change detected in: {path}")
            return self._run_session(path)
        return None

    def build_now(self) -> BuildOutcome | None:
        """Run one build session immediately, without waiting for a change."""
        return self._run_session(None, debounce=False)

    def _run_session(self, trigger: Path | None, debounce: bool = True) -> BuildOutcome | None:
        session = BuildSession(trigger)
        self.session = session
        try:
            if debounce:
                session.transition(SessionState.DEBOUNCING)
                self.sleep(self.debounce_interval)
            coalesced = self.watch_set.refresh()
            if coalesced:
                logger.debug(
                    f"Multiple changes detected, using latest version ({len(coalesced)} updated)"
                )
            try:
                outcome = session.execute(self.build_action, self.fallback_action)
            except FallbackFailure as e:
                logger.error(str(e))
                outcome = session.outcome
        finally:
            self.session = None

        if outcome is not None:
            self.outcomes.append(outcome)
        return outcome

    def run(self, max_cycles: int | None = None) -> None:
        """Poll until stopped by a signal, or for max_cycles cycles."""
        logger.info("Using polling method for mount compatibility")
        logger.info(f"Watching: {self.watch_set.root}/**/*{self.watch_set.extension}")
        while max_cycles is None or self.cycles < max_cycles:
            self.poll_once()
            self.sleep(self.poll_interval)

    @staticmethod
    @contextlib.contextmanager
    def handle_signals() -> Iterator[None]:
        """Turn SIGINT and SIGTERM into WatcherStopped for the duration of the block."""
        previous = {
            sig: signal.signal(sig, _raise_stopped) for sig in (signal.SIGINT, signal.SIGTERM)
        }
        try:
            yield
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)
